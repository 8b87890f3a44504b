"""Extractors for the non-monetary fields: dates, numbers, concept, payment."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from ..ocr.postprocess import align_slice
from .rules import (
    CONCEPT_LABEL,
    DATE_STRATEGIES,
    IBAN_PATTERN,
    INVOICE_NUMBER_NEAR_STRATEGIES,
    INVOICE_NUMBER_SHAPE_STRATEGIES,
    INVOICE_NUMBER_STRATEGIES,
    ITEMS_HEADER,
    NOT_A_CONCEPT,
    PAYMENT_LABEL,
    PAYMENT_VOCABULARY,
    SPANISH_MONTHS,
    WITHHOLDING_CONTEXT,
    first_match,
    iter_matches,
)

logger = logging.getLogger(__name__)

# Lines this short are column headers or OCR debris, not a concept
MIN_CONCEPT_LENGTH = 6
ITEMS_LOOKAHEAD_LINES = 6

_TRAILING_COLUMNS = re.compile(r"(?:\s+-?[\d.,]+\s*(?:€|%|eur)?)+\s*$", re.IGNORECASE)


def format_es_date(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year}"


def _build_date(day: str, month: str, year: str, today: date) -> Optional[date]:
    month_number = SPANISH_MONTHS.get(month) if not month.isdigit() else int(month)
    if month_number is None:
        return None
    if len(year) == 2:
        year = f"{str(today.year)[:2]}{year}"
    elif len(year) != 4:
        return None
    try:
        return date(int(year), month_number, int(day))
    except ValueError:
        return None


def extract_date(normalized: str, today: date) -> Optional[date]:
    """Return the first calendar-valid date in *normalized*.

    Two-digit years are expanded with the century of *today*.
    """

    for name, (day, month, year) in iter_matches(normalized, DATE_STRATEGIES):
        found = _build_date(day, month, year, today)
        if found is not None:
            logger.debug("Date matched by %s strategy: %s", name, found)
            return found
    return None


def extract_invoice_number(original: str, normalized: str) -> Optional[str]:
    hit = first_match(original, INVOICE_NUMBER_STRATEGIES)
    if hit is None and "factura" in normalized:
        hit = first_match(original, INVOICE_NUMBER_NEAR_STRATEGIES)
    if hit is None:
        hit = first_match(original, INVOICE_NUMBER_SHAPE_STRATEGIES)
    if hit is None:
        return None
    name, value = hit
    logger.debug("Invoice number matched by %s strategy: %s", name, value)
    return value.strip("/-")


def auto_invoice_number(today: date) -> str:
    return f"AUTO-{today:%Y%m%d}"


def _clean_concept(line: str) -> str:
    line = _TRAILING_COLUMNS.sub("", line.strip())
    return re.sub(r"\s+", " ", line).strip(" :-")


def extract_concept(original: str, normalized: str) -> Optional[str]:
    """Find the line concept.

    An explicit ``Concepto:``/``Descripción:`` label wins; otherwise the first
    plausible line below a line-items header is used.
    """

    match = CONCEPT_LABEL.search(normalized)
    if match:
        concept = _clean_concept(align_slice(original, normalized, *match.span(1)))
        if re.search(r"[^\W\d_]{3,}", concept):
            return concept

    header = ITEMS_HEADER.search(normalized)
    if header is None:
        return None

    offset = header.end()
    for line in normalized[offset:].split("\n")[1 : ITEMS_LOOKAHEAD_LINES + 1]:
        start = offset + 1
        offset += len(line) + 1
        candidate = line.strip()
        if len(candidate) < MIN_CONCEPT_LENGTH or NOT_A_CONCEPT.search(candidate):
            continue
        if not re.search(r"[a-z]{4,}", candidate):
            continue
        concept = _clean_concept(align_slice(original, normalized, start, start + len(line)))
        if concept:
            return concept
    return None


def extract_payment_method(original: str, normalized: str) -> Optional[str]:
    match = PAYMENT_LABEL.search(normalized)
    if match:
        method = align_slice(original, normalized, *match.span(1)).strip(" .:")
        if method:
            return method
    for pattern, method in PAYMENT_VOCABULARY:
        if pattern.search(normalized):
            return method
    return None


def format_iban(raw: str) -> str:
    compact = re.sub(r"\s+", "", raw).upper()
    return " ".join(compact[idx : idx + 4] for idx in range(0, len(compact), 4))


def extract_bank_account(original: str) -> Optional[str]:
    match = IBAN_PATTERN.search(original.upper())
    if match is None:
        return None
    return format_iban(match.group(0))


def has_withholding_context(normalized: str) -> bool:
    return WITHHOLDING_CONTEXT.search(normalized) is not None
