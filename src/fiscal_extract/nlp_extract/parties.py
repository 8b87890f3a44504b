"""Issuer and client identification (tax IDs, names, addresses)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ..ocr.postprocess import align_slice, normalize_text
from ..schemas import Party
from .rules import (
    ADDRESS_LABEL,
    CLIENT_NAME_LABEL,
    CLIENT_SECTION,
    ISSUER_NAME_LABEL,
    LABEL_LINE,
    LEGAL_FORM_COMPANY,
    NOT_A_CONCEPT,
    POSTAL_CITY,
    STREET_ADDRESS,
    TAX_ID_GENERIC,
    TAX_ID_LABEL,
    TAX_ID_LABELLED,
)

logger = logging.getLogger(__name__)

CLIENT_SECTION_CHARS = 300
HEADER_LINES = 5
CLIENT_FOLLOWING_LINES = 3

_INLINE_TAX_LABEL = re.compile(r"[\s,;-]*\b" + TAX_ID_LABEL + r"\s*:?\s*$", re.IGNORECASE)
_NAME_STOP = re.compile(
    r"\s*(?:\b(?:nif|cif|dni|direcci[oó]n|domicilio)\b|[,;|]\s*$)", re.IGNORECASE
)
# "Label: value" lines are never a company header
_FIELD_LINE = re.compile(r"[^:\n]{1,25}:")
_AMOUNT_SHAPE = re.compile(r"\d[.,]\d{2}\b")


@dataclass(frozen=True)
class TaxIdHit:
    value: str
    start: int


@dataclass(frozen=True)
class Region:
    start: int
    end: int

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end


def _canonical_tax_id(raw: str) -> str:
    return raw.replace("-", "").upper()


def find_tax_ids(normalized: str) -> list[TaxIdHit]:
    """Labelled tax IDs plus any bare NIF/CIF/NIE shapes, ordered by position."""

    hits: dict[str, TaxIdHit] = {}
    for pattern in (TAX_ID_LABELLED, TAX_ID_GENERIC):
        for match in pattern.finditer(normalized):
            value = _canonical_tax_id(match.group(1))
            start = match.start(1)
            if value not in hits or start < hits[value].start:
                hits[value] = TaxIdHit(value=value, start=start)
    return sorted(hits.values(), key=lambda hit: hit.start)


def assign_tax_ids_by_order(
    hits: Sequence[TaxIdHit],
) -> tuple[Optional[TaxIdHit], Optional[TaxIdHit]]:
    """First tax ID in reading order belongs to the issuer, the second to the client.

    This ignores layout completely; swap this function out to change the
    attribution heuristic.
    """

    issuer = hits[0] if hits else None
    client = hits[1] if len(hits) > 1 else None
    return issuer, client


def find_client_section(normalized: str) -> Optional[Region]:
    match = CLIENT_SECTION.search(normalized)
    if match is None:
        return None
    return Region(match.start(), min(len(normalized), match.start() + CLIENT_SECTION_CHARS))


def attribute_tax_ids(
    hits: Sequence[TaxIdHit], client_section: Optional[Region]
) -> tuple[Optional[TaxIdHit], Optional[TaxIdHit]]:
    if client_section is not None:
        in_section = [hit for hit in hits if client_section.contains(hit.start)]
        if in_section:
            client = in_section[0]
            others = [hit for hit in hits if hit is not client]
            return (others[0] if others else None), client
    return assign_tax_ids_by_order(hits)


def _tidy_name(raw: str) -> Optional[str]:
    name = _NAME_STOP.split(raw, maxsplit=1)[0]
    name = re.sub(r"\s+", " ", name).strip(" :-,;")
    if len(name) < 3 or not re.search(r"[A-Za-zÀ-ÿ]{2,}", name):
        return None
    return name


def _is_label_line(line: str) -> bool:
    normalized = line.lower()
    return bool(LABEL_LINE.search(normalized) or STREET_ADDRESS.search(normalized)
                or POSTAL_CITY.search(normalized))


def name_near(original: str, position: int, window: int) -> Optional[str]:
    """Closest plausible name in the *window* characters before *position*.

    The text on the tax ID's own line ("ACME S.L. - CIF:") is tried first.
    """

    before = original[max(0, position - window) : position]
    lines = before.split("\n")
    same_line = _INLINE_TAX_LABEL.sub("", lines[-1]).strip()
    if same_line and not _is_label_line(same_line):
        name = _tidy_name(same_line)
        if name:
            return name
    for line in reversed(lines[:-1]):
        candidate = line.strip()
        if not candidate or _is_label_line(candidate):
            continue
        name = _tidy_name(candidate)
        if name:
            return name
    return None


def _is_header_candidate(line: str) -> bool:
    if _is_label_line(line) or _FIELD_LINE.match(line):
        return False
    if re.search(r"\d{1,2}/\d{1,2}/\d{2,4}", line) or _AMOUNT_SHAPE.search(line):
        return False
    return not NOT_A_CONCEPT.search(normalize_text(line))


def header_name(original: str) -> Optional[str]:
    lines = [line.strip() for line in original.split("\n") if line.strip()]
    for line in lines[:HEADER_LINES]:
        if not _is_header_candidate(line):
            continue
        name = _tidy_name(line)
        if name:
            return name
    return None


def legal_form_name(original: str) -> Optional[str]:
    for match in LEGAL_FORM_COMPANY.finditer(original):
        name = _tidy_name(match.group(1))
        if name and not _is_label_line(name):
            return f"{name} {match.group(2)}"
    return None


def _labelled_issuer_name(original: str, normalized: str, limit: int) -> Optional[str]:
    match = ISSUER_NAME_LABEL.search(normalized, 0, limit)
    if match is None:
        return None
    return _tidy_name(align_slice(original, normalized, *match.span(1)))


def _labelled_client_name(original: str, normalized: str) -> Optional[str]:
    match = CLIENT_NAME_LABEL.search(normalized)
    if match is None:
        return None
    inline = _tidy_name(align_slice(original, normalized, *match.span(1)))
    if inline:
        return inline
    following = original[match.end() :].split("\n")[1 : CLIENT_FOLLOWING_LINES + 1]
    for line in following:
        candidate = line.strip()
        if candidate and not _is_label_line(candidate):
            return _tidy_name(candidate)
    return None


def _address_in(original: str, normalized: str, region: Region) -> Optional[str]:
    match = ADDRESS_LABEL.search(normalized, region.start, region.end)
    if match:
        return align_slice(original, normalized, *match.span(1)).strip(" ,.") or None
    for pattern in (STREET_ADDRESS, POSTAL_CITY):
        match = pattern.search(normalized, region.start, region.end)
        if match:
            line_end = normalized.find("\n", match.start())
            end = line_end if line_end != -1 and line_end <= region.end else region.end
            return align_slice(original, normalized, match.start(), end).strip(" ,.") or None
    return None


def extract_parties(original: str, normalized: str, window: int) -> tuple[Party, Party]:
    """Build issuer and client from tax IDs, labels and proximity."""

    if len(original) != len(normalized):
        original = normalized
    hits = find_tax_ids(normalized)
    client_section = find_client_section(normalized)
    issuer_hit, client_hit = attribute_tax_ids(hits, client_section)
    issuer_limit = client_section.start if client_section and client_section.start > 0 else len(normalized)

    issuer_name = _labelled_issuer_name(original, normalized, issuer_limit)
    if issuer_name is None and issuer_hit is not None:
        issuer_name = name_near(original, issuer_hit.start, window)
    if issuer_name is None:
        issuer_name = header_name(original[:issuer_limit])

    client_name = _labelled_client_name(original, normalized)
    if client_name is None and client_hit is not None:
        client_name = name_near(original, client_hit.start, window)
    if client_name is not None and client_name == issuer_name:
        client_name = None

    issuer_address = _address_in(original, normalized, Region(0, issuer_limit))
    client_address = None
    if client_section is not None:
        client_address = _address_in(original, normalized, client_section)

    issuer = Party(
        name=issuer_name,
        tax_id=issuer_hit.value if issuer_hit else None,
        address=issuer_address,
    )
    client = Party(
        name=client_name,
        tax_id=client_hit.value if client_hit else None,
        address=client_address,
    )
    logger.debug("Parties resolved: issuer=%s client=%s", issuer, client)
    return issuer, client


def extract_vendor(original: str, normalized: str, window: int) -> Optional[str]:
    """Vendor of a receipt: label, then the name beside the first tax ID, then legal form, then header."""

    if len(original) != len(normalized):
        original = normalized
    vendor = _labelled_issuer_name(original, normalized, len(normalized))
    if vendor is None:
        hits = find_tax_ids(normalized)
        if hits:
            vendor = name_near(original, hits[0].start, window)
    if vendor is None:
        vendor = legal_form_name(original)
    if vendor is None:
        vendor = header_name(original)
    return vendor
