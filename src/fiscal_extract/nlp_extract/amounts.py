"""Monetary field extraction: base, VAT, IRPF and total."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence, TypeVar

from ..ocr.postprocess import quantize_money
from ..schemas import TaxFigures
from .rules import (
    BASE_STRATEGIES,
    IRPF_RATE_STRATEGIES,
    IRPF_STRATEGIES,
    RECEIPT_TOTAL_STRATEGIES,
    TOTAL_STRATEGIES,
    VAT_RATE_STRATEGIES,
    VAT_STRATEGIES,
    Strategy,
    first_match,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _first(field: str, normalized: str, strategies: Sequence[Strategy[T]]) -> Optional[T]:
    hit = first_match(normalized, strategies)
    if hit is None:
        return None
    name, value = hit
    logger.debug("%s matched by %s strategy: %s", field, name, value)
    return value


def _money(value: Optional[Decimal]) -> Optional[Decimal]:
    return quantize_money(value) if value is not None else None


def _rated(
    field: str,
    normalized: str,
    strategies: Sequence[Strategy[tuple[Optional[int], Decimal]]],
    rate_strategies: Sequence[Strategy[int]],
) -> tuple[Optional[int], Optional[Decimal]]:
    rate: Optional[int] = None
    amount: Optional[Decimal] = None
    hit = _first(field, normalized, strategies)
    if hit is not None:
        rate, amount = hit
    if rate is None:
        rate = _first(f"{field} rate", normalized, rate_strategies)
    return rate, _money(amount)


def extract_figures(normalized: str, receipt: bool = False) -> TaxFigures:
    """Pull every monetary field out of *normalized* text.

    Nothing is inferred here: fields that are not printed stay ``None``. IRPF
    amounts are stored unsigned while the IRPF rate keeps whatever sign the
    document printed. With ``receipt=True`` looser total patterns are tried
    when no labelled total exists.
    """

    base = _money(_first("Base", normalized, BASE_STRATEGIES))
    vat_rate, vat_amount = _rated("VAT", normalized, VAT_STRATEGIES, VAT_RATE_STRATEGIES)
    irpf_rate, irpf_amount = _rated("IRPF", normalized, IRPF_STRATEGIES, IRPF_RATE_STRATEGIES)

    total = _first("Total", normalized, TOTAL_STRATEGIES)
    if total is None and receipt:
        total = _first("Receipt total", normalized, RECEIPT_TOTAL_STRATEGIES)

    return TaxFigures(
        base=base,
        vat_amount=vat_amount,
        vat_rate=vat_rate,
        irpf_amount=irpf_amount,
        irpf_rate=irpf_rate,
        total=_money(total),
    )
