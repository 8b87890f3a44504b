"""Arithmetic helpers shared by the inference engine and the validator."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from ..ocr.postprocess import quantize_money

HUNDRED = Decimal("100")

COMMON_VAT_RATES = (4, 10, 21)
COMMON_IRPF_RATES = (7, 15, 19)
VAT_SNAP_DISTANCE = 1
IRPF_SNAP_DISTANCE = 2


def percentage_of(amount: Decimal, rate: int) -> Decimal:
    return quantize_money(amount * Decimal(rate) / HUNDRED)


def expected_total(base: Decimal, vat_amount: Optional[Decimal], irpf_amount: Optional[Decimal]) -> Decimal:
    return quantize_money(base + (vat_amount or Decimal("0")) - (irpf_amount or Decimal("0")))


def base_from_amounts(total: Decimal, vat_amount: Decimal, irpf_amount: Decimal) -> Decimal:
    """Undo ``total = base + vat - irpf``."""

    return quantize_money(total - vat_amount + irpf_amount)


def base_from_rates(total: Decimal, vat_rate: int, irpf_rate: int = 0) -> Decimal:
    """Base of a *total* that carries *vat_rate* and withholds *irpf_rate* (both in %).

    ``total = base * (1 + vat/100 - irpf/100)``; the IRPF rate is taken by
    magnitude.
    """

    factor = Decimal(1) + (Decimal(vat_rate) - Decimal(abs(irpf_rate))) / HUNDRED
    if factor <= 0:
        return quantize_money(total)
    return quantize_money(total / factor)


def snap_rate(raw_rate: Decimal, candidates: Iterable[int], max_distance: int) -> Optional[int]:
    """Nearest candidate rate within *max_distance* points of *raw_rate*."""

    best: Optional[int] = None
    best_distance: Optional[Decimal] = None
    for candidate in candidates:
        distance = abs(raw_rate - Decimal(candidate))
        if distance <= max_distance and (best_distance is None or distance < best_distance):
            best, best_distance = candidate, distance
    return best


def implied_rate(amount: Decimal, base: Decimal) -> Optional[Decimal]:
    if base <= 0:
        return None
    return amount * HUNDRED / base
