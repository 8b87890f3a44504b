"""Fill arithmetic gaps between base, VAT, IRPF and total.

Explicitly extracted values always win over inferred ones. The rules run in a
fixed order:

1. base known, VAT amount missing: VAT = base x rate (default rate, warned).
2. withholding wording present, base known, IRPF amount missing:
   IRPF = base x rate (default rate, warned), unless the printed total already
   balances without any withholding.
3. no withholding wording at all: IRPF is forced to zero.
4. base missing, total known: with a VAT amount the base is
   total - VAT + IRPF, a missing IRPF counting as zero unless its rate was
   printed. Without one the base is estimated from the rates, with a warning.
5. total missing: total = base + VAT - IRPF.
6. rates above 100 are amounts caught in the rate slot: they are reset to the
   default and the sign of the IRPF rate is set to the caller's convention.
7. IRPF amounts are stored unsigned; subtraction happens in the formulas.

Rates found without a printed percentage are recovered from ``amount / base``
when they land close to a common Spanish rate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..config import Settings, settings as default_settings
from ..ocr.postprocess import quantize_money
from ..schemas import TaxFigures
from .calculations import (
    COMMON_IRPF_RATES,
    COMMON_VAT_RATES,
    IRPF_SNAP_DISTANCE,
    VAT_SNAP_DISTANCE,
    base_from_amounts,
    base_from_rates,
    expected_total,
    implied_rate,
    percentage_of,
    snap_rate,
)

logger = logging.getLogger(__name__)

MAX_RATE = 100
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class InferenceResult:
    figures: TaxFigures
    warnings: tuple[str, ...] = ()


def _usable(rate: Optional[int]) -> Optional[int]:
    if rate is None or abs(rate) > MAX_RATE:
        return None
    return abs(rate)


def _recover_rate(
    amount: Optional[Decimal],
    base: Optional[Decimal],
    candidates: tuple[int, ...],
    max_distance: int,
) -> Optional[int]:
    if amount is None or base is None or amount <= 0:
        return None
    raw = implied_rate(amount, base)
    if raw is None:
        return None
    return snap_rate(raw, candidates, max_distance)


def infer_taxes(
    figures: TaxFigures,
    *,
    withholding_context: bool,
    negative_irpf_rate: bool = False,
    config: Optional[Settings] = None,
) -> InferenceResult:
    """Return completed figures plus the warnings raised while completing them.

    *negative_irpf_rate* selects the sign convention of the returned IRPF rate
    (invoices present the withholding as ``-15``, expenses as ``15``).
    """

    config = config or default_settings
    default_vat = config.default_vat_rate
    default_irpf = config.default_irpf_rate
    warnings: list[str] = []

    base = figures.base
    total = figures.total
    vat_amount = figures.vat_amount
    vat_rate = figures.vat_rate
    irpf_amount = abs(figures.irpf_amount) if figures.irpf_amount is not None else None
    irpf_rate = figures.irpf_rate

    # Rule 1
    if base is not None and vat_amount is None:
        rate = _usable(vat_rate)
        if rate is None:
            rate = default_vat
            if vat_rate is None:
                vat_rate = default_vat
                warnings.append(f"VAT rate assumed {default_vat}%")
        vat_amount = percentage_of(base, rate)
        logger.debug("VAT amount inferred from base at %s%%: %s", rate, vat_amount)

    # Rule 2
    if withholding_context and base is not None and irpf_amount is None:
        rate = _usable(irpf_rate)
        balances_without_irpf = (
            rate is None
            and vat_amount is not None
            and total is not None
            and abs(base + vat_amount - total) <= config.total_tolerance
        )
        if balances_without_irpf:
            irpf_amount = ZERO
            irpf_rate = 0
            logger.debug("Withholding wording found but the total balances without IRPF")
        else:
            if rate is None:
                rate = default_irpf
                if irpf_rate is None:
                    irpf_rate = default_irpf
                    warnings.append(f"IRPF rate assumed {default_irpf}%")
            irpf_amount = percentage_of(base, rate)
            logger.debug("IRPF amount inferred from base at %s%%: %s", rate, irpf_amount)

    # Rule 3
    if not withholding_context:
        if irpf_amount:
            logger.info("Ignoring IRPF amount %s: no withholding wording in the document", irpf_amount)
        irpf_amount = ZERO
        irpf_rate = 0

    # Rule 4
    if base is None and total is not None:
        if vat_amount is not None:
            if irpf_amount is None:
                withholding = _usable(irpf_rate)
                if withholding:
                    base = base_from_rates(total - vat_amount, 0, withholding)
                    irpf_amount = percentage_of(base, withholding)
                else:
                    irpf_amount = ZERO
                    irpf_rate = 0
            if base is None:
                base = base_from_amounts(total, vat_amount, irpf_amount)
        else:
            rate = _usable(vat_rate)
            if rate is None:
                rate = default_vat
                if vat_rate is None:
                    vat_rate = default_vat
                    warnings.append(f"VAT rate assumed {default_vat}%")
            if irpf_amount is None:
                withholding = _usable(irpf_rate)
                if withholding is None:
                    withholding = default_irpf
                    if irpf_rate is None:
                        irpf_rate = default_irpf
                        warnings.append(f"IRPF rate assumed {default_irpf}%")
                base = base_from_rates(total, rate, withholding)
                irpf_amount = percentage_of(base, withholding)
                if vat_amount is None:
                    vat_amount = percentage_of(base, rate)
            else:
                base = quantize_money((total + irpf_amount) / (1 + Decimal(rate) / 100))
                vat_amount = quantize_money(total - base + irpf_amount)
            warnings.append(f"Base estimated from total assuming {rate}% VAT")
        logger.debug("Base back-computed from total %s: %s", total, base)

    # Rule 5
    if total is None and base is not None:
        total = expected_total(base, vat_amount, irpf_amount)
        logger.debug("Total derived from components: %s", total)

    if vat_rate is None:
        vat_rate = _recover_rate(vat_amount, base, COMMON_VAT_RATES, VAT_SNAP_DISTANCE)
    if irpf_rate is None:
        irpf_rate = _recover_rate(irpf_amount, base, COMMON_IRPF_RATES, IRPF_SNAP_DISTANCE)

    # Rule 6
    if vat_rate is not None and abs(vat_rate) > MAX_RATE:
        warnings.append(f"VAT rate {vat_rate}% out of range, reset to {default_vat}%")
        logger.info("VAT rate %s looks like an amount; using %s%%", vat_rate, default_vat)
        vat_rate = default_vat
        if figures.vat_amount is None and base is not None:
            vat_amount = percentage_of(base, vat_rate)
    if irpf_rate is not None and abs(irpf_rate) > MAX_RATE:
        warnings.append(f"IRPF rate {abs(irpf_rate)}% out of range, reset to {default_irpf}%")
        logger.info("IRPF rate %s looks like an amount; using %s%%", irpf_rate, default_irpf)
        irpf_rate = default_irpf
        if figures.irpf_amount is None and base is not None:
            irpf_amount = percentage_of(base, irpf_rate)
    if irpf_rate is not None:
        irpf_rate = -abs(irpf_rate) if negative_irpf_rate and irpf_rate else abs(irpf_rate)
    if vat_rate is not None:
        vat_rate = abs(vat_rate)

    # Rule 7
    if irpf_amount is not None:
        irpf_amount = abs(irpf_amount)

    completed = TaxFigures(
        base=quantize_money(base) if base is not None else None,
        vat_amount=quantize_money(vat_amount) if vat_amount is not None else None,
        vat_rate=vat_rate,
        irpf_amount=quantize_money(irpf_amount) if irpf_amount is not None else None,
        irpf_rate=irpf_rate,
        total=quantize_money(total) if total is not None else None,
    )
    return InferenceResult(figures=completed, warnings=tuple(warnings))
