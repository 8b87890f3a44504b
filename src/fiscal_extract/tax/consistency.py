from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..config import settings as default_settings
from ..schemas import TaxFigures
from .calculations import expected_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    figures: TaxFigures
    warnings: tuple[str, ...] = ()
    overridden: bool = False


def validate_totals(
    figures: TaxFigures,
    *,
    tolerance: Optional[Decimal] = None,
    override_threshold: Optional[Decimal] = None,
) -> ValidationResult:
    """Check ``total == base + vat - irpf``.

    A gap above *tolerance* is reported; a gap above *override_threshold* is
    treated as a misread total and replaced by the computed one. Nothing is
    checked when the base or the total is unknown.
    """

    tolerance = default_settings.total_tolerance if tolerance is None else tolerance
    if override_threshold is None:
        override_threshold = default_settings.total_override_threshold

    if figures.base is None or figures.total is None:
        return ValidationResult(figures=figures)

    calculated = expected_total(figures.base, figures.vat_amount, figures.irpf_amount)
    discrepancy = abs(figures.total - calculated)
    if discrepancy <= tolerance:
        return ValidationResult(figures=figures)

    warnings = [
        f"Total {figures.total} does not match base + VAT - IRPF = {calculated} "
        f"(difference {discrepancy})"
    ]
    if discrepancy <= override_threshold:
        logger.info("Total mismatch of %s kept as printed", discrepancy)
        return ValidationResult(figures=figures, warnings=tuple(warnings))

    warnings.append(f"Total overridden from {figures.total} to {calculated}")
    logger.info("Total %s replaced by calculated %s", figures.total, calculated)
    corrected = figures.model_copy(update={"total": calculated})
    return ValidationResult(figures=corrected, warnings=tuple(warnings), overridden=True)
