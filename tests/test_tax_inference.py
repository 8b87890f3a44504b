from __future__ import annotations

from decimal import Decimal

import pytest

from fiscal_extract.config import Settings
from fiscal_extract.schemas import TaxFigures
from fiscal_extract.tax.calculations import (
    base_from_amounts,
    base_from_rates,
    snap_rate,
)
from fiscal_extract.tax.inference import infer_taxes

D = Decimal


@pytest.fixture()
def config() -> Settings:
    return Settings()


def test_explicit_values_are_kept(config: Settings) -> None:
    figures = TaxFigures(
        base=D("1000.00"), vat_amount=D("210.00"), vat_rate=21,
        irpf_amount=D("150.00"), irpf_rate=15, total=D("1060.00"),
    )
    result = infer_taxes(figures, withholding_context=True, config=config)

    assert result.figures == figures
    assert result.warnings == ()


def test_irpf_rate_sign_follows_convention(config: Settings) -> None:
    figures = TaxFigures(base=D("1000.00"), vat_amount=D("210.00"), vat_rate=21,
                         irpf_amount=D("150.00"), irpf_rate=-15, total=D("1060.00"))

    assert infer_taxes(figures, withholding_context=True, config=config).figures.irpf_rate == 15
    negative = infer_taxes(figures, withholding_context=True, negative_irpf_rate=True, config=config)
    assert negative.figures.irpf_rate == -15


def test_vat_defaults_when_rate_missing(config: Settings) -> None:
    result = infer_taxes(TaxFigures(base=D("200.00")), withholding_context=False, config=config)

    assert result.figures.vat_amount == D("42.00")
    assert result.figures.vat_rate == 21
    assert result.figures.total == D("242.00")
    assert "VAT rate assumed 21%" in result.warnings


def test_vat_uses_printed_rate(config: Settings) -> None:
    result = infer_taxes(TaxFigures(base=D("200.00"), vat_rate=10), withholding_context=False, config=config)

    assert result.figures.vat_amount == D("20.00")
    assert result.warnings == ()


def test_irpf_inferred_with_withholding_context(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("1000.00"), vat_amount=D("210.00"), vat_rate=21),
        withholding_context=True,
        negative_irpf_rate=True,
        config=config,
    )

    assert result.figures.irpf_amount == D("150.00")
    assert result.figures.irpf_rate == -15
    assert result.figures.total == D("1060.00")
    assert "IRPF rate assumed 15%" in result.warnings


def test_irpf_skipped_when_printed_total_balances(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("1000.00"), vat_amount=D("210.00"), vat_rate=21, total=D("1210.00")),
        withholding_context=True,
        config=config,
    )

    assert result.figures.irpf_amount == D("0.00")
    assert result.figures.irpf_rate == 0
    assert result.figures.total == D("1210.00")


def test_no_false_positive_irpf_without_context(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("100.00"), vat_amount=D("21.00"), irpf_amount=D("15.00"), irpf_rate=15),
        withholding_context=False,
        config=config,
    )

    assert result.figures.irpf_amount == D("0.00")
    assert result.figures.irpf_rate == 0
    assert result.figures.total == D("121.00")


def test_base_back_computed_from_amounts(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(vat_amount=D("21.00"), vat_rate=21, total=D("121.00")),
        withholding_context=False,
        config=config,
    )

    assert result.figures.base == D("100.00")
    assert result.warnings == ()


def test_base_from_vat_amount_with_withholding_wording(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(vat_amount=D("21.00"), total=D("121.00")),
        withholding_context=True,
        negative_irpf_rate=True,
        config=config,
    )

    assert result.figures.base == D("100.00")
    assert result.figures.irpf_amount == D("0.00")
    assert result.figures.irpf_rate == 0
    assert result.figures.vat_rate == 21
    assert result.figures.total == D("121.00")
    assert result.warnings == ()


def test_base_from_vat_amount_and_printed_irpf_rate(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(vat_amount=D("210.00"), vat_rate=21, irpf_rate=-15, total=D("1060.00")),
        withholding_context=True,
        negative_irpf_rate=True,
        config=config,
    )

    assert result.figures.base == D("1000.00")
    assert result.figures.irpf_amount == D("150.00")
    assert result.figures.irpf_rate == -15
    assert result.warnings == ()


def test_base_estimated_from_total(config: Settings) -> None:
    result = infer_taxes(TaxFigures(total=D("121.00")), withholding_context=False, config=config)

    assert result.figures.base == D("100.00")
    assert result.figures.vat_amount == D("21.00")
    assert result.figures.vat_rate == 21
    assert "Base estimated from total assuming 21% VAT" in result.warnings


def test_base_estimated_with_withholding(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(total=D("1060.00")),
        withholding_context=True,
        negative_irpf_rate=True,
        config=config,
    )

    assert result.figures.base == D("1000.00")
    assert result.figures.vat_amount == D("210.00")
    assert result.figures.irpf_amount == D("150.00")
    assert result.figures.irpf_rate == -15


def test_total_derived_when_missing(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("500.00"), vat_amount=D("105.00"), vat_rate=21),
        withholding_context=False,
        config=config,
    )

    assert result.figures.total == D("605.00")
    assert result.warnings == ()


def test_vat_rate_anomaly_is_corrected(config: Settings) -> None:
    result = infer_taxes(TaxFigures(base=D("1000.00"), vat_rate=150), withholding_context=False, config=config)

    assert result.figures.vat_rate == 21
    assert result.figures.vat_amount == D("210.00")
    assert any("out of range" in warning for warning in result.warnings)


def test_rate_anomaly_keeps_captured_amount(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("1000.00"), vat_amount=D("100.00"), vat_rate=210),
        withholding_context=False,
        config=config,
    )

    assert result.figures.vat_rate == 21
    assert result.figures.vat_amount == D("100.00")


def test_rates_recovered_from_amounts(config: Settings) -> None:
    result = infer_taxes(
        TaxFigures(base=D("1000.00"), vat_amount=D("100.00"), irpf_amount=D("70.00"), total=D("1030.00")),
        withholding_context=True,
        config=config,
    )

    assert result.figures.vat_rate == 10
    assert result.figures.irpf_rate == 7


def test_defaults_come_from_settings() -> None:
    config = Settings(default_vat_rate=10, default_irpf_rate=7)
    result = infer_taxes(TaxFigures(base=D("100.00")), withholding_context=True, config=config)

    assert result.figures.vat_amount == D("10.00")
    assert result.figures.irpf_amount == D("7.00")


def test_input_figures_are_not_mutated(config: Settings) -> None:
    figures = TaxFigures(base=D("100.00"))
    infer_taxes(figures, withholding_context=True, config=config)

    assert figures == TaxFigures(base=D("100.00"))


def test_base_helpers() -> None:
    assert base_from_amounts(D("1060.00"), D("210.00"), D("150.00")) == D("1000.00")
    assert base_from_rates(D("1060.00"), 21, -15) == D("1000.00")
    assert base_from_rates(D("121.00"), 21) == D("100.00")


def test_snap_rate() -> None:
    assert snap_rate(D("20.6"), (4, 10, 21), 1) == 21
    assert snap_rate(D("13.4"), (7, 15, 19), 2) == 15
    assert snap_rate(D("16"), (4, 10, 21), 1) is None
