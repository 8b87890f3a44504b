from __future__ import annotations

from decimal import Decimal

import pytest

from fiscal_extract.ocr.postprocess import (
    align_slice,
    clean_text,
    normalize_text,
    parse_locale_number,
    parse_rate,
    quantize_money,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.234,56", Decimal("1234.56")),
        ("45,90", Decimal("45.90")),
        ("100", Decimal("100")),
        ("1.234,56 €", Decimal("1234.56")),
        ("EUR 12,5", Decimal("12.5")),
        ("  3.000.000,00 ", Decimal("3000000.00")),
        ("99.95", Decimal("99.95")),
    ],
)
def test_parse_locale_number_spanish_formats(raw: str, expected: Decimal) -> None:
    assert parse_locale_number(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "1,2,3", "€", "nan"])
def test_parse_locale_number_malformed_returns_none(raw) -> None:
    assert parse_locale_number(raw) is None


def test_parse_rate_rounds_to_integer() -> None:
    assert parse_rate("21") == 21
    assert parse_rate("10,5") == 11
    assert parse_rate("-15") == -15
    assert parse_rate("x") is None


def test_normalize_text_strips_accents_and_keeps_length() -> None:
    original = "Retención IRPF\nDirección: Calle Ñandú"
    normalized = normalize_text(original)

    assert normalized == "retencion irpf\ndireccion: calle nandu"
    assert len(normalized) == len(original)


def test_align_slice_recovers_original_case() -> None:
    original = "Concepto: Diseño Web"
    normalized = normalize_text(original)
    start = normalized.index("diseno")

    assert align_slice(original, normalized, start, len(normalized)) == "Diseño Web"


def test_clean_text_normalizes_page_breaks_and_spacing() -> None:
    assert clean_text("Total:\t  12,00\x0cPágina 2\r\nFin") == "Total: 12,00\nPágina 2\nFin"


def test_quantize_money_rounds_half_up() -> None:
    assert quantize_money(Decimal("10.005")) == Decimal("10.01")
    assert quantize_money(3) == Decimal("3.00")
