from __future__ import annotations

from datetime import date
from decimal import Decimal

from fiscal_extract.mapper import (
    additional_taxes,
    fiscal_breakdown,
    map_invoice_to_transaction,
    map_to_transaction,
    match_category_id,
)
from fiscal_extract.schemas import (
    AdditionalTax,
    Category,
    ExtractedExpense,
    ExtractedInvoice,
    Party,
    TaxFigures,
)

D = Decimal


def _expense(**overrides) -> ExtractedExpense:
    data = dict(
        date=date(2025, 3, 15),
        description="Diseño de identidad corporativa",
        amount=D("1060.00"),
        category_hint="Otros",
        vendor="Estudio Creativo Luna S.L.",
        client="Comercial Norte S.A.",
        subtotal=D("1000.00"),
        tax_amount=D("210.00"),
        vat_rate=21,
        irpf_amount=D("150.00"),
        irpf_rate=15,
    )
    data.update(overrides)
    return ExtractedExpense(**data)


def test_fiscal_breakdown_shows_irpf_as_deduction() -> None:
    figures = TaxFigures(
        base=D("1000.00"), vat_amount=D("210.00"), vat_rate=21,
        irpf_amount=D("150.00"), irpf_rate=-15, total=D("1060.00"),
    )

    assert fiscal_breakdown(figures) == (
        "Base imponible: 1000.00 €\n"
        "IVA (21%): +210.00 €\n"
        "IRPF (15%): -150.00 €\n"
        "Total a pagar: 1060.00 €"
    )


def test_fiscal_breakdown_omits_zero_lines() -> None:
    figures = TaxFigures(base=D("50.00"), vat_amount=D("0.00"), irpf_amount=D("0.00"))

    assert fiscal_breakdown(figures) == "Base imponible: 50.00 €\nTotal a pagar: 50.00 €"


def test_additional_taxes_signs() -> None:
    assert additional_taxes(21, 15) == (
        AdditionalTax(name="IVA", amount=D("21")),
        AdditionalTax(name="IRPF", amount=D("-15")),
    )
    assert additional_taxes(21, -15)[1].amount == D("-15")
    assert additional_taxes(10, 0) == (AdditionalTax(name="IVA", amount=D("10")),)
    assert additional_taxes(None, None) == ()


def test_map_to_transaction() -> None:
    record = map_to_transaction(_expense(), user_id=7, category_id=3)

    assert record.user_id == 7
    assert record.title == "Estudio Creativo Luna S.L."
    assert record.description == "Diseño de identidad corporativa"
    assert record.amount == "1060.00"
    assert record.type == "expense"
    assert record.category_id == 3
    assert record.payment_method == "other"
    assert [tax.name for tax in record.additional_taxes] == ["IVA", "IRPF"]
    assert "Proveedor: Estudio Creativo Luna S.L." in record.notes
    assert "Cliente: Comercial Norte S.A." in record.notes
    assert "IRPF (15%): -150.00 €" in record.notes
    assert "Categoría sugerida: Otros" in record.notes


def test_map_to_transaction_without_vendor() -> None:
    record = map_to_transaction(
        _expense(vendor=None, client=None, description=" "), user_id=1, category_id=None
    )

    assert record.description == "Gasto"
    assert record.title == "Gasto"
    assert "Proveedor: No detectado" in record.notes


def test_map_invoice_to_transaction() -> None:
    invoice = ExtractedInvoice(
        invoice_number="F-2025/0042",
        issue_date=date(2025, 3, 15),
        issuer=Party(name="Estudio Creativo Luna S.L.", tax_id="B12345678"),
        client=Party(name="Comercial Norte S.A.", tax_id="A87654321"),
        concept="Diseño de identidad corporativa",
        base=D("1000.00"),
        vat_amount=D("210.00"),
        vat_rate=21,
        irpf_amount=D("150.00"),
        irpf_rate=-15,
        total=D("1060.00"),
        payment_method="Transferencia bancaria",
        bank_account="ES91 2100 0418 4502 0005 1332",
    )

    income = map_invoice_to_transaction(invoice, user_id=2, category_id=None)
    assert income.type == "income"
    assert income.title == "Comercial Norte S.A."
    assert income.amount == "1060.00"
    assert income.payment_method == "bank_transfer"
    assert "Número: F-2025/0042" in income.notes
    assert income.additional_taxes[1].amount == D("-15")

    expense = map_invoice_to_transaction(invoice, user_id=2, category_id=4, record_type="expense")
    assert expense.type == "expense"
    assert expense.title == "Estudio Creativo Luna S.L."


CATEGORIES = [
    Category(id=1, name="Ventas", type="income"),
    Category(id=2, name="Restaurantes y dietas"),
    Category(id=3, name="Transporte"),
]


def test_match_category_id_by_containment() -> None:
    assert match_category_id("Transporte", CATEGORIES) == 3
    assert match_category_id("restaurantes", CATEGORIES) == 2


def test_match_category_id_fallbacks() -> None:
    assert match_category_id("Viajes", CATEGORIES) == 2
    assert match_category_id(None, CATEGORIES) == 2
    assert match_category_id("Transporte", CATEGORIES[:1]) is None
    assert match_category_id("Transporte", []) is None


def test_blank_hint_falls_back_to_first_expense_category() -> None:
    categories = [Category(id=3, name="Transporte"), Category(id=2, name="Restaurantes y dietas")]

    assert match_category_id(" ", categories) == 3
    assert match_category_id("", categories) == 3
