from __future__ import annotations

from decimal import Decimal

from fiscal_extract.data import SyntheticInvoiceGenerator
from fiscal_extract.data.synthetic import format_es_amount
from fiscal_extract.service import extract_invoice
from fiscal_extract.utils.clock import fixed_clock


def test_format_es_amount() -> None:
    assert format_es_amount(Decimal("1234.5")) == "1.234,50"
    assert format_es_amount(Decimal("7")) == "7,00"


def test_generated_invoices_balance() -> None:
    generator = SyntheticInvoiceGenerator(seed=7)
    invoices = generator.generate_invoices(10)

    assert len(invoices) == 10
    for invoice in invoices:
        assert invoice.total == invoice.base + invoice.vat_amount - invoice.irpf_amount
        assert invoice.base == sum((item.line_total for item in invoice.line_items), Decimal("0"))
        assert "FACTURA Nº" in invoice.to_ocr_text()


def test_same_seed_reproduces_amounts() -> None:
    first = SyntheticInvoiceGenerator(seed=3).generate_invoices(4)
    second = SyntheticInvoiceGenerator(seed=3).generate_invoices(4)

    assert [inv.invoice_number for inv in first] == [inv.invoice_number for inv in second]
    assert [inv.total for inv in first] == [inv.total for inv in second]


def test_dataframes() -> None:
    generator = SyntheticInvoiceGenerator(seed=11)
    invoices = generator.generate_invoices(5)

    summary = generator.invoices_to_dataframe(invoices)
    assert len(summary) == 5
    assert {"invoice_number", "base", "vat_amount", "irpf_amount", "total"} <= set(summary.columns)

    items = generator.line_items_to_dataframe(invoices)
    assert len(items) == sum(len(inv.line_items) for inv in invoices)
    assert set(items["invoice_number"]) == {inv.invoice_number for inv in invoices}


def test_noise_changes_text_but_not_at_zero() -> None:
    generator = SyntheticInvoiceGenerator(seed=5)
    invoices = generator.generate_invoices(2)

    clean = generator.render_documents(invoices, noise_level=0.0)
    assert clean == [inv.to_ocr_text() for inv in invoices]
    noisy = generator.render_documents(invoices, noise_level=1.0)
    assert noisy != clean


def test_rendered_invoices_are_extracted() -> None:
    generator = SyntheticInvoiceGenerator(seed=21)
    for truth in generator.generate_invoices(5):
        invoice = extract_invoice(truth.to_ocr_text(), clock=fixed_clock(truth.issue_date)).invoice

        assert invoice.invoice_number == truth.invoice_number
        assert invoice.issue_date == truth.issue_date
        assert invoice.base == truth.base
        assert invoice.vat_amount == truth.vat_amount
        assert invoice.vat_rate == truth.vat_rate
        assert invoice.total == truth.total
        assert invoice.issuer.tax_id == truth.issuer_tax_id.replace("-", "").upper()
        assert invoice.client.tax_id == truth.client_tax_id.replace("-", "").upper()
