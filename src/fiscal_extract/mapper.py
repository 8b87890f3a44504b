"""Turn extraction results into persistence-ready transaction records."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from .nlp_extract.fields import format_es_date
from .ocr.postprocess import normalize_text, quantize_money
from .schemas import (
    AdditionalTax,
    Category,
    ExtractedExpense,
    ExtractedInvoice,
    TaxFigures,
    TransactionRecord,
)
from .tax.calculations import expected_total

EXPENSE_HEADER = "Factura de gasto"
INCOME_HEADER = "Factura emitida"
FOOTER = "Extraído automáticamente mediante reconocimiento de texto."
NOT_DETECTED = "No detectado"
DEFAULT_DESCRIPTION = "Gasto"

# Codes understood by the transactions table
PAYMENT_METHOD_CODES = {
    "transferencia bancaria": "bank_transfer",
    "domiciliacion bancaria": "bank_transfer",
    "efectivo": "cash",
    "tarjeta": "credit_card",
}


def _euros(value: Decimal) -> str:
    return f"{quantize_money(value)} €"


def fiscal_breakdown(figures: TaxFigures) -> str:
    """Human-readable base / VAT / IRPF / total summary.

    IRPF is stored unsigned and only shown with a minus sign here.
    """

    zero = Decimal("0")
    base = figures.base or zero
    vat_amount = figures.vat_amount or zero
    irpf_amount = abs(figures.irpf_amount or zero)

    lines = []
    if base > 0:
        lines.append(f"Base imponible: {_euros(base)}")
    if vat_amount > 0:
        rate = f" ({figures.vat_rate}%)" if figures.vat_rate is not None else ""
        lines.append(f"IVA{rate}: +{_euros(vat_amount)}")
    if irpf_amount > 0:
        rate = f" ({abs(figures.irpf_rate)}%)" if figures.irpf_rate else ""
        lines.append(f"IRPF{rate}: -{_euros(irpf_amount)}")
    total = figures.total if figures.total is not None else expected_total(base, vat_amount, irpf_amount)
    lines.append(f"Total a pagar: {_euros(total)}")
    return "\n".join(lines)


def additional_taxes(vat_rate: Optional[int], irpf_rate: Optional[int]) -> tuple[AdditionalTax, ...]:
    """Structured tax list: IVA with a positive rate, IRPF with a negative one."""

    taxes = []
    if vat_rate:
        taxes.append(AdditionalTax(name="IVA", amount=Decimal(abs(vat_rate))))
    if irpf_rate:
        taxes.append(AdditionalTax(name="IRPF", amount=-Decimal(abs(irpf_rate))))
    return tuple(taxes)


def _expense_figures(expense: ExtractedExpense) -> TaxFigures:
    return TaxFigures(
        base=expense.subtotal,
        vat_amount=expense.tax_amount,
        vat_rate=expense.vat_rate,
        irpf_amount=expense.irpf_amount,
        irpf_rate=expense.irpf_rate,
        total=expense.amount,
    )


def _invoice_figures(invoice: ExtractedInvoice) -> TaxFigures:
    return TaxFigures(
        base=invoice.base,
        vat_amount=invoice.vat_amount,
        vat_rate=invoice.vat_rate,
        irpf_amount=invoice.irpf_amount,
        irpf_rate=invoice.irpf_rate,
        total=invoice.total,
    )


def _notes(header: str, details: Iterable[str], breakdown: str, category_hint: str) -> str:
    parts = [header, *(line for line in details if line), "", breakdown, "", f"Categoría sugerida: {category_hint}", FOOTER]
    return "\n".join(parts)


def map_to_transaction(
    expense: ExtractedExpense, user_id: int, category_id: Optional[int]
) -> TransactionRecord:
    description = (expense.description or "").strip() or expense.vendor or expense.client or DEFAULT_DESCRIPTION
    title = expense.vendor or expense.client or description
    details = [
        f"Fecha: {format_es_date(expense.date)}",
        f"Proveedor: {expense.vendor or NOT_DETECTED}",
        f"Cliente: {expense.client}" if expense.client else "",
    ]
    return TransactionRecord(
        user_id=user_id,
        title=title,
        description=description,
        amount=str(quantize_money(expense.amount)),
        date=expense.date,
        type="expense",
        category_id=category_id,
        payment_method="other",
        notes=_notes(EXPENSE_HEADER, details, fiscal_breakdown(_expense_figures(expense)), expense.category_hint),
        additional_taxes=additional_taxes(expense.vat_rate, expense.irpf_rate),
    )


def map_invoice_to_transaction(
    invoice: ExtractedInvoice,
    user_id: int,
    category_id: Optional[int],
    record_type: str = "income",
) -> TransactionRecord:
    """Record for an invoice; ``income`` when the user issued it, ``expense`` when they received it."""

    counterpart = invoice.client if record_type == "income" else invoice.issuer
    figures = _invoice_figures(invoice)
    total = figures.total
    if total is None:
        total = expected_total(figures.base or Decimal("0"), figures.vat_amount, figures.irpf_amount)

    header = INCOME_HEADER if record_type == "income" else EXPENSE_HEADER
    details = [
        f"Número: {invoice.invoice_number}",
        f"Fecha: {format_es_date(invoice.issue_date)}",
        f"Emisor: {invoice.issuer.name or NOT_DETECTED}",
        f"Cliente: {invoice.client.name or NOT_DETECTED}",
        f"Forma de pago: {invoice.payment_method}",
        f"IBAN: {invoice.bank_account}" if invoice.bank_account else "",
    ]
    return TransactionRecord(
        user_id=user_id,
        title=counterpart.name or invoice.concept,
        description=invoice.concept,
        amount=str(quantize_money(total)),
        date=invoice.issue_date,
        type=record_type,
        category_id=category_id,
        payment_method=PAYMENT_METHOD_CODES.get(normalize_text(invoice.payment_method), "other"),
        notes=_notes(header, details, fiscal_breakdown(figures), invoice.category_hint),
        additional_taxes=additional_taxes(invoice.vat_rate, invoice.irpf_rate),
    )


def match_category_id(category_hint: Optional[str], categories: Sequence[Category]) -> Optional[int]:
    """Pick the user's expense category whose name contains the hint.

    Falls back to the first expense category, or ``None`` when the user has
    none.
    """

    expense_categories = [category for category in categories if category.type == "expense"]
    if not expense_categories:
        return None
    hint = (category_hint or "").strip().lower()
    if not hint:
        return expense_categories[0].id
    for category in expense_categories:
        if hint in category.name.lower():
            return category.id
    return expense_categories[0].id
