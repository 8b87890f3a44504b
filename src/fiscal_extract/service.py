from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

from .classify.categories import classify_category, guess_manual_category
from .config import Settings, settings as default_settings
from .mapper import map_to_transaction, match_category_id
from .nlp_extract.fields import auto_invoice_number, format_es_date
from .nlp_extract.parser import parse_structured
from .ocr.postprocess import parse_locale_number, quantize_money
from .schemas import (
    Category,
    ExpenseCheck,
    ExtractedExpense,
    ExtractedFields,
    ExtractedInvoice,
    InvoiceExtractionResult,
    ProcessedExpense,
    TaxFigures,
)
from .sequence import is_sequential
from .tax.consistency import validate_totals
from .tax.inference import infer_taxes
from .utils.clock import Clock, system_today

logger = logging.getLogger(__name__)

NO_CONTENT_WARNING = "No extractable content in document"
DEFAULT_INVOICE_CONCEPT = "Servicios profesionales"
DEFAULT_EXPENSE_CONCEPT = "Servicio profesional"
DEFAULT_PAYMENT_METHOD = "No especificado"
HIGH_AMOUNT_THRESHOLD = Decimal("10000")
ZERO = Decimal("0.00")


def _has_content(text: Any) -> bool:
    return isinstance(text, str) and bool(text.strip())


def _settle_figures(
    fields: ExtractedFields, negative_irpf_rate: bool, config: Settings
) -> tuple[TaxFigures, list[str]]:
    inferred = infer_taxes(
        fields.figures,
        withholding_context=fields.withholding_context,
        negative_irpf_rate=negative_irpf_rate,
        config=config,
    )
    validated = validate_totals(
        inferred.figures,
        tolerance=config.total_tolerance,
        override_threshold=config.total_override_threshold,
    )
    return validated.figures, [*inferred.warnings, *validated.warnings]


def extract_expense(
    text: Any, clock: Optional[Clock] = None, config: Optional[Settings] = None
) -> ExtractedExpense:
    """Extract an expense record from receipt or invoice OCR text."""

    config = config or default_settings
    today = (clock or system_today)()
    if not _has_content(text):
        logger.warning("Expense extraction called without text content")
        return ExtractedExpense(
            date=today,
            description=DEFAULT_EXPENSE_CONCEPT,
            amount=ZERO,
            category_hint=classify_category(""),
            warnings=(NO_CONTENT_WARNING,),
        )

    fields = parse_structured(text, today, receipt=True, config=config)
    figures, warnings = _settle_figures(fields, negative_irpf_rate=False, config=config)

    issue_date = fields.issue_date
    if issue_date is None:
        issue_date = today
        warnings.append(f"Date not found, using {format_es_date(today)}")

    description = fields.concept
    if description is None:
        description = f"Servicio de {fields.vendor}" if fields.vendor else DEFAULT_EXPENSE_CONCEPT

    amount = figures.total
    if amount is None:
        amount = ZERO
        warnings.append("Total amount not found")

    expense = ExtractedExpense(
        date=issue_date,
        description=description,
        amount=amount,
        category_hint=classify_category(fields.normalized_text),
        vendor=fields.vendor,
        client=fields.client.name,
        subtotal=figures.base,
        tax_amount=figures.vat_amount,
        vat_rate=figures.vat_rate,
        irpf_amount=figures.irpf_amount if figures.irpf_amount is not None else ZERO,
        irpf_rate=figures.irpf_rate,
        warnings=tuple(warnings),
    )
    logger.info("Expense extracted: amount=%s vendor=%s warnings=%d", expense.amount, expense.vendor, len(warnings))
    return expense


def _minimal_invoice(today) -> ExtractedInvoice:
    return ExtractedInvoice(
        invoice_number=auto_invoice_number(today),
        issue_date=today,
        concept=DEFAULT_INVOICE_CONCEPT,
        payment_method=DEFAULT_PAYMENT_METHOD,
        category_hint=classify_category(""),
        warnings=(NO_CONTENT_WARNING,),
    )


def extract_invoice(
    text: Any,
    last_invoice_number: Optional[str] = None,
    clock: Optional[Clock] = None,
    config: Optional[Settings] = None,
) -> InvoiceExtractionResult:
    """Extract a full invoice and check its number against *last_invoice_number*."""

    config = config or default_settings
    today = (clock or system_today)()
    if not _has_content(text):
        logger.warning("Invoice extraction called without text content")
        return InvoiceExtractionResult(invoice=_minimal_invoice(today), is_valid_sequence=True)

    fields = parse_structured(text, today, receipt=False, config=config)
    figures, financial_warnings = _settle_figures(fields, negative_irpf_rate=True, config=config)
    warnings: list[str] = []

    invoice_number = fields.invoice_number
    if invoice_number is None:
        invoice_number = auto_invoice_number(today)
        warnings.append(f"Invoice number not found, generated {invoice_number}")

    issue_date = fields.issue_date
    if issue_date is None:
        issue_date = today
        warnings.append(f"Date not found, using {format_es_date(today)}")

    concept = fields.concept
    if concept is None:
        concept = DEFAULT_INVOICE_CONCEPT
        warnings.append(f"Concept not found, using '{DEFAULT_INVOICE_CONCEPT}'")

    invoice = ExtractedInvoice(
        invoice_number=invoice_number,
        issue_date=issue_date,
        issuer=fields.issuer,
        client=fields.client,
        concept=concept,
        base=figures.base,
        vat_amount=figures.vat_amount,
        vat_rate=figures.vat_rate,
        irpf_amount=figures.irpf_amount if figures.irpf_amount is not None else ZERO,
        irpf_rate=figures.irpf_rate,
        total=figures.total,
        payment_method=fields.payment_method or DEFAULT_PAYMENT_METHOD,
        bank_account=fields.bank_account,
        category_hint=classify_category(fields.normalized_text),
        warnings=tuple(warnings + financial_warnings),
    )
    valid_sequence = is_sequential(invoice_number, last_invoice_number)
    if not valid_sequence:
        logger.info("Invoice %s does not follow %s", invoice_number, last_invoice_number)
    logger.info("Invoice extracted: number=%s total=%s warnings=%d", invoice_number, invoice.total, len(invoice.warnings))
    return InvoiceExtractionResult(invoice=invoice, is_valid_sequence=valid_sequence)


def process_expense_document(
    text: Any,
    user_id: int,
    categories: Sequence[Category],
    clock: Optional[Clock] = None,
    config: Optional[Settings] = None,
) -> ProcessedExpense:
    """Extract an expense and map it onto one of the user's categories."""

    expense = extract_expense(text, clock=clock, config=config)
    category_id = match_category_id(expense.category_hint, categories)
    transaction = map_to_transaction(expense, user_id, category_id)
    return ProcessedExpense(extracted=expense, transaction=transaction)


def verify_manual_expense(description: Optional[str], amount: Any) -> ExpenseCheck:
    """Sanity-check a hand-typed expense and suggest a category for it."""

    value = parse_locale_number(str(amount)) if amount is not None else None
    is_valid = True
    suggestion = ""

    if value is None or value <= 0:
        is_valid = False
        suggestion = "Amount must be greater than 0"
    elif quantize_money(value) > HIGH_AMOUNT_THRESHOLD:
        suggestion = "Amount is unusually high, check that it is correct"

    if not (description or "").strip():
        is_valid = False
        suggestion = "Description must not be empty"

    category_hint = guess_manual_category(description or "")
    logger.debug("Manual expense checked: valid=%s category=%s", is_valid, category_hint)
    return ExpenseCheck(
        is_valid=is_valid,
        suggestion=suggestion or "Expense looks correct",
        category_hint=category_hint,
    )
