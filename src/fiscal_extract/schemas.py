from datetime import date as Date
from decimal import Decimal
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Party(FrozenModel):
    name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None


class TaxFigures(FrozenModel):
    """Financial fields of a document; ``None`` means not found (yet)."""

    base: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    vat_rate: Optional[int] = None
    irpf_amount: Optional[Decimal] = None
    irpf_rate: Optional[int] = None
    total: Optional[Decimal] = None


class ExtractedFields(FrozenModel):
    """Raw output of the field extractors, before any inference."""

    raw_text: str
    normalized_text: str
    invoice_number: Optional[str] = None
    issue_date: Optional[Date] = None
    issuer: Party = Field(default_factory=Party)
    client: Party = Field(default_factory=Party)
    concept: Optional[str] = None
    vendor: Optional[str] = None
    figures: TaxFigures = Field(default_factory=TaxFigures)
    payment_method: Optional[str] = None
    bank_account: Optional[str] = None
    withholding_context: bool = False


class ExtractedExpense(FrozenModel):
    date: Date
    description: str
    amount: Decimal
    category_hint: str
    vendor: Optional[str] = None
    client: Optional[str] = None
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    vat_rate: Optional[int] = None
    irpf_amount: Decimal = Decimal("0.00")
    irpf_rate: Optional[int] = None
    warnings: Tuple[str, ...] = ()


class ExtractedInvoice(FrozenModel):
    invoice_number: str
    issue_date: Date
    issuer: Party = Field(default_factory=Party)
    client: Party = Field(default_factory=Party)
    concept: str
    base: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    vat_rate: Optional[int] = None
    irpf_amount: Decimal = Decimal("0.00")
    irpf_rate: Optional[int] = None
    total: Optional[Decimal] = None
    payment_method: str
    bank_account: Optional[str] = None
    category_hint: str = "Otros"
    warnings: Tuple[str, ...] = ()


class InvoiceExtractionResult(FrozenModel):
    invoice: ExtractedInvoice
    is_valid_sequence: bool


class AdditionalTax(FrozenModel):
    name: str
    amount: Decimal
    is_percentage: bool = True


class Category(FrozenModel):
    id: int
    name: str
    type: Literal["income", "expense"] = "expense"


class TransactionRecord(FrozenModel):
    user_id: int
    title: str
    description: str
    amount: str
    date: Date
    type: Literal["income", "expense"]
    category_id: Optional[int] = None
    payment_method: str = "other"
    notes: str
    additional_taxes: Tuple[AdditionalTax, ...] = ()


class ProcessedExpense(FrozenModel):
    extracted: ExtractedExpense
    transaction: TransactionRecord


class ExpenseCheck(FrozenModel):
    is_valid: bool
    suggestion: str
    category_hint: str
