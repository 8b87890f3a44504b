"""Synthetic Spanish invoice generation with known ground truth."""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

import pandas as pd
from faker import Faker

from ..nlp_extract.fields import format_es_date
from ..ocr.postprocess import quantize_money


def format_es_amount(value: Decimal) -> str:
    """Render *value* the Spanish way: ``1.234,56``."""

    return f"{quantize_money(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")


@dataclass
class SyntheticLineItem:
    """A single line of a fabricated invoice."""

    description: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)

    def to_dict(self) -> dict[str, object]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "line_total": str(self.line_total),
        }


@dataclass
class SyntheticInvoice:
    """A fabricated invoice plus the values an extractor should recover."""

    invoice_number: str
    issue_date: date
    issuer_name: str
    issuer_tax_id: str
    issuer_address: str
    client_name: str
    client_tax_id: str
    concept: str
    base: Decimal
    vat_rate: int
    vat_amount: Decimal
    irpf_rate: int
    irpf_amount: Decimal
    total: Decimal
    payment_method: str
    bank_account: Optional[str]
    line_items: List[SyntheticLineItem] = field(default_factory=list)

    def to_summary_dict(self) -> dict[str, object]:
        """Serialize the ground truth."""

        return {
            "invoice_number": self.invoice_number,
            "issue_date": self.issue_date.isoformat(),
            "issuer_name": self.issuer_name,
            "issuer_tax_id": self.issuer_tax_id,
            "client_name": self.client_name,
            "client_tax_id": self.client_tax_id,
            "concept": self.concept,
            "base": str(self.base),
            "vat_rate": self.vat_rate,
            "vat_amount": str(self.vat_amount),
            "irpf_rate": self.irpf_rate,
            "irpf_amount": str(self.irpf_amount),
            "total": str(self.total),
            "payment_method": self.payment_method,
            "bank_account": self.bank_account,
        }

    def to_ocr_text(self) -> str:
        """Render the invoice as plain OCR-like text."""

        lines = [
            self.issuer_name,
            f"CIF: {self.issuer_tax_id}",
            self.issuer_address,
            "",
            f"FACTURA Nº: {self.invoice_number}",
            f"Fecha: {format_es_date(self.issue_date)}",
            "",
            f"Cliente: {self.client_name}",
            f"NIF: {self.client_tax_id}",
            "",
            f"Concepto: {self.concept}",
            "",
        ]
        for item in self.line_items:
            lines.append(
                f"{item.description} {item.quantity} x {format_es_amount(item.unit_price)} "
                f"{format_es_amount(item.line_total)}"
            )
        lines.extend(
            [
                "",
                f"Base imponible: {format_es_amount(self.base)} €",
                f"IVA ({self.vat_rate}%): {format_es_amount(self.vat_amount)} €",
            ]
        )
        if self.irpf_rate:
            lines.append(f"Retención IRPF ({self.irpf_rate}%): -{format_es_amount(self.irpf_amount)} €")
        lines.extend(
            [
                f"Total: {format_es_amount(self.total)} €",
                "",
                f"Forma de pago: {self.payment_method}",
            ]
        )
        if self.bank_account:
            lines.append(f"IBAN: {self.bank_account}")
        return "\n".join(lines)


class SyntheticInvoiceGenerator:
    """Generator that fabricates Spanish invoices and their OCR text."""

    VAT_RATES = (21, 21, 21, 10, 4)
    IRPF_RATES = (0, 0, 15, 7)
    SERIES = ("F", "A", "FAC")
    PAYMENT_METHODS = ("Transferencia bancaria", "Domiciliación bancaria", "Tarjeta", "Efectivo", "Bizum")
    CONCEPTS = (
        "Desarrollo de aplicación web",
        "Consultoría estratégica",
        "Mantenimiento informático mensual",
        "Diseño gráfico de campaña",
        "Asesoría fiscal trimestral",
        "Traducción de documentación técnica",
        "Formación en ciberseguridad",
    )

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)
        self._faker = Faker("es_ES")
        self._faker.seed_instance(seed)

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def generate_invoices(self, count: int) -> List[SyntheticInvoice]:
        return [self._build_invoice(sequence) for sequence in range(1, count + 1)]

    def render_documents(self, invoices: Sequence[SyntheticInvoice], noise_level: float = 0.0) -> List[str]:
        """OCR text for each invoice, optionally corrupted like a bad scan.

        Args:
            invoices: Invoices to render.
            noise_level: Value between 0 and 1 controlling character noise.
        """

        noise = self._clamp(noise_level)
        return [self._apply_text_noise(invoice.to_ocr_text(), noise) for invoice in invoices]

    @staticmethod
    def invoices_to_dataframe(invoices: Sequence[SyntheticInvoice]) -> pd.DataFrame:
        """Flatten invoices into a dataframe for export."""

        return pd.DataFrame(inv.to_summary_dict() for inv in invoices)

    @staticmethod
    def line_items_to_dataframe(invoices: Sequence[SyntheticInvoice]) -> pd.DataFrame:
        rows: list[dict[str, object]] = []
        for invoice in invoices:
            rows.extend({"invoice_number": invoice.invoice_number, **item.to_dict()} for item in invoice.line_items)
        return pd.DataFrame(rows)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_invoice(self, sequence: int) -> SyntheticInvoice:
        issue_date = self._faker.date_between(start_date="-18M", end_date="today")
        if isinstance(issue_date, str):  # pragma: no cover - faker returns date by default
            issue_date = date.fromisoformat(issue_date)
        series = self._rng.choice(self.SERIES)
        invoice_number = f"{series}-{issue_date.year}/{sequence:04d}"

        line_items = [self._create_line_item() for _ in range(self._rng.randint(1, 4))]
        base = quantize_money(sum((item.line_total for item in line_items), Decimal("0")))
        vat_rate = self._rng.choice(self.VAT_RATES)
        irpf_rate = self._rng.choice(self.IRPF_RATES)
        vat_amount = quantize_money(base * vat_rate / Decimal(100))
        irpf_amount = quantize_money(base * irpf_rate / Decimal(100))

        payment_method = self._rng.choice(self.PAYMENT_METHODS)
        bank_account = None
        if payment_method.endswith("bancaria"):
            bank_account = self._format_iban(self._faker.iban())

        return SyntheticInvoice(
            invoice_number=invoice_number,
            issue_date=issue_date,
            issuer_name=self._faker.company(),
            issuer_tax_id=self._faker.cif(),
            issuer_address=f"{self._faker.street_address()}\n{self._faker.postcode()} {self._faker.city()}",
            client_name=self._faker.company() if self._rng.random() < 0.6 else self._faker.name(),
            client_tax_id=self._faker.nif(),
            concept=self._rng.choice(self.CONCEPTS),
            base=base,
            vat_rate=vat_rate,
            vat_amount=vat_amount,
            irpf_rate=irpf_rate,
            irpf_amount=irpf_amount,
            total=quantize_money(base + vat_amount - irpf_amount),
            payment_method=payment_method,
            bank_account=bank_account,
            line_items=line_items,
        )

    def _create_line_item(self) -> SyntheticLineItem:
        description = self._rng.choice(self.CONCEPTS)
        quantity = self._rng.randint(1, 10)
        unit_price = quantize_money(Decimal(str(self._rng.uniform(15.0, 850.0))))
        return SyntheticLineItem(description=description, quantity=quantity, unit_price=unit_price)

    @staticmethod
    def _format_iban(raw: str) -> str:
        compact = raw.replace(" ", "").upper()
        return " ".join(compact[idx : idx + 4] for idx in range(0, len(compact), 4))

    def _apply_text_noise(self, text: str, noise_level: float) -> str:
        noise = self._clamp(noise_level)
        if noise == 0:
            return text

        chars = list(text)
        for idx, char in enumerate(chars):
            if char.isalpha() and self._rng.random() < noise * 0.3:
                chars[idx] = char.swapcase()
            elif char != "\n" and self._rng.random() < noise * 0.05:
                chars[idx] = self._rng.choice(string.ascii_letters + string.digits)

        drop_count = int(len(chars) * noise * 0.03)
        for _ in range(drop_count):
            if not chars:
                break
            del chars[self._rng.randrange(len(chars))]

        return "".join(chars)

    @staticmethod
    def _clamp(value: float) -> float:
        return max(0.0, min(1.0, value))
