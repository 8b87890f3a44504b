from __future__ import annotations

from datetime import date
from typing import Optional

from ..config import Settings, settings as default_settings
from ..ocr.postprocess import clean_text, normalize_text
from ..schemas import ExtractedFields
from .amounts import extract_figures
from .fields import (
    extract_bank_account,
    extract_concept,
    extract_date,
    extract_invoice_number,
    extract_payment_method,
    has_withholding_context,
)
from .parties import extract_parties, extract_vendor


def parse_structured(
    raw: str,
    today: date,
    receipt: bool = False,
    config: Optional[Settings] = None,
) -> ExtractedFields:
    """Run every field extractor over *raw* OCR text.

    Missing fields are left as ``None``; no defaults or arithmetic are applied
    at this stage.
    """

    config = config or default_settings
    txt = clean_text(raw)
    normalized = normalize_text(txt)

    issuer, client = extract_parties(txt, normalized, config.party_window_chars)
    vendor = extract_vendor(txt, normalized, config.party_window_chars) if receipt else issuer.name

    return ExtractedFields(
        raw_text=txt,
        normalized_text=normalized,
        invoice_number=extract_invoice_number(txt, normalized),
        issue_date=extract_date(normalized, today),
        issuer=issuer,
        client=client,
        concept=extract_concept(txt, normalized),
        vendor=vendor,
        figures=extract_figures(normalized, receipt=receipt),
        payment_method=extract_payment_method(txt, normalized),
        bank_account=extract_bank_account(txt),
        withholding_context=has_withholding_context(normalized),
    )
