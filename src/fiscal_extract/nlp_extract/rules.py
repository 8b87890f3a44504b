"""Ordered regex strategies for every extracted field.

Each field owns a list of strategies tried strictly in order; the first one that
yields a value wins. Stricter phrasings come first, looser ones last. Patterns
marked *normalized* run on lowercased, accent-free text; the rest run on the
original text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Generic, Iterator, Optional, Sequence, TypeVar

from ..ocr.postprocess import parse_locale_number, parse_rate

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Optional[T]]


def iter_matches(txt: str, strategies: Sequence[Strategy[T]]) -> Iterator[tuple[str, T]]:
    """Yield ``(strategy name, value)`` for every successful match, in priority order."""

    for strategy in strategies:
        for match in strategy.pattern.finditer(txt):
            value = strategy.extract(match)
            if value is not None:
                yield strategy.name, value


def first_match(txt: str, strategies: Sequence[Strategy[T]]) -> Optional[tuple[str, T]]:
    return next(iter_matches(txt, strategies), None)


def _compile(pattern: str, flags: int = 0) -> re.Pattern[str]:
    return re.compile(pattern, flags)


def _group(index: int = 1) -> Callable[[re.Match[str]], Optional[str]]:
    def _extract(match: re.Match[str]) -> Optional[str]:
        value = match.group(index)
        return value.strip() if value and value.strip() else None

    return _extract


def _amount(index: int) -> Callable[[re.Match[str]], Optional[Decimal]]:
    def _extract(match: re.Match[str]) -> Optional[Decimal]:
        return parse_locale_number(match.group(index))

    return _extract


def _rated_amount(
    rate_index: Optional[int], amount_index: int
) -> Callable[[re.Match[str]], Optional[tuple[Optional[int], Decimal]]]:
    def _extract(match: re.Match[str]) -> Optional[tuple[Optional[int], Decimal]]:
        amount = parse_locale_number(match.group(amount_index))
        if amount is None:
            return None
        rate = parse_rate(match.group(rate_index)) if rate_index else None
        return rate, abs(amount)

    return _extract


def _rate(index: int = 1) -> Callable[[re.Match[str]], Optional[int]]:
    def _extract(match: re.Match[str]) -> Optional[int]:
        return parse_rate(match.group(index))

    return _extract


def _date_parts(match: re.Match[str]) -> tuple[str, str, str]:
    return match.group(1), match.group(2), match.group(3)


# ---------- Shared fragments (normalized text) ----------
CURRENCY = r"(?:€|eur|\$)?"
AMOUNT = r"(\d[\d.,]*)"
# Reject numbers that are really percentages ("iva 21%")
NOT_PERCENT = r"(?![\d.,]*\s*%)"
SEP = r"\s*:?\s*-?\s*" + CURRENCY + r"\s*-?\s*"
PERCENT = r"(-?\s?\d{1,3}(?:[.,]\d+)?)\s*%"
VAT_WORD = r"(?<!sin )\b(?:cuota\s+)?(?:iva|i\.v\.a\.?)"
IRPF_WORD = r"\b(?:irpf|retencion(?:\s+irpf)?|ret\.(?:\s*irpf)?)"


def _money(label: str) -> re.Pattern[str]:
    return _compile(label + SEP + AMOUNT + NOT_PERCENT)


# ---------- Dates (normalized text) ----------
DATE_STRATEGIES: list[Strategy[tuple[str, str, str]]] = [
    Strategy(
        "labelled",
        _compile(
            r"\bfecha(?:\s+(?:de\s+)?(?:factura|emision|expedicion|operacion))?\s*:?\s*"
            r"(\d{1,2})[/.-](\d{1,2})[/.-](\d{4}|\d{2})\b"
        ),
        _date_parts,
    ),
    Strategy("numeric", _compile(r"\b(\d{1,2})[/.-](\d{1,2})[/.-](\d{4}|\d{2})\b"), _date_parts),
    Strategy(
        "written",
        _compile(r"\b(\d{1,2})\s+de\s+([a-z]+)\s+(?:de|del)\s+(\d{4})\b"),
        _date_parts,
    ),
    Strategy(
        "iso",
        _compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b"),
        lambda match: (match.group(3), match.group(2), match.group(1)),
    ),
]

SPANISH_MONTHS = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}


# ---------- Invoice number (original text) ----------
_NUMBER_VALUE = r"([A-Za-z0-9/-]*\d[A-Za-z0-9/-]*)"

INVOICE_NUMBER_STRATEGIES: list[Strategy[str]] = [
    Strategy(
        "labelled",
        _compile(
            r"factura\s*(?:n[ºo°]\.?|n[uú]m(?:ero|\.)?)\s*:?\s*" + _NUMBER_VALUE,
            re.IGNORECASE,
        ),
        _group(),
    ),
    # "#" only; "Total factura: 1.060,00" is an amount
    Strategy("hash", _compile(r"\bfactura\s*#\s*" + _NUMBER_VALUE, re.IGNORECASE), _group()),
]

# Only tried when the document mentions "factura" at all
INVOICE_NUMBER_NEAR_STRATEGIES: list[Strategy[str]] = [
    Strategy("number_sign", _compile(r"\bn[ºo°]\.?\s*:?\s*" + _NUMBER_VALUE, re.IGNORECASE), _group()),
]

INVOICE_NUMBER_SHAPE_STRATEGIES: list[Strategy[str]] = [
    Strategy("series_year", _compile(r"\bF-\d{4}/\d{4}\b"), _group(0)),
    Strategy("year_series", _compile(r"\b\d{4}/\d{4}\b"), _group(0)),
    Strategy("letter_number", _compile(r"\b[A-Z]\d{3}\b"), _group(0)),
]


# ---------- Financial fields (normalized text) ----------
BASE_STRATEGIES: list[Strategy[Decimal]] = [
    Strategy("base_imponible", _money(r"\bbase\s+imponible(?:\s*\(\s*eur\s*\))?"), _amount(1)),
    Strategy("base", _money(r"\bbase"), _amount(1)),
    Strategy("subtotal", _money(r"\bsubtotal"), _amount(1)),
    Strategy("importe_neto", _money(r"\bimporte\s+neto"), _amount(1)),
    Strategy("importe_sin_iva", _money(r"\bimporte\s+sin\s+iva"), _amount(1)),
]

VAT_STRATEGIES: list[Strategy[tuple[Optional[int], Decimal]]] = [
    Strategy(
        "parenthesised_rate",
        _compile(VAT_WORD + r"\s*\(\s*" + PERCENT + r"\s*\)" + SEP + AMOUNT + NOT_PERCENT),
        _rated_amount(1, 2),
    ),
    Strategy(
        "rate_of_base",
        _compile(
            VAT_WORD + r"\s+" + PERCENT + r"\s+(?:de|s/)\s+[\d.,]+\s*" + CURRENCY + r"\s*"
            + AMOUNT + NOT_PERCENT
        ),
        _rated_amount(1, 2),
    ),
    Strategy(
        "inline_rate",
        _compile(VAT_WORD + r"\s+" + PERCENT + SEP + AMOUNT + NOT_PERCENT),
        _rated_amount(1, 2),
    ),
    Strategy("plain", _money(VAT_WORD), _rated_amount(None, 1)),
    Strategy("impuesto", _money(r"\bimpuestos?"), _rated_amount(None, 1)),
]

VAT_RATE_STRATEGIES: list[Strategy[int]] = [
    Strategy("near_vat", _compile(VAT_WORD + r"\s*\(?\s*(?:al\s+)?" + PERCENT), _rate()),
]

IRPF_STRATEGIES: list[Strategy[tuple[Optional[int], Decimal]]] = [
    Strategy(
        "parenthesised_rate",
        _compile(IRPF_WORD + r"\s*\(\s*" + PERCENT + r"\s*\)" + SEP + AMOUNT + NOT_PERCENT),
        _rated_amount(1, 2),
    ),
    Strategy(
        "inline_rate",
        _compile(IRPF_WORD + r"\s+" + PERCENT + SEP + AMOUNT + NOT_PERCENT),
        _rated_amount(1, 2),
    ),
    Strategy("plain", _money(IRPF_WORD), _rated_amount(None, 1)),
]

IRPF_RATE_STRATEGIES: list[Strategy[int]] = [
    Strategy("near_irpf", _compile(IRPF_WORD + r"\s*\(?\s*(?:al\s+)?" + PERCENT), _rate()),
]

TOTAL_STRATEGIES: list[Strategy[Decimal]] = [
    Strategy("total_a_pagar", _money(r"\btotal\s+a\s+pagar(?:\s*\(\s*eur\s*\))?"), _amount(1)),
    Strategy("total_factura", _money(r"\btotal\s+(?:de\s+(?:la\s+)?)?factura"), _amount(1)),
    Strategy("importe_total", _money(r"\bimporte\s+total"), _amount(1)),
    Strategy("total", _money(r"\btotal(?:\s*\(\s*eur\s*\))?"), _amount(1)),
    Strategy("a_pagar", _money(r"\ba\s+pagar"), _amount(1)),
    Strategy("importe", _compile(r"\bimporte\s*:\s*" + CURRENCY + r"\s*" + AMOUNT + NOT_PERCENT), _amount(1)),
]

# Receipts rarely label the total cleanly; these are only used on the expense path
RECEIPT_TOTAL_STRATEGIES: list[Strategy[Decimal]] = [
    Strategy(
        "priced_line",
        _compile(r"\b(?:precio|importe|total|cantidad|valor)\b[^\n]*?(\d+[.,]\d{2})\s*[€$]"),
        _amount(1),
    ),
    Strategy(
        "fuel_line",
        _compile(r"\b(?:sin\s*plomo|diesel|gasoleo|gasolina)\b[^\n]*?(\d+[.,]\d{2})"),
        _amount(1),
    ),
    Strategy(
        "line_end_amount",
        _compile(r"(\d{1,3}(?:\.\d{3})*,\d{2})\s*€?[ \t]*$", re.MULTILINE),
        _amount(1),
    ),
]

WITHHOLDING_CONTEXT = _compile(r"\b(?:irpf|retencion(?:es)?|profesional(?:es)?|autonom[oa]s?)\b")


# ---------- Payment and bank (normalized / original text) ----------
PAYMENT_LABEL = _compile(r"\b(?:forma|metodo|condiciones|medio)\s+de\s+pago\s*:?[ \t]*([^\n]+)")

PAYMENT_VOCABULARY: list[tuple[re.Pattern[str], str]] = [
    (_compile(r"\btransferencia(?:\s+bancaria)?\b"), "transferencia bancaria"),
    (_compile(r"\befectivo\b"), "efectivo"),
    (_compile(r"\btarjeta(?:\s+de\s+(?:credito|debito))?\b"), "tarjeta"),
    (_compile(r"\bdomiciliacion(?:\s+bancaria)?\b"), "domiciliación bancaria"),
    (_compile(r"\bpaypal\b"), "paypal"),
    (_compile(r"\bbizum\b"), "bizum"),
]

IBAN_PATTERN = _compile(r"\b[A-Z]{2}\d{2}(?:[ ]?\d{4}){5}\b|\b\d{4}(?:[ ]?\d{4}){4}\b")


# ---------- Concept (normalized text) ----------
CONCEPT_LABEL = _compile(r"\b(?:concepto|descripcion)\s*:[ \t]*([^\n]+)")
ITEMS_HEADER = _compile(
    r"^[^\n]*(?:\b(?:detalle|lineas)\b|\bdescripcion\b[^\n]*\b(?:cantidad|precio|importe|unidades|uds)\b)[^\n]*$",
    re.MULTILINE,
)
NOT_A_CONCEPT = _compile(
    r"\b(?:total|subtotal|importe|iva|irpf|base|fecha|factura|numero|cantidad|precio|nif|cif)\b"
)


# ---------- Parties (normalized text) ----------
TAX_ID_LABEL = r"(?:nif|cif|n\.i\.f\.?|c\.i\.f\.?|dni|nie|numero\s+de\s+identificacion\s+fiscal)"
TAX_ID_LABELLED = _compile(
    r"\b" + TAX_ID_LABEL + r"\s*:?\s*(?:es)?\s*([a-z]-?\d{7,8}-?[a-z0-9]?|\d{8}-?[a-z])\b"
)
TAX_ID_GENERIC = _compile(r"\b([a-z]\d{8}|\d{8}[a-z]|[xyz]\d{7}[a-z])\b")

CLIENT_SECTION = _compile(
    r"\b(?:datos\s+del\s+cliente|cliente|facturar\s+a|facturado\s+a|destinatario|receptor)\b"
)
CLIENT_NAME_LABEL = _compile(
    r"\b(?:datos\s+del\s+cliente|cliente|facturar\s+a|facturado\s+a|destinatario|receptor)\s*:?[ \t]*([^\n]*)"
)
ISSUER_NAME_LABEL = _compile(
    r"\b(?:datos\s+del\s+emisor|emisor|proveedor|razon\s+social|nombre\s+fiscal|empresa|autonomo)\s*:[ \t]*([^\n]{3,60})"
)
ADDRESS_LABEL = _compile(r"\b(?:direccion|domicilio)(?:\s+fiscal|\s+social)?\s*:[ \t]*([^\n]+)")
STREET_ADDRESS = _compile(
    r"(?:\bc/|\b(?:calle|avda\.?|avenida|av\.|plaza|pza\.|paseo|ronda|camino|carretera|ctra\.)\s)[^\n]*"
)
POSTAL_CITY = _compile(r"\b\d{5}\s+[a-z][a-z ]+")
LABEL_LINE = _compile(
    r"\b(?:nif|cif|dni|factura|fecha|tel(?:efono)?|tlf|movil|email|e-mail|correo|web|iban)\b|n[º°]"
)
LEGAL_FORM_COMPANY = _compile(
    r"([A-Za-zÀ-ÿ][A-Za-zÀ-ÿ0-9 .&'-]{1,60}?)(?:\s*,\s*|\s+)"
    r"(S\.L\.U\.|S\.L\.N\.E\.|S\.L\.|SLU|SLNE|SL|S\.A\.|SA|S\.C\.P\.|SCP|S\.C\.|SC|S\.R\.L\.|SRL)(?=[\s,.]|$)",
    re.MULTILINE,
)
