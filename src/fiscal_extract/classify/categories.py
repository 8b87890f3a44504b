from __future__ import annotations

import re

from ..ocr.postprocess import normalize_text

DEFAULT_CATEGORY = "Otros"
DEFAULT_MANUAL_CATEGORY = "Otros gastos"


def _keywords(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(words) + r")\b")


# Order matters: the first category with a keyword hit wins
DOCUMENT_CATEGORIES: list[tuple[str, re.Pattern[str]]] = [
    ("Restaurantes", _keywords("restaurante", "cafe", "cafeteria", "bar", "menu", "comer", "comida", "bebidas?")),
    ("Transporte", _keywords("gasolina", "gasolinera", "combustible", "diesel", "repsol", "cepsa", "bp")),
    (
        "Supermercado",
        _keywords("supermercado", "mercadona", "carrefour", "lidl", "aldi", r"supermercados\s+dia", "eroski", "hipercor"),
    ),
    ("Servicios", _keywords("telefono", "telefonia", "movil", "vodafone", "movistar", "orange")),
    ("Viajes", _keywords("hotel", "alojamiento", "booking", "airbnb")),
    (
        "Servicios Profesionales",
        _keywords("comision", "asesoria", "consultoria", r"servicios\s+profesionales", "relaciones"),
    ),
]

MANUAL_EXPENSE_CATEGORIES: list[tuple[str, re.Pattern[str]]] = [
    ("Alimentación", _keywords("comida", "restaurante", "cafe", "menu")),
    ("Transporte", _keywords("tren", "taxi", "uber", "cabify", "gasolina", "transporte")),
    ("Alojamiento", _keywords("hotel", "alojamiento", "apartamento", "airbnb")),
    ("Material oficina", _keywords("material", "oficina", "papeleria", "impresora")),
    ("Telecomunicaciones", _keywords("telefono", "movil", "internet", "fibra")),
]


def _first_category(txt: str, table: list[tuple[str, re.Pattern[str]]], default: str) -> str:
    for category, pattern in table:
        if pattern.search(txt):
            return category
    return default


def classify_category(normalized_text: str) -> str:
    """Category hint for a scanned document; expects normalized text."""

    return _first_category(normalized_text, DOCUMENT_CATEGORIES, DEFAULT_CATEGORY)


def guess_manual_category(description: str) -> str:
    """Category hint for a hand-typed expense description."""

    return _first_category(normalize_text(description or ""), MANUAL_EXPENSE_CATEGORIES, DEFAULT_MANUAL_CATEGORY)
