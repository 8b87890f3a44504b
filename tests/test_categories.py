from __future__ import annotations

import pytest

from fiscal_extract.classify.categories import classify_category, guess_manual_category
from fiscal_extract.ocr.postprocess import normalize_text


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Menú del día - Café incluido", "Restaurantes"),
        ("REPSOL Estación de servicio\nGasolina 95", "Transporte"),
        ("MERCADONA S.A. Ticket de compra", "Supermercado"),
        ("Factura telefonía Movistar", "Servicios"),
        ("Hotel Miramar - 2 noches", "Viajes"),
        ("Asesoría fiscal trimestral", "Servicios Profesionales"),
        ("Papelería Barcelona", "Otros"),
        ("Factura", "Otros"),
    ],
)
def test_classify_category(text: str, expected: str) -> None:
    assert classify_category(normalize_text(text)) == expected


def test_first_category_in_table_wins() -> None:
    # Both restaurant and hotel vocabulary: restaurants come first
    assert classify_category("hotel con restaurante") == "Restaurantes"


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("Taxi al aeropuerto", "Transporte"),
        ("Café con cliente", "Alimentación"),
        ("Tóner para impresora", "Material oficina"),
        ("Fibra óptica oficina", "Material oficina"),
        ("Cuota internet", "Telecomunicaciones"),
        ("", "Otros gastos"),
    ],
)
def test_guess_manual_category(description: str, expected: str) -> None:
    assert guess_manual_category(description) == expected
