from __future__ import annotations

import pytest

from fiscal_extract.nlp_extract.parties import (
    TaxIdHit,
    assign_tax_ids_by_order,
    extract_parties,
    extract_vendor,
    find_tax_ids,
)
from fiscal_extract.ocr.postprocess import normalize_text

INVOICE_HEADER = """Estudio Creativo Luna S.L.
CIF: B12345678
Calle Mayor 12
28013 Madrid

Cliente: Comercial Norte S.A.
NIF: A87654321
Avenida de la Paz 3, 46001 Valencia
"""


def _parties(text: str):
    return extract_parties(text, normalize_text(text), window=150)


def test_find_tax_ids_orders_and_deduplicates() -> None:
    hits = find_tax_ids(normalize_text("CIF: B-12345678\nOtro: 12345678Z\nRepetido B12345678"))

    assert [hit.value for hit in hits] == ["B12345678", "12345678Z"]
    assert hits[0].start < hits[1].start


def test_assign_tax_ids_by_order() -> None:
    first, second = TaxIdHit("B12345678", 3), TaxIdHit("12345678Z", 40)

    assert assign_tax_ids_by_order([first, second]) == (first, second)
    assert assign_tax_ids_by_order([first]) == (first, None)
    assert assign_tax_ids_by_order([]) == (None, None)


def test_extract_parties_with_client_section() -> None:
    issuer, client = _parties(INVOICE_HEADER)

    assert issuer.name == "Estudio Creativo Luna S.L."
    assert issuer.tax_id == "B12345678"
    assert issuer.address == "Calle Mayor 12"
    assert client.name == "Comercial Norte S.A."
    assert client.tax_id == "A87654321"
    assert client.address == "Avenida de la Paz 3, 46001 Valencia"


def test_client_section_wins_over_reading_order() -> None:
    text = "Cliente: Juan Pérez\nNIF: 12345678Z\n\nEmitida por Talleres Sur S.L.\nCIF: B87654321\n"
    issuer, client = _parties(text)

    assert client.tax_id == "12345678Z"
    assert issuer.tax_id == "B87654321"
    assert client.name == "Juan Pérez"


def test_unlabelled_tax_ids_follow_reading_order() -> None:
    text = "Talleres Sur S.L. B87654321\nJuan Pérez 12345678Z\n"
    issuer, client = _parties(text)

    assert issuer.tax_id == "B87654321"
    assert issuer.name == "Talleres Sur S.L."
    assert client.tax_id == "12345678Z"
    assert client.name == "Juan Pérez"


def test_labelled_issuer_name() -> None:
    issuer, _client = _parties("Emisor: Ana López Consultora\nNIF: 12345678Z\n")

    assert issuer.name == "Ana López Consultora"
    assert issuer.tax_id == "12345678Z"


def test_parties_absent_when_nothing_matches() -> None:
    issuer, client = _parties("12,00\n")

    assert issuer.name is None and issuer.tax_id is None
    assert client.name is None and client.tax_id is None


def test_extract_vendor_near_tax_id() -> None:
    text = "MERCADONA S.A.\nA46103834\nC/ Valencia 5\nTOTAL 23,45 €"

    assert extract_vendor(text, normalize_text(text), 150) == "MERCADONA S.A."


def test_extract_vendor_from_legal_form() -> None:
    text = "Tel. 912345678\nGasolinera Repsol Norte, S.L.\nSin plomo 95 42,95"

    assert extract_vendor(text, normalize_text(text), 150) == "Gasolinera Repsol Norte S.L."


@pytest.mark.parametrize(
    "text",
    [
        "Subtotal 100,00\nIVA 21 % 21,00\nTOTAL 121,00",
        "Factura F123\nFecha 3 de marzo de 2025\nTotal 10,00",
        "Mantenimiento 45.00\nTarifa plana 12,50",
    ],
)
def test_amount_lines_are_not_issuer_names(text: str) -> None:
    issuer, _client = _parties(text)

    assert issuer.name is None


def test_header_name_still_used_for_plain_company_line() -> None:
    issuer, _client = _parties("Talleres Sur\nTotal 10,00")

    assert issuer.name == "Talleres Sur"
