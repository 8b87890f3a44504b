from __future__ import annotations

import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")

_CURRENCY = re.compile(r"[€$£]|\beur(?:os?)?\b", flags=re.IGNORECASE)


def clean_text(txt: str) -> str:
    txt = txt.replace("\x0c", "\n").replace("\r\n", "\n").replace("\r", "\n").strip()
    return re.sub(r"[ \t]+", " ", txt)


def normalize_text(txt: str) -> str:
    """Lowercase *txt* and strip diacritics.

    NFD splits accented letters into base letter plus combining mark; dropping
    the marks gives back one character per original character, so offsets in
    the result line up with ``txt.lower()`` for Spanish text.
    """

    decomposed = unicodedata.normalize("NFD", txt.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def align_slice(original: str, normalized: str, start: int, end: int) -> str:
    """Return ``original[start:end]`` for a span found in ``normalize_text(original)``.

    Falls back to the normalized slice when the two texts differ in length.
    """

    if len(original) == len(normalized):
        return original[start:end]
    return normalized[start:end]


def parse_locale_number(txt: str | None) -> Decimal | None:
    """Parse a Spanish formatted number such as ``1.234,56``.

    With both separators present the dot groups thousands and the comma marks
    decimals. A lone comma is a decimal comma. Anything else is parsed as is.
    Returns ``None`` for malformed input instead of raising.
    """

    if txt is None:
        return None
    number = _CURRENCY.sub("", str(txt))
    number = re.sub(r"\s+", "", number).rstrip(".,")
    if not number:
        return None

    if "." in number and "," in number:
        number = number.replace(".", "").replace(",", ".")
    elif "," in number:
        if number.count(",") > 1:
            return None
        number = number.replace(",", ".")

    try:
        value = Decimal(number)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_rate(txt: str | None) -> int | None:
    value = parse_locale_number(txt)
    if value is None:
        return None
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def quantize_money(value: Decimal | int | float) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
