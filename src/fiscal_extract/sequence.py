"""Advisory check that an invoice number follows the previous one.

Supported numbering conventions::

    123        plain counter
    F-123      letter, dash, counter
    F123       letter, counter
    2025/007   year, slash, counter (the counter restarts at 1 each year)

Both numbers must share a convention for the check to mean anything. Whenever
sequentiality cannot be judged the answer is ``True``.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

_SequenceRule = Callable[[re.Match[str], re.Match[str]], Optional[bool]]


def _counter(new: re.Match[str], last: re.Match[str]) -> Optional[bool]:
    return int(new.group("number")) == int(last.group("number")) + 1


def _prefixed_counter(new: re.Match[str], last: re.Match[str]) -> Optional[bool]:
    if new.group("prefix").upper() != last.group("prefix").upper():
        return None
    return _counter(new, last)


def _yearly_counter(new: re.Match[str], last: re.Match[str]) -> Optional[bool]:
    new_year, last_year = int(new.group("year")), int(last.group("year"))
    if new_year == last_year:
        return _counter(new, last)
    if new_year == last_year + 1:
        return int(new.group("number")) == 1
    return None


CONVENTIONS: list[tuple[str, re.Pattern[str], _SequenceRule]] = [
    ("numeric", re.compile(r"^(?P<number>\d+)$"), _counter),
    ("letter_dash", re.compile(r"^(?P<prefix>[A-Za-z])-(?P<number>\d+)$"), _prefixed_counter),
    ("letter", re.compile(r"^(?P<prefix>[A-Za-z])(?P<number>\d+)$"), _prefixed_counter),
    ("year", re.compile(r"^(?P<year>\d{4})/(?P<number>\d+)$"), _yearly_counter),
]


def is_sequential(new_number: Optional[str], last_number: Optional[str]) -> bool:
    if not new_number or not last_number:
        return True
    new_compact = re.sub(r"\s+", "", str(new_number))
    last_compact = re.sub(r"\s+", "", str(last_number))

    for _name, pattern, rule in CONVENTIONS:
        new_match = pattern.match(new_compact)
        last_match = pattern.match(last_compact)
        if new_match and last_match:
            verdict = rule(new_match, last_match)
            return True if verdict is None else verdict
        if new_match or last_match:
            # Different conventions
            return True
    return True
