"""Sender allowlist parsing and matching."""

from __future__ import annotations

import re
from collections.abc import Iterable

_NON_DIGITS = re.compile(r"[^0-9]")
_SEPARATORS = re.compile(r"[\n\r,\t ]+")


def normalize_number(number: str | None) -> str:
    """Strip every non-digit character: "+1 (415) 555-1234" -> "14155551234"."""
    return _NON_DIGITS.sub("", str(number or ""))


def parse_allowlist(raw: str | None) -> frozenset[str]:
    """Parse a newline/comma/tab/space separated list into normalized numbers."""
    if not raw:
        return frozenset()
    entries = (part.strip() for part in _SEPARATORS.split(raw))
    normalized = (normalize_number(entry) for entry in entries if entry)
    return frozenset(n for n in normalized if n)


def is_allowed(sender: str | None, allowed: Iterable[str]) -> bool:
    """Return True if *sender* may use the service.

    An empty allowlist allows everyone.
    """
    allowed = frozenset(normalize_number(n) for n in allowed)
    if not allowed:
        return True
    return normalize_number(sender) in allowed


class Allowlist:
    """Configured set of permitted senders."""

    def __init__(self, numbers: Iterable[str] = ()):
        self._numbers = frozenset(n for n in (normalize_number(x) for x in numbers) if n)

    @classmethod
    def from_config(cls, raw: str | None) -> Allowlist:
        return cls(parse_allowlist(raw))

    @property
    def numbers(self) -> frozenset[str]:
        return self._numbers

    @property
    def restricted(self) -> bool:
        return bool(self._numbers)

    def check(self, sender: str | None) -> bool:
        return is_allowed(sender, self._numbers)

    def __len__(self) -> int:
        return len(self._numbers)
