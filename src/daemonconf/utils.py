from __future__ import annotations

import re
from typing import Any, Optional

__all__ = [
    "atoi",
    "parse_bool",
    "_to_text",
]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def atoi(value: Optional[str]) -> int:
    """
    Parse the leading decimal integer of ``value`` the way C's atoi() does.

    Leading whitespace and a sign are accepted, trailing garbage is ignored,
    and anything without leading digits yields 0.
    """
    if not value:
        return 0
    match = _LEADING_INT.match(value)
    if match is None:
        return 0
    return int(match.group(1))


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """
    Interpret a configuration value as a boolean.

    A leading Y, T or 1 (any case) is true; otherwise the value is parsed as an
    integer and any non-zero result is true. ``None`` yields ``default``.
    """
    if value is None:
        return default
    if value[:1].upper() in ("Y", "T", "1"):
        return True
    return atoi(value) != 0


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        raise TypeError("Configuration values must not be None")
    return str(value)
