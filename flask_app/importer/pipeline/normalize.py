"""
Field normalizers shared by the client and product import pipelines.

Every helper is total: it accepts whatever a spreadsheet export put in the cell
and returns a cleaned value without raising.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal

EMPTY_TEXT_SENTINEL = "SIN CARGA INICIAL"

_NON_CODE_CHARS = re.compile(r"[^A-Z0-9]")
_NON_DIGITS = re.compile(r"[^0-9]")
_LETTERS = re.compile(r"[A-Z]")
_DIGITS = re.compile(r"[0-9]")

_TRUE_TOKENS = frozenset({"1", "true", "t", "yes", "y", "si", "sí", "s", "x"})
_FALSE_TOKENS = frozenset({"0", "false", "f", "no", "n"})


def _as_text(value: object | None) -> str:
    """
    Render a cell as text, or ``""`` when it is neither a string nor a number.

    Integral floats lose their ``.0`` suffix so ``123.0`` reads as ``"123"``.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    return ""


def normalize_code(value: object | None) -> str:
    """
    Canonical form of a letters+digits business code.

    Uppercases, drops everything outside ``[A-Z0-9]`` and returns the letters
    (in order) followed by the digits (in order): ``"abc-123"`` -> ``"ABC123"``,
    ``"1a2b"`` -> ``"AB12"``.
    """
    cleaned = _NON_CODE_CHARS.sub("", _as_text(value).upper())
    return "".join(_LETTERS.findall(cleaned)) + "".join(_DIGITS.findall(cleaned))


def normalize_digits(value: object | None) -> str:
    """Keep the ASCII digits of ``value`` in their original order."""
    return _NON_DIGITS.sub("", _as_text(value))


def normalize_text(value: object | None, default: str = EMPTY_TEXT_SENTINEL) -> str:
    """Trim and uppercase free text, substituting ``default`` when nothing is left."""
    cleaned = _as_text(value).strip().upper()
    return cleaned or default


def normalize_name(value: object | None) -> str | None:
    """Reference names (laboratories, categories) compare trimmed and uppercased."""
    cleaned = _as_text(value).strip().upper()
    return cleaned or None


def normalize_optional_text(value: object | None) -> str | None:
    cleaned = _as_text(value).strip()
    return cleaned or None


def normalize_price(value: object | None) -> float:
    """
    Parse a price cell, returning ``0.0`` for blanks and garbage.

    A lone comma is read as the decimal separator (``"12,5"`` -> ``12.5``).
    """
    token = _as_text(value).strip().replace(" ", "")
    if not token:
        return 0.0
    if "," in token and "." not in token:
        token = token.replace(",", ".")
    else:
        token = token.replace(",", "")
    try:
        number = float(token)
    except ValueError:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def normalize_reference_id(value: object | None) -> int | None:
    """Database id sent back by a client (``7``, ``7.0`` or ``"7"``), else ``None``."""
    token = _as_text(value).strip()
    if not token.isdigit() or not token.isascii():
        return None
    return int(token)


def normalize_flag(value: object | None, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isnan(value):
        return default
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    token = _as_text(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    return default
