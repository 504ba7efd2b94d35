"""Safe accessors for raw extracted records.

Raw records are whatever the extractor returned after JSON parsing: values
may be strings, numbers, booleans, nested mappings or lists, and any key
may be missing. Every accessor here returns ``None`` (or a default) for an
absent or wrongly typed value instead of raising.
"""

import math
import re
from typing import Any, List, Mapping, Optional

_CURRENCY_TOKENS = ("USD", "US$", "usd", "dollars", "dollar", "$")

# Trailing unit words after a number: "25 per person", "10 each"
_RE_TRAILING_WORDS = re.compile(r"\s+[A-Za-z][A-Za-z\s./-]*$")

_RE_FIRST_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")
_RE_FREE_PRICE = re.compile(r"\b(?:free|no cost|no charge|complimentary)\b|^\$\s?0(?:\.0+)?$", re.IGNORECASE)


def coerce_text(value: Any) -> Optional[str]:
    """Return stripped text for scalar values, ``None`` for everything else.

    Strings, ints and floats read as text. Booleans, mappings and sequences
    are not textual field values and read as absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    return None


def get_text(record: Mapping[str, Any], key: str) -> Optional[str]:
    """Read ``record[key]`` as non-empty text."""
    if not isinstance(record, Mapping):
        return None
    return coerce_text(record.get(key))


def get_mapping(record: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    if not isinstance(record, Mapping):
        return None
    value = record.get(key)
    return value if isinstance(value, Mapping) else None


def get_list(record: Mapping[str, Any], key: str) -> Optional[List[Any]]:
    if not isinstance(record, Mapping):
        return None
    value = record.get(key)
    return value if isinstance(value, list) else None


def get_bool(record: Mapping[str, Any], key: str) -> Optional[bool]:
    """Read a boolean flag. Accepts real booleans and 'true'/'false' strings."""
    if not isinstance(record, Mapping):
        return None
    value = record.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "required"):
            return True
        if lowered in ("false", "no", "not required"):
            return False
    return None


def get_text_list(record: Mapping[str, Any], key: str) -> Optional[List[str]]:
    """Read a list value, keeping only its textual items.

    Returns ``None`` if the key is absent, not a list, or has no usable items.
    """
    items = get_list(record, key)
    if items is None:
        return None
    texts = [t for t in (coerce_text(item) for item in items) if t]
    return texts or None


def _finite(number: float, default: Optional[float]) -> Optional[float]:
    return number if math.isfinite(number) else default


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Convert a price-like value to float safely.

    Handles currency symbols and codes, US thousands separators and trailing
    unit words, e.g. ``"$1,234.50"``, ``"25 USD"``, ``"$15 per person"``.
    For text with several numbers (ranges) the first number wins.

    Args:
        value: Any raw value (str, int, float, None, etc.)
        default: Returned when no number can be read

    Returns:
        Float representation of the value, or default if conversion fails
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return _finite(float(value), default)
    if not isinstance(value, str):
        return default

    cleaned = value.strip()
    for token in _CURRENCY_TOKENS:
        cleaned = cleaned.replace(token, "")
    cleaned = _RE_TRAILING_WORDS.sub("", cleaned).strip()
    if not cleaned:
        return default
    try:
        return _finite(float(cleaned.replace(",", "")), default)
    except ValueError:
        pass

    match = _RE_FIRST_NUMBER.search(cleaned)
    if match:
        try:
            return _finite(float(match.group(0).replace(",", "")), default)
        except ValueError:
            return default
    return default


def price_amounts(text: str) -> List[float]:
    """Every number in a price string, in order: ``"$10 - $20"`` -> ``[10.0, 20.0]``."""
    amounts = [float(m.replace(",", "")) for m in _RE_FIRST_NUMBER.findall(text or "")]
    return [a for a in amounts if math.isfinite(a)]


def is_free_price(text: str) -> bool:
    """True for whole words like "free" or "no cost", or a bare "$0"."""
    return bool(_RE_FREE_PRICE.search(text.strip()))


def truncate(text: str, limit: int = 100) -> str:
    """Shorten ``text`` to ``limit`` characters, marking the cut with '...'."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def describe_type(value: Any) -> str:
    """Short JSON-ish type tag for diagnostics: string, number, array[3], ..."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return f"array[{len(value)}]"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__
