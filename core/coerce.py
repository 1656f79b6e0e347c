"""Key resolution and scalar coercion for loosely-typed warehouse rows.

Warehouse rows arrive as plain mappings whose keys drift in casing across
tables (``State`` / ``state`` / ``STATE``) and whose values are usually
strings. Nothing in here raises on bad data: every helper returns the
caller's default instead.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Tuple

_INT_RE = re.compile(r"^[+-]?\d+$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def resolve_key(record: Mapping[str, Any], candidates: Iterable[str]) -> Optional[str]:
    """Return the record key matching the first candidate, or None.

    Candidates are tried with their original casing first, then again
    case-insensitively against every key of the record. A key whose value is
    blank (None, NaN or an empty string) does not count as a match, so
    ``ID: "", Station_Name: "x"`` resolves to ``Station_Name``.
    """
    candidates = tuple(candidates)
    for name in candidates:
        if name in record and not is_blank(record[name]):
            return name

    lowered: dict = {}
    for key in record:
        if not isinstance(key, str):
            continue
        if is_blank(record[key]):
            continue
        lowered.setdefault(key.lower(), key)
    for name in candidates:
        hit = lowered.get(name.lower())
        if hit is not None:
            return hit
    return None


def resolve_value(record: Mapping[str, Any], candidates: Iterable[str]) -> Tuple[bool, Any]:
    key = resolve_key(record, candidates)
    if key is None:
        return False, None
    return True, record[key]


def to_int(value: Any, default: Any = 0) -> Any:
    """Parse a base-10 integer, truncating decimal inputs toward zero."""
    if is_blank(value) or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isinf(value):
            return default
        return math.trunc(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return default
        return int(value)
    text = str(value).strip().replace(",", "")
    if _INT_RE.match(text):
        return int(text)
    try:
        parsed = Decimal(text)
    except (InvalidOperation, ValueError):
        return default
    if not parsed.is_finite():
        return default
    return int(parsed)


def to_float(value: Any, default: Any = None) -> Any:
    if is_blank(value) or isinstance(value, bool):
        return default
    try:
        out = float(str(value).strip().replace(",", "")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def to_text(value: Any, default: Any = "") -> Any:
    if is_blank(value):
        return default
    if isinstance(value, float) and value.is_integer():
        # Warehouse numerics like ZIP codes come back as 43210.0.
        return str(int(value))
    return str(value).strip()
