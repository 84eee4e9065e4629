"""Best-effort scalar coercion for untrusted form and model payloads."""

import math
import re
from typing import Any, Optional

_INT_RE = re.compile(r"-?\d[\d,]*")


def coerce_int(value: Any) -> Optional[int]:
    """Best-effort integer: 4, "4", "4 pages", "$1,500", 2.5 -> 4, 4, 4, 1500, 2."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_RE.search(str(value))
    if not match:
        return None
    return int(match.group(0).replace(",", ""))


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value or "").strip().lower() in ("true", "yes", "y", "1", "on")
