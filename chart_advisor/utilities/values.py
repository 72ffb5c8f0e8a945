"""
Value helpers shared by the analysis and visualization stages.

Query results arrive with loosely typed cells (ints, floats, Decimals,
numeric strings, None). Every conversion here fails soft: a value that
cannot be read as a number yields the caller's default instead of raising.
"""

import math
from decimal import Decimal
from typing import Any, List, Optional, Sequence

TEMPORAL_NAME_KEYWORDS = ("date", "time", "year", "season", "month", "day", "week", "period")


def is_number(value: Any) -> bool:
    """Return True for real numeric values (booleans are not numbers)."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Coerce a cell value to float.

    Typed numbers are converted directly, anything else is parsed from its
    string form. None, unparseable and non-finite values (NaN, infinity)
    return ``default``.
    """
    if value is None:
        return default
    try:
        number = float(value) if is_number(value) else float(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def stringify(value: Any) -> str:
    """String form used for grouping and labels ("null" for missing values)."""
    return "null" if value is None else str(value)


def is_temporal_name(name: Optional[str], keywords: Sequence[str] = TEMPORAL_NAME_KEYWORDS) -> bool:
    """Name-based temporal detection: case-insensitive substring match."""
    if not name:
        return False
    lower = name.lower()
    return any(token in lower for token in keywords)


def build_row_label(row: Sequence[Any], column_names: List[str], max_columns: int = 3) -> str:
    """Build a hover label such as "team: Rockets - points: 89.0" from the leading columns."""
    parts = []
    for i in range(min(max_columns, len(column_names))):
        if i < len(row) and row[i] is not None:
            parts.append(f"{column_names[i]}: {row[i]}")
    return " - ".join(parts)
