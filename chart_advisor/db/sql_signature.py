"""
SQL signature helpers.

Normalizes SQL so structurally identical queries share one signature
regardless of literal values, letter case or whitespace.
"""
import re
from typing import Optional

STRING_LITERAL = re.compile(r"'([^']|'')*'", re.DOTALL)
DOUBLE_QUOTE_LITERAL = re.compile(r'"([^"]|"")*"', re.DOTALL)
NUMERIC_LITERAL = re.compile(r"\b\d+(?:\.\d+)?\b")
EXTRA_WHITESPACE = re.compile(r"\s+")


def normalize_sql(sql: Optional[str]) -> Optional[str]:
    """
    Compute the signature of a SQL string.

    Args:
        sql: Raw SQL text

    Returns:
        Upper-cased signature with literals replaced, or None for blank input
    """
    if sql is None:
        return None

    trimmed = sql.strip()
    if not trimmed:
        return None

    # Quoted literals become empty placeholders
    normalized = STRING_LITERAL.sub("''", trimmed)
    normalized = DOUBLE_QUOTE_LITERAL.sub('""', normalized)

    # Standalone numbers become a single token
    normalized = NUMERIC_LITERAL.sub("#", normalized)

    return EXTRA_WHITESPACE.sub(" ", normalized).strip().upper()
