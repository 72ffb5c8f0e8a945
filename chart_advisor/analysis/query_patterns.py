"""
Regex detectors for common question shapes (ranking, temporal, distribution, comparison).
"""
import re
from typing import Optional

RANKING_PATTERN = re.compile(r"\b(top|bottom)\s+\d+", re.IGNORECASE)
RANKING_KEYWORDS = re.compile(r"\b(highest|lowest|best|worst|leader|rank|first|last)\b")

TEMPORAL_PATTERN = re.compile(r"(over (time|years|seasons)|by (year|season|month)|from \d+ to \d+)", re.IGNORECASE)
TEMPORAL_KEYWORDS = re.compile(r"\b(trend|progression|across seasons|throughout|timeline|history|historical)\b")

DISTRIBUTION_PATTERN = re.compile(r"(distribution|breakdown|percentage|proportion|share) of", re.IGNORECASE)
DISTRIBUTION_PHRASES = re.compile(r"\b(split between|how .* divided|composition of)\b")

COMPARISON_PATTERN = re.compile(r"(compar|versus|vs\.?)", re.IGNORECASE)


def _is_blank(query: Optional[str]) -> bool:
    return query is None or not query.strip()


def is_ranking_query(query: Optional[str]) -> bool:
    """Detect ranking questions ("top 10", highest, best, ...)."""
    if _is_blank(query):
        return False
    if RANKING_PATTERN.search(query):
        return True
    return bool(RANKING_KEYWORDS.search(query.lower()))


def is_temporal_query(query: Optional[str]) -> bool:
    """Detect questions about change over time ("over seasons", "by year", trend, ...)."""
    if _is_blank(query):
        return False
    if TEMPORAL_PATTERN.search(query):
        return True
    return bool(TEMPORAL_KEYWORDS.search(query.lower()))


def is_distribution_query(query: Optional[str]) -> bool:
    """Detect part-to-whole questions ("breakdown of", "split between", ...)."""
    if _is_blank(query):
        return False
    return bool(DISTRIBUTION_PATTERN.search(query) or DISTRIBUTION_PHRASES.search(query.lower()))


def is_comparison_query(query: Optional[str]) -> bool:
    """Detect comparisons (compare, versus, vs)."""
    if _is_blank(query):
        return False
    return bool(COMPARISON_PATTERN.search(query))
