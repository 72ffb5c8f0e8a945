"""
SQL structure analysis for the chart advisor.

Extracts structural signals (aggregation, GROUP BY keys, LIMIT) from the
generated SQL text. These signals hint at which chart types fit the query.
"""

import logging
import re
from typing import List, Optional

from chart_advisor.models.analysis import SqlStructureSignals

logger = logging.getLogger(__name__)

# Column name fragments that indicate grouping over time
TEMPORAL_COLUMNS = [
    "date", "time", "year", "season", "month", "day", "week",
    "scheduled_date", "game_date", "timestamp", "datetime"
]

AGGREGATION_PATTERN = re.compile(r"\b(SUM|AVG|COUNT|MAX|MIN|STDDEV|VARIANCE)\s*\(", re.IGNORECASE)
GROUP_BY_PATTERN = re.compile(r"GROUP\s+BY\s+([^\s(,]+(?:\s*,\s*[^\s(,]+)*)", re.IGNORECASE | re.DOTALL)
LIMIT_PATTERN = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)
TABLE_ALIAS_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*\.")
TRAILING_CLAUSE_PATTERN = re.compile(r"\s+.*$", re.DOTALL)


def analyze_sql(sql: Optional[str]) -> SqlStructureSignals:
    """
    Analyze SQL text for visualization signals.

    Args:
        sql: Generated SQL query (None or blank yields empty signals)

    Returns:
        SqlStructureSignals describing the query
    """
    if not sql or not sql.strip():
        return SqlStructureSignals()

    has_aggregation = bool(AGGREGATION_PATTERN.search(sql))
    group_by_columns = extract_group_by_columns(sql)
    has_temporal_group_by = is_temporal_grouping(group_by_columns)
    has_limit = bool(LIMIT_PATTERN.search(sql))

    logger.debug(f"SQL analysis: hasAggregation={has_aggregation}, groupByCount={len(group_by_columns)}, "
                 f"hasTemporal={has_temporal_group_by}, hasLimit={has_limit}")

    return SqlStructureSignals(
        has_aggregation=has_aggregation,
        has_temporal_group_by=has_temporal_group_by,
        group_by_column_count=len(group_by_columns),
        group_by_columns=group_by_columns,
        has_limit=has_limit,
    )


def extract_group_by_columns(sql: str) -> List[str]:
    """
    Extract the GROUP BY keys, without table aliases or trailing clause text.

    Args:
        sql: SQL query text

    Returns:
        List of column names in GROUP BY order
    """
    match = GROUP_BY_PATTERN.search(sql)
    if not match:
        return []

    columns = []
    for part in match.group(1).split(","):
        column = TABLE_ALIAS_PATTERN.sub("", part.strip())
        column = TRAILING_CLAUSE_PATTERN.sub("", column)
        if column:
            columns.append(column)
    return columns


def is_temporal_grouping(group_by_columns: List[str]) -> bool:
    if not group_by_columns:
        return False
    columns_lower = " ".join(group_by_columns).lower()
    return any(temporal in columns_lower for temporal in TEMPORAL_COLUMNS)
