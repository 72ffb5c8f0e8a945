"""
Intent scoring module for the chart advisor.

Combines explicit chart requests, SQL structure, result structure, question
patterns, and keywords into per-chart-type scores, then derives the primary
visualization intent and a confidence value.
"""

import logging
import re
from typing import Dict, Optional

from chart_advisor.analysis import query_patterns
from chart_advisor.analysis.sql_analyzer import analyze_sql
from chart_advisor.analysis.stats_summarizer import summarize
from chart_advisor.models.analysis import (
    CHART_TYPE_BAR,
    CHART_TYPE_BUBBLE,
    CHART_TYPE_LINE,
    CHART_TYPE_PIE,
    CHART_TYPE_TABLE,
    ColumnStatsSummary,
    QueryIntent,
    SqlStructureSignals,
    argmax_chart_type,
    empty_score_map,
    intent_for_chart_type,
)
from chart_advisor.models.tabular_result import TabularResult

logger = logging.getLogger(__name__)

# An action verb followed (lazily) by a chart token
EXPLICIT_CHART_PATTERN = re.compile(
    r"(show|display|create|generate|visualize|make|give me|plot|as|in)\s+.*?\b(line|bar|pie|bubble|table|chart|graph)",
    re.IGNORECASE
)
GENERIC_CHART_TOKENS = ("chart", "graph")
CONCRETE_CHART_TYPES = (CHART_TYPE_LINE, CHART_TYPE_BAR, CHART_TYPE_PIE, CHART_TYPE_BUBBLE, CHART_TYPE_TABLE)
EXPLICIT_CONTEXT_WINDOW = 20

# Keyword lists, one per scored chart type
TREND_KEYWORDS = [
    "trend", "trends", "over time", "timeline", "history", "historical",
    "change", "changes", "evolution", "progression", "growth", "decline",
    "increase", "decrease", "over years", "over seasons", "by year", "by season"
]

COMPARISON_KEYWORDS = [
    "compare", "comparison", "versus", "vs", "vs.", "against",
    "top", "bottom", "highest", "lowest", "best", "worst",
    "ranking", "rankings", "ranked", "leader", "leaders",
    "most", "least", "greater", "lesser", "more than", "less than"
]

DISTRIBUTION_KEYWORDS = [
    "distribution", "distribute", "share", "shares", "percentage", "percent",
    "proportion", "proportions", "breakdown", "break down", "composition",
    "split", "divided", "ratio", "ratios", "part", "parts", "portion"
]

CORRELATION_KEYWORDS = [
    "relationship", "relationships", "correlation", "correlations",
    "correlate", "related", "connection", "connections", "association",
    "compare", "comparison"
]

# Scoring weights
EXPLICIT_REQUEST_WEIGHT = 100.0
SQL_PATTERN_WEIGHT = 10.0
RESULT_STRUCTURE_WEIGHT = 5.0
KEYWORD_WEIGHT = 1.0


def score_intent(query: Optional[str],
                 sql: Optional[str] = None,
                 result: Optional[TabularResult] = None,
                 stats: Optional[ColumnStatsSummary] = None) -> QueryIntent:
    """
    Analyze the question, SQL, and result structure to determine visualization intent.

    Args:
        query: The user's natural language question
        sql: The generated SQL query (optional)
        result: The query result (optional)
        stats: Precomputed statistics for ``result`` (computed when omitted)

    Returns:
        QueryIntent with chart type scores, primary intent and confidence
    """
    if query is None or not query.strip():
        return QueryIntent.default()

    scores = empty_score_map()
    scores[CHART_TYPE_TABLE] = 0.1

    sql_analysis: Optional[SqlStructureSignals] = None

    # 1. Explicit chart type requests
    explicit_chart_type = detect_explicit_chart_type(query)
    has_explicit_request = explicit_chart_type is not None
    if has_explicit_request:
        scores[explicit_chart_type] = EXPLICIT_REQUEST_WEIGHT
        logger.debug(f"Explicit chart type detected: {explicit_chart_type}")

    # 2. SQL structure
    if sql and sql.strip():
        sql_analysis = analyze_sql(sql)
        sql_scores = sql_analysis.chart_type_scores()
        _accumulate(scores, sql_scores, SQL_PATTERN_WEIGHT)
        logger.debug(f"SQL analysis scores: {sql_scores}")

    # 3. Result structure
    if result is not None:
        if stats is None:
            stats = summarize(result)
        result_scores = score_result_structure(result, stats)
        _accumulate(scores, result_scores, RESULT_STRUCTURE_WEIGHT)
        logger.debug(f"Result structure scores: {result_scores}")

    if not has_explicit_request:
        # 4. Question patterns
        if query_patterns.is_ranking_query(query):
            scores[CHART_TYPE_BAR] += 3.0 * KEYWORD_WEIGHT
            logger.debug("Ranking pattern detected, boosting bar chart score")
        if query_patterns.is_temporal_query(query):
            scores[CHART_TYPE_LINE] += 3.0 * KEYWORD_WEIGHT
            logger.debug("Temporal pattern detected, boosting line chart score")
        if query_patterns.is_distribution_query(query):
            scores[CHART_TYPE_PIE] += 3.0 * KEYWORD_WEIGHT
            logger.debug("Distribution pattern detected, boosting pie chart score")
        if query_patterns.is_comparison_query(query):
            scores[CHART_TYPE_BAR] += 2.0 * KEYWORD_WEIGHT
            logger.debug("Comparison pattern detected, boosting bar chart score")

        # 5. Keywords
        query_lower = query.lower()
        scores[CHART_TYPE_LINE] += keyword_score(query_lower, TREND_KEYWORDS) * KEYWORD_WEIGHT
        scores[CHART_TYPE_BAR] += keyword_score(query_lower, COMPARISON_KEYWORDS) * KEYWORD_WEIGHT
        scores[CHART_TYPE_PIE] += keyword_score(query_lower, DISTRIBUTION_KEYWORDS) * KEYWORD_WEIGHT
        scores[CHART_TYPE_BUBBLE] += keyword_score(query_lower, CORRELATION_KEYWORDS) * KEYWORD_WEIGHT

    primary_intent = intent_for_chart_type(argmax_chart_type(scores))
    confidence = compute_confidence(scores)

    preview = query if len(query) <= 50 else query[:50] + "..."
    logger.info(f"Query analyzed: query='{preview}', primaryIntent={primary_intent}, "
                f"confidence={confidence:.2f}, scores={scores}")

    return QueryIntent(
        chart_type_scores=scores,
        primary_intent=primary_intent,
        has_explicit_request=has_explicit_request,
        explicit_chart_type=explicit_chart_type,
        sql_analysis=sql_analysis,
        confidence=confidence,
    )


def detect_explicit_chart_type(query: str) -> Optional[str]:
    """
    Detect an explicit chart request such as "show a bar chart".

    A generic token ("chart", "graph") is resolved by looking for a concrete
    chart type within 20 characters on either side of the match. When none
    is found, no explicit request is registered.

    Args:
        query: The user's question

    Returns:
        Requested chart type or None
    """
    match = EXPLICIT_CHART_PATTERN.search(query)
    if not match:
        return None

    chart_type = match.group(2).lower()
    if chart_type not in GENERIC_CHART_TOKENS:
        return chart_type

    start = max(0, match.start() - EXPLICIT_CONTEXT_WINDOW)
    end = min(len(query), match.end() + EXPLICIT_CONTEXT_WINDOW)
    context = query[start:end].lower()
    for candidate in CONCRETE_CHART_TYPES:
        if candidate in context:
            return candidate
    return None


def score_result_structure(result: TabularResult, stats: Optional[ColumnStatsSummary]) -> Dict[str, float]:
    """
    Unweighted chart type scores from the shape of the result.

    Args:
        result: The query result
        stats: Statistics summary of the result (optional)

    Returns:
        Dictionary of chart type to score
    """
    scores = empty_score_map()

    row_count = result.row_count
    column_count = result.column_count
    numeric_count = len(result.numeric_columns)
    categorical_count = len(result.categorical_columns)

    if 1 <= row_count <= 10:
        scores[CHART_TYPE_PIE] += 3.0
        scores[CHART_TYPE_BAR] += 2.0
    elif 10 < row_count <= 50:
        scores[CHART_TYPE_BAR] += 3.0
    elif 50 < row_count < 100:
        scores[CHART_TYPE_LINE] += 2.0
        scores[CHART_TYPE_TABLE] += 1.0
    elif row_count >= 200:
        scores[CHART_TYPE_TABLE] += 5.0

    if stats is not None:
        if stats.has_temporal_dimension and 4 <= row_count <= 400:
            scores[CHART_TYPE_LINE] += 6.0

        cardinality = stats.primary_dimension_cardinality
        if 0 < cardinality <= 15 and stats.has_category_and_metric:
            scores[CHART_TYPE_BAR] += 4.0

        if 0 < cardinality <= 6 and stats.primary_metric_non_negative and row_count <= 12:
            scores[CHART_TYPE_PIE] += 4.0

        if cardinality > 20 or stats.row_count > 200 or column_count > 6:
            scores[CHART_TYPE_TABLE] += 5.0

    if numeric_count >= 3 and categorical_count >= 1:
        scores[CHART_TYPE_BUBBLE] += 3.0
    elif numeric_count >= 2 and categorical_count >= 1:
        scores[CHART_TYPE_BUBBLE] += 1.0

    if column_count > 5:
        scores[CHART_TYPE_TABLE] += 2.0

    return scores


def keyword_score(query_lower: str, keywords) -> float:
    """Sum of (1 + len/10) over keywords found in the question; longer keywords weigh more."""
    score = 0.0
    for keyword in keywords:
        if keyword in query_lower:
            score += 1.0 + len(keyword) / 10.0
    return score


def compute_confidence(scores: Dict[str, float]) -> float:
    """Confidence in [0, 1]: the leading score relative to the mean score."""
    total = sum(scores.values())
    if total <= 0:
        return 0.5
    max_score = max(scores.values())
    return min(1.0, max_score / max(1.0, total / len(scores)))


def _accumulate(scores: Dict[str, float], contributions: Dict[str, float], weight: float) -> None:
    for chart_type, value in contributions.items():
        scores[chart_type] = scores.get(chart_type, 0.0) + value * weight
