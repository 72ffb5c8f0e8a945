import logging
import re
from typing import List, Optional

from chart_advisor.models.analysis import (
    CHART_TYPE_BAR,
    CHART_TYPE_BUBBLE,
    CHART_TYPE_LINE,
    CHART_TYPE_MULTI_LINE,
    CHART_TYPE_PIE,
    CHART_TYPE_TABLE,
    INTENT_COMPARISON,
    INTENT_CORRELATION,
    INTENT_DISTRIBUTION,
    INTENT_TABLE,
    INTENT_TREND,
    ColumnStatsSummary,
    NarrativeTemplate,
    QueryIntent,
)

# Configure logging
logger = logging.getLogger(__name__)

MAX_LEADER_INSIGHTS = 3


def build_template(chart_type: Optional[str],
                   intent: Optional[QueryIntent],
                   stats: Optional[ColumnStatsSummary]) -> NarrativeTemplate:
    """
    Build the narrative for a formatted result.
    The wording depends on the final chart type and names the primary
    dimension and metric from the stats summary.
    """
    if stats is None:
        stats = ColumnStatsSummary.empty()

    if chart_type in (CHART_TYPE_LINE, CHART_TYPE_MULTI_LINE):
        template = _build_trend_template(intent, stats)
    elif chart_type == CHART_TYPE_PIE:
        template = _build_distribution_template(intent, stats)
    elif chart_type == CHART_TYPE_BAR:
        template = _build_comparison_template(intent, stats)
    elif chart_type == CHART_TYPE_BUBBLE:
        template = _build_correlation_template(intent, stats)
    else:
        template = _build_table_template(stats)

    logger.debug(f"Built narrative template {template.template_id} for chart type {chart_type}")
    return template


def _build_trend_template(intent: Optional[QueryIntent], stats: ColumnStatsSummary) -> NarrativeTemplate:
    metric = humanize(stats.primary_metric, "metric value")
    dimension = humanize(stats.primary_dimension, "time")

    explanation = "This line chart highlights how the metric changes over time."
    if stats.primary_metric_min is not None and stats.primary_metric_max is not None:
        explanation = (f"This line chart highlights how {metric} changes across {dimension} "
                       f"(min {stats.primary_metric_min:.2f}, max {stats.primary_metric_max:.2f}).")

    return NarrativeTemplate(
        template_id="trend_line",
        chart_type=CHART_TYPE_LINE,
        headline=f"Trend of {metric} across {dimension}",
        explanation=explanation,
        insights=build_leader_insights(stats),
        intent_label=_intent_label(intent, INTENT_TREND),
    )


def _build_comparison_template(intent: Optional[QueryIntent], stats: ColumnStatsSummary) -> NarrativeTemplate:
    metric = humanize(stats.primary_metric, "metric")
    dimension = humanize(stats.primary_dimension, "category")

    return NarrativeTemplate(
        template_id="comparison_bar",
        chart_type=CHART_TYPE_BAR,
        headline=f"Comparing {metric} by {dimension}",
        explanation=f"Bars show how each {dimension} ranks based on {metric}. {stats.row_count} rows total.",
        insights=build_leader_insights(stats),
        intent_label=_intent_label(intent, INTENT_COMPARISON),
    )


def _build_distribution_template(intent: Optional[QueryIntent], stats: ColumnStatsSummary) -> NarrativeTemplate:
    metric = humanize(stats.primary_metric, "value")
    dimension = humanize(stats.primary_dimension, "category")

    return NarrativeTemplate(
        template_id="distribution_pie",
        chart_type=CHART_TYPE_PIE,
        headline=f"Share of {metric} by {dimension}",
        explanation=f"Each slice represents the contribution of {metric} for every {dimension}.",
        insights=build_leader_insights(stats),
        intent_label=_intent_label(intent, INTENT_DISTRIBUTION),
    )


def _build_correlation_template(intent: Optional[QueryIntent], stats: ColumnStatsSummary) -> NarrativeTemplate:
    return NarrativeTemplate(
        template_id="correlation_bubble",
        chart_type=CHART_TYPE_BUBBLE,
        headline="Multi-metric comparison",
        explanation="Bubble size and position represent multiple metrics simultaneously.",
        insights=build_leader_insights(stats),
        intent_label=_intent_label(intent, INTENT_CORRELATION),
    )


def _build_table_template(stats: ColumnStatsSummary) -> NarrativeTemplate:
    return NarrativeTemplate(
        template_id="table_default",
        chart_type=CHART_TYPE_TABLE,
        headline="Detailed table results",
        explanation=f"Showing {stats.row_count} rows and {stats.column_count} columns.",
        insights=[],
        intent_label=INTENT_TABLE,
    )


def build_leader_insights(stats: ColumnStatsSummary) -> List[str]:
    """One line per leading category, up to three."""
    insights = []
    for leader in stats.top_metric_rows[:MAX_LEADER_INSIGHTS]:
        if leader.metric_value is None:
            insights.append(f"{leader.category} appears in the top results.")
        else:
            insights.append(f"{leader.category} leads with {leader.metric_value:.2f}")
    return insights


def humanize(raw_name: Optional[str], fallback: str) -> str:
    """Turn a column name such as "avg_points" into "Avg Points"."""
    if raw_name is None or not raw_name.strip():
        return fallback
    cleaned = re.sub(r"_+", " ", raw_name).strip()
    return " ".join(part[:1].upper() + part[1:].lower() for part in cleaned.split())


def _intent_label(intent: Optional[QueryIntent], default: str) -> str:
    return intent.primary_intent if intent is not None else default
