"""
Data classes produced by the chart analysis pipeline.

Each record also exposes a ``to_dict`` map view, which is the shape stored
in the "analysis" object of the query log.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Chart type constants
CHART_TYPE_LINE = "line"
CHART_TYPE_MULTI_LINE = "multi_line"
CHART_TYPE_BAR = "bar"
CHART_TYPE_PIE = "pie"
CHART_TYPE_BUBBLE = "bubble"
CHART_TYPE_TABLE = "table"

# Scored chart types. Order matters: it is the tie-break order for argmax.
SCORED_CHART_TYPES = (CHART_TYPE_TABLE, CHART_TYPE_LINE, CHART_TYPE_BAR, CHART_TYPE_PIE, CHART_TYPE_BUBBLE)

# Intent labels
INTENT_TREND = "trend"
INTENT_COMPARISON = "comparison"
INTENT_DISTRIBUTION = "distribution"
INTENT_CORRELATION = "correlation"
INTENT_TABLE = "table"

CHART_TYPE_TO_INTENT = {
    CHART_TYPE_LINE: INTENT_TREND,
    CHART_TYPE_MULTI_LINE: INTENT_TREND,
    CHART_TYPE_BAR: INTENT_COMPARISON,
    CHART_TYPE_PIE: INTENT_DISTRIBUTION,
    CHART_TYPE_BUBBLE: INTENT_CORRELATION,
}


def intent_for_chart_type(chart_type: Optional[str]) -> str:
    """Map a chart type to its intent label (unknown types map to "table")."""
    return CHART_TYPE_TO_INTENT.get(chart_type, INTENT_TABLE)


def empty_score_map() -> Dict[str, float]:
    return {chart_type: 0.0 for chart_type in SCORED_CHART_TYPES}


def argmax_chart_type(scores: Dict[str, float]) -> str:
    """
    Chart type with the highest score.

    Table seeds the search and only a strictly greater score displaces the
    current leader, visiting types in SCORED_CHART_TYPES order.
    """
    best_type = CHART_TYPE_TABLE
    best_score = scores.get(CHART_TYPE_TABLE, 0.0)
    for chart_type in SCORED_CHART_TYPES[1:]:
        score = scores.get(chart_type, 0.0)
        if score > best_score:
            best_type = chart_type
            best_score = score
    return best_type


class CategoryMetricValue(BaseModel):
    """A (category, metric value) pair from the result rows."""
    model_config = ConfigDict(frozen=True)

    category: str
    metric_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "value": self.metric_value}


class ColumnStatsSummary(BaseModel):
    """Snapshot of structural statistics derived from a tabular result."""
    model_config = ConfigDict(frozen=True)

    row_count: int = 0
    column_count: int = 0
    numeric_columns: List[str] = Field(default_factory=list)
    categorical_columns: List[str] = Field(default_factory=list)
    has_temporal_dimension: bool = False
    row_count_bucket: str = "empty"
    primary_dimension: Optional[str] = None
    primary_dimension_cardinality: int = 0
    top_dimension_values: List[str] = Field(default_factory=list)
    primary_metric: Optional[str] = None
    primary_metric_min: Optional[float] = None
    primary_metric_max: Optional[float] = None
    primary_metric_avg: Optional[float] = None
    primary_metric_non_negative: bool = True
    top_metric_rows: List[CategoryMetricValue] = Field(default_factory=list)
    bottom_metric_rows: List[CategoryMetricValue] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "ColumnStatsSummary":
        return cls()

    @property
    def has_category_and_metric(self) -> bool:
        return self.primary_dimension is not None and self.primary_metric is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowCount": self.row_count,
            "columnCount": self.column_count,
            "rowCountBucket": self.row_count_bucket,
            "numericColumns": list(self.numeric_columns),
            "categoricalColumns": list(self.categorical_columns),
            "hasTemporalDimension": self.has_temporal_dimension,
            "primaryDimension": self.primary_dimension,
            "primaryDimensionCardinality": self.primary_dimension_cardinality,
            "topDimensionValues": list(self.top_dimension_values),
            "primaryMetric": self.primary_metric,
            "primaryMetricMin": self.primary_metric_min,
            "primaryMetricMax": self.primary_metric_max,
            "primaryMetricAvg": self.primary_metric_avg,
            "primaryMetricNonNegative": self.primary_metric_non_negative,
            "topMetricRows": [value.to_dict() for value in self.top_metric_rows],
            "bottomMetricRows": [value.to_dict() for value in self.bottom_metric_rows],
        }


class SqlStructureSignals(BaseModel):
    """Structural signals extracted from SQL text."""
    model_config = ConfigDict(frozen=True)

    has_aggregation: bool = False
    has_temporal_group_by: bool = False
    group_by_column_count: int = 0
    group_by_columns: List[str] = Field(default_factory=list)
    has_limit: bool = False

    def chart_type_scores(self) -> Dict[str, float]:
        """Unweighted score contributions of these signals per chart type."""
        scores: Dict[str, float] = {}

        # Temporal grouping strongly suggests a line chart
        if self.has_temporal_group_by:
            scores[CHART_TYPE_LINE] = 10.0

        # Aggregation with grouping suggests bar, and pie for few group keys
        if self.has_aggregation and self.group_by_column_count > 0:
            if self.group_by_column_count <= 2:
                scores[CHART_TYPE_PIE] = 8.0
            scores[CHART_TYPE_BAR] = 10.0

        # LIMIT usually means a ranking
        if self.has_limit:
            scores[CHART_TYPE_BAR] = scores.get(CHART_TYPE_BAR, 0.0) + 10.0

        if not self.has_aggregation and self.group_by_column_count == 0:
            scores[CHART_TYPE_TABLE] = 5.0

        return scores

    def score(self, chart_type: str) -> float:
        return self.chart_type_scores().get(chart_type, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasTemporalGrouping": self.has_temporal_group_by,
            "hasAggregation": self.has_aggregation,
            "groupByColumnCount": self.group_by_column_count,
            "hasLimit": self.has_limit,
            "groupByColumns": list(self.group_by_columns),
        }


class QueryIntent(BaseModel):
    """Per-chart-type scores and the visualization intent derived from them."""
    model_config = ConfigDict(frozen=True)

    chart_type_scores: Dict[str, float] = Field(default_factory=empty_score_map)
    primary_intent: str = INTENT_TABLE
    has_explicit_request: bool = False
    explicit_chart_type: Optional[str] = None
    sql_analysis: Optional[SqlStructureSignals] = None
    confidence: float = 0.5

    @classmethod
    def default(cls) -> "QueryIntent":
        """Intent used when there is no question to analyze."""
        scores = empty_score_map()
        scores[CHART_TYPE_TABLE] = 1.0
        return cls(chart_type_scores=scores, primary_intent=INTENT_TABLE)

    def score(self, chart_type: str) -> float:
        return self.chart_type_scores.get(chart_type, 0.0)

    @property
    def preferred_chart_type(self) -> str:
        return argmax_chart_type(self.chart_type_scores)

    def to_dict(self) -> Dict[str, Any]:
        intent = {
            "primaryIntent": self.primary_intent,
            "chartTypeScores": dict(self.chart_type_scores),
            "preferredChartType": self.preferred_chart_type,
            "confidence": self.confidence,
            "explicitRequest": self.has_explicit_request,
            "explicitChartType": self.explicit_chart_type,
        }
        if self.sql_analysis is not None:
            intent["sqlAnalysis"] = self.sql_analysis.to_dict()
        return intent


class ChartPayload(BaseModel):
    """Chart-type tag plus the chart-specific arrays (x/y, labels, values, sizes, series)."""

    chart_type: str
    data: Dict[str, Any] = Field(default_factory=dict)

    def has_keys(self, *keys: str) -> bool:
        return all(key in self.data for key in keys)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class NarrativeTemplate(BaseModel):
    """Structured natural-language response for a formatted result."""
    model_config = ConfigDict(frozen=True)

    template_id: str
    chart_type: str
    headline: str
    explanation: Optional[str] = None
    insights: List[str] = Field(default_factory=list)
    intent_label: str = INTENT_TABLE

    def compose_message(self) -> str:
        """Headline, blank line, explanation, then an optional "Key takeaways" bullet list."""
        message = self.headline
        if self.explanation and self.explanation.strip():
            message += "\n\n" + self.explanation
        if self.insights:
            message += "\n\nKey takeaways:\n"
            for insight in self.insights:
                message += f"• {insight}\n"
        return message.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "templateId": self.template_id,
            "chartType": self.chart_type,
            "headline": self.headline,
            "explanation": self.explanation,
            "insights": list(self.insights),
            "intentLabel": self.intent_label,
        }


class HistoricalRecommendation(BaseModel):
    """Chart guidance mined from the historical query log."""
    model_config = ConfigDict(frozen=True)

    chart_type: str
    template_id: Optional[str] = None
    support: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"chartType": self.chart_type, "templateId": self.template_id, "support": self.support}


class FormattingResult(BaseModel):
    """Formatted response plus the diagnostics needed for logging."""

    response_body: Dict[str, Any] = Field(default_factory=dict)
    query_intent: QueryIntent = Field(default_factory=QueryIntent.default)
    result_stats: ColumnStatsSummary = Field(default_factory=ColumnStatsSummary.empty)
    selected_chart_type: str = CHART_TYPE_TABLE
    template: Optional[NarrativeTemplate] = None
    recommendation: Optional[HistoricalRecommendation] = None
