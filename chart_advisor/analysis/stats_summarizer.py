"""
Result statistics module for the chart advisor.

Builds lightweight statistical summaries from query results for chart
selection, response templating, and logging. Statistics are computed over
a bounded sample of rows, not the full result.
"""

import logging
from collections import Counter
from typing import List, Optional

from chart_advisor import config
from chart_advisor.models.analysis import CategoryMetricValue, ColumnStatsSummary
from chart_advisor.models.tabular_result import TabularResult
from chart_advisor.utilities.values import is_temporal_name, stringify, to_float

logger = logging.getLogger(__name__)

MAX_EXTREME_ROWS = 5
MAX_TOP_DIMENSION_VALUES = 5


def summarize(result: Optional[TabularResult], max_sample_rows: Optional[int] = None) -> ColumnStatsSummary:
    """
    Summarize the structure and primary metric of a query result.

    Args:
        result: Query result to summarize (None yields an empty summary)
        max_sample_rows: Row cap for the statistics pass (defaults to config)

    Returns:
        ColumnStatsSummary for the result
    """
    if result is None:
        return ColumnStatsSummary.empty()

    if max_sample_rows is None:
        max_sample_rows = config.STATS_MAX_SAMPLE_ROWS

    column_names = result.column_names
    numeric_columns = result.numeric_columns
    categorical_columns = result.categorical_columns
    row_count = result.row_count

    # Prefer a categorical dimension; fall back to a temporal-named column (season, year)
    primary_dimension = categorical_columns[0] if categorical_columns else find_first_temporal_column(column_names)
    primary_metric = find_primary_metric(numeric_columns)

    dimension_index = result.get_column_index(primary_dimension) if primary_dimension is not None else None
    metric_index = result.get_column_index(primary_metric) if primary_metric is not None else None

    category_frequency: Counter = Counter()
    metric_min = None
    metric_max = None
    metric_sum = None
    metric_count = 0
    metric_non_negative = True
    top_rows: List[CategoryMetricValue] = []
    bottom_rows: List[CategoryMetricValue] = []

    for row in result.rows[:max_sample_rows]:
        category = None
        if dimension_index is not None:
            category = stringify(row[dimension_index])
            # Counter keeps first-seen order, which doubles as the distinct-value set
            category_frequency[category] += 1

        metric_value = to_float(row[metric_index], default=None) if metric_index is not None else None
        if metric_value is None:
            continue

        metric_min = metric_value if metric_min is None else min(metric_min, metric_value)
        metric_max = metric_value if metric_max is None else max(metric_max, metric_value)
        metric_sum = metric_value if metric_sum is None else metric_sum + metric_value
        metric_count += 1
        if metric_value < 0:
            metric_non_negative = False

        if category is not None:
            candidate = CategoryMetricValue(category=category, metric_value=metric_value)
            _track_extremes(top_rows, candidate, top=True)
            _track_extremes(bottom_rows, candidate, top=False)

    # most_common is stable, ties keep first-seen order
    top_dimension_values = [value for value, _ in category_frequency.most_common(MAX_TOP_DIMENSION_VALUES)]
    metric_avg = metric_sum / metric_count if metric_count > 0 else None

    summary = ColumnStatsSummary(
        row_count=row_count,
        column_count=result.column_count,
        numeric_columns=numeric_columns,
        categorical_columns=categorical_columns,
        has_temporal_dimension=find_first_temporal_column(column_names) is not None,
        row_count_bucket=bucket_row_count(row_count),
        primary_dimension=primary_dimension,
        primary_dimension_cardinality=len(category_frequency),
        top_dimension_values=top_dimension_values,
        primary_metric=primary_metric,
        primary_metric_min=metric_min,
        primary_metric_max=metric_max,
        primary_metric_avg=metric_avg,
        primary_metric_non_negative=metric_non_negative,
        top_metric_rows=top_rows,
        bottom_metric_rows=bottom_rows,
    )
    logger.debug(f"Result stats: bucket={summary.row_count_bucket}, dimension={primary_dimension}, "
                 f"metric={primary_metric}, cardinality={summary.primary_dimension_cardinality}")
    return summary


def bucket_row_count(row_count: int) -> str:
    """Bucket a row count into empty/tiny/small/medium/large/huge."""
    if row_count <= 0:
        return "empty"
    if row_count <= 5:
        return "tiny"
    if row_count <= 15:
        return "small"
    if row_count <= 50:
        return "medium"
    if row_count <= 200:
        return "large"
    return "huge"


def find_first_temporal_column(column_names: List[str]) -> Optional[str]:
    for name in column_names:
        if is_temporal_name(name):
            return name
    return None


def find_primary_metric(numeric_columns: List[str]) -> Optional[str]:
    """
    Choose the metric column.

    The first numeric column with a non-temporal name wins; when every
    numeric column looks temporal (e.g. only "season"), the first one is used.
    """
    if not numeric_columns:
        return None
    for column in numeric_columns:
        if not is_temporal_name(column):
            return column
    return numeric_columns[0]


def _track_extremes(values: List[CategoryMetricValue], candidate: CategoryMetricValue, top: bool) -> None:
    values.append(candidate)
    values.sort(key=lambda value: value.metric_value, reverse=top)
    if len(values) > MAX_EXTREME_ROWS:
        values.pop()
