"""
Chart transformer module for the chart advisor.

Each transformer pairs an eligibility check over (result, intent) with a
function that reshapes the result rows into a chart-specific payload.
Transformers are held in a fixed dispatch table ordered by priority:
line 40, bar 30, pie 25, bubble 20, table 10. The table transformer is
always eligible and acts as the universal fallback.
"""

import logging
import math
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from chart_advisor.models.analysis import (
    CHART_TYPE_BAR,
    CHART_TYPE_BUBBLE,
    CHART_TYPE_LINE,
    CHART_TYPE_MULTI_LINE,
    CHART_TYPE_PIE,
    CHART_TYPE_TABLE,
    INTENT_COMPARISON,
    INTENT_CORRELATION,
    INTENT_TREND,
    ChartPayload,
    QueryIntent,
)
from chart_advisor.models.tabular_result import TabularResult
from chart_advisor.utilities.values import build_row_label, is_number, is_temporal_name, to_float

logger = logging.getLogger(__name__)

MAX_PIE_SEGMENTS = 10

# Line charts use a narrower temporal vocabulary than the stats summary ("week" is not included)
LINE_TEMPORAL_KEYWORDS = ("date", "time", "season", "year", "month", "day", "period")

SERIES_KEYWORDS = ("team", "player", "name", "label", "category", "group", "exchange", "conference", "series")

# Bubble sizes are normalized into [BUBBLE_MIN_SIZE, BUBBLE_MIN_SIZE + BUBBLE_SIZE_RANGE]
BUBBLE_MIN_SIZE = 10.0
BUBBLE_SIZE_RANGE = 40.0
BUBBLE_DEFAULT_SIZE = 20.0


class ChartTransformer(NamedTuple):
    """Dispatch table entry: target chart type, priority, eligibility check and transform."""
    chart_type: str
    priority: int
    can_transform: Callable[[TabularResult, QueryIntent], bool]
    transform: Callable[[TabularResult], ChartPayload]


# ---------------------------------------------------------------------------
# Bar
# ---------------------------------------------------------------------------

def can_transform_bar(result: TabularResult, intent: QueryIntent) -> bool:
    """Bar charts suit categorical comparisons, rankings and top/bottom lists."""
    if result.column_count < 2 or result.row_count < 1:
        return False

    has_numeric = bool(result.numeric_columns)
    bar_score = intent.score(CHART_TYPE_BAR)

    if bar_score > 1.5 or intent.primary_intent == INTENT_COMPARISON:
        reasonable_rows = 2 <= result.row_count <= 50
        reasonable_columns = 2 <= result.column_count <= 4
        if has_numeric and reasonable_rows and reasonable_columns:
            logger.debug(f"Bar transformer: strong intent match (score={bar_score}, "
                         f"intent={intent.primary_intent}, rows={result.row_count}, cols={result.column_count})")
            return True

    if bar_score > 0.5 and has_numeric and result.row_count <= 30:
        logger.debug(f"Bar transformer: moderate intent match (score={bar_score}, rows={result.row_count})")
        return True

    return False


def transform_bar(result: TabularResult) -> ChartPayload:
    logger.debug(f"Transforming data for bar chart: rows={result.row_count}, cols={result.column_count}")

    x_index = result.first_categorical_column_index()
    if x_index == -1:
        x_index = 0

    y_index = result.first_numeric_column_index()
    if y_index == -1:
        y_index = 1 if result.column_count > 1 else -1

    column_names = result.column_names
    x_data = []
    y_data = []
    labels = []
    for row in result.rows:
        x_data.append(_cell(row, x_index, len(x_data) + 1))
        y_data.append(_bar_value(_cell(row, y_index, None)))
        labels.append(build_row_label(row, column_names))

    return ChartPayload(chart_type=CHART_TYPE_BAR, data={
        "x": x_data,
        "y": y_data,
        "labels": labels,
        "xLabel": column_names[x_index] if x_index >= 0 else "Index",
        "yLabel": column_names[y_index] if y_index >= 0 else "Value",
    })


def _bar_value(value: Any) -> Any:
    # Typed ints and finite floats pass through unchanged, everything else is parsed
    if is_number(value) and not isinstance(value, Decimal):
        if not isinstance(value, float) or math.isfinite(value):
            return value
    return to_float(value, default=0.0)


# ---------------------------------------------------------------------------
# Pie
# ---------------------------------------------------------------------------

def can_transform_pie(result: TabularResult, intent: QueryIntent) -> bool:
    """Pie charts need a strong distribution signal, non-negative values and 2-10 segments."""
    if result.column_count < 2 or result.row_count < 1:
        return False

    pie_score = intent.score(CHART_TYPE_PIE)
    if pie_score <= 2.0:
        logger.debug(f"Pie transformer: rejected, score too low ({pie_score}, required > 2.0)")
        return False

    if not result.numeric_columns:
        return False

    all_non_negative = _all_values_non_negative(result, result.first_numeric_column_index())
    reasonable_segments = 2 <= result.row_count <= MAX_PIE_SEGMENTS
    if all_non_negative and reasonable_segments:
        logger.debug(f"Pie transformer: strong distribution match (score={pie_score}, rows={result.row_count})")
        return True

    logger.debug(f"Pie transformer: rejected (score={pie_score}, rows={result.row_count}, "
                 f"allNonNegative={all_non_negative}, reasonableSegments={reasonable_segments})")
    return False


def _all_values_non_negative(result: TabularResult, column_index: int) -> bool:
    if not result.is_numeric_column(column_index):
        return False
    for value in result.get_column(column_index):
        if value is None:
            continue
        number = to_float(value, default=None)
        if number is None or number < 0:
            return False
    return True


def transform_pie(result: TabularResult) -> ChartPayload:
    logger.debug(f"Transforming data for pie chart: rows={result.row_count}, cols={result.column_count}")

    label_index = result.first_categorical_column_index()
    if label_index == -1:
        label_index = 0

    value_index = result.first_numeric_column_index()
    if value_index == -1:
        value_index = 1 if result.column_count > 1 else -1

    labels = []
    values = []
    for row in result.rows:
        if 0 <= label_index < len(row):
            label = row[label_index]
            labels.append(str(label) if label is not None else "Unknown")
        else:
            labels.append(f"Item {len(labels) + 1}")
        # Slices cannot be negative
        values.append(max(0.0, to_float(_cell(row, value_index, None), default=0.0)))

    column_names = result.column_names
    return ChartPayload(chart_type=CHART_TYPE_PIE, data={
        "labels": labels,
        "values": values,
        "xLabel": column_names[label_index] if label_index >= 0 else "Category",
        "yLabel": column_names[value_index] if value_index >= 0 else "Value",
    })


# ---------------------------------------------------------------------------
# Line / multi-line
# ---------------------------------------------------------------------------

def _is_line_temporal_name(name: Optional[str]) -> bool:
    return is_temporal_name(name, LINE_TEMPORAL_KEYWORDS)


def find_temporal_column_index(result: TabularResult) -> int:
    for i, name in enumerate(result.column_names):
        if _is_line_temporal_name(name):
            return i
    return -1


def can_transform_line(result: TabularResult, intent: QueryIntent) -> bool:
    """Line charts need a temporal column, a numeric metric and at least 3 points."""
    if result.column_count < 2 or result.row_count < 2:
        return False

    line_score = intent.score(CHART_TYPE_LINE)
    has_temporal = find_temporal_column_index(result) >= 0
    has_numeric = bool(result.numeric_columns)

    if line_score > 1.5 or intent.primary_intent == INTENT_TREND:
        if has_temporal and has_numeric and 3 <= result.row_count <= 100:
            logger.debug(f"Line transformer: strong intent match (score={line_score}, "
                         f"intent={intent.primary_intent}, rows={result.row_count})")
            return True

    if line_score > 0.5 and has_temporal and has_numeric and result.row_count >= 3:
        logger.debug(f"Line transformer: moderate intent match (score={line_score}, rows={result.row_count})")
        return True

    return False


def find_series_column_index(result: TabularResult, x_index: int) -> int:
    """
    Find the column that splits rows into separate lines.

    A column qualifies when its name contains a series keyword (team,
    player, conference, ...) or when it is neither numeric nor temporal.

    Returns:
        Column index, or -1 when the result is a single series
    """
    for i, name in enumerate(result.column_names):
        if i == x_index or name is None:
            continue
        lower = name.lower()
        keyword_match = any(keyword in lower for keyword in SERIES_KEYWORDS)
        if keyword_match or (not result.is_numeric_column(i) and not _is_line_temporal_name(name)):
            return i
    return -1


def find_metric_column_index(result: TabularResult, x_index: int, series_index: int) -> int:
    for name in result.numeric_columns:
        index = result.get_column_index(name)
        if index is not None and index not in (x_index, series_index) and not _is_line_temporal_name(name):
            return index

    for i in range(result.column_count):
        if result.is_numeric_column(i) and i not in (x_index, series_index):
            return i

    return result.first_numeric_column_index()


def transform_line(result: TabularResult) -> ChartPayload:
    """
    Build a line payload, or a multi_line payload when a series column is found.

    Args:
        result: Query result with a temporal column and a numeric metric

    Returns:
        ChartPayload tagged "line" (x, y, labels) or "multi_line" (series)
    """
    logger.debug(f"Transforming data for line chart: rows={result.row_count}, cols={result.column_count}")

    x_index = find_temporal_column_index(result)
    if x_index == -1:
        x_index = 0

    series_index = find_series_column_index(result, x_index)
    y_index = find_metric_column_index(result, x_index, series_index)

    # x and y collide on one numeric column: plot against the row position instead
    if y_index == x_index and y_index >= 0 and result.is_numeric_column(y_index):
        x_index = -1

    column_names = result.column_names
    data: Dict[str, Any] = {}

    if series_index >= 0:
        series_map: "OrderedDict[str, Dict[str, List[Any]]]" = OrderedDict()
        for row in result.rows:
            series_value = _cell(row, series_index, None)
            series_name = str(series_value) if series_value is not None else f"Series {len(series_map) + 1}"
            series = series_map.setdefault(series_name, {"x": [], "y": [], "labels": []})
            series["x"].append(_cell(row, x_index, len(series["x"]) + 1))
            series["y"].append(to_float(_cell(row, y_index, None), default=0.0))
            series["labels"].append(build_row_label(row, column_names))

        data["series"] = [
            {"name": name, "x": series["x"], "y": series["y"], "labels": series["labels"]}
            for name, series in series_map.items()
        ]
        chart_type = CHART_TYPE_MULTI_LINE
    else:
        x_data = []
        y_data = []
        labels = []
        for row in result.rows:
            x_data.append(_cell(row, x_index, len(x_data) + 1))
            y_data.append(to_float(_cell(row, y_index, None), default=0.0))
            labels.append(build_row_label(row, column_names))
        data.update({"x": x_data, "y": y_data, "labels": labels})
        chart_type = CHART_TYPE_LINE

    data["xLabel"] = column_names[x_index] if x_index >= 0 else "Index"
    data["yLabel"] = column_names[y_index] if y_index >= 0 else "Value"
    return ChartPayload(chart_type=chart_type, data=data)


# ---------------------------------------------------------------------------
# Bubble
# ---------------------------------------------------------------------------

def can_transform_bubble(result: TabularResult, intent: QueryIntent) -> bool:
    """Bubble charts need two numeric axes plus a size column."""
    if result.column_count < 3 or result.row_count < 2:
        return False

    numeric_count = len(result.numeric_columns)
    bubble_score = intent.score(CHART_TYPE_BUBBLE)

    if (bubble_score > 0.5 or intent.primary_intent == INTENT_CORRELATION) and numeric_count >= 2:
        logger.debug(f"Bubble transformer: intent match (score={bubble_score}, "
                     f"intent={intent.primary_intent}, numericCols={numeric_count})")
        return True

    if numeric_count >= 3 and result.row_count >= 5:
        logger.debug(f"Bubble transformer: multi-metric data match (numericCols={numeric_count}, "
                     f"rows={result.row_count})")
        return True

    return False


def transform_bubble(result: TabularResult) -> ChartPayload:
    logger.debug(f"Transforming data for bubble chart: rows={result.row_count}, cols={result.column_count}")

    numeric_indexes = [result.get_column_index(name) for name in result.numeric_columns]

    x_index = numeric_indexes[0] if numeric_indexes else 0
    if len(numeric_indexes) > 1:
        y_index = numeric_indexes[1]
    else:
        y_index = 1 if result.column_count > 1 else 0
    if len(numeric_indexes) > 2:
        size_index = numeric_indexes[2]
    else:
        size_index = numeric_indexes[0] if numeric_indexes else 0

    label_index = result.first_categorical_column_index()
    if label_index == -1:
        label_index = 0

    rows = result.rows
    max_size = max((abs(to_float(_cell(row, size_index, None), default=0.0)) for row in rows), default=0.0)

    x_data = []
    y_data = []
    sizes = []
    labels = []
    for row in rows:
        x_data.append(to_float(_cell(row, x_index, None), default=0.0))
        y_data.append(to_float(_cell(row, y_index, None), default=0.0))

        size = abs(to_float(_cell(row, size_index, None), default=0.0))
        sizes.append(size / max_size * BUBBLE_SIZE_RANGE + BUBBLE_MIN_SIZE if max_size > 0 else BUBBLE_DEFAULT_SIZE)

        label = _cell(row, label_index, None)
        labels.append(str(label) if label is not None else f"Item {len(labels) + 1}")

    column_names = result.column_names
    return ChartPayload(chart_type=CHART_TYPE_BUBBLE, data={
        "x": x_data,
        "y": y_data,
        "sizes": sizes,
        "labels": labels,
        "xLabel": column_names[x_index] if x_index < result.column_count else "X Value",
        "yLabel": column_names[y_index] if y_index < result.column_count else "Y Value",
    })


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

def can_transform_table(result: TabularResult, intent: QueryIntent) -> bool:
    return True


def transform_table(result: TabularResult) -> ChartPayload:
    logger.debug(f"Transforming data for table: rows={result.row_count}, cols={result.column_count}")
    # Rows read from TabularResult are already padded to the column count
    return ChartPayload(chart_type=CHART_TYPE_TABLE, data={
        "columns": result.column_names,
        "rows": [list(row) for row in result.rows],
    })


# Dispatch table, highest priority first
TRANSFORMERS = (
    ChartTransformer(CHART_TYPE_LINE, 40, can_transform_line, transform_line),
    ChartTransformer(CHART_TYPE_BAR, 30, can_transform_bar, transform_bar),
    ChartTransformer(CHART_TYPE_PIE, 25, can_transform_pie, transform_pie),
    ChartTransformer(CHART_TYPE_BUBBLE, 20, can_transform_bubble, transform_bubble),
    ChartTransformer(CHART_TYPE_TABLE, 10, can_transform_table, transform_table),
)

# The line transformer produces both line shapes
_PREFERENCE_ALIASES = {CHART_TYPE_MULTI_LINE: CHART_TYPE_LINE}


def select_transformer(result: TabularResult,
                       intent: QueryIntent,
                       preferred_chart_type: Optional[str] = None,
                       transformers: Sequence[ChartTransformer] = TRANSFORMERS) -> ChartTransformer:
    """
    Pick the transformer for a result.

    The preferred chart type wins when its transformer is eligible. Otherwise
    the first eligible transformer in priority order is used, then table.

    Args:
        result: Query result to visualize
        intent: Scored query intent
        preferred_chart_type: Chart type to try first (optional)
        transformers: Dispatch table (defaults to TRANSFORMERS)

    Returns:
        The selected ChartTransformer

    Raises:
        RuntimeError: If no table transformer is registered
    """
    ordered = sorted(transformers, key=lambda transformer: transformer.priority, reverse=True)

    if preferred_chart_type:
        preferred = preferred_chart_type.lower()
        preferred = _PREFERENCE_ALIASES.get(preferred, preferred)
        for transformer in ordered:
            if transformer.chart_type == preferred and transformer.can_transform(result, intent):
                logger.debug(f"Selected preferred transformer: chartType={transformer.chart_type}, "
                             f"priority={transformer.priority}")
                return transformer
        logger.debug(f"Preferred chart type {preferred_chart_type} is not eligible, falling back")

    for transformer in ordered:
        if transformer.can_transform(result, intent):
            logger.debug(f"Selected transformer: chartType={transformer.chart_type}, priority={transformer.priority}")
            return transformer

    for transformer in ordered:
        if transformer.chart_type == CHART_TYPE_TABLE:
            logger.debug("Using fallback table transformer")
            return transformer

    raise RuntimeError("Table transformer not found")


def transform_result(result: TabularResult,
                     intent: QueryIntent,
                     preferred_chart_type: Optional[str] = None) -> ChartPayload:
    """Select a transformer and apply it."""
    transformer = select_transformer(result, intent, preferred_chart_type)
    return transformer.transform(result)


def _cell(row: Sequence[Any], index: int, fallback: Any) -> Any:
    if 0 <= index < len(row):
        return row[index]
    return fallback
