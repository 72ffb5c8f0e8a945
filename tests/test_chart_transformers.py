import pytest

from chart_advisor.models.tabular_result import TabularResult
from chart_advisor.visualization.chart_transformers import (
    TRANSFORMERS,
    can_transform_bar,
    can_transform_bubble,
    can_transform_line,
    can_transform_pie,
    select_transformer,
    transform_bar,
    transform_bubble,
    transform_line,
    transform_pie,
    transform_result,
    transform_table,
)


def test_dispatch_table_priorities():
    assert [(t.chart_type, t.priority) for t in TRANSFORMERS] == [
        ("line", 40), ("bar", 30), ("pie", 25), ("bubble", 20), ("table", 10),
    ]


# Line

def test_line_uses_season_as_x_axis_and_metric_as_y_axis(season_trend_result, make_intent):
    intent = make_intent({"line": 230.0, "bar": 110.0}, "trend", explicit_chart_type="line")

    assert can_transform_line(season_trend_result, intent)
    payload = transform_line(season_trend_result)

    assert payload.chart_type == "line"
    assert payload.get("x") == [2013, 2014, 2015, 2016, 2017]
    assert payload.get("y") == [12.35, 12.39, 13.78, 14.80, 15.34]
    assert payload.get("xLabel") == "season"
    assert payload.get("yLabel") == "avg_3_pointers_made_per_game"
    assert payload.get("labels")[0] == "season: 2013 - avg_3_pointers_made_per_game: 12.35"


def test_line_builds_series_in_first_seen_order():
    result = TabularResult.from_cached_data(
        ["season", "team_name", "avg_points"],
        ["INT64", "STRING", "FLOAT64"],
        [
            [2015, "Tar Heels", 84.5],
            [2015, "Bluejays", 83.2],
            [2016, "Tar Heels", 86.1],
            [2016, "Bluejays", 84.7],
        ],
    )

    payload = transform_line(result)

    assert payload.chart_type == "multi_line"
    series = payload.get("series")
    assert [s["name"] for s in series] == ["Tar Heels", "Bluejays"]
    assert series[0]["x"] == [2015, 2016]
    assert series[0]["y"] == [84.5, 86.1]
    assert "x" not in payload.data


def test_multi_line_series_values():
    result = TabularResult.from_cached_data(
        ["year", "team", "value"],
        ["INT64", "STRING", "INT64"],
        [[2013, "A", 10], [2013, "B", 20], [2014, "A", 11], [2014, "B", 19]],
    )

    payload = transform_line(result)

    series = payload.get("series")
    assert payload.chart_type == "multi_line"
    assert [s["name"] for s in series] == ["A", "B"]
    assert series[0]["y"] == [10.0, 11.0]
    assert series[1]["y"] == [20.0, 19.0]
    assert payload.get("xLabel") == "year"
    assert payload.get("yLabel") == "value"


def test_line_falls_back_to_row_index_when_x_and_y_collide():
    result = TabularResult.from_cached_data(
        ["season", "team"],
        ["INT64", "STRING"],
        [[2013, "A"], [2014, "A"], [2013, "B"]],
    )

    payload = transform_line(result)

    series = payload.get("series")
    assert series[0]["x"] == [1, 2]
    assert series[0]["y"] == [2013.0, 2014.0]
    assert series[1]["x"] == [1]
    assert payload.get("xLabel") == "Index"
    assert payload.get("yLabel") == "season"


def test_null_series_value_gets_a_placeholder_name():
    result = TabularResult.from_cached_data(
        ["season", "team", "points"],
        ["INT64", "STRING", "INT64"],
        [[2013, "A", 1], [2013, None, 2]],
    )

    series = transform_line(result).get("series")

    assert [s["name"] for s in series] == ["A", "Series 2"]


def test_line_requires_temporal_column(team_points_result, make_intent):
    intent = make_intent({"line": 250.0}, "trend")

    assert not can_transform_line(team_points_result, intent)


def test_week_columns_are_not_line_temporal(make_intent):
    result = TabularResult.from_cached_data(
        ["week", "points"], ["STRING", "INT64"], [["w1", 1], ["w2", 2], ["w3", 3]]
    )

    assert not can_transform_line(result, make_intent({"line": 250.0}, "trend"))


def test_line_moderate_intent_allows_long_results(make_intent):
    rows = [[2000 + i, i] for i in range(150)]
    result = TabularResult.from_cached_data(["year", "wins"], ["INT64", "INT64"], rows)

    assert not can_transform_line(result, make_intent({"line": 0.2}, "table"))
    assert can_transform_line(result, make_intent({"line": 1.0}, "table"))


# Bar

def test_bar_payload(team_conference_result, make_intent):
    intent = make_intent({"bar": 230.0}, "comparison")

    assert can_transform_bar(team_conference_result, intent)
    payload = transform_bar(team_conference_result)

    assert payload.chart_type == "bar"
    assert payload.get("x") == ["Rockets", "Demons", "Cyclones"]
    assert payload.get("y") == [89.0, 86.25, 83.0]
    assert payload.get("labels")[0] == "team_name: Rockets - conference: South - average_points: 89.0"
    assert payload.get("xLabel") == "team_name"
    assert payload.get("yLabel") == "average_points"


def test_bar_keeps_typed_numbers_and_parses_text():
    typed = TabularResult.from_cached_data(["team", "wins"], ["STRING", "INT64"], [["A", 3]])
    text = TabularResult.from_cached_data(["team", "points"], ["STRING", "STRING"], [["A", "12.5"], ["B", "n/a"]])

    typed_y = transform_bar(typed).get("y")
    assert typed_y == [3]
    assert isinstance(typed_y[0], int)
    assert transform_bar(text).get("y") == [12.5, 0.0]


def test_bar_eligibility(team_conference_result, make_intent):
    assert not can_transform_bar(team_conference_result, make_intent({"bar": 0.2}, "table"))
    assert can_transform_bar(team_conference_result, make_intent({"bar": 0.0}, "comparison"))

    no_numeric = TabularResult.from_cached_data(["a", "b"], ["STRING", "STRING"], [["x", "y"], ["z", "w"]])
    assert not can_transform_bar(no_numeric, make_intent({"bar": 100.0}, "comparison"))


# Pie

def test_pie_payload(team_points_result, make_intent):
    intent = make_intent({"pie": 2.5}, "distribution")

    assert can_transform_pie(team_points_result, intent)
    payload = transform_pie(team_points_result)

    assert payload.chart_type == "pie"
    assert payload.get("labels") == ["Rockets", "Demons"]
    assert payload.get("values") == [89.0, 86.25]
    assert payload.get("xLabel") == "team_name"
    assert payload.get("yLabel") == "average_points"


def test_pie_rejects_negative_values(make_intent):
    result = TabularResult.from_cached_data(
        ["team_name", "margin"], ["STRING", "FLOAT64"], [["Rockets", 4.0], ["Demons", -3.0]]
    )
    intent = make_intent({"pie": 2.5}, "distribution")

    assert not can_transform_pie(result, intent)
    assert select_transformer(result, intent, "pie").chart_type == "table"

    # With bar also eligible, the fallback is the next transformer by priority
    bar_intent = make_intent({"pie": 2.5, "bar": 2.0}, "distribution")
    assert select_transformer(result, bar_intent, "pie").chart_type == "bar"


def test_pie_needs_strong_score_and_few_segments(team_points_result, make_intent):
    assert not can_transform_pie(team_points_result, make_intent({"pie": 2.0}, "distribution"))

    rows = [[f"team {i}", i] for i in range(11)]
    many = TabularResult.from_cached_data(["team", "n"], ["STRING", "INT64"], rows)
    assert not can_transform_pie(many, make_intent({"pie": 50.0}, "distribution"))


def test_pie_labels_for_missing_categories():
    result = TabularResult.from_cached_data(["team", "n"], ["STRING", "INT64"], [[None, 2], ["A", 3]])

    assert transform_pie(result).get("labels") == ["Unknown", "A"]


# Bubble

def test_bubble_sizes_are_normalized():
    result = TabularResult.from_cached_data(
        ["team", "x", "y", "size"],
        ["STRING", "FLOAT64", "FLOAT64", "FLOAT64"],
        [["A", 1.0, 2.0, 0.0], ["B", 2.0, 3.0, 5.0], ["C", 3.0, 4.0, 10.0], ["D", 4.0, 5.0, -20.0]],
    )

    payload = transform_bubble(result)

    assert payload.get("sizes") == pytest.approx([10.0, 20.0, 30.0, 50.0])
    assert all(10.0 <= size <= 50.0 for size in payload.get("sizes"))
    assert payload.get("x") == [1.0, 2.0, 3.0, 4.0]
    assert payload.get("y") == [2.0, 3.0, 4.0, 5.0]
    assert payload.get("labels") == ["A", "B", "C", "D"]
    assert payload.get("xLabel") == "x"
    assert payload.get("yLabel") == "y"


def test_bubble_sizes_ignore_non_finite_values():
    result = TabularResult.from_cached_data(
        ["team", "x", "y", "size"],
        ["STRING", "FLOAT64", "FLOAT64", "FLOAT64"],
        [["A", 1.0, 2.0, 5.0], ["B", 1.0, 2.0, float("nan")], ["C", float("inf"), 2.0, float("inf")]],
    )

    payload = transform_bubble(result)

    assert payload.get("sizes") == [50.0, 10.0, 10.0]
    assert payload.get("x") == [1.0, 1.0, 0.0]


def test_bubble_sizes_default_when_all_zero():
    result = TabularResult.from_cached_data(
        ["team", "x", "y", "size"],
        ["STRING", "INT64", "INT64", "INT64"],
        [["A", 1, 2, 0], ["B", 2, 3, 0]],
    )

    assert transform_bubble(result).get("sizes") == [20.0, 20.0]


def test_bubble_with_two_numeric_columns_sizes_by_first():
    result = TabularResult.from_cached_data(
        ["team", "points", "rebounds"],
        ["STRING", "FLOAT64", "FLOAT64"],
        [["A", 50.0, 10.0], [None, 100.0, 20.0]],
    )

    payload = transform_bubble(result)

    assert payload.get("sizes") == pytest.approx([30.0, 50.0])
    assert payload.get("labels") == ["A", "Item 2"]


def test_bubble_eligibility(team_metrics_result, team_conference_result, make_intent):
    assert can_transform_bubble(team_metrics_result, make_intent({"bubble": 115.0}, "comparison"))
    assert not can_transform_bubble(team_conference_result, make_intent({"bubble": 115.0}, "correlation"))
    # Three numeric columns need five rows without a bubble signal
    assert not can_transform_bubble(team_metrics_result, make_intent({}, "table"))


# Table and selection

def test_table_payload():
    result = TabularResult.from_cached_data(["a", "b"], ["STRING", "INT64"], [["x"], ["y", 2]])

    payload = transform_table(result)

    assert payload.chart_type == "table"
    assert payload.get("columns") == ["a", "b"]
    assert payload.get("rows") == [["x", None], ["y", 2]]


def test_preferred_transformer_wins_when_eligible(team_metrics_result, make_intent):
    intent = make_intent({"bar": 230.0, "bubble": 115.0, "pie": 95.0}, "comparison", explicit_chart_type="bubble")

    assert select_transformer(team_metrics_result, intent, "bubble").chart_type == "bubble"


def test_ineligible_preference_falls_back_by_priority(team_conference_result, make_intent):
    intent = make_intent({"bar": 230.0, "bubble": 115.0, "pie": 95.0}, "comparison", explicit_chart_type="bubble")

    assert select_transformer(team_conference_result, intent, "bubble").chart_type == "bar"


def test_bar_beats_pie_when_both_eligible(team_points_result, make_intent):
    intent = make_intent({"bar": 10.0, "pie": 10.0}, "comparison")

    assert select_transformer(team_points_result, intent).chart_type == "bar"


def test_multi_line_preference_selects_line_transformer(multi_series_result, make_intent):
    intent = make_intent({"line": 5.0, "bar": 50.0}, "comparison")

    transformer = select_transformer(multi_series_result, intent, "multi_line")

    assert transformer.chart_type == "line"
    assert transformer.transform(multi_series_result).chart_type == "multi_line"


def test_missing_table_transformer_raises(team_points_result, make_intent):
    bar_only = [t for t in TRANSFORMERS if t.chart_type == "bar"]

    with pytest.raises(RuntimeError):
        select_transformer(team_points_result, make_intent({}, "table"), None, bar_only)


def test_transform_result_selects_and_applies(team_points_result, make_intent):
    payload = transform_result(team_points_result, make_intent({"pie": 2.5}, "distribution"), "pie")

    assert payload.chart_type == "pie"
    assert payload.get("values") == [89.0, 86.25]
