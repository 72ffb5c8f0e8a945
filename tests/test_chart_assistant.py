import logging
from decimal import Decimal

import pandas as pd
import pytest

from chart_advisor.chart_assistant import NO_DATA_MESSAGE, ChartAssistant
from chart_advisor.db.sql_signature import normalize_sql
from chart_advisor.models.tabular_result import TabularResult

BUBBLE_QUESTION = ("Show a bubble chart comparing teams' average points, rebounds, and assists "
                   "per game in the 2013 season (top 10 teams).")
TEAM_SQL = "SELECT team_name, AVG(points) AS average_points FROM games WHERE season = 2016 GROUP BY team_name"


@pytest.fixture
def assistant():
    return ChartAssistant()


@pytest.fixture
def assistant_with_log(log_store):
    return ChartAssistant(log_store=log_store)


def test_empty_result_returns_no_data_message(assistant):
    empty = TabularResult.from_cached_data(["team_name", "points"], ["STRING", "INT64"], [])

    for result in (empty, None):
        formatting = assistant.format_response("Average points by team", TEAM_SQL, result)

        assert formatting.response_body == {"message": NO_DATA_MESSAGE}
        assert formatting.selected_chart_type == "table"
        assert formatting.template.template_id == "table_default"
        assert formatting.result_stats.row_count == 0
        assert formatting.recommendation is None


def test_explicit_bubble_request_is_honored(assistant, team_metrics_result):
    formatting = assistant.format_response(BUBBLE_QUESTION, None, team_metrics_result)

    graph = formatting.response_body["graphData"]
    assert formatting.selected_chart_type == "bubble"
    assert graph["chartType"] == "bubble"
    assert graph["x"] == [89.0, 86.25, 83.0]
    assert graph["y"] == [23.5, 34.75, 35.0]
    assert graph["labels"] == ["Rockets", "Demons", "Cyclones"]
    assert graph["sizes"][1] == pytest.approx(50.0)
    assert "tableData" not in formatting.response_body
    assert formatting.response_body["message"].startswith("Multi-metric comparison")
    assert formatting.query_intent.explicit_chart_type == "bubble"


def test_ineligible_explicit_request_falls_back_to_bar(assistant, team_conference_result):
    formatting = assistant.format_response(BUBBLE_QUESTION, None, team_conference_result)

    graph = formatting.response_body["graphData"]
    assert formatting.selected_chart_type == "bar"
    assert graph["chartType"] == "bar"
    assert graph["x"] == ["Rockets", "Demons", "Cyclones"]
    assert formatting.template.template_id == "comparison_bar"


def test_multi_series_result_is_formatted_as_multi_line(assistant, multi_series_result):
    question = "Show a line chart of average points per game for each team by season"

    formatting = assistant.format_response(question, None, multi_series_result)

    graph = formatting.response_body["graphData"]
    assert formatting.selected_chart_type == "multi_line"
    assert graph["chartType"] == "multi_line"
    assert [series["name"] for series in graph["series"]] == ["Generals", "Golden Grizzlies"]
    assert "columns" not in graph
    assert formatting.template.template_id == "trend_line"


def test_intent_alone_picks_bar(assistant, team_points_result):
    formatting = assistant.format_response("Average points by team", TEAM_SQL, team_points_result)

    assert formatting.selected_chart_type == "bar"
    assert formatting.recommendation is None


def test_historical_recommendation_is_applied(log_store, assistant_with_log, team_points_result):
    past_sql = TEAM_SQL.replace("2016", "2019")
    log_store.store_query("Average points by team in 2019", past_sql, None, {
        "normalizedSql": normalize_sql(past_sql),
        "selectedChartType": "pie",
        "responseTemplate": {"templateId": "distribution_pie"},
    })

    formatting = assistant_with_log.format_response("Average points by team", TEAM_SQL, team_points_result)

    assert formatting.recommendation.chart_type == "pie"
    assert formatting.recommendation.support == 1.0
    assert formatting.selected_chart_type == "pie"
    assert formatting.response_body["graphData"]["labels"] == ["Rockets", "Demons"]

    metadata = assistant_with_log.build_log_metadata(TEAM_SQL, formatting)
    assert metadata["retrieval"] == {"chartType": "pie", "templateId": "distribution_pie", "support": 1.0}


def test_table_results_use_table_data(assistant):
    rows = [[f"team {i}", i, i * 2, i * 3, i * 4, i * 5, i * 6] for i in range(250)]
    result = TabularResult.from_cached_data(
        ["team", "a", "b", "c", "d", "e", "f"],
        ["STRING", "INT64", "INT64", "INT64", "INT64", "INT64", "INT64"],
        rows,
    )

    formatting = assistant.format_response("List every team", "SELECT * FROM teams", result)

    assert formatting.selected_chart_type == "table"
    assert formatting.response_body["tableData"]["columns"] == ["team", "a", "b", "c", "d", "e", "f"]
    assert "chartType" not in formatting.response_body["tableData"]
    assert formatting.response_body["message"] == "Detailed table results\n\nShowing 250 rows and 7 columns."


def test_dataframe_input(assistant):
    df = pd.DataFrame({"season": [2013, 2014, 2015, 2016, 2017], "points": [70.5, 72.0, 71.25, 74.0, 75.5]})

    formatting = assistant.format_response("How did scoring change over time?", None, df)

    graph = formatting.response_body["graphData"]
    assert formatting.selected_chart_type == "line"
    assert graph["x"] == [2013, 2014, 2015, 2016, 2017]
    assert graph["y"] == [70.5, 72.0, 71.25, 74.0, 75.5]


def test_dataframe_with_decimal_metric_is_charted(assistant):
    df = pd.DataFrame({
        "team_name": ["Rockets", "Demons", "Cyclones"],
        "avg_points": [Decimal("89.00"), Decimal("86.25"), Decimal("83.00")],
    })

    formatting = assistant.format_response("Compare average points by team", None, df)

    assert formatting.result_stats.primary_metric == "avg_points"
    assert formatting.selected_chart_type == "pie"
    assert formatting.response_body["graphData"]["values"] == [89.0, 86.25, 83.0]


def test_build_log_metadata(assistant, team_points_result):
    formatting = assistant.format_response("Average points by team", TEAM_SQL, team_points_result)

    metadata = assistant.build_log_metadata(TEAM_SQL, formatting)

    assert metadata["normalizedSql"] == normalize_sql(TEAM_SQL)
    assert metadata["selectedChartType"] == "bar"
    assert metadata["intent"]["preferredChartType"] == "bar"
    assert metadata["intent"]["sqlAnalysis"]["groupByColumns"] == ["team_name"]
    assert metadata["resultStats"]["rowCount"] == 2
    assert metadata["responseTemplate"]["templateId"] == "comparison_bar"
    assert "retrieval" not in metadata
    assert "normalizedSql" not in assistant.build_log_metadata(None, formatting)


def test_respond_and_answer_from_cache(log_store, assistant_with_log, team_points_result):
    live = assistant_with_log.respond("Average points by team?", TEAM_SQL, team_points_result)

    assert live["fromCache"] is False
    entry = log_store.snapshot()[0]
    assert entry["analysis"]["selectedChartType"] == "bar"
    assert entry["normalizedSql"] == normalize_sql(TEAM_SQL)

    cached = assistant_with_log.respond_from_cache("average points by TEAM")

    assert cached["fromCache"] is True
    assert cached["graphData"] == live["graphData"]
    assert cached["message"] == live["message"]


def test_cache_miss_returns_none(assistant, assistant_with_log):
    assert assistant.respond_from_cache("anything") is None
    assert assistant_with_log.respond_from_cache("never asked") is None


def test_cached_entry_without_rows_is_empty(assistant):
    formatting = assistant.format_response_from_cache("question", "SELECT 1", {"columns": ["a"], "rows": []})

    assert formatting.response_body == {"message": NO_DATA_MESSAGE}


def test_debug_mode_sets_root_level():
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    try:
        ChartAssistant(debug_mode=True)
        assert root_logger.level == logging.DEBUG
    finally:
        root_logger.setLevel(previous_level)
