import pytest

from chart_advisor.db.query_log_store import QueryLogStore
from chart_advisor.models.analysis import QueryIntent, empty_score_map
from chart_advisor.models.tabular_result import TabularResult


# Build a QueryIntent with fixed scores, the way the scorer would hand it over
def build_intent(scores=None, primary_intent="table", explicit_chart_type=None, confidence=1.0):
    score_map = empty_score_map()
    score_map["table"] = 0.1
    score_map.update(scores or {})
    return QueryIntent(
        chart_type_scores=score_map,
        primary_intent=primary_intent,
        has_explicit_request=explicit_chart_type is not None,
        explicit_chart_type=explicit_chart_type,
        confidence=confidence,
    )


@pytest.fixture
def make_intent():
    return build_intent


@pytest.fixture
def season_trend_result():
    return TabularResult.from_cached_data(
        ["season", "avg_3_pointers_made_per_game"],
        ["INT64", "FLOAT64"],
        [
            [2013, 12.35],
            [2014, 12.39],
            [2015, 13.78],
            [2016, 14.80],
            [2017, 15.34],
        ],
    )


@pytest.fixture
def multi_series_result():
    return TabularResult.from_cached_data(
        ["season", "team_name", "avg_points_per_game"],
        ["INT64", "STRING", "FLOAT64"],
        [
            [2013, "Generals", 64.0],
            [2013, "Golden Grizzlies", 74.39],
            [2014, "Generals", 71.6],
            [2014, "Golden Grizzlies", 74.24],
            [2015, "Generals", 85.5],
            [2015, "Golden Grizzlies", 86.37],
        ],
    )


@pytest.fixture
def team_metrics_result():
    return TabularResult.from_cached_data(
        ["team_name", "average_points", "average_rebounds", "average_assists"],
        ["STRING", "FLOAT64", "FLOAT64", "FLOAT64"],
        [
            ["Rockets", 89.0, 23.5, 14.0],
            ["Demons", 86.25, 34.75, 17.0],
            ["Cyclones", 83.0, 35.0, 16.0],
        ],
    )


@pytest.fixture
def team_conference_result():
    return TabularResult.from_cached_data(
        ["team_name", "conference", "average_points"],
        ["STRING", "STRING", "FLOAT64"],
        [
            ["Rockets", "South", 89.0],
            ["Demons", "West", 86.25],
            ["Cyclones", "North", 83.0],
        ],
    )


@pytest.fixture
def team_points_result():
    return TabularResult.from_cached_data(
        ["team_name", "average_points"],
        ["STRING", "FLOAT64"],
        [
            ["Rockets", 89.0],
            ["Demons", 86.25],
        ],
    )


@pytest.fixture
def log_store(tmp_path):
    return QueryLogStore(file_path=str(tmp_path / "logs" / "sql-queries.json"), max_result_rows=3)
