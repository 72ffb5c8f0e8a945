import pytest

from chart_advisor.analysis.query_patterns import (
    is_comparison_query,
    is_distribution_query,
    is_ranking_query,
    is_temporal_query,
)


@pytest.mark.parametrize("query", [
    "Top 10 teams by points",
    "bottom 5 scorers",
    "Which team had the highest attendance?",
    "Who was the best rebounder",
])
def test_ranking_queries(query):
    assert is_ranking_query(query)


@pytest.mark.parametrize("query", [
    "Points over time for the Rockets",
    "Attendance by season",
    "Scoring from 2013 to 2017",
    "Show the trend in assists",
])
def test_temporal_queries(query):
    assert is_temporal_query(query)


@pytest.mark.parametrize("query", [
    "Breakdown of wins by conference",
    "What is the share of points per player",
    "How are minutes divided among starters",
    "split between home and away games",
])
def test_distribution_queries(query):
    assert is_distribution_query(query)


@pytest.mark.parametrize("query", [
    "Compare the Rockets and the Demons",
    "Rockets versus Demons",
    "Rockets vs. Demons scoring",
])
def test_comparison_queries(query):
    assert is_comparison_query(query)


def test_plain_question_matches_nothing():
    query = "List every team in the West conference"

    assert not is_ranking_query(query)
    assert not is_temporal_query(query)
    assert not is_distribution_query(query)
    assert not is_comparison_query(query)


@pytest.mark.parametrize("query", [None, "", "   "])
def test_blank_queries_match_nothing(query):
    assert not is_ranking_query(query)
    assert not is_temporal_query(query)
    assert not is_distribution_query(query)
    assert not is_comparison_query(query)
