import pytest

from chart_advisor.db.sql_signature import normalize_sql


def test_literals_are_replaced():
    sql = "select  team_name,\n  points from games where season = 2016 and team_name = 'O''Brien' limit 10"

    assert normalize_sql(sql) == "SELECT TEAM_NAME, POINTS FROM GAMES WHERE SEASON = # AND TEAM_NAME = '' LIMIT #"


def test_queries_differing_only_in_values_share_a_signature():
    first = normalize_sql("SELECT * FROM games WHERE season = 2016 AND venue = 'Home'")
    second = normalize_sql("select *   from games where season = 2020 and venue = 'Away'")

    assert first == second


def test_decimal_and_double_quoted_literals():
    assert normalize_sql('SELECT "Team Name" FROM t WHERE ratio > 0.75') == 'SELECT "" FROM T WHERE RATIO > #'


def test_digits_inside_identifiers_are_kept():
    assert normalize_sql("SELECT team_2 FROM t3") == "SELECT TEAM_2 FROM T3"


def test_normalization_is_idempotent():
    signature = normalize_sql("SELECT a FROM t WHERE b = 'x' AND c = 4.5")

    assert normalize_sql(signature) == signature


@pytest.mark.parametrize("sql", [None, "", "  \n "])
def test_blank_sql_has_no_signature(sql):
    assert normalize_sql(sql) is None
