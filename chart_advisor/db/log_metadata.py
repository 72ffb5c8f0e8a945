"""
Builds the "analysis" metadata stored with each query log entry.
"""
from typing import Any, Dict, Optional

from chart_advisor.db.sql_signature import normalize_sql
from chart_advisor.models.analysis import FormattingResult


def build_log_metadata(sql: Optional[str], formatting_result: FormattingResult) -> Dict[str, Any]:
    """
    Translate formatting diagnostics into the persisted analysis object.

    Args:
        sql: SQL text that produced the result
        formatting_result: Output of the formatting pipeline

    Returns:
        Dictionary with normalizedSql, selectedChartType, intent, resultStats,
        responseTemplate and, when a recommendation was used, retrieval
    """
    metadata: Dict[str, Any] = {}

    normalized_sql = normalize_sql(sql)
    if normalized_sql is not None:
        metadata["normalizedSql"] = normalized_sql

    metadata["selectedChartType"] = formatting_result.selected_chart_type
    metadata["intent"] = formatting_result.query_intent.to_dict() if formatting_result.query_intent else {}

    if formatting_result.result_stats is not None:
        metadata["resultStats"] = formatting_result.result_stats.to_dict()

    if formatting_result.template is not None:
        metadata["responseTemplate"] = formatting_result.template.to_dict()

    if formatting_result.recommendation is not None:
        metadata["retrieval"] = formatting_result.recommendation.to_dict()

    return metadata
