"""
Historical recommendations mined from the query log.

Entries whose stored signature matches the current SQL vote on the chart
type and narrative template to reuse.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chart_advisor.db.sql_signature import normalize_sql
from chart_advisor.models.analysis import HistoricalRecommendation

logger = logging.getLogger(__name__)


class LoggedTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    template_id: Optional[str] = Field(default=None, alias="templateId")


class LoggedAnalysis(BaseModel):
    """The fields of a log entry's "analysis" object that recommendations rely on."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    normalized_sql: Optional[str] = Field(default=None, alias="normalizedSql")
    selected_chart_type: Optional[str] = Field(default=None, alias="selectedChartType")
    response_template: Optional[LoggedTemplate] = Field(default=None, alias="responseTemplate")

    @property
    def template_id(self) -> Optional[str]:
        return self.response_template.template_id if self.response_template is not None else None


def find_recommendation(sql: Optional[str], entries: Optional[List[Dict[str, Any]]]) -> Optional[HistoricalRecommendation]:
    """
    Find a chart recommendation for SQL from past log entries.

    Args:
        sql: SQL text of the current query
        entries: Point-in-time snapshot of the query log

    Returns:
        HistoricalRecommendation, or None when no past entry shares the
        signature or none of the matches recorded a chart type
    """
    signature = normalize_sql(sql)
    if signature is None or not entries:
        return None

    matches = [
        analysis for analysis in (parse_analysis(entry) for entry in entries)
        if analysis is not None and analysis.normalized_sql == signature
    ]
    if not matches:
        return None

    best_chart = plurality_vote(analysis.selected_chart_type for analysis in matches)
    if best_chart is None:
        return None

    best_template = plurality_vote(analysis.template_id for analysis in matches)

    support = len(matches) / len(entries)
    logger.debug(f"Retrieved recommendation from log: chart={best_chart}, template={best_template}, "
                 f"support={support:.3f}")
    return HistoricalRecommendation(chart_type=best_chart, template_id=best_template, support=support)


def parse_analysis(entry: Any) -> Optional[LoggedAnalysis]:
    """Validate the "analysis" object of a log entry; malformed objects yield None."""
    if not isinstance(entry, dict) or not isinstance(entry.get("analysis"), dict):
        return None
    try:
        return LoggedAnalysis.model_validate(entry["analysis"])
    except ValidationError as e:
        logger.debug(f"Skipping malformed log analysis: {str(e)}")
        return None


def plurality_vote(values: Iterable[Optional[str]]) -> Optional[str]:
    """
    Most frequent non-empty value.

    Ties go to the value that reached the winning count first.
    """
    counts: Counter = Counter()
    best_value = None
    best_count = 0
    for value in values:
        if not value:
            continue
        counts[value] += 1
        if counts[value] > best_count:
            best_value = value
            best_count = counts[value]
    return best_value
