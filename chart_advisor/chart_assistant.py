import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

import pandas as pd

from chart_advisor import config
from chart_advisor.agents.narrative_writer import build_template
from chart_advisor.analysis.intent_scorer import score_intent
from chart_advisor.analysis.stats_summarizer import summarize
from chart_advisor.db.log_metadata import build_log_metadata
from chart_advisor.db.query_log_insights import find_recommendation
from chart_advisor.db.query_log_store import QueryLogStore
from chart_advisor.models.analysis import (
    CHART_TYPE_TABLE,
    ColumnStatsSummary,
    FormattingResult,
    HistoricalRecommendation,
    QueryIntent,
)
from chart_advisor.models.tabular_result import TabularResult
from chart_advisor.visualization.chart_formatter import select_strategy
from chart_advisor.visualization.chart_transformers import select_transformer

NO_DATA_MESSAGE = "No data found for your query."


class ChartAssistant:
    """Turns a question, its SQL and the query result into a chart-ready response."""

    def __init__(self, log_store: Optional[QueryLogStore] = None, debug_mode: bool = False):
        """
        Initialize the ChartAssistant.

        Args:
            log_store: Query log used for recommendations and caching (optional)
            debug_mode: Whether to enable debug logging (also enabled by config.DEBUG_MODE)
        """
        debug_mode = debug_mode or config.DEBUG_MODE

        # Configure logging
        root_logger = logging.getLogger()
        log_level = logging.DEBUG if debug_mode else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
        root_logger.setLevel(log_level)

        # Add console handler if not already added
        if not root_logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        self.logger = logging.getLogger(__name__)
        self.log_store = log_store
        self.debug_mode = debug_mode

    def format_response(self,
                        question: Optional[str],
                        sql: Optional[str],
                        result: Union[TabularResult, pd.DataFrame, None]) -> FormattingResult:
        """
        Choose a chart for the result and build the response body.

        Args:
            question: The user's question
            sql: SQL that produced the result (optional)
            result: Query result, as a TabularResult or a pandas DataFrame

        Returns:
            FormattingResult with the response body and the diagnostics behind it
        """
        start_time = datetime.now()
        if isinstance(result, pd.DataFrame):
            result = TabularResult.from_dataframe(result)

        if result is None or result.row_count == 0:
            self.logger.info(f"No data found for query: questionLength={len(question or '')}")
            return self._empty_result(question, sql, result)

        self.logger.debug(f"Formatting response: columnCount={result.column_count}, rowCount={result.row_count}")

        stats = summarize(result)
        intent = score_intent(question, sql, result, stats=stats)
        recommendation = find_recommendation(sql, self._snapshot())

        target_chart_type = self._determine_target_chart_type(intent, recommendation)

        transformer = select_transformer(result, intent, target_chart_type)
        payload = transformer.transform(result)
        strategy = select_strategy(payload, target_chart_type)

        formatted_data = strategy.format(payload)
        chart_type = strategy.chart_type

        template = build_template(chart_type, intent, stats)
        response: Dict[str, Any] = {}
        if chart_type == CHART_TYPE_TABLE:
            response["tableData"] = formatted_data
        else:
            response["graphData"] = formatted_data
        response["message"] = template.compose_message()

        format_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        self.logger.info(f"Response formatted: formatTimeMs={format_time_ms}, chartType={chart_type}, "
                         f"rowCount={result.row_count}")

        return FormattingResult(
            response_body=response,
            query_intent=intent,
            result_stats=stats,
            selected_chart_type=chart_type,
            template=template,
            recommendation=recommendation,
        )

    def format_response_from_cache(self,
                                   question: Optional[str],
                                   sql: Optional[str],
                                   cached_results: Optional[Dict[str, Any]]) -> FormattingResult:
        """
        Format a response from the "results" object of a query log entry.

        Args:
            question: The user's question
            sql: SQL stored with the entry
            cached_results: Stored results (columns, columnTypes, rows)

        Returns:
            FormattingResult built by the same pipeline as live results
        """
        cached_results = cached_results or {}
        self.logger.info(f"Formatting response from cache: rowCount={cached_results.get('rowCount')}")

        rows = cached_results.get("rows")
        if not rows:
            return self._empty_result(question, sql, None)

        result = TabularResult.from_cached_data(
            cached_results.get("columns") or [],
            cached_results.get("columnTypes"),
            rows,
        )
        return self.format_response(question, sql, result)

    def respond(self,
                question: str,
                sql: Optional[str],
                result: Union[TabularResult, pd.DataFrame, None]) -> Dict[str, Any]:
        """
        Format a live result, record it in the query log and return the response envelope.

        Args:
            question: The user's question
            sql: SQL that produced the result
            result: Query result

        Returns:
            Response dictionary with message, tableData or graphData, and fromCache
        """
        if isinstance(result, pd.DataFrame):
            result = TabularResult.from_dataframe(result)

        formatting_result = self.format_response(question, sql, result)

        if self.log_store is not None:
            metadata = self.build_log_metadata(sql, formatting_result)
            self.log_store.store_query(question, sql, result, metadata)

        envelope = dict(formatting_result.response_body)
        envelope["fromCache"] = False
        return envelope

    def respond_from_cache(self, question: str) -> Optional[Dict[str, Any]]:
        """
        Answer a question from the query log when it was asked before.

        Args:
            question: The user's question

        Returns:
            Response dictionary with fromCache set, or None on a cache miss
        """
        if self.log_store is None:
            return None

        entry = self.log_store.find_cached_results(question)
        if entry is None:
            return None

        formatting_result = self.format_response_from_cache(question, entry.get("sql"), entry.get("results"))
        envelope = dict(formatting_result.response_body)
        envelope["fromCache"] = True
        return envelope

    def build_log_metadata(self, sql: Optional[str], formatting_result: FormattingResult) -> Dict[str, Any]:
        """Analysis metadata persisted alongside the query log entry."""
        return build_log_metadata(sql, formatting_result)

    def _snapshot(self):
        if self.log_store is None:
            return []
        return self.log_store.snapshot()

    def _empty_result(self,
                      question: Optional[str],
                      sql: Optional[str],
                      result: Optional[TabularResult]) -> FormattingResult:
        intent = score_intent(question, sql, result)
        stats = ColumnStatsSummary.empty()
        return FormattingResult(
            response_body={"message": NO_DATA_MESSAGE},
            query_intent=intent,
            result_stats=stats,
            selected_chart_type=CHART_TYPE_TABLE,
            template=build_template(CHART_TYPE_TABLE, intent, stats),
            recommendation=None,
        )

    def _determine_target_chart_type(self,
                                     intent: Optional[QueryIntent],
                                     recommendation: Optional[HistoricalRecommendation]) -> str:
        if intent is not None and intent.has_explicit_request:
            explicit_type = intent.explicit_chart_type
            if explicit_type and explicit_type.strip():
                self.logger.debug(f"Honoring explicit chart request: {explicit_type}")
                return explicit_type.strip().lower()

        if recommendation is not None and recommendation.chart_type and recommendation.chart_type.strip():
            self.logger.debug(f"Applying recommendation chart type: {recommendation.chart_type}")
            return recommendation.chart_type.strip().lower()

        if intent is not None:
            return intent.preferred_chart_type

        return CHART_TYPE_TABLE
