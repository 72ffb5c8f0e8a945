import json
import logging
import os
import re
import tempfile
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from chart_advisor import config
from chart_advisor.models.tabular_result import TabularResult

_PUNCTUATION = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_question(question: Optional[str]) -> str:
    """Lower-case question text with punctuation removed and whitespace collapsed."""
    if question is None:
        return ""
    text = _PUNCTUATION.sub("", question.lower())
    return _WHITESPACE.sub(" ", text).strip()


class QueryLogStore:
    """Manages the JSON query log (questions, SQL, results and analysis metadata)."""

    def __init__(self, file_path: Optional[str] = None, max_result_rows: Optional[int] = None):
        """
        Initialize the query log store.

        Args:
            file_path: Path of the JSON log file (defaults to config.QUERY_LOG_FILE)
            max_result_rows: Rows kept per stored result (defaults to config.QUERY_LOG_MAX_RESULT_ROWS)

        Raises:
            RuntimeError: If the log file cannot be created
        """
        self.file_path = file_path or config.QUERY_LOG_FILE
        self.max_result_rows = max_result_rows if max_result_rows is not None else config.QUERY_LOG_MAX_RESULT_ROWS
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()

        try:
            parent = os.path.dirname(os.path.abspath(self.file_path))
            os.makedirs(parent, exist_ok=True)
            if not os.path.exists(self.file_path):
                with open(self.file_path, "w", encoding="utf-8") as f:
                    f.write("[]")
                self.logger.info(f"Created query log file: {os.path.abspath(self.file_path)}")
            else:
                self.logger.info(f"Using existing query log file: {os.path.abspath(self.file_path)}")
        except OSError as e:
            self.logger.error(f"Failed to initialize query log file {self.file_path}: {str(e)}")
            raise RuntimeError("Failed to initialize query log storage") from e

    def store_query(self,
                    question: str,
                    sql: str,
                    result: Optional[TabularResult] = None,
                    analysis: Optional[Dict[str, Any]] = None) -> bool:
        """
        Append a query to the log unless the same question was already stored.

        Args:
            question: The user's question
            sql: The SQL that answered it
            result: Query result to cache (optional)
            analysis: Analysis metadata from the formatting pipeline (optional)

        Returns:
            True if an entry was written
        """
        try:
            with self._lock:
                entries = self._read_entries()

                normalized = normalize_question(question)
                for existing_entry in entries:
                    existing = existing_entry.get("query") if isinstance(existing_entry, dict) else None
                    if existing is not None and normalize_question(existing) == normalized:
                        self.logger.debug(f"Query already stored, skipping: {question[:50]}")
                        return False

                entry: Dict[str, Any] = {
                    "query": question,
                    "sql": sql,
                    "timestamp": datetime.now().isoformat(),
                }
                if result is not None:
                    entry["results"] = self._build_results(result)

                if analysis:
                    entry["analysis"] = analysis
                    normalized_sql = analysis.get("normalizedSql")
                    if isinstance(normalized_sql, str) and normalized_sql:
                        entry["normalizedSql"] = normalized_sql

                entries.append(entry)
                self._write_entries(entries)
                self.logger.debug(f"Stored query: questionLength={len(question)}, "
                                  f"sqlLength={len(sql or '')}, hasResults={result is not None}")
                return True
        except (OSError, ValueError, TypeError) as e:
            # Storage failures never break the response path
            self.logger.error(f"Failed to store query: {str(e)}")
            return False

    def snapshot(self) -> List[Dict[str, Any]]:
        """Copy of all stored entries (empty on error)."""
        try:
            with self._lock:
                return list(self._read_entries())
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read query log snapshot: {str(e)}")
            return []

    def find_cached_results(self, question: str) -> Optional[Dict[str, Any]]:
        """
        Find a stored entry for the question that carries results.

        Args:
            question: The user's question

        Returns:
            The stored entry, or None on a miss or error
        """
        try:
            with self._lock:
                normalized = normalize_question(question)
                for entry in self._read_entries():
                    if not isinstance(entry, dict):
                        continue
                    stored_question = entry.get("query")
                    if (stored_question is not None
                            and normalize_question(stored_question) == normalized
                            and entry.get("results") is not None):
                        self.logger.info(f"Cache hit: normalizedQuery={normalized[:50]}")
                        return entry

                self.logger.debug(f"Cache miss: questionLength={len(question or '')}")
                return None
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to search cache by question: {str(e)}")
            return None

    def deduplicate_by_sql(self) -> Dict[str, int]:
        """
        Remove entries repeating an earlier entry's exact SQL text.

        Entries without SQL are kept.

        Returns:
            Dictionary with originalCount, duplicatesRemoved and finalCount
        """
        try:
            with self._lock:
                entries = self._read_entries()
                seen = set()
                unique_entries = []
                for entry in entries:
                    sql = entry.get("sql") if isinstance(entry, dict) else None
                    if sql is not None and sql in seen:
                        self.logger.debug(f"Removed duplicate query with SQL: {sql[:100]}")
                        continue
                    if sql is not None:
                        seen.add(sql)
                    unique_entries.append(entry)

                self._write_entries(unique_entries)
        except (OSError, ValueError, TypeError) as e:
            self.logger.error(f"Failed to deduplicate query log: {str(e)}")
            raise RuntimeError("Failed to deduplicate query log") from e

        stats = {
            "originalCount": len(entries),
            "duplicatesRemoved": len(entries) - len(unique_entries),
            "finalCount": len(unique_entries),
        }
        self.logger.info(f"Deduplicated query log: {stats}")
        return stats

    def _build_results(self, result: TabularResult) -> Dict[str, Any]:
        rows = result.rows
        results: Dict[str, Any] = {
            "columns": result.column_names,
            "columnTypes": [column_type.value for column_type in result.column_types],
            "rowCount": result.row_count,
            "columnCount": result.column_count,
            "rows": [list(row) for row in rows[:self.max_result_rows]],
            "truncated": len(rows) > self.max_result_rows,
        }
        if results["truncated"]:
            results["totalRows"] = len(rows)
            self.logger.debug(f"Result truncated: stored {self.max_result_rows} of {len(rows)} rows")
        return results

    def _read_entries(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.file_path):
            return []
        with open(self.file_path, "r", encoding="utf-8") as f:
            content = f.read()
        if not content.strip():
            return []
        entries = json.loads(content)
        if not isinstance(entries, list):
            raise ValueError(f"Query log {self.file_path} does not hold a JSON array")
        return entries

    def _write_entries(self, entries: List[Dict[str, Any]]) -> None:
        content = json.dumps(entries, indent=2, default=_json_default)

        # Swap in a fully written sibling file
        directory = os.path.dirname(os.path.abspath(self.file_path))
        fd, temp_path = tempfile.mkstemp(prefix=".query-log-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(temp_path, self.file_path)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise


def _json_default(value: Any) -> Any:
    # Convert Decimal and datetime cells to JSON types
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
