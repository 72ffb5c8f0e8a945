"""
Tabular query result model.

Wraps the column metadata and rows returned by a warehouse query and
provides the typed accessors the analysis and visualization stages rely on.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class SqlType(str, Enum):
    """Declared column types (BigQuery standard SQL names)."""

    BOOL = "BOOL"
    INT64 = "INT64"
    FLOAT64 = "FLOAT64"
    NUMERIC = "NUMERIC"
    BIGNUMERIC = "BIGNUMERIC"
    STRING = "STRING"
    BYTES = "BYTES"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    GEOGRAPHY = "GEOGRAPHY"
    JSON = "JSON"
    INTERVAL = "INTERVAL"
    ARRAY = "ARRAY"
    STRUCT = "STRUCT"
    RANGE = "RANGE"

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES

    @classmethod
    def from_name(cls, type_name: Optional[str]) -> "SqlType":
        """
        Resolve a type name such as "INTEGER" or "float64" to a SqlType.

        Unknown or missing names fall back to STRING.
        """
        if type_name is None:
            return cls.STRING
        if isinstance(type_name, SqlType):
            return type_name
        upper = str(type_name).strip().upper()
        try:
            return cls(upper)
        except ValueError:
            return _TYPE_ALIASES.get(upper, cls.STRING)


NUMERIC_TYPES = frozenset({SqlType.INT64, SqlType.FLOAT64, SqlType.NUMERIC, SqlType.BIGNUMERIC})

_TYPE_ALIASES = {
    "INTEGER": SqlType.INT64,
    "INT": SqlType.INT64,
    "FLOAT": SqlType.FLOAT64,
    "DOUBLE": SqlType.FLOAT64,
    "BOOLEAN": SqlType.BOOL,
    "DECIMAL": SqlType.NUMERIC,
    "BIGDECIMAL": SqlType.BIGNUMERIC,
    "RECORD": SqlType.STRUCT,
}


class Column(BaseModel):
    """A named, typed result column."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: SqlType = SqlType.STRING


class TabularResult:
    """
    Immutable query result: ordered typed columns plus ordered rows.

    Rows may be supplied as any iterable; they are materialized on first
    access and cached. Every row read back is exactly as wide as the column
    list: short rows are padded with None and extra cells are dropped.
    """

    def __init__(self, columns: Sequence[Any], rows: Optional[Iterable[Sequence[Any]]] = None):
        """
        Initialize the result.

        Args:
            columns: Column objects or (name, type) pairs
            rows: Row sequences index-aligned to the columns
        """
        self._columns: Tuple[Column, ...] = tuple(_to_column(column) for column in columns)
        self._column_index: Dict[str, int] = {}
        for i, column in enumerate(self._columns):
            self._column_index.setdefault(column.name, i)
        self._raw_rows = rows if rows is not None else []
        self._rows: Optional[List[List[Any]]] = None

    @classmethod
    def from_cached_data(cls,
                         column_names: Sequence[str],
                         column_type_names: Optional[Sequence[Optional[str]]],
                         rows: Optional[Iterable[Sequence[Any]]]) -> "TabularResult":
        """
        Rebuild a result from the "results" object of a query log entry.

        Args:
            column_names: Column names in order
            column_type_names: Declared type names (e.g. "STRING", "FLOAT64", "INTEGER")
            rows: Stored rows

        Returns:
            TabularResult instance
        """
        column_names = list(column_names or [])
        type_names = list(column_type_names or [])
        columns = [
            Column(name=name, type=SqlType.from_name(type_names[i] if i < len(type_names) else None))
            for i, name in enumerate(column_names)
        ]
        return cls(columns, [list(row) for row in (rows or [])])

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "TabularResult":
        """
        Build a result from a pandas DataFrame.

        Column types are inferred from the DataFrame dtypes; Decimal and
        datetime cells are converted to JSON-friendly values.

        Args:
            df: DataFrame holding the query result

        Returns:
            TabularResult instance
        """
        if df is None:
            return cls([], [])

        columns = [Column(name=str(name), type=_dtype_to_sql_type(df[name])) for name in df.columns]
        rows = [[_convert_value(value) for value in record] for record in df.itertuples(index=False, name=None)]
        logger.debug(f"Built tabular result from DataFrame: {len(columns)} columns, {len(rows)} rows")
        return cls(columns, rows)

    @property
    def columns(self) -> List[Column]:
        return list(self._columns)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self._columns]

    @property
    def column_types(self) -> List[SqlType]:
        return [column.type for column in self._columns]

    @property
    def column_count(self) -> int:
        return len(self._columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def rows(self) -> List[List[Any]]:
        """All rows, padded or trimmed to the column count."""
        if self._rows is None:
            width = len(self._columns)
            materialized = []
            for row in self._raw_rows:
                values = list(row)[:width]
                if len(values) < width:
                    values.extend([None] * (width - len(values)))
                materialized.append(values)
            self._rows = materialized
        return self._rows

    def get_row(self, index: int) -> List[Any]:
        if 0 <= index < len(self.rows):
            return list(self.rows[index])
        return []

    def get_column_index(self, column_name: str) -> Optional[int]:
        return self._column_index.get(column_name)

    def get_column_type(self, column: Any) -> Optional[SqlType]:
        """Declared type by column name or index, None when unknown."""
        index = column if isinstance(column, int) else self.get_column_index(column)
        if index is None or index < 0 or index >= len(self._columns):
            return None
        return self._columns[index].type

    def get_column(self, column: Any) -> List[Any]:
        """All values of a column, by name or index."""
        index = column if isinstance(column, int) else self.get_column_index(column)
        if index is None or index < 0 or index >= len(self._columns):
            return []
        return [row[index] for row in self.rows]

    def is_numeric_column(self, column: Any) -> bool:
        column_type = self.get_column_type(column)
        return column_type is not None and column_type.is_numeric

    @property
    def numeric_columns(self) -> List[str]:
        return [column.name for column in self._columns if column.type.is_numeric]

    @property
    def categorical_columns(self) -> List[str]:
        return [column.name for column in self._columns if not column.type.is_numeric]

    def first_numeric_column_index(self) -> int:
        """Index of the first numeric column, or -1."""
        for i, column in enumerate(self._columns):
            if column.type.is_numeric:
                return i
        return -1

    def first_categorical_column_index(self) -> int:
        """Index of the first non-numeric column, or -1."""
        for i, column in enumerate(self._columns):
            if not column.type.is_numeric:
                return i
        return -1

    def __repr__(self) -> str:
        return f"TabularResult(columns={self.column_names}, rows={self.row_count})"


def _to_column(column: Any) -> Column:
    if isinstance(column, Column):
        return column
    if isinstance(column, str):
        return Column(name=column)
    name, column_type = column
    return Column(name=name, type=SqlType.from_name(column_type))


def _dtype_to_sql_type(series: pd.Series) -> SqlType:
    if pd.api.types.is_bool_dtype(series):
        return SqlType.BOOL
    if pd.api.types.is_integer_dtype(series):
        return SqlType.INT64
    if pd.api.types.is_float_dtype(series):
        return SqlType.FLOAT64
    if pd.api.types.is_datetime64_any_dtype(series):
        return SqlType.TIMESTAMP
    if pd.api.types.is_object_dtype(series):
        return _infer_object_type(series)
    return SqlType.STRING


def _infer_object_type(series: pd.Series) -> SqlType:
    """
    Type an object column from its non-null cells.

    Database drivers hand NUMERIC aggregates back as Decimal objects, so a
    column of Decimals is NUMERIC; plain ints and floats map to INT64 and
    FLOAT64. Anything mixed with text stays STRING.
    """
    values = list(series.dropna())
    if not values:
        return SqlType.STRING
    if all(isinstance(value, bool) for value in values):
        return SqlType.BOOL
    if all(isinstance(value, Decimal) for value in values):
        return SqlType.NUMERIC
    if all(pd.api.types.is_integer(value) for value in values):
        return SqlType.INT64
    if all(pd.api.types.is_integer(value) or pd.api.types.is_float(value) or isinstance(value, Decimal)
           for value in values):
        return SqlType.FLOAT64
    return SqlType.STRING


def _convert_value(value: Any) -> Any:
    # Convert Decimal, datetime and missing values to plain JSON-friendly types
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalars
        return value.item()
    return value
