"""Column analysis: derived types, counts, ranges and most frequent values."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Any, Iterable

import numpy as np

from typed_grids.document import Document
from typed_grids.grid import Grid
from typed_grids.item import Item
from typed_grids.types import DataType

# Text forms accepted as booleans when inferring a column type
_BOOLEAN_WORDS = frozenset({"true", "false", "yes", "no"})

DETAIL_COLUMNS = (
    ("name", DataType.TEXT, "Name"),
    ("type", DataType.TEXT, "Type"),
    ("total_count", DataType.INTEGER, "Total Count"),
    ("unique_count", DataType.INTEGER, "Unique Count"),
    ("null_count", DataType.INTEGER, "Null Count"),
    ("minimum", DataType.TEXT, "Minimum"),
    ("maximum", DataType.TEXT, "Maximum"),
    ("mean", DataType.TEXT, "Mean"),
    ("median", DataType.TEXT, "Median"),
    ("standard_deviation", DataType.TEXT, "Deviation"),
)


def _format_number(value: float) -> str:
    return "%.2f" % value


def _is_integer_text(text: str) -> bool:
    try:
        int(text)
    except ValueError:
        return False
    return True


def _is_float_text(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _is_date_text(text: str) -> bool:
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def infer_type(texts: Iterable[str]) -> DataType:
    """Infer the narrowest type that every text value satisfies.

    Candidates are tried in the order Boolean, Integer, Float, DateTime;
    anything else (or no values at all) is Text.
    """
    values = [t.strip() for t in texts]
    if not values:
        return DataType.TEXT
    if all(v.lower() in _BOOLEAN_WORDS for v in values):
        return DataType.BOOLEAN
    if all(_is_integer_text(v) for v in values):
        return DataType.INTEGER
    if all(_is_float_text(v) for v in values):
        return DataType.FLOAT
    if all(_is_date_text(v) for v in values):
        return DataType.DATETIME
    return DataType.TEXT


class ColumnAnalyzer:
    """Accumulates the values of one column and describes them.

    When no type is declared the column type is inferred from the text form
    of the scanned values.
    """

    def __init__(self, name: str, data_type: DataType | None = None) -> None:
        self.name = name
        self.declared_type = data_type
        self.total_count = 0
        self.null_count = 0
        self._values: list[Any] = []
        self._counts: Counter[str] = Counter()

    def scan(self, value: Any) -> None:
        self.total_count += 1
        text = DataType.TEXT.coerce(value)
        if text is None:
            self.null_count += 1
            return
        self._values.append(value)
        self._counts[text] += 1

    @property
    def data_type(self) -> DataType:
        if self.declared_type is not None:
            return self.declared_type
        return infer_type(self._counts)

    @property
    def unique_count(self) -> int:
        return len(self._counts)

    def _typed_values(self, data_type: DataType) -> list[Any]:
        typed = []
        for value in self._values:
            try:
                converted = data_type.coerce(value)
            except ValueError:
                continue
            if converted is not None:
                typed.append(converted)
        return typed

    def details(self, sample_count: int) -> dict[str, Any]:
        """Return the detail values for this column, keyed by detail column name."""
        data_type = self.data_type
        details: dict[str, Any] = {
            "name": self.name,
            "type": data_type.value,
            "total_count": self.total_count,
            "unique_count": self.unique_count,
            "null_count": self.null_count,
        }

        if data_type.is_boolean:
            details["minimum"] = "false"
            details["maximum"] = "true"
        elif data_type.is_date:
            dates: list[date] = self._typed_values(data_type)
            if dates:
                details["minimum"] = min(dates).isoformat()
                details["maximum"] = max(dates).isoformat()
        elif data_type.is_number:
            numbers = np.asarray(self._typed_values(data_type), dtype=float)
            if numbers.size:
                details["minimum"] = _format_number(np.min(numbers))
                details["maximum"] = _format_number(np.max(numbers))
                details["mean"] = _format_number(np.mean(numbers))
                if numbers.size > 1:
                    details["standard_deviation"] = _format_number(np.std(numbers, ddof=1))
        elif self._counts:
            lengths = np.asarray([len(text) for text in self._counts], dtype=float)
            details["minimum"] = _format_number(np.min(lengths))
            details["maximum"] = _format_number(np.max(lengths))

        for index, (text, count) in enumerate(self._counts.most_common(sample_count), start=1):
            percent = count / self.total_count * 100.0 if self.total_count else 0.0
            details[f"value_{index:02d}"] = text.strip()
            details[f"count_{index:02d}"] = count
            details[f"percent_{index:02d}"] = round(percent, 2)
        return details


class DataAnalyzer:
    """Scans rows of a schema and produces a details grid, one row per column.

    Declared column types are used only when the schema carries at least
    one non-Text column; an all-Text schema (typical of freshly loaded
    delimited files) has its column types inferred instead.
    """

    def __init__(self, schema: Document, sample_count: int = 10) -> None:
        self.schema = schema
        self.sample_count = sample_count
        use_declared = any(not item.type.is_text for item in schema)
        self.analyzers = {
            item.name: ColumnAnalyzer(item.name, item.type if use_declared else None)
            for item in schema
        }

    def scan(self, source: Document | Grid | Iterable[Document]) -> None:
        """Scan a row, a grid, or any iterable of rows."""
        if isinstance(source, Document):
            # Columns missing from a sparse row count as nulls
            for name, analyzer in self.analyzers.items():
                analyzer.scan(source.get_value(name))
            return
        for row in source:
            self.scan(row)

    def details_schema(self) -> Document:
        schema = Document(f"{self.schema.name} Details")
        for name, data_type, title in DETAIL_COLUMNS:
            schema.add(Item(name, data_type, title=title))
        for index in range(1, self.sample_count + 1):
            schema.add(Item(f"value_{index:02d}", DataType.TEXT, title=f"Value {index:02d}"))
            schema.add(Item(f"count_{index:02d}", DataType.INTEGER, title=f"Count {index:02d}"))
            schema.add(Item(f"percent_{index:02d}", DataType.DOUBLE, title=f"Percent {index:02d}"))
        return schema

    def details(self) -> Grid:
        """Return a grid with one details row per schema column."""
        grid = Grid(self.details_schema())
        for item in self.schema:
            grid.add_row(self.analyzers[item.name].details(self.sample_count))
        return grid
