"""In-memory grids: a column schema plus ordered rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator

import numpy as np

from typed_grids.document import Document
from typed_grids.types import DataType, Order


@dataclass
class ColumnStatistics:
    """Descriptive statistics over the numeric values of one column."""

    count: int
    minimum: float | None = None
    maximum: float | None = None
    mean: float | None = None
    standard_deviation: float | None = None

    @classmethod
    def describe(cls, values: Iterable[float]) -> ColumnStatistics:
        """Compute statistics; the deviation is the sample deviation (n - 1)."""
        data = np.asarray(list(values), dtype=float)
        if data.size == 0:
            return cls(count=0)
        deviation = float(np.std(data, ddof=1)) if data.size > 1 else None
        return cls(
            count=int(data.size),
            minimum=float(np.min(data)),
            maximum=float(np.max(data)),
            mean=float(np.mean(data)),
            standard_deviation=deviation,
        )


class Grid:
    """A schema Document (``columns``) plus an ordered sequence of row Documents.

    ``features`` holds grid-level metadata such as the pagination results
    attached to a query result.
    """

    def __init__(
        self,
        columns: Document,
        name: str | None = None,
        rows: Iterable[Document] | None = None,
    ) -> None:
        self.columns = columns
        self.name = name if name is not None else columns.name
        self.rows: list[Document] = []
        self.features: dict[str, Any] = {}
        for row in rows or ():
            self.add_row(row)

    def __repr__(self) -> str:
        return f"Grid(name={self.name!r}, columns={self.columns.item_names!r}, rows={len(self.rows)})"

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.rows)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return len(self.columns)

    def get_row(self, index: int) -> Document:
        """Get a row by index."""
        if index < 0 or index >= len(self.rows):
            raise IndexError(f"Row {index} out of range [0, {len(self.rows)})")
        return self.rows[index]

    def new_row(self, values: dict[str, Any] | None = None) -> Document:
        """Create (but do not add) a row conforming to the columns."""
        return self.columns.new_row(values)

    def add_row(self, row: Document | dict[str, Any]) -> Document:
        """Append a row; a dict is first converted with :meth:`new_row`.

        Raises:
            ValueError: If the row has an item that is not a column.
        """
        if isinstance(row, dict):
            row = self.new_row(row)
        unknown = [name for name in row.item_names if name not in self.columns]
        if unknown:
            raise ValueError(f"Row items {unknown} are not columns of grid '{self.name}'")
        self.rows.append(row)
        return row

    def add_rows(self, rows: Iterable[Document] | Grid) -> None:
        for row in rows:
            self.add_row(row)

    def find_row_index(self, name: str, value: Any) -> int | None:
        """Return the index of the first row whose ``name`` value equals ``value``."""
        column = self.columns.get_item(name)
        data_type = column.type if column is not None else DataType.infer(value)
        try:
            target = data_type.coerce(value)
        except ValueError:
            return None
        if target is None:
            return None
        for index, row in enumerate(self.rows):
            if row.get_value(name) == target:
                return index
        return None

    def update_row(self, row: Document, key_name: str) -> bool:
        """Replace the row whose key column matches ``row``'s key value."""
        index = self.find_row_index(key_name, row.get_value(key_name))
        if index is None:
            return False
        self.rows[index] = row
        return True

    def delete_row(self, row: Document, key_name: str) -> bool:
        """Remove the row whose key column matches ``row``'s key value."""
        index = self.find_row_index(key_name, row.get_value(key_name))
        if index is None:
            return False
        del self.rows[index]
        return True

    def empty_rows(self) -> None:
        self.rows.clear()

    def column_values(self, name: str) -> list[Any]:
        """Return the first assigned value of ``name`` for every row that has one."""
        return [row.get_value(name) for row in self.rows if row.is_value_assigned(name)]

    def statistics(self, name: str) -> ColumnStatistics:
        """Describe a numeric column; non-numeric columns yield an empty result."""
        column = self.columns.get_item_or_raise(name)
        if not column.type.is_number:
            return ColumnStatistics(count=0)
        return ColumnStatistics.describe(self.column_values(name))

    def sort_by_column(self, name: str, order: Order = Order.ASCENDING) -> Grid:
        """Return a new grid with copied rows sorted by one column.

        Rows without a value sort after all others in ascending order.
        """
        descending = order is Order.DESCENDING

        def sort_key(row: Document) -> tuple:
            value = row.get_value(name)
            return (value is None, value)

        ordered = sorted(self.rows, key=sort_key, reverse=descending)
        grid = Grid(self.columns.copy(with_values=False), name=self.name)
        grid.features = dict(self.features)
        for row in ordered:
            grid.add_row(row.copy())
        return grid

    def copy(self) -> Grid:
        """Return a deep copy of the columns, rows and features."""
        grid = Grid(self.columns.copy(), name=self.name, rows=(row.copy() for row in self.rows))
        grid.features = dict(self.features)
        return grid
