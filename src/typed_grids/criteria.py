"""Declarative, conjunctive query criteria."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from typed_grids.item import Item
from typed_grids.types import FEATURE_DS_LIMIT, FEATURE_DS_OFFSET, DataType, Operator, Order


@dataclass
class Criterion:
    """One (field, operator, value(s)) clause.

    The item's name is the target field. Its values are the comparison
    value(s); for ``_FIELD`` operators the value is the other field's name,
    and for SORT it is the order name (``ASCENDING``/``DESCENDING``).
    """

    operator: Operator
    item: Item

    @property
    def name(self) -> str:
        return self.item.name


class Criteria:
    """An ordered list of criterion entries, implicitly joined with AND."""

    def __init__(self, name: str = "", case_sensitive: bool = True) -> None:
        self.name = name
        self.case_sensitive = case_sensitive
        self.entries: list[Criterion] = []
        self.features: dict[str, Any] = {}

    def __repr__(self) -> str:
        clauses = [f"{c.name} {c.operator.name} {c.item.values!r}" for c in self.entries]
        return f"Criteria(name={self.name!r}, entries={clauses!r}, features={self.features!r})"

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Criterion]:
        return iter(self.entries)

    def add(self, name: str, operator: Operator, *values: Any) -> Criterion:
        """Append a criterion on ``name``.

        The criterion item's type is inferred from the values, falling back
        to Text when they differ in type; the compiler coerces them to the
        column's declared type when the schema knows the field.
        """
        normalized = [v.name if isinstance(v, Order) else v for v in values]
        data_type = DataType.TEXT if operator.is_field_comparison else _common_type(normalized)
        return self.add_item(operator, Item(name, data_type, normalized))

    def add_item(self, operator: Operator, item: Item) -> Criterion:
        """Append a criterion built around a caller-supplied item."""
        criterion = Criterion(operator=operator, item=item)
        self.entries.append(criterion)
        return criterion

    def reset(self) -> None:
        """Clear entries and features and restore case sensitivity."""
        self.case_sensitive = True
        self.entries.clear()
        self.features.clear()

    def is_empty(self) -> bool:
        """Return whether the criteria has neither entries nor pagination features."""
        return not self.entries and not self.has_pagination

    @property
    def has_pagination(self) -> bool:
        return FEATURE_DS_OFFSET in self.features or FEATURE_DS_LIMIT in self.features

    def set_pagination(self, offset: int, limit: int) -> None:
        self.features[FEATURE_DS_OFFSET] = offset
        self.features[FEATURE_DS_LIMIT] = limit

    def offset_or(self, default: int) -> int:
        """Return the offset feature as an int, or ``default`` when unset or invalid."""
        return _int_feature(self.features.get(FEATURE_DS_OFFSET), default)

    def limit_or(self, default: int) -> int:
        return _int_feature(self.features.get(FEATURE_DS_LIMIT), default)


def _common_type(values: list[Any]) -> DataType:
    types = {DataType.infer(v) for v in values}
    return types.pop() if len(types) == 1 else DataType.TEXT


def _int_feature(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
