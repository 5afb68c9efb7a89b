"""Criteria compiler and executor.

A :class:`GridCriteria` turns each criterion entry into a *stage*, a function
from a row sequence to a row sequence, specialised by the field's declared
type. Stages are folded into a single pipeline in declaration order, so
each stage wraps the ones before it; with several SORT entries the last one
declared decides the final ordering (earlier sorts only break its ties,
because sorting is stable).

Execution runs the whole pipeline over every row and materialises the
complete match list before applying offset and limit, so the reported
total is the exact match count regardless of the page requested.
"""

from __future__ import annotations

import operator as op
import re
from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Iterable

import structlog

from typed_grids.config import DEFAULT_SETTINGS, EngineSettings
from typed_grids.criteria import Criteria, Criterion
from typed_grids.document import Document
from typed_grids.errors import CriteriaError
from typed_grids.grid import Grid
from typed_grids.types import (
    FEATURE_CUR_LIMIT,
    FEATURE_CUR_OFFSET,
    FEATURE_NEXT_OFFSET,
    FEATURE_TOTAL_DOCUMENTS,
    DataType,
    Operator,
    Order,
)

logger = structlog.get_logger(__name__)

Stage = Callable[[Iterable[Document]], Iterable[Document]]
Predicate = Callable[[Document], bool]
Fold = Callable[[Any], Any]

_LITERAL_COMPARISONS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUAL: op.eq,
    Operator.NOT_EQUAL: op.ne,
    Operator.GREATER_THAN: op.gt,
    Operator.GREATER_THAN_EQUAL: op.ge,
    Operator.LESS_THAN: op.lt,
    Operator.LESS_THAN_EQUAL: op.le,
}

_FIELD_COMPARISONS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUAL_FIELD: op.eq,
    Operator.NOT_EQUAL_FIELD: op.ne,
    Operator.GREATER_THAN_FIELD: op.gt,
    Operator.GREATER_THAN_EQUAL_FIELD: op.ge,
    Operator.LESS_THAN_FIELD: op.lt,
    Operator.LESS_THAN_EQUAL_FIELD: op.le,
}

# Grid column filters send STARTS_WITH for every column; numbers and dates read it as >=
_ORDERED_ALIASES: dict[Operator, Operator] = {
    Operator.STARTS_WITH: Operator.GREATER_THAN_EQUAL,
    Operator.STARTS_WITH_FIELD: Operator.GREATER_THAN_EQUAL_FIELD,
}

_TEXT_MATCHES: dict[Operator, Callable[[str, str], bool]] = {
    Operator.CONTAINS: lambda value, target: target in value,
    Operator.STARTS_WITH: str.startswith,
    Operator.ENDS_WITH: str.endswith,
}

_TEXT_FIELD_MATCHES: dict[Operator, Callable[[str, str], bool]] = {
    Operator.CONTAINS_FIELD: lambda value, other: other in value,
    Operator.STARTS_WITH_FIELD: str.startswith,
    Operator.ENDS_WITH_FIELD: str.endswith,
}

_BOOLEAN_OPERATORS = frozenset({
    Operator.EQUAL, Operator.NOT_EQUAL, Operator.EQUAL_FIELD, Operator.NOT_EQUAL_FIELD,
})


@dataclass(frozen=True)
class SkippedCriterion:
    """A criterion entry that contributed no stage, and why."""

    criterion: Criterion
    reason: str


class _Unsupported(Exception):
    """Internal signal: the criterion cannot be compiled for its resolved type."""


def _identity(rows: Iterable[Document]) -> Iterable[Document]:
    return rows


def _compose(stages: list[Stage]) -> Stage:
    """Fold stages so that each one is applied to the output of the previous."""

    def wrap(inner: Stage, outer: Stage) -> Stage:
        return lambda rows: outer(inner(rows))

    return reduce(wrap, stages, _identity)


def _filter_stage(predicate: Predicate) -> Stage:
    def stage(rows: Iterable[Document]) -> Iterable[Document]:
        return (row for row in rows if predicate(row))

    return stage


def _sort_stage(key: Callable[[Document], Any], descending: bool) -> Stage:
    def sort_key(row: Document) -> tuple:
        value = key(row)
        # Unassigned values sort after assigned ones (before them when descending)
        return (value is None, value)

    def stage(rows: Iterable[Document]) -> Iterable[Document]:
        return sorted(rows, key=sort_key, reverse=descending)

    return stage


def _coerce(data_type: DataType, raw: Any, fold: Fold | None) -> Any:
    """Coerce a stored value for comparison; unconvertible values read as None."""
    try:
        value = data_type.coerce(raw)
    except ValueError:
        return None
    if value is not None and fold is not None:
        value = fold(value)
    return value


class GridCriteria:
    """Compiles a Criteria against a schema and executes it on grids.

    Usage is two-phase: :meth:`prepare` compiles the criteria into a
    pipeline, then :meth:`execute` runs it over a grid and returns a new
    result grid carrying ``next_offset``, ``cur_limit``, ``cur_offset`` and
    ``total_documents`` features. Execution never modifies the source grid.

    Entries that cannot be compiled (an operator the field type does not
    support, a value that does not convert, a BETWEEN without exactly two
    bounds) are skipped rather than failing the query; they are listed in
    :attr:`skipped` after prepare.
    """

    def __init__(self, schema: Document, settings: EngineSettings | None = None) -> None:
        """Initialize a compiler.

        Args:
            schema: Column schema whose item types drive type dispatch.
            settings: Engine defaults for offset and limit.
        """
        self.schema = schema
        self.settings = settings or DEFAULT_SETTINGS
        self._pipeline: Stage | None = None
        self._offset = self.settings.query_offset
        self._limit = self.settings.query_limit
        self._stage_count = 0
        self._skipped: list[SkippedCriterion] = []

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def stage_count(self) -> int:
        """Number of stages compiled by the last prepare."""
        return self._stage_count

    @property
    def skipped(self) -> list[SkippedCriterion]:
        """Entries the last prepare could not compile."""
        return list(self._skipped)

    @property
    def is_prepared(self) -> bool:
        return self._pipeline is not None

    def reset(self) -> None:
        """Discard the compiled pipeline and restore default pagination."""
        self._pipeline = None
        self._offset = self.settings.query_offset
        self._limit = self.settings.query_limit
        self._stage_count = 0
        self._skipped = []

    def resolve_type(self, criterion: Criterion) -> DataType:
        """Return the type used to compile ``criterion``.

        The schema's declared type wins over the criterion item's own type,
        which is often plain Text when criteria come from a UI client.
        """
        column = self.schema.get_item(criterion.name)
        return column.type if column is not None else criterion.item.type

    def prepare(self, criteria: Criteria | None, offset: int | None = None, limit: int | None = None) -> None:
        """Compile ``criteria`` into an executable pipeline.

        Offset and limit default to the criteria's pagination features and
        then to the engine settings.

        Raises:
            CriteriaError: If the criteria is absent or empty, or pagination is negative.
        """
        self.reset()
        if criteria is None or criteria.is_empty():
            raise CriteriaError("Cannot prepare criteria - no entries found.")

        if offset is None:
            offset = criteria.offset_or(self.settings.query_offset)
        if limit is None:
            limit = criteria.limit_or(self.settings.query_limit)
        if offset < 0 or limit < 0:
            raise CriteriaError(f"Offset and limit must not be negative (offset={offset}, limit={limit}).")

        stages: list[Stage] = []
        for criterion in criteria:
            data_type = self.resolve_type(criterion)
            try:
                stages.append(self._compile(criterion, data_type, criteria.case_sensitive))
            except _Unsupported as exc:
                skipped = SkippedCriterion(criterion=criterion, reason=str(exc))
                self._skipped.append(skipped)
                logger.debug(
                    "criterion_skipped",
                    field=criterion.name,
                    operator=criterion.operator.name,
                    data_type=data_type.value,
                    reason=skipped.reason,
                )

        self._offset = offset
        self._limit = limit
        self._stage_count = len(stages)
        self._pipeline = _compose(stages)
        logger.debug(
            "criteria_prepared",
            criteria=criteria.name,
            entries=len(criteria),
            stages=len(stages),
            skipped=len(self._skipped),
            offset=offset,
            limit=limit,
        )

    def execute(self, grid: Grid | None) -> Grid:
        """Run the prepared pipeline over ``grid`` and return a new result grid.

        Raises:
            CriteriaError: If the grid is absent or prepare was not called.
        """
        if grid is None:
            raise CriteriaError("Cannot execute - data grid is absent.")
        if self._pipeline is None:
            raise CriteriaError("Cannot execute - criteria was not prepared.")

        # Filter and sort everything first so the total is exact, then page
        matched = list(self._pipeline(iter(grid.rows)))
        total = len(matched)

        result = Grid(grid.columns.copy(with_values=False), name=grid.name)
        for row in matched[self._offset:self._offset + self._limit]:
            result.add_row(row.copy())

        if total == 0:
            result.features[FEATURE_NEXT_OFFSET] = 0
        else:
            result.features[FEATURE_NEXT_OFFSET] = min(total - 1, self._offset + self._limit)
        result.features[FEATURE_CUR_LIMIT] = self._limit
        result.features[FEATURE_CUR_OFFSET] = self._offset
        result.features[FEATURE_TOTAL_DOCUMENTS] = total
        return result

    # --- Type dispatch ---

    def _compile(self, criterion: Criterion, data_type: DataType, case_sensitive: bool) -> Stage:
        if data_type is DataType.BOOLEAN:
            return self._boolean_stage(criterion)
        elif data_type.is_number:
            return self._ordered_stage(criterion, data_type)
        elif data_type.is_date:
            return self._ordered_stage(criterion, data_type)
        else:
            return self._text_stage(criterion, case_sensitive)

    def _boolean_stage(self, criterion: Criterion) -> Stage:
        operator = criterion.operator
        if operator in _BOOLEAN_OPERATORS:
            return self._comparison_stage(criterion, operator, DataType.BOOLEAN, None)
        return self._common_stage(criterion, DataType.BOOLEAN, None)

    def _ordered_stage(self, criterion: Criterion, data_type: DataType) -> Stage:
        """Integer, Long, Float, Double, Date and DateTime fields."""
        operator = _ORDERED_ALIASES.get(criterion.operator, criterion.operator)
        if operator in _LITERAL_COMPARISONS or operator in _FIELD_COMPARISONS:
            return self._comparison_stage(criterion, operator, data_type, None)
        if operator in (Operator.BETWEEN, Operator.BETWEEN_INCLUSIVE):
            return self._range_stage(criterion, operator, data_type, None)
        return self._common_stage(criterion, data_type, None)

    def _text_stage(self, criterion: Criterion, case_sensitive: bool) -> Stage:
        """Text fields; case-insensitive mode lower-cases both operands."""
        fold: Fold | None = None if case_sensitive else str.lower
        operator = criterion.operator
        name = criterion.name

        if operator is Operator.REGEX:
            pattern_text = criterion.item.value
            if pattern_text is None:
                raise _Unsupported("REGEX requires a pattern")
            try:
                pattern = re.compile(str(pattern_text), 0 if case_sensitive else re.IGNORECASE)
            except re.error as exc:
                raise _Unsupported(f"invalid regular expression: {exc}") from exc
            return _filter_stage(
                lambda row: (value := _coerce(DataType.TEXT, row.get_value(name), None)) is not None
                and pattern.fullmatch(value) is not None
            )
        if operator is Operator.NOT_EMPTY:
            return _filter_stage(lambda row: row.is_value_assigned(name))
        if operator in _TEXT_MATCHES:
            target = self._target(criterion, DataType.TEXT, fold)
            matches = _TEXT_MATCHES[operator]
            return _filter_stage(
                lambda row: (value := _coerce(DataType.TEXT, row.get_value(name), fold)) is not None
                and matches(value, target)
            )
        if operator in _TEXT_FIELD_MATCHES:
            other = self._other_field(criterion)
            matches = _TEXT_FIELD_MATCHES[operator]
            return _filter_stage(lambda row: self._both_match(row, name, other, DataType.TEXT, fold, matches))
        if operator in _LITERAL_COMPARISONS or operator in _FIELD_COMPARISONS:
            return self._comparison_stage(criterion, operator, DataType.TEXT, fold)
        if operator in (Operator.BETWEEN, Operator.BETWEEN_INCLUSIVE):
            return self._range_stage(criterion, operator, DataType.TEXT, fold)
        return self._common_stage(criterion, DataType.TEXT, fold)

    # --- Operator categories ---

    def _comparison_stage(
        self, criterion: Criterion, operator: Operator, data_type: DataType, fold: Fold | None
    ) -> Stage:
        """Field-vs-literal and field-vs-field comparisons."""
        name = criterion.name
        if operator in _FIELD_COMPARISONS:
            other = self._other_field(criterion)
            compare = _FIELD_COMPARISONS[operator]
            return _filter_stage(lambda row: self._both_match(row, name, other, data_type, fold, compare))

        target = self._target(criterion, data_type, fold)
        compare = _LITERAL_COMPARISONS[operator]
        return _filter_stage(
            lambda row: (value := _coerce(data_type, row.get_value(name), fold)) is not None
            and compare(value, target)
        )

    def _range_stage(
        self, criterion: Criterion, operator: Operator, data_type: DataType, fold: Fold | None
    ) -> Stage:
        """BETWEEN (exclusive) and BETWEEN_INCLUSIVE over two ordered bounds."""
        values = criterion.item.values
        if len(values) != 2:
            raise _Unsupported(f"{operator.name} requires exactly two values, got {len(values)}")
        low, high = (self._convert(criterion, v, data_type, fold) for v in values)
        name = criterion.name
        if operator is Operator.BETWEEN:
            return _filter_stage(
                lambda row: (value := _coerce(data_type, row.get_value(name), fold)) is not None
                and low < value < high
            )
        return _filter_stage(
            lambda row: (value := _coerce(data_type, row.get_value(name), fold)) is not None
            and low <= value <= high
        )

    def _common_stage(self, criterion: Criterion, data_type: DataType, fold: Fold | None) -> Stage:
        """Membership, emptiness and sorting, shared by every type."""
        operator = criterion.operator
        name = criterion.name

        if operator is Operator.IN:
            targets = set()
            for raw in criterion.item.values:
                converted = _coerce(data_type, raw, fold)
                if converted is not None:
                    targets.add(converted)
            if not targets:
                raise _Unsupported(f"IN has no values convertible to {data_type.value}")
            return _filter_stage(
                lambda row: any(_coerce(data_type, raw, fold) in targets for raw in row.get_values(name))
            )
        if operator is Operator.EMPTY:
            return _filter_stage(lambda row: not row.is_value_assigned(name))
        if operator is Operator.SORT:
            try:
                order = Order.parse(criterion.item.value)
            except ValueError as exc:
                raise _Unsupported(str(exc)) from exc
            return _sort_stage(
                lambda row: _coerce(data_type, row.get_value(name), fold),
                descending=order is Order.DESCENDING,
            )
        raise _Unsupported(f"operator {operator.name} is not supported for {data_type.value} fields")

    # --- Operand helpers ---

    def _convert(self, criterion: Criterion, raw: Any, data_type: DataType, fold: Fold | None) -> Any:
        try:
            value = data_type.coerce(raw)
        except ValueError as exc:
            raise _Unsupported(f"value {raw!r} is not a valid {data_type.value}") from exc
        if value is None:
            raise _Unsupported(f"{criterion.operator.name} requires a value")
        return fold(value) if fold is not None else value

    def _target(self, criterion: Criterion, data_type: DataType, fold: Fold | None) -> Any:
        return self._convert(criterion, criterion.item.value, data_type, fold)

    @staticmethod
    def _other_field(criterion: Criterion) -> str:
        other = criterion.item.value
        if not other:
            raise _Unsupported(f"{criterion.operator.name} requires the name of the field to compare with")
        return str(other)

    @staticmethod
    def _both_match(
        row: Document,
        name: str,
        other: str,
        data_type: DataType,
        fold: Fold | None,
        compare: Callable[[Any, Any], bool],
    ) -> bool:
        value = _coerce(data_type, row.get_value(name), fold)
        other_value = _coerce(data_type, row.get_value(other), fold)
        if value is None or other_value is None:
            return False
        return compare(value, other_value)
