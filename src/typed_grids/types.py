"""Value types, operators and feature names for the typed_grids library."""

from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Any


class DataType(Enum):
    """Closed set of value types an Item can declare."""

    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    LONG = "Long"
    FLOAT = "Float"
    DOUBLE = "Double"
    DATE = "Date"
    DATETIME = "DateTime"
    TEXT = "Text"

    @property
    def is_number(self) -> bool:
        """Return whether values of this type are numeric."""
        return self in (DataType.INTEGER, DataType.LONG, DataType.FLOAT, DataType.DOUBLE)

    @property
    def is_integral(self) -> bool:
        return self in (DataType.INTEGER, DataType.LONG)

    @property
    def is_date(self) -> bool:
        """Return whether values of this type are dates or timestamps."""
        return self in (DataType.DATE, DataType.DATETIME)

    @property
    def is_boolean(self) -> bool:
        return self is DataType.BOOLEAN

    @property
    def is_text(self) -> bool:
        return self is DataType.TEXT

    @classmethod
    def parse(cls, name: str) -> DataType:
        """Look up a type by its display name ("Integer") or member name ("INTEGER")."""
        for member in cls:
            if name == member.value or name.upper() == member.name:
                return member
        raise ValueError(f"Unknown data type: {name}")

    @classmethod
    def infer(cls, value: Any) -> DataType:
        """Infer the type of a native Python value."""
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, float):
            return cls.DOUBLE
        # datetime is a subclass of date, so test it first
        if isinstance(value, datetime):
            return cls.DATETIME
        if isinstance(value, date):
            return cls.DATE
        return cls.TEXT

    def coerce(self, value: Any) -> Any:
        """Convert a raw value into this type's native Python representation.

        Empty values (None or "") coerce to None, meaning "not assigned".

        Raises:
            ValueError: If the value cannot be represented in this type.
        """
        if value is None or (isinstance(value, str) and value == ""):
            return None
        if self is DataType.TEXT:
            return _to_text(value)
        if self is DataType.BOOLEAN:
            return _to_boolean(value)
        if self.is_integral:
            return _to_integer(value)
        if self.is_number:
            return _to_float(value)
        if self is DataType.DATE:
            return _to_date(value)
        return _to_datetime(value)


_TRUE_STRINGS = frozenset({"true", "yes", "y", "t", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "f", "0"})


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Cannot convert {value!r} to Boolean")


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"Cannot convert {value!r} to an integer without losing precision")
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"Cannot convert {value!r} to an integer")


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to a float")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"Cannot convert {value!r} to a float")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text).date()
    raise ValueError(f"Cannot convert {value!r} to Date")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise ValueError(f"Cannot convert {value!r} to DateTime")


class Operator(Enum):
    """Logical operators a criterion entry can apply to a field."""

    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    GREATER_THAN = "greater_than"
    GREATER_THAN_EQUAL = "greater_than_equal"
    LESS_THAN = "less_than"
    LESS_THAN_EQUAL = "less_than_equal"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EQUAL_FIELD = "equal_field"
    NOT_EQUAL_FIELD = "not_equal_field"
    GREATER_THAN_FIELD = "greater_than_field"
    GREATER_THAN_EQUAL_FIELD = "greater_than_equal_field"
    LESS_THAN_FIELD = "less_than_field"
    LESS_THAN_EQUAL_FIELD = "less_than_equal_field"
    CONTAINS_FIELD = "contains_field"
    STARTS_WITH_FIELD = "starts_with_field"
    ENDS_WITH_FIELD = "ends_with_field"
    BETWEEN = "between"
    BETWEEN_INCLUSIVE = "between_inclusive"
    IN = "in"
    REGEX = "regex"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"
    SORT = "sort"

    @property
    def is_field_comparison(self) -> bool:
        """Return whether the operator compares two fields of the same row."""
        return self.name.endswith("_FIELD")


class Order(Enum):
    """Sort direction carried as the value of a SORT criterion."""

    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def parse(cls, value: Any) -> Order:
        """Resolve an order from an Order, its name, or an asc/desc abbreviation."""
        if isinstance(value, Order):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("ascending", "asc"):
                return cls.ASCENDING
            if lowered in ("descending", "desc"):
                return cls.DESCENDING
        raise ValueError(f"Unknown sort order: {value!r}")


# Item features
FEATURE_IS_PRIMARY = "isPrimary"
FEATURE_IS_SEARCH = "isSearch"
FEATURE_IS_SUGGEST = "isSuggest"
FEATURE_IS_SECRET = "isSecret"
FEATURE_IS_REQUIRED = "isRequired"
FEATURE_IS_VISIBLE = "isVisible"
FEATURE_IS_HIDDEN = "isHidden"
FEATURE_SORT_ORDER = "sortOrder"

# Features that may only be enabled on Text columns
TEXT_ONLY_FEATURES = frozenset({FEATURE_IS_SEARCH, FEATURE_IS_SUGGEST})

# Criteria features
FEATURE_DS_OFFSET = "_offset"
FEATURE_DS_LIMIT = "_limit"

# Result grid features
FEATURE_NEXT_OFFSET = "next_offset"
FEATURE_CUR_LIMIT = "cur_limit"
FEATURE_CUR_OFFSET = "cur_offset"
FEATURE_TOTAL_DOCUMENTS = "total_documents"


def is_value_true(value: Any) -> bool:
    """Interpret a feature value as a flag; unrecognised values are false."""
    try:
        return _to_boolean(value)
    except ValueError:
        return False
