"""Named, typed values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from typed_grids.types import DataType, is_value_true


@dataclass
class Item:
    """A single named value (or ordered multi-value) of one DataType.

    Values are coerced to the item's type on assignment; empty values are
    dropped, so an item with no values is "not assigned". Features are
    string flags/attributes such as ``isPrimary`` or ``isSearch``.
    """

    name: str
    type: DataType = DataType.TEXT
    values: list[Any] = field(default_factory=list)
    features: dict[str, str] = field(default_factory=dict)
    title: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.values, (list, tuple)):
            self.values = [self.values]
        self.values = self._coerce_all(self.values)

    def _coerce_all(self, values: Any) -> list[Any]:
        coerced = (self.type.coerce(v) for v in values)
        return [v for v in coerced if v is not None]

    @property
    def value(self) -> Any:
        """Return the first value, or None when nothing is assigned."""
        return self.values[0] if self.values else None

    @value.setter
    def value(self, value: Any) -> None:
        self.set_values([value])

    def set_values(self, values: Any) -> None:
        """Replace all values."""
        if not isinstance(values, (list, tuple)):
            values = [values]
        self.values = self._coerce_all(values)

    def add_value(self, value: Any) -> None:
        coerced = self.type.coerce(value)
        if coerced is not None:
            self.values.append(coerced)

    def clear_values(self) -> None:
        self.values = []

    @property
    def is_multi_value(self) -> bool:
        return len(self.values) > 1

    @property
    def is_value_assigned(self) -> bool:
        return len(self.values) > 0

    def retype(self, data_type: DataType) -> None:
        """Change the declared type, re-coercing the current values.

        Raises:
            ValueError: If a current value cannot be represented in the new type.
        """
        self.values = [v for v in (data_type.coerce(v) for v in self.values) if v is not None]
        self.type = data_type

    # --- Features ---

    def add_feature(self, name: str, value: Any = "true") -> None:
        self.features[name] = str(value) if not isinstance(value, str) else value

    def enable_feature(self, name: str) -> None:
        self.features[name] = "true"

    def disable_feature(self, name: str) -> None:
        self.features.pop(name, None)

    def clear_features(self) -> None:
        self.features.clear()

    def get_feature(self, name: str) -> str | None:
        return self.features.get(name)

    def is_feature_true(self, name: str) -> bool:
        """Return whether the named feature is present with a true value."""
        return is_value_true(self.features.get(name))

    def copy(self, with_values: bool = True) -> Item:
        """Return an independent copy, optionally without values (schema form)."""
        return Item(
            name=self.name,
            type=self.type,
            values=list(self.values) if with_values else [],
            features=dict(self.features),
            title=self.title,
        )
