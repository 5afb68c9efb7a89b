"""Ordered collections of named Items."""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, Iterator

from typed_grids.item import Item
from typed_grids.types import FEATURE_IS_PRIMARY, DataType


class Document:
    """An ordered, named collection of Items with unique names.

    A Document serves both as a data row and, when it carries only
    type/feature metadata, as the column schema of a Grid.
    """

    def __init__(self, name: str = "", items: Iterable[Item] | None = None) -> None:
        self.name = name
        self._items: dict[str, Item] = {}
        self.children: list[Document] = []
        for item in items or ():
            self.add(item)

    def __repr__(self) -> str:
        values = {name: item.values for name, item in self._items.items()}
        return f"Document(name={self.name!r}, values={values!r})"

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items.values())

    def __contains__(self, name: object) -> bool:
        return name in self._items

    @property
    def items(self) -> list[Item]:
        return list(self._items.values())

    @property
    def item_names(self) -> list[str]:
        return list(self._items)

    def add(self, item: Item) -> Item:
        """Append an item.

        Raises:
            ValueError: If an item with the same name already exists.
        """
        if item.name in self._items:
            raise ValueError(f"Document '{self.name}' already has an item named '{item.name}'")
        self._items[item.name] = item
        return item

    def remove(self, name: str) -> Item | None:
        return self._items.pop(name, None)

    def get_item(self, name: str) -> Item | None:
        return self._items.get(name)

    def get_item_or_raise(self, name: str) -> Item:
        """Get an item by name.

        Raises:
            KeyError: If the item is not found.
        """
        item = self._items.get(name)
        if item is None:
            raise KeyError(f"Unknown item: {name}")
        return item

    # --- Values ---

    def get_value(self, name: str) -> Any:
        """Return the first value of the named item, or None."""
        item = self._items.get(name)
        return item.value if item is not None else None

    def get_values(self, name: str) -> list[Any]:
        item = self._items.get(name)
        return list(item.values) if item is not None else []

    def set_value(self, name: str, value: Any) -> bool:
        """Assign a value to an existing item; return False if there is no such item."""
        item = self._items.get(name)
        if item is None:
            return False
        item.value = value
        return True

    def set_values(self, name: str, values: list[Any]) -> bool:
        item = self._items.get(name)
        if item is None:
            return False
        item.set_values(values)
        return True

    def is_value_assigned(self, name: str) -> bool:
        item = self._items.get(name)
        return item is not None and item.is_value_assigned

    def to_dict(self) -> dict[str, Any]:
        """Return a name -> value mapping (lists for multi-value items)."""
        return {
            name: (list(item.values) if item.is_multi_value else item.value)
            for name, item in self._items.items()
        }

    # --- Features ---

    def items_with_feature(self, feature: str) -> list[Item]:
        """Return the items whose named feature is true, in order."""
        return [item for item in self._items.values() if item.is_feature_true(feature)]

    def first_item_with_feature(self, feature: str) -> Item | None:
        for item in self._items.values():
            if item.is_feature_true(feature):
                return item
        return None

    @property
    def primary_key_item(self) -> Item | None:
        return self.first_item_with_feature(FEATURE_IS_PRIMARY)

    # --- Hierarchy ---

    def add_child(self, document: Document) -> None:
        self.children.append(document)

    # --- Copies ---

    def copy(self, with_values: bool = True) -> Document:
        """Return a deep copy; without values the copy is a schema template."""
        document = Document(self.name, (item.copy(with_values) for item in self._items.values()))
        document.children = [child.copy(with_values) for child in self.children]
        return document

    def new_row(self, values: dict[str, Any] | None = None) -> Document:
        """Create a row from this schema, coercing ``values`` to the column types.

        Raises:
            KeyError: If a value names an item that is not in the schema.
        """
        row = self.copy(with_values=False)
        for name, value in (values or {}).items():
            item = row.get_item_or_raise(name)
            if isinstance(value, (list, tuple)):
                item.set_values(value)
            else:
                item.value = value
        return row

    @classmethod
    def from_values(cls, name: str, values: dict[str, Any]) -> Document:
        """Build a document, inferring each item's type from its value."""
        document = cls(name)
        for item_name, value in values.items():
            sample = value[0] if isinstance(value, (list, tuple)) and value else value
            document.add(Item(item_name, DataType.infer(sample), value))
        return document

    def generate_unique_hash(self, salt: str = "") -> str:
        """Return a hash of the item names, types and values plus an optional salt."""
        digest = hashlib.sha1(salt.encode("utf-8"))
        digest.update(self.name.encode("utf-8"))
        for item in self._items.values():
            digest.update(item.name.encode("utf-8"))
            digest.update(item.type.value.encode("utf-8"))
            for value in item.values:
                digest.update(repr(value).encode("utf-8"))
        return digest.hexdigest()
