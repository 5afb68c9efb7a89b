"""Grid data source: CRUD, search, suggest and analysis over one in-memory grid."""

from __future__ import annotations

import math
import uuid
from typing import Any

import structlog

from typed_grids.analyzer import DataAnalyzer
from typed_grids.compiler import GridCriteria
from typed_grids.config import DEFAULT_SETTINGS, EngineSettings
from typed_grids.criteria import Criteria
from typed_grids.document import Document
from typed_grids.errors import ResolutionError, SchemaError
from typed_grids.grid import Grid
from typed_grids.item import Item
from typed_grids.types import (
    FEATURE_CUR_LIMIT,
    FEATURE_CUR_OFFSET,
    FEATURE_IS_PRIMARY,
    FEATURE_IS_SEARCH,
    FEATURE_IS_SUGGEST,
    FEATURE_NEXT_OFFSET,
    FEATURE_TOTAL_DOCUMENTS,
    TEXT_ONLY_FEATURES,
    DataType,
    Operator,
    Order,
    is_value_true,
)

logger = structlog.get_logger(__name__)


class GridDS:
    """Data source facade over a single in-memory :class:`Grid`.

    Every query builds a :class:`Criteria` and runs it through a fresh
    :class:`GridCriteria`, so results are always new grids and the source
    grid is never modified by a read.

    Concurrency: there is no internal locking. Any number of threads may
    call the read operations (``fetch``, ``search``, ``suggest``,
    ``find_by_primary_id``, ``count``, ``analyze``) at the same time, as
    long as no mutation (``add``, ``update``, ``upsert``,
    ``load_apply_update``, ``delete``, ``set_primary_key``,
    ``update_schema``) runs concurrently. Serialising writers, and writers
    against readers, is the caller's responsibility.
    """

    def __init__(
        self,
        source: Grid | Document | None = None,
        name: str | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        """Create a data source.

        Args:
            source: An existing grid to own, a schema Document to start an
                empty grid from, or None for an empty schema.
            name: Data source name; defaults to the grid's name.
            settings: Engine defaults for pagination and analysis.
        """
        if isinstance(source, Grid):
            grid = source
        elif isinstance(source, Document):
            grid = Grid(source.copy(with_values=False), name=name)
        else:
            grid = Grid(Document(name or ""), name=name)
        self.grid = grid
        self.name = name if name is not None else grid.name
        self.settings = settings or DEFAULT_SETTINGS

    def __repr__(self) -> str:
        return f"GridDS(name={self.name!r}, rows={self.grid.row_count})"

    @property
    def schema(self) -> Document:
        return self.grid.columns

    def count(self) -> int:
        return self.grid.row_count

    # --- Schema ---

    def set_primary_key(self, name: str) -> None:
        """Make ``name`` the only primary-key column.

        Raises:
            SchemaError: If the schema has no such column.
        """
        column = self.schema.get_item(name)
        if column is None:
            raise SchemaError(f"Cannot set primary key - '{name}' is not a column of '{self.name}'.")
        for item in self.schema:
            item.disable_feature(FEATURE_IS_PRIMARY)
        column.enable_feature(FEATURE_IS_PRIMARY)

    def update_schema(self, name: str, features: dict[str, Any], title: str | None = None) -> bool:
        """Replace a column's features (and optionally its title).

        Flag features (names starting with ``is``) are only kept when true;
        ``isSearch`` and ``isSuggest`` are only accepted on Text columns.
        Returns whether anything was applied.
        """
        column = self.schema.get_item(name)
        if column is None:
            return False

        changed = False
        column.clear_features()
        if title is not None:
            column.title = title
            changed = True
        for feature, value in features.items():
            if feature.startswith("is"):
                if not is_value_true(value):
                    continue
                if feature in TEXT_ONLY_FEATURES and not column.type.is_text:
                    logger.warning(
                        "schema_feature_rejected", column=name, feature=feature, data_type=column.type.value
                    )
                    continue
            column.add_feature(feature, value)
            changed = True
        return changed

    def _primary_key(self) -> Item:
        keys = self.schema.items_with_feature(FEATURE_IS_PRIMARY)
        if len(keys) != 1:
            logger.error("schema_primary_key_invalid", grid=self.name, count=len(keys))
            raise SchemaError(
                f"Data grid '{self.name}' must designate exactly one '{FEATURE_IS_PRIMARY}' column, found {len(keys)}."
            )
        return keys[0]

    # --- Queries ---

    def _execute(self, criteria: Criteria, offset: int | None, limit: int | None, schema: Document | None = None) -> Grid:
        compiler = GridCriteria(schema if schema is not None else self.schema, self.settings)
        compiler.prepare(criteria, offset, limit)
        return compiler.execute(self.grid)

    def fetch(self, criteria: Criteria | None = None, offset: int | None = None, limit: int | None = None) -> Grid:
        """Fetch rows.

        ``fetch()`` returns the owned grid itself, unfiltered.
        ``fetch(offset=..., limit=...)`` pages through all rows, and
        ``fetch(criteria[, offset, limit])`` runs the given criteria; both
        return a new result grid with pagination features.
        """
        if criteria is None:
            if offset is None and limit is None:
                return self.grid
            criteria = Criteria(f"{self.name} Fetch Criteria")
            criteria.set_pagination(
                self.settings.query_offset if offset is None else offset,
                self.settings.query_limit if limit is None else limit,
            )
        return self._execute(criteria, offset, limit)

    def search(
        self,
        terms: str | None,
        operator: Operator = Operator.CONTAINS,
        offset: int | None = None,
        limit: int | None = None,
    ) -> Grid:
        """Case-insensitive search of ``terms`` across every searchable column.

        Each searchable column is queried on its own for up to ``limit``
        rows from the start, and the matches are concatenated in column
        order; a row matching several columns appears once per column, so
        the result can hold more than ``limit`` rows. The result features
        describe the concatenated rows. Empty terms fall back to a paged
        fetch.

        Raises:
            SchemaError: If no column is marked searchable.
        """
        offset = self.settings.query_offset if offset is None else offset
        limit = self.settings.search_limit if limit is None else limit
        if not terms:
            return self.fetch(offset=offset, limit=limit)

        fields = self.schema.items_with_feature(FEATURE_IS_SEARCH)
        if not fields:
            logger.error("schema_feature_missing", grid=self.name, feature=FEATURE_IS_SEARCH)
            raise SchemaError(f"Data grid '{self.name}' is missing a '{FEATURE_IS_SEARCH}' column.")

        matched: list[Document] = []
        for field in fields:
            criteria = Criteria(f"'{terms}' Search Criteria", case_sensitive=False)
            criteria.add(field.name, operator, terms)
            matched.extend(self._execute(criteria, 0, limit).rows)

        total = len(matched)
        result = Grid(self.schema.copy(with_values=False), name=self.name)
        result.add_rows(matched)
        result.features[FEATURE_NEXT_OFFSET] = 0 if total == 0 else min(total - 1, offset + limit)
        result.features[FEATURE_CUR_LIMIT] = limit
        result.features[FEATURE_CUR_OFFSET] = offset
        result.features[FEATURE_TOTAL_DOCUMENTS] = total
        return result

    def suggest(self, fragment: str, operator: Operator = Operator.STARTS_WITH, limit: int | None = None) -> Grid:
        """Return up to ``limit`` rows whose suggestable column matches ``fragment``.

        Raises:
            SchemaError: If the schema does not mark exactly one column suggestable.
        """
        fields = self.schema.items_with_feature(FEATURE_IS_SUGGEST)
        if len(fields) != 1:
            logger.error("schema_feature_missing", grid=self.name, feature=FEATURE_IS_SUGGEST, count=len(fields))
            raise SchemaError(
                f"Data grid '{self.name}' must have exactly one '{FEATURE_IS_SUGGEST}' column, found {len(fields)}."
            )
        criteria = Criteria(f"{self.name} Suggest Criteria", case_sensitive=False)
        criteria.add(fields[0].name, operator, fragment)
        return self._execute(criteria, 0, self.settings.suggest_limit if limit is None else limit)

    def _primary_key_lookup(self, key: Item, value: Any) -> Grid:
        criteria = Criteria(f"{self.name} Primary Key Criteria")
        criteria.add(key.name, Operator.EQUAL, value)
        return self._execute(criteria, 0, 1)

    def find_by_primary_id(self, primary_id: Any) -> Document | None:
        """Return a copy of the row with this primary key, or None unless exactly one matches."""
        key = self._primary_key()
        if primary_id is None or primary_id == "":
            return None
        result = self._primary_key_lookup(key, primary_id)
        total = result.features[FEATURE_TOTAL_DOCUMENTS]
        if total != 1:
            logger.warning("primary_key_unresolved", grid=self.name, key=key.name, value=primary_id, matches=total)
            return None
        return result.rows[0]

    # --- Mutations ---

    def _conform(self, document: Document) -> Document:
        """Rebuild ``document`` as a row of this schema with values coerced to the column types."""
        return self.grid.new_row(document.to_dict())

    def _next_primary_key(self, key: Item) -> int:
        statistics = self.grid.statistics(key.name)
        if statistics.count == 0:
            return 1
        return math.floor(statistics.maximum) + 1

    def add(self, document: Document) -> Document:
        """Append ``document`` as a new row, assigning a primary key when it has none.

        Numeric keys continue from the current maximum; other keys get a
        generated unique hash. The assigned key is also set on ``document``.

        Raises:
            SchemaError: If the schema does not designate exactly one primary key.
        """
        key = self._primary_key()
        if not document.is_value_assigned(key.name):
            if key.name not in document:
                document.add(key.copy(with_values=False))
            if key.type.is_number:
                document.set_value(key.name, self._next_primary_key(key))
            else:
                document.set_value(key.name, document.generate_unique_hash(salt=uuid.uuid4().hex))

        row = self.grid.add_row(self._conform(document))
        logger.debug("grid_row_added", grid=self.name, key=key.name, value=row.get_value(key.name))
        return document

    def update(self, document: Document) -> bool:
        """Replace the row whose primary key matches ``document``'s."""
        key = self._primary_key()
        updated = self.grid.update_row(self._conform(document), key.name)
        if updated:
            logger.debug("grid_row_updated", grid=self.name, key=key.name, value=document.get_value(key.name))
        return updated

    def upsert(self, document: Document) -> Document:
        """Update the matching row when the primary key is known, otherwise add."""
        key = self._primary_key()
        if document.is_value_assigned(key.name) and self.update(document):
            return document
        return self.add(document)

    def load_apply_update(self, document: Document) -> Document:
        """Overlay the items of a partial ``document`` onto its stored row and save it.

        Returns the merged row.

        Raises:
            ResolutionError: If the primary key does not match exactly one row.
        """
        key = self._primary_key()
        key_value = document.get_value(key.name)
        if key_value is None:
            raise ResolutionError(f"Document is missing a value for primary key '{key.name}'.")

        result = self._primary_key_lookup(key, key_value)
        if result.features[FEATURE_TOTAL_DOCUMENTS] != 1:
            raise ResolutionError(
                f"Unable to isolate data document by primary id '{key_value}' "
                f"({result.features[FEATURE_TOTAL_DOCUMENTS]} matches)."
            )

        merged = result.rows[0]
        for item in document:
            if item.name not in merged:
                merged.add(self.schema.get_item_or_raise(item.name).copy(with_values=False))
            merged.set_values(item.name, item.values)
        if not self.update(merged):
            raise ResolutionError(f"Unable to update data document with primary id '{key_value}'.")
        return merged

    def delete(self, document: Document) -> bool:
        """Remove the row whose primary key matches ``document``'s."""
        key = self._primary_key()
        deleted = self.grid.delete_row(document, key.name)
        if deleted:
            logger.debug("grid_row_deleted", grid=self.name, key=key.name, value=document.get_value(key.name))
        return deleted

    # --- Analysis ---

    def _locate_median(self, name: str, data_type: DataType) -> Any:
        """Return the last row value of the ascending sort truncated to half the rows.

        Exact for an odd number of rows; for an even number it is the lower
        of the two middle values. A half holding a single row (grids of up
        to two rows) yields no median.
        """
        schema = self.schema.copy(with_values=False)
        schema.get_item_or_raise(name).type = data_type
        criteria = Criteria(f"{self.name} Median Criteria")
        criteria.add(name, Operator.SORT, Order.ASCENDING)
        result = self._execute(criteria, 0, math.ceil(self.grid.row_count / 2), schema=schema)
        if result.row_count < 2:
            return None
        return result.rows[-1].get_value(name)

    def analyze(self, sample_count: int | None = None) -> Grid:
        """Describe every column: type, counts, ranges, median and top values.

        Raises:
            SchemaError: If the grid has fewer than two rows.
        """
        if self.grid.row_count < 2:
            raise SchemaError("The grid must have 2 or more rows to perform an analysis operation.")

        analyzer = DataAnalyzer(self.schema, self.settings.sample_count if sample_count is None else sample_count)
        analyzer.scan(self.grid)
        details = analyzer.details()
        for row in details:
            data_type = DataType.parse(row.get_value("type"))
            if data_type.is_number:
                median = self._locate_median(row.get_value("name"), data_type)
                if median is not None:
                    row.set_value("median", median)
        return details
