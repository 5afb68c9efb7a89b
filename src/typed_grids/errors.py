"""Exceptions raised by the grid engine."""

from __future__ import annotations


class GridError(RuntimeError):
    """Base class for all grid engine errors."""


class CriteriaError(GridError):
    """Criteria could not be prepared or executed.

    Raised for absent or empty criteria, invalid pagination values, an
    absent grid, or an execute call that was not preceded by prepare.
    """


class SchemaError(GridError):
    """The grid schema lacks something the operation requires.

    For example a primary key for add/update, a searchable column for
    search, or a single suggestable column for suggest.
    """


class ResolutionError(GridError):
    """A primary-key lookup did not resolve to exactly one row."""
