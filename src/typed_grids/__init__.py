"""Typed Grids - A typed, in-memory grid store with a criteria query engine."""

from typed_grids.analyzer import ColumnAnalyzer, DataAnalyzer
from typed_grids.compiler import GridCriteria, SkippedCriterion
from typed_grids.config import DEFAULT_SETTINGS, EngineSettings
from typed_grids.criteria import Criteria, Criterion
from typed_grids.document import Document
from typed_grids.errors import CriteriaError, GridError, ResolutionError, SchemaError
from typed_grids.grid import ColumnStatistics, Grid
from typed_grids.grid_ds import GridDS
from typed_grids.item import Item
from typed_grids.parsing import CriteriaLexer, CriteriaParser
from typed_grids.types import DataType, Operator, Order

__all__ = [
    # Main API
    "GridDS",
    "GridCriteria",
    "SkippedCriterion",
    "CriteriaParser",
    "CriteriaLexer",
    # Data model
    "Item",
    "Document",
    "Grid",
    "ColumnStatistics",
    "Criteria",
    "Criterion",
    "DataType",
    "Operator",
    "Order",
    # Analysis
    "ColumnAnalyzer",
    "DataAnalyzer",
    # Configuration and errors
    "EngineSettings",
    "DEFAULT_SETTINGS",
    "GridError",
    "CriteriaError",
    "SchemaError",
    "ResolutionError",
]

__version__ = "0.1.0"
