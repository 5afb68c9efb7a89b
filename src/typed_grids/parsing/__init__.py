"""Parsing module for the criteria language."""

from typed_grids.parsing.criteria_lexer import CriteriaLexer
from typed_grids.parsing.criteria_parser import CriteriaParser

__all__ = [
    "CriteriaLexer",
    "CriteriaParser",
]
