"""Parser for the textual criteria language.

A criteria expression is a conjunction of filter clauses followed by
optional sort clauses and trailing options::

    salary between 10, 20 and name contains "ann"
    sort salary desc, name
    offset 0 limit 25 case insensitive

There is no ``or`` and no grouping; every clause becomes one criterion
entry, in the order written.
"""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from typed_grids.criteria import Criteria
from typed_grids.parsing.criteria_lexer import CriteriaLexer
from typed_grids.types import FEATURE_DS_LIMIT, FEATURE_DS_OFFSET, Operator, Order

# Comparison token -> (literal operator, field-vs-field operator)
_COMPARISONS = {
    "=": (Operator.EQUAL, Operator.EQUAL_FIELD),
    "!=": (Operator.NOT_EQUAL, Operator.NOT_EQUAL_FIELD),
    "<": (Operator.LESS_THAN, Operator.LESS_THAN_FIELD),
    "<=": (Operator.LESS_THAN_EQUAL, Operator.LESS_THAN_EQUAL_FIELD),
    ">": (Operator.GREATER_THAN, Operator.GREATER_THAN_FIELD),
    ">=": (Operator.GREATER_THAN_EQUAL, Operator.GREATER_THAN_EQUAL_FIELD),
    "contains": (Operator.CONTAINS, Operator.CONTAINS_FIELD),
    "starts with": (Operator.STARTS_WITH, Operator.STARTS_WITH_FIELD),
    "ends with": (Operator.ENDS_WITH, Operator.ENDS_WITH_FIELD),
}


class CriteriaParser:
    """Parser producing :class:`Criteria` objects from criteria expressions."""

    tokens = CriteriaLexer.tokens

    def __init__(self) -> None:
        self.lexer = CriteriaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._name = ""

    def p_criteria(self, p: yacc.YaccProduction) -> None:
        """criteria : filter_part sort_part option_list"""
        criteria = Criteria(self._name)
        for operator, name, values in p[1] + p[2]:
            criteria.add(name, operator, *values)
        for key, value in p[3]:
            if key == "offset":
                criteria.features[FEATURE_DS_OFFSET] = value
            elif key == "limit":
                criteria.features[FEATURE_DS_LIMIT] = value
            else:
                criteria.case_sensitive = value
        p[0] = criteria

    # --- Filters ---

    def p_filter_part(self, p: yacc.YaccProduction) -> None:
        """filter_part : filter_list
                       | empty"""
        p[0] = p[1] if p[1] is not None else []

    def p_filter_list_single(self, p: yacc.YaccProduction) -> None:
        """filter_list : filter"""
        p[0] = [p[1]]

    def p_filter_list_multiple(self, p: yacc.YaccProduction) -> None:
        """filter_list : filter_list AND filter"""
        p[0] = p[1] + [p[3]]

    def p_filter_compare(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER comparison value"""
        p[0] = (_COMPARISONS[p[2]][0], p[1], [p[3]])

    def p_filter_compare_field(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER comparison FIELD IDENTIFIER"""
        p[0] = (_COMPARISONS[p[2]][1], p[1], [p[4]])

    def p_filter_between(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER BETWEEN value COMMA value"""
        p[0] = (Operator.BETWEEN, p[1], [p[3], p[5]])

    def p_filter_between_inclusive(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER BETWEEN INCLUSIVE value COMMA value"""
        p[0] = (Operator.BETWEEN_INCLUSIVE, p[1], [p[4], p[6]])

    def p_filter_in(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER IN LPAREN value_list RPAREN"""
        p[0] = (Operator.IN, p[1], p[4])

    def p_filter_empty(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER IS EMPTY"""
        p[0] = (Operator.EMPTY, p[1], [])

    def p_filter_not_empty(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER IS NOT EMPTY"""
        p[0] = (Operator.NOT_EMPTY, p[1], [])

    def p_filter_matches(self, p: yacc.YaccProduction) -> None:
        """filter : IDENTIFIER MATCHES REGEX"""
        p[0] = (Operator.REGEX, p[1], [p[3]])

    def p_comparison(self, p: yacc.YaccProduction) -> None:
        """comparison : EQ
                      | NEQ
                      | LT
                      | LTE
                      | GT
                      | GTE
                      | CONTAINS"""
        p[0] = p[1].lower()

    def p_comparison_starts_with(self, p: yacc.YaccProduction) -> None:
        """comparison : STARTS WITH"""
        p[0] = "starts with"

    def p_comparison_ends_with(self, p: yacc.YaccProduction) -> None:
        """comparison : ENDS WITH"""
        p[0] = "ends with"

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    def p_value(self, p: yacc.YaccProduction) -> None:
        """value : STRING
                 | INTEGER
                 | FLOAT
                 | IDENTIFIER"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    # --- Sorting ---

    def p_sort_part(self, p: yacc.YaccProduction) -> None:
        """sort_part : sort_part sort_clause
                     | empty"""
        p[0] = p[1] + p[2] if len(p) == 3 else []

    def p_sort_clause(self, p: yacc.YaccProduction) -> None:
        """sort_clause : SORT sort_key_list"""
        p[0] = p[2]

    def p_sort_key_list_single(self, p: yacc.YaccProduction) -> None:
        """sort_key_list : sort_key"""
        p[0] = [p[1]]

    def p_sort_key_list_multiple(self, p: yacc.YaccProduction) -> None:
        """sort_key_list : sort_key_list COMMA sort_key"""
        p[0] = p[1] + [p[3]]

    def p_sort_key(self, p: yacc.YaccProduction) -> None:
        """sort_key : IDENTIFIER sort_order"""
        p[0] = (Operator.SORT, p[1], [p[2].name])

    def p_sort_order_asc(self, p: yacc.YaccProduction) -> None:
        """sort_order : ASC
                      | empty"""
        p[0] = Order.ASCENDING

    def p_sort_order_desc(self, p: yacc.YaccProduction) -> None:
        """sort_order : DESC"""
        p[0] = Order.DESCENDING

    # --- Options ---

    def p_option_list(self, p: yacc.YaccProduction) -> None:
        """option_list : option_list option
                       | empty"""
        p[0] = p[1] + [p[2]] if len(p) == 3 else []

    def p_option_offset(self, p: yacc.YaccProduction) -> None:
        """option : OFFSET INTEGER"""
        p[0] = ("offset", p[2])

    def p_option_limit(self, p: yacc.YaccProduction) -> None:
        """option : LIMIT INTEGER"""
        p[0] = ("limit", p[2])

    def p_option_case_sensitive(self, p: yacc.YaccProduction) -> None:
        """option : CASE SENSITIVE"""
        p[0] = ("case", True)

    def p_option_case_insensitive(self, p: yacc.YaccProduction) -> None:
        """option : CASE INSENSITIVE"""
        p[0] = ("case", False)

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="criteria", **kwargs)

    def parse(self, data: str, name: str = "") -> Criteria:
        """Parse a criteria expression into a Criteria named ``name``."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)
        self._name = name
        self.lexer.lexer.begin("INITIAL")
        return self.parser.parse(data, lexer=self.lexer.lexer)
