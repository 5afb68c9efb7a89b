"""Tests for the criteria language lexer and parser."""

import pytest

from typed_grids.compiler import GridCriteria
from typed_grids.document import Document
from typed_grids.grid import Grid
from typed_grids.item import Item
from typed_grids.parsing.criteria_lexer import CriteriaLexer
from typed_grids.parsing.criteria_parser import CriteriaParser
from typed_grids.types import FEATURE_DS_LIMIT, FEATURE_DS_OFFSET, DataType, Operator


@pytest.fixture
def parser():
    return CriteriaParser()


def clauses(criteria):
    """Return (name, operator, values) for every entry."""
    return [(c.name, c.operator, c.item.values) for c in criteria]


class TestCriteriaLexer:
    """Tests for the criteria lexer."""

    def test_tokenize_comparison(self):
        """Test tokenizing a simple comparison."""
        lexer = CriteriaLexer()
        lexer.build()

        tokens = lexer.tokenize("age >= 18 and name != \"x\"")
        token_types = [t.type for t in tokens]

        assert token_types == ["IDENTIFIER", "GTE", "INTEGER", "AND", "IDENTIFIER", "NEQ", "STRING"]

    def test_keywords_are_case_insensitive(self):
        """Test keywords in any case."""
        lexer = CriteriaLexer()
        lexer.build()

        token_types = [t.type for t in lexer.tokenize("Name STARTS With \"a\" SORT name DESC")]

        assert token_types == ["IDENTIFIER", "STARTS", "WITH", "STRING", "SORT", "IDENTIFIER", "DESC"]

    def test_backtick_identifier(self):
        """Test back-quoted names bypass keyword lookup."""
        lexer = CriteriaLexer()
        lexer.build()

        tokens = lexer.tokenize("`limit` = 1 and `first name` = \"Ann\"")

        assert (tokens[0].type, tokens[0].value) == ("IDENTIFIER", "limit")
        assert (tokens[4].type, tokens[4].value) == ("IDENTIFIER", "first name")

    def test_numbers(self):
        """Test integer, float and negative literals."""
        lexer = CriteriaLexer()
        lexer.build()

        tokens = lexer.tokenize("-3 2.5 -0.5 7")

        assert [(t.type, t.value) for t in tokens] == [
            ("INTEGER", -3), ("FLOAT", 2.5), ("FLOAT", -0.5), ("INTEGER", 7),
        ]

    def test_regex_state(self):
        """Test the pattern after matches is a single token."""
        lexer = CriteriaLexer()
        lexer.build()

        tokens = lexer.tokenize("code matches /[A-Z]+ \\/ x/ and n = 1")

        assert tokens[2].type == "REGEX"
        assert tokens[2].value == "[A-Z]+ / x"
        assert tokens[3].type == "AND"

    def test_illegal_character(self):
        """Test lexer errors."""
        lexer = CriteriaLexer()
        lexer.build()

        with pytest.raises(SyntaxError, match="Illegal character"):
            lexer.tokenize("age # 3")


class TestCriteriaParser:
    """Tests for the criteria parser."""

    def test_parse_comparison(self, parser):
        """Test a single comparison."""
        criteria = parser.parse("age > 30", name="older")
        assert criteria.name == "older"
        assert clauses(criteria) == [("age", Operator.GREATER_THAN, [30])]
        assert criteria.entries[0].item.type is DataType.INTEGER

    def test_parse_conjunction(self, parser):
        """Test clauses joined with and keep their order."""
        criteria = parser.parse('dept = "Eng" and salary <= 50000.5 and active = true')
        assert clauses(criteria) == [
            ("dept", Operator.EQUAL, ["Eng"]),
            ("salary", Operator.LESS_THAN_EQUAL, [50000.5]),
            ("active", Operator.EQUAL, [True]),
        ]

    def test_parse_text_operators(self, parser):
        """Test contains/starts with/ends with."""
        criteria = parser.parse('name contains "nn" and name starts with "A" and name ends with "e"')
        assert [c.operator for c in criteria] == [Operator.CONTAINS, Operator.STARTS_WITH, Operator.ENDS_WITH]

    def test_parse_field_comparison(self, parser):
        """Test field-vs-field clauses."""
        criteria = parser.parse("x = field y and x < field z and full starts with field part")
        assert clauses(criteria) == [
            ("x", Operator.EQUAL_FIELD, ["y"]),
            ("x", Operator.LESS_THAN_FIELD, ["z"]),
            ("full", Operator.STARTS_WITH_FIELD, ["part"]),
        ]

    def test_parse_between(self, parser):
        """Test exclusive and inclusive ranges."""
        criteria = parser.parse("v between 10, 20 and v between inclusive 1, 2")
        assert clauses(criteria) == [
            ("v", Operator.BETWEEN, [10, 20]),
            ("v", Operator.BETWEEN_INCLUSIVE, [1, 2]),
        ]

    def test_parse_in(self, parser):
        """Test membership lists, including mixed value types."""
        criteria = parser.parse('dept in ("Eng", "Ops") and code in (1, "A")')
        assert clauses(criteria) == [
            ("dept", Operator.IN, ["Eng", "Ops"]),
            ("code", Operator.IN, ["1", "A"]),
        ]
        assert criteria.entries[1].item.type is DataType.TEXT

    def test_parse_empty_checks(self, parser):
        """Test is empty / is not empty."""
        criteria = parser.parse("age is empty and name is not empty")
        assert clauses(criteria) == [("age", Operator.EMPTY, []), ("name", Operator.NOT_EMPTY, [])]

    def test_parse_matches(self, parser):
        """Test regular expression clauses."""
        criteria = parser.parse("name matches /[A-Z][a-z]+/")
        assert clauses(criteria) == [("name", Operator.REGEX, ["[A-Z][a-z]+"])]

    def test_parse_sort(self, parser):
        """Test sort clauses after the filters."""
        criteria = parser.parse("age > 1 sort dept, salary desc sort name ascending")
        assert clauses(criteria) == [
            ("age", Operator.GREATER_THAN, [1]),
            ("dept", Operator.SORT, ["ASCENDING"]),
            ("salary", Operator.SORT, ["DESCENDING"]),
            ("name", Operator.SORT, ["ASCENDING"]),
        ]

    def test_parse_options(self, parser):
        """Test offset, limit and case options."""
        criteria = parser.parse('name = "ann" offset 5 limit 25 case insensitive')
        assert criteria.features == {FEATURE_DS_OFFSET: 5, FEATURE_DS_LIMIT: 25}
        assert not criteria.case_sensitive
        assert criteria.offset_or(0) == 5

    def test_parse_options_only(self, parser):
        """Test a criteria that only pages."""
        criteria = parser.parse("limit 3")
        assert len(criteria) == 0
        assert criteria.features == {FEATURE_DS_LIMIT: 3}
        assert not criteria.is_empty()

    def test_parse_empty(self, parser):
        """Test that empty input yields an empty criteria."""
        assert parser.parse("").is_empty()

    def test_parser_is_reusable(self, parser):
        """Test consecutive parses, including after a regex clause."""
        parser.parse("a matches /x/")
        criteria = parser.parse("b = 2")
        assert clauses(criteria) == [("b", Operator.EQUAL, [2])]

    def test_or_is_a_syntax_error(self, parser):
        """Test there is no disjunction."""
        with pytest.raises(SyntaxError, match="Syntax error"):
            parser.parse("a = 1 or b = 2")

    def test_incomplete_clause(self, parser):
        """Test errors at end of input."""
        with pytest.raises(SyntaxError, match="end of input"):
            parser.parse("a between 1,")

    def test_parsed_criteria_executes(self, parser):
        """Test parsed criteria run through the compiler."""
        schema = Document("t", [Item("name", DataType.TEXT), Item("age", DataType.INTEGER)])
        grid = Grid(schema)
        for name, age in (("ann", 31), ("Bob", 25), ("cyd", 40)):
            grid.add_row({"name": name, "age": age})

        criteria = parser.parse('age >= "30" sort name desc case insensitive')
        compiler = GridCriteria(schema)
        compiler.prepare(criteria)
        result = compiler.execute(grid)

        assert [row.get_value("name") for row in result] == ["cyd", "ann"]
