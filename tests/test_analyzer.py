"""Tests for column analysis."""

from datetime import date

from typed_grids.analyzer import ColumnAnalyzer, DataAnalyzer, infer_type
from typed_grids.document import Document
from typed_grids.grid import Grid
from typed_grids.item import Item
from typed_grids.types import DataType


class TestInferType:
    """Tests for type inference from text values."""

    def test_candidates_in_order(self):
        """Test boolean, integer, float, date and text inference."""
        assert infer_type(["yes", "No", "TRUE"]) is DataType.BOOLEAN
        assert infer_type(["1", "-20", "300"]) is DataType.INTEGER
        assert infer_type(["1", "2.5"]) is DataType.FLOAT
        assert infer_type(["2024-01-01", "2024-02-03T10:00:00"]) is DataType.DATETIME
        assert infer_type(["1", "abc"]) is DataType.TEXT
        assert infer_type([]) is DataType.TEXT


class TestColumnAnalyzer:
    """Tests for ColumnAnalyzer."""

    def test_counts_and_samples(self):
        """Test counts, unique values and top samples."""
        analyzer = ColumnAnalyzer("colour")
        for value in ("red", "blue", "red", None, "red", ""):
            analyzer.scan(value)
        details = analyzer.details(sample_count=5)

        assert details["type"] == "Text"
        assert details["total_count"] == 6
        assert details["null_count"] == 2
        assert details["unique_count"] == 2
        assert details["value_01"] == "red"
        assert details["count_01"] == 3
        assert details["percent_01"] == 50.0
        assert details["value_02"] == "blue"
        assert "value_03" not in details

    def test_text_lengths(self):
        """Test text columns report value lengths as their range."""
        analyzer = ColumnAnalyzer("word", DataType.TEXT)
        for value in ("a", "abcd", "ab"):
            analyzer.scan(value)
        details = analyzer.details(sample_count=0)
        assert details["minimum"] == "1.00"
        assert details["maximum"] == "4.00"
        assert "value_01" not in details

    def test_numbers(self):
        """Test numeric statistics."""
        analyzer = ColumnAnalyzer("score", DataType.INTEGER)
        for value in (2, 4, 4, 4, 5, 5, 7, 9):
            analyzer.scan(value)
        details = analyzer.details(sample_count=1)
        assert details["minimum"] == "2.00"
        assert details["maximum"] == "9.00"
        assert details["mean"] == "5.00"
        assert details["standard_deviation"] == "2.14"
        assert details["value_01"] == "4"

    def test_single_number_has_no_deviation(self):
        """Test the deviation needs two values."""
        analyzer = ColumnAnalyzer("score", DataType.DOUBLE)
        analyzer.scan(1.5)
        assert "standard_deviation" not in analyzer.details(sample_count=1)

    def test_booleans(self):
        """Test boolean range."""
        analyzer = ColumnAnalyzer("flag")
        for value in ("true", "false", "yes"):
            analyzer.scan(value)
        details = analyzer.details(sample_count=1)
        assert details["type"] == "Boolean"
        assert (details["minimum"], details["maximum"]) == ("false", "true")

    def test_dates(self):
        """Test date range."""
        analyzer = ColumnAnalyzer("day", DataType.DATE)
        for value in (date(2024, 5, 1), date(2023, 1, 9), None):
            analyzer.scan(value)
        details = analyzer.details(sample_count=1)
        assert details["minimum"] == "2023-01-09"
        assert details["maximum"] == "2024-05-01"
        assert details["null_count"] == 1


class TestDataAnalyzer:
    """Tests for DataAnalyzer."""

    def test_details_grid(self):
        """Test one details row per schema column."""
        schema = Document("t", [Item("n", DataType.INTEGER), Item("s", DataType.TEXT)])
        grid = Grid(schema)
        grid.add_row({"n": 1, "s": "x"})
        grid.add_row({"n": 3, "s": "x"})

        analyzer = DataAnalyzer(schema, sample_count=2)
        analyzer.scan(grid)
        details = analyzer.details()

        assert details.row_count == 2
        assert "percent_02" in details.columns
        assert "value_03" not in details.columns
        n, s = details.rows
        assert (n.get_value("name"), n.get_value("type"), n.get_value("mean")) == ("n", "Integer", "2.00")
        assert (s.get_value("name"), s.get_value("unique_count")) == ("s", 1)
        assert s.get_value("percent_01") == 100.0

    def test_declared_types_ignored_for_text_schema(self):
        """Test all-text schemas get inferred column types."""
        schema = Document("csv", [Item("n", DataType.TEXT)])
        analyzer = DataAnalyzer(schema)
        analyzer.scan([schema.new_row({"n": "1.5"}), schema.new_row({"n": "2"})])
        assert analyzer.details().get_row(0).get_value("type") == "Float"

    def test_sparse_rows(self):
        """Test columns missing from a row are counted as nulls."""
        schema = Document("t", [Item("n", DataType.INTEGER), Item("s", DataType.TEXT)])
        analyzer = DataAnalyzer(schema)
        analyzer.scan(Document("row", [Item("n", DataType.INTEGER, [4])]))
        analyzer.scan(Document("row", [Item("n", DataType.INTEGER, [6]), Item("s", DataType.TEXT, ["x"])]))
        details = analyzer.details()
        s = details.get_row(1)
        assert (s.get_value("total_count"), s.get_value("null_count")) == (2, 1)
        assert details.get_row(0).get_value("null_count") == 0
