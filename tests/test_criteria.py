"""Tests for criteria construction."""

from typed_grids.criteria import Criteria
from typed_grids.item import Item
from typed_grids.types import FEATURE_DS_LIMIT, FEATURE_DS_OFFSET, DataType, Operator, Order


class TestCriteria:
    """Tests for Criteria."""

    def test_add_infers_item_type(self):
        """Test that the criterion item type follows the values."""
        criteria = Criteria("c")
        criterion = criteria.add("age", Operator.GREATER_THAN, 30)
        assert criterion.name == "age"
        assert criterion.item.type is DataType.INTEGER
        assert criterion.item.value == 30

        criterion = criteria.add("name", Operator.EQUAL, "Ann")
        assert criterion.item.type is DataType.TEXT
        assert len(criteria) == 2

    def test_add_multi_value(self):
        """Test range and membership values."""
        criteria = Criteria()
        criterion = criteria.add("salary", Operator.BETWEEN, 10, 20)
        assert criterion.item.values == [10, 20]
        assert criterion.item.is_multi_value

    def test_add_mixed_value_types(self):
        """Test values of different types are carried as Text."""
        criteria = Criteria()
        between = criteria.add("price", Operator.BETWEEN, 10, 19.99)
        membership = criteria.add("x", Operator.IN, 1, 2.5)
        assert between.item.type is DataType.TEXT
        assert between.item.values == ["10", "19.99"]
        assert membership.item.values == ["1", "2.5"]

    def test_sort_order_is_stored_by_name(self):
        """Test that SORT carries the order name as its value."""
        criteria = Criteria()
        criterion = criteria.add("age", Operator.SORT, Order.DESCENDING)
        assert criterion.item.value == "DESCENDING"

    def test_field_operator_value_is_text(self):
        """Test that field-vs-field criteria hold the other field's name."""
        criteria = Criteria()
        criterion = criteria.add("x", Operator.EQUAL_FIELD, "y")
        assert criterion.item.type is DataType.TEXT
        assert criterion.item.value == "y"

    def test_add_item(self):
        """Test adding a criterion around a prepared item."""
        criteria = Criteria()
        criteria.add_item(Operator.IN, Item("dept", DataType.TEXT, ["Eng", "Ops"]))
        assert [c.operator for c in criteria] == [Operator.IN]

    def test_is_empty(self):
        """Test that pagination alone makes a criteria non-empty."""
        criteria = Criteria()
        assert criteria.is_empty()
        criteria.set_pagination(0, 5)
        assert not criteria.is_empty()
        assert criteria.has_pagination
        criteria.reset()
        assert criteria.is_empty()

    def test_pagination_features(self):
        """Test offset/limit features and their defaults."""
        criteria = Criteria()
        assert criteria.offset_or(0) == 0
        assert criteria.limit_or(10) == 10
        criteria.set_pagination(5, 25)
        assert criteria.features == {FEATURE_DS_OFFSET: 5, FEATURE_DS_LIMIT: 25}
        assert criteria.offset_or(0) == 5
        assert criteria.limit_or(10) == 25

    def test_pagination_features_from_text(self):
        """Test pass-through feature values given as text."""
        criteria = Criteria()
        criteria.features[FEATURE_DS_OFFSET] = "3"
        criteria.features[FEATURE_DS_LIMIT] = "lots"
        assert criteria.offset_or(0) == 3
        assert criteria.limit_or(10) == 10

    def test_reset_restores_case_sensitivity(self):
        """Test that reset clears everything."""
        criteria = Criteria(case_sensitive=False)
        criteria.add("name", Operator.EQUAL, "x")
        criteria.reset()
        assert criteria.case_sensitive
        assert len(criteria) == 0
