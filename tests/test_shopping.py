"""Tests for hearth.core.shopping — ShoppingListManager."""

import pytest

from hearth.core.errors import NotFound, ValidationError
from hearth.data.models import Origin


class TestAdd:
    def test_add_item(self, shopping, household):
        item = shopping.add(household.id, "Milk")
        assert item.name == "Milk"
        assert item.added_by == Origin.MANUAL
        assert len(shopping.list_items(household.id)) == 1

    def test_name_is_trimmed(self, shopping, household):
        item = shopping.add(household.id, "  Eggs \t")
        assert item.name == "Eggs"

    @pytest.mark.parametrize("name", ["", "   ", "\n\t"])
    def test_blank_name_rejected(self, shopping, household, name):
        with pytest.raises(ValidationError):
            shopping.add(household.id, name)
        assert shopping.list_items(household.id) == []

    def test_sensor_origin(self, shopping, household):
        item = shopping.add(household.id, "Coffee", added_by="sensor")
        assert item.added_by == Origin.SENSOR
        assert shopping.list_items(household.id)[0].added_by == Origin.SENSOR

    def test_invalid_origin_rejected(self, shopping, household):
        with pytest.raises(ValidationError):
            shopping.add(household.id, "Coffee", added_by="robot")

    def test_duplicates_allowed(self, shopping, household):
        first = shopping.add(household.id, "Milk")
        second = shopping.add(household.id, "Milk")
        assert first.id != second.id
        assert [i.name for i in shopping.list_items(household.id)] == ["Milk", "Milk"]

    def test_unknown_household(self, shopping):
        with pytest.raises(NotFound):
            shopping.add("nope", "Milk")


class TestListItems:
    def test_insertion_order(self, shopping, household):
        for name in ["Milk", "Bread", "Apples"]:
            shopping.add(household.id, name)
        assert [i.name for i in shopping.list_items(household.id)] == ["Milk", "Bread", "Apples"]

    def test_lists_are_per_household(self, shopping, household, registry):
        other = registry.create("u9")
        shopping.add(household.id, "Milk")
        shopping.add(other.id, "Rice")
        assert [i.name for i in shopping.list_items(other.id)] == ["Rice"]

    def test_unknown_household(self, shopping):
        with pytest.raises(NotFound):
            shopping.list_items("nope")


class TestRemove:
    def test_remove_item(self, shopping, household):
        milk = shopping.add(household.id, "Milk")
        shopping.add(household.id, "Bread")
        shopping.remove(household.id, milk.id)
        assert [i.name for i in shopping.list_items(household.id)] == ["Bread"]

    def test_remove_nonexistent_is_noop(self, shopping, household):
        shopping.add(household.id, "Milk")
        shopping.remove(household.id, "does-not-exist")
        assert len(shopping.list_items(household.id)) == 1

    def test_remove_twice_is_noop(self, shopping, household):
        milk = shopping.add(household.id, "Milk")
        shopping.remove(household.id, milk.id)
        shopping.remove(household.id, milk.id)
        assert shopping.list_items(household.id) == []

    def test_cannot_remove_other_households_item(self, shopping, household, registry):
        other = registry.create("u9")
        rice = shopping.add(other.id, "Rice")
        shopping.remove(household.id, rice.id)
        assert [i.name for i in shopping.list_items(other.id)] == ["Rice"]
