"""Unit tests for item normalization and de-duplication."""

import pytest

from paybridge.schemas.payment import NormalizedItem
from paybridge.services.item_normalizer import (
    coerce_number,
    normalize_item,
    normalize_items,
    to_payment_items,
)


class TestNormalizeItem:
    """Tests for normalize_item."""

    def test_reads_flat_cart_line(self) -> None:
        """Test that flat cart rows resolve every field directly."""
        item = normalize_item(
            {"product_id": "p1", "variant_id": "v1", "quantity": 3, "variant_price": 12.5, "product_name": "Boot X"}
        )

        assert item == NormalizedItem(
            product_id="p1", variant_id="v1", quantity=3, unit_price=12.5, product_name="Boot X"
        )

    def test_falls_back_to_nested_references(self) -> None:
        """Test that nested product and variant objects are used when flat ids are missing."""
        item = normalize_item(
            {"product": {"id": "p2", "name": "Sock"}, "variant": {"id": "v2", "price": "7.25"}, "quantity": "2"}
        )

        assert item.product_id == "p2"
        assert item.variant_id == "v2"
        assert item.quantity == 2
        assert item.unit_price == 7.25
        assert item.product_name == "Sock"

    def test_empty_flat_id_falls_back_to_nested_id(self) -> None:
        """Test that an empty product_id does not shadow the nested id."""
        item = normalize_item({"product_id": "", "product": {"id": "p3"}, "quantity": 1})

        assert item.product_id == "p3"

    @pytest.mark.parametrize(
        ("row", "expected"),
        [
            ({"variant_price": 10, "variant": {"price": 20}, "price": 30, "unit_price": 40}, 10.0),
            ({"variant": {"price": 20}, "price": 30, "unit_price": 40}, 20.0),
            ({"price": 30, "unit_price": 40}, 30.0),
            ({"unit_price": 40}, 40.0),
            ({"variant_price": 0, "price": 30}, 0.0),
        ],
    )
    def test_price_alias_precedence(self, row: dict, expected: float) -> None:
        """Test that the first present price alias wins, including zero."""
        assert normalize_item({"product_id": "p", "quantity": 1, **row}).unit_price == expected

    def test_missing_price_under_every_alias_is_zero(self) -> None:
        """Test that a row with no price field normalizes to price 0."""
        item = normalize_item({"product_id": "p", "quantity": 1, "variant": {"id": "v"}})

        assert item.unit_price == 0.0

    def test_invalid_rows_become_zero_quantity_records(self) -> None:
        """Test that unusable rows are kept as zero-quantity records."""
        assert normalize_item({"product_id": "p", "quantity": "lots"}).quantity == 0
        assert normalize_item({"product_id": "p"}).quantity == 0
        assert normalize_item({"product_id": "p", "quantity": -4}).quantity == 0
        assert normalize_item(None) == NormalizedItem()
        assert normalize_item("not a row") == NormalizedItem()

    def test_garbage_price_is_zero(self) -> None:
        """Test that non-numeric and negative prices become 0."""
        assert normalize_item({"product_id": "p", "price": "abc"}).unit_price == 0.0
        assert normalize_item({"product_id": "p", "price": -3}).unit_price == 0.0
        assert normalize_item({"product_id": "p", "price": float("nan")}).unit_price == 0.0

    def test_numeric_ids_are_stringified(self) -> None:
        """Test that integer identifiers become strings."""
        item = normalize_item({"product_id": 42, "variant_id": 7, "quantity": 1})

        assert item.product_id == "42"
        assert item.variant_id == "7"


class TestNormalizeItems:
    """Tests for normalize_items."""

    def test_one_output_per_input_in_order(self) -> None:
        """Test that no row is dropped and order is preserved."""
        rows = [{"product_id": "a", "quantity": 1}, {}, {"product_id": "b", "quantity": 0}]

        items = normalize_items(rows)

        assert [item.product_id for item in items] == ["a", "", "b"]

    def test_empty_input(self) -> None:
        """Test that empty and missing inputs produce an empty list."""
        assert normalize_items([]) == []
        assert normalize_items(None) == []


class TestToPaymentItems:
    """Tests for to_payment_items."""

    def test_excludes_rows_without_product_or_quantity(self) -> None:
        """Test the single exclusion rule."""
        items = normalize_items(
            [
                {"product_id": "a", "quantity": 1},
                {"product_id": "", "quantity": 5},
                {"product_id": "b", "quantity": 0},
            ]
        )

        assert [item.product_id for item in to_payment_items(items)] == ["a"]

    def test_first_occurrence_wins(self) -> None:
        """Test that duplicates by product and variant keep the first entry."""
        items = normalize_items(
            [
                {"product_id": "a", "variant_id": "v1", "quantity": 1, "price": 10},
                {"product_id": "a", "variant_id": "v2", "quantity": 1, "price": 11},
                {"product_id": "a", "variant_id": "v1", "quantity": 9, "price": 99},
                {"product_id": "b", "quantity": 2},
                {"product": {"id": "b"}, "quantity": 5},
            ]
        )

        payment_items = to_payment_items(items)

        assert [item.key for item in payment_items] == ["a:v1", "a:v2", "b:"]
        assert payment_items[0].quantity == 1
        assert payment_items[0].unit_price == 10
        assert payment_items[2].quantity == 2
        assert len(payment_items) <= len(items)


class TestCoerceNumber:
    """Tests for coerce_number."""

    @pytest.mark.parametrize("value", [None, True, "x", [], float("inf"), -1])
    def test_unusable_values_are_zero(self, value: object) -> None:
        """Test that unusable values coerce to 0."""
        assert coerce_number(value) == 0.0

    def test_numeric_strings(self) -> None:
        """Test that numeric strings are parsed."""
        assert coerce_number("3.5") == 3.5
