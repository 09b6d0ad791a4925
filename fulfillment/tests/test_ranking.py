"""
Tests for top-seller ranking.
"""
from decimal import Decimal

import pytest

from fulfillment.app.core.constants import OrderStatus
from fulfillment.app.services.ranking import rank_top_sellers
from fulfillment.tests.factories import make_item, make_order


def _delivered(*items):
    return make_order(OrderStatus.DELIVERED, items=items)


class TestRankTopSellers:

    def test_ranked_by_units_sold(self):
        orders = [
            _delivered(make_item("a", 2, "5.00", "Fruits", "Apple"), make_item("b", 7, "1.00", "Dairy", "Milk")),
            _delivered(make_item("a", 3, "4.00", "Fruits", "Apple")),
        ]
        ranked = rank_top_sellers(orders)
        assert [p.product_id for p in ranked] == ["b", "a"]
        apple = ranked[1]
        assert apple.units_sold == 5
        assert apple.total_revenue == Decimal("22.00")
        assert apple.average_unit_price == Decimal("4.4")
        assert apple.name == "Apple"
        assert apple.category == "Fruits"

    def test_only_completed_orders_count(self):
        orders = [
            make_order(OrderStatus.PENDING, items=[make_item("a", 50)]),
            make_order(OrderStatus.CANCELLED, items=[make_item("a", 50)]),
            make_order(OrderStatus.COMPLETED, items=[make_item("b", 1)]),
        ]
        assert [p.product_id for p in rank_top_sellers(orders)] == ["b"]

    def test_limit(self):
        orders = [_delivered(*[make_item(f"p{i}", i + 1) for i in range(15)])]
        ranked = rank_top_sellers(orders)
        assert len(ranked) == 10
        assert ranked[0].product_id == "p14"
        assert len(rank_top_sellers(orders, limit=3)) == 3
        assert rank_top_sellers(orders, limit=0) == []

    def test_ties_keep_first_encounter_order(self):
        orders = [_delivered(make_item("x", 2), make_item("y", 2), make_item("z", 2))]
        assert [p.product_id for p in rank_top_sellers(orders)] == ["x", "y", "z"]

    def test_free_and_empty_products_are_excluded(self):
        orders = [_delivered(
            make_item("free", 4, "0.00"),
            make_item("returned", 0, "3.00"),
            make_item("paid", 1, "3.00"),
        )]
        assert [p.product_id for p in rank_top_sellers(orders)] == ["paid"]

    def test_category_filter_is_case_insensitive(self):
        orders = [_delivered(
            make_item("a", 3, category="Fruits"),
            make_item("b", 5, category="Dairy"),
            make_item("c", 1, category="fruits"),
        )]
        ranked = rank_top_sellers(orders, category_filter="FRUITS")
        assert [p.product_id for p in ranked] == ["a", "c"]

    def test_filter_by_fallback_category(self):
        orders = [_delivered(make_item("a", 3, category="Fruits"), make_item("b", 1))]
        ranked = rank_top_sellers(orders, category_filter="Other")
        assert [(p.product_id, p.category) for p in ranked] == [("b", "Other")]

    def test_catalog_lookups_override_hints(self):
        orders = [_delivered(make_item("p-carrot", 2, category="Roots", name="carrot (old)"))]
        ranked = rank_top_sellers(
            orders,
            category_lookup={"p-carrot": "Vegetables"}.get,
            name_lookup={"p-carrot": "Carrot"}.get,
        )
        assert ranked[0].category == "Vegetables"
        assert ranked[0].name == "Carrot"

    def test_placeholder_name(self):
        ranked = rank_top_sellers([_delivered(make_item("p9", 1))])
        assert ranked[0].name == "Product p9"

    def test_empty(self):
        assert rank_top_sellers([]) == []

    @pytest.mark.parametrize("blank", ["", "   ", "null", "Undefined"])
    def test_blank_filter_means_no_filter(self, blank):
        orders = [_delivered(make_item("a", 3, category="Fruits"), make_item("b", 1))]
        ranked = rank_top_sellers(orders, category_filter=blank)
        assert [p.product_id for p in ranked] == ["a", "b"]
