"""Tests for the customer analytics reports."""

from datetime import UTC, datetime

import pytest
from ordering.analytics.customers import customer_analytics, customer_lifetime_value
from protean.exceptions import ObjectNotFoundError

SAM = {"user_id": "user-002", "is_guest": False, "guest_email": None, "guest_name": None}
GUEST = {"user_id": None, "is_guest": True, "guest_email": "guest@example.com", "guest_name": "Pat Guest"}


@pytest.fixture()
def orders(place_order):
    """Jane buys three times, Sam once plus an unpaid cash order, a guest once."""
    placed = [
        (place_order(price=10.0, quantity=2), datetime(2026, 1, 5, tzinfo=UTC)),
        (place_order(price=10.0, quantity=1), datetime(2026, 2, 2, tzinfo=UTC)),
        (place_order(price=15.0, quantity=1, ownership=SAM), datetime(2026, 2, 10, tzinfo=UTC)),
        (place_order(price=10.0, quantity=3), datetime(2026, 2, 20, tzinfo=UTC)),
        (place_order(price=5.0, quantity=1, ownership=GUEST), datetime(2026, 3, 1, tzinfo=UTC)),
        (place_order(payment_method="cash", price=100.0, quantity=1, ownership=SAM), datetime(2026, 3, 3, tzinfo=UTC)),
    ]
    for order, created_at in placed:
        order.created_at = created_at
    return [order for order, _ in placed]


class TestCustomerAnalytics:
    def test_top_spenders(self, orders):
        spenders = customer_analytics(orders)["top_spenders"]

        assert [entry["user_id"] for entry in spenders] == ["user-001", "user-002", None]
        assert spenders[0]["total_spent"] == 60.0
        assert spenders[0]["order_count"] == 3
        assert spenders[0]["average_order_value"] == 20.0
        assert spenders[2]["guest_email"] == "guest@example.com"

    def test_top_limit(self, orders):
        assert len(customer_analytics(orders, top=1)["top_spenders"]) == 1

    def test_segmentation_by_purchase_frequency(self, orders):
        assert customer_analytics(orders)["segmentation"] == [
            {"order_count": "1-2", "customers": 2, "total_revenue": 20.0, "avg_order_value": 10.0},
            {"order_count": "3-4", "customers": 1, "total_revenue": 60.0, "avg_order_value": 20.0},
        ]

    def test_monthly_retention_counts_every_order(self, orders):
        assert customer_analytics(orders)["retention"] == [
            {"month": "2026-01", "new_customers": 1, "returning_customers": 0},
            {"month": "2026-02", "new_customers": 1, "returning_customers": 1},
            {"month": "2026-03", "new_customers": 1, "returning_customers": 1},
        ]

    def test_no_orders(self):
        assert customer_analytics([]) == {"top_spenders": [], "segmentation": [], "retention": []}


class TestCustomerLifetimeValue:
    def test_summary(self, orders):
        value = customer_lifetime_value(orders, "user-001", now=datetime(2026, 3, 6, 12, tzinfo=UTC))

        assert value["total_spent"] == 60.0
        assert value["order_count"] == 3
        assert value["average_order_value"] == 20.0
        assert value["customer_since"] == datetime(2026, 1, 5, tzinfo=UTC)
        assert value["last_purchase"] == datetime(2026, 2, 20, tzinfo=UTC)
        assert value["days_as_customer"] == 60.5

    def test_unpaid_orders_do_not_count(self, orders):
        value = customer_lifetime_value(orders, "user-002")
        assert value["order_count"] == 1
        assert value["total_spent"] == 15.0

    def test_customer_without_paid_orders(self, orders):
        with pytest.raises(ObjectNotFoundError):
            customer_lifetime_value(orders, "user-404")
