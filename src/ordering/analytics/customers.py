"""Read-only customer analytics.

A customer is a registered user or, for guest orders, a guest email. Like the
order reports, these take already loaded Order aggregates and never write.
"""

from collections import defaultdict
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError

from ordering.analytics.reports import DEFAULT_TOP_LIMIT, SECONDS_PER_DAY
from ordering.shared.money import round_money

# (fewest orders, most orders, label); None means unbounded
PURCHASE_SEGMENTS = (
    (1, 2, "1-2"),
    (3, 4, "3-4"),
    (5, 9, "5-9"),
    (10, None, "10+"),
)


def _customer_key(order) -> tuple:
    if order.user_id:
        return ("user", str(order.user_id))
    return ("guest", order.guest_email)


def _customer_fields(order) -> dict:
    if order.user_id:
        return {"user_id": str(order.user_id), "guest_email": None, "is_guest": False}
    return {"user_id": None, "guest_email": order.guest_email, "is_guest": True}


def _spend_per_customer(orders) -> list[dict]:
    spend = {}
    for order in orders:
        if not order.is_paid:
            continue
        entry = spend.setdefault(
            _customer_key(order),
            {**_customer_fields(order), "total_spent": 0.0, "order_count": 0},
        )
        entry["total_spent"] = round_money(entry["total_spent"] + order.total_amount)
        entry["order_count"] += 1

    for entry in spend.values():
        entry["average_order_value"] = round_money(entry["total_spent"] / entry["order_count"])
    return list(spend.values())


def _segmentation(spend) -> list[dict]:
    segments = []
    for fewest, most, label in PURCHASE_SEGMENTS:
        members = [
            entry
            for entry in spend
            if entry["order_count"] >= fewest and (most is None or entry["order_count"] <= most)
        ]
        if not members:
            continue
        segments.append(
            {
                "order_count": label,
                "customers": len(members),
                "total_revenue": round_money(sum(entry["total_spent"] for entry in members)),
                "avg_order_value": round_money(sum(entry["average_order_value"] for entry in members) / len(members)),
            }
        )
    return segments


def _retention(orders) -> list[dict]:
    """Per month: customers ordering for the first time and customers coming back."""
    first_month = {}
    active = defaultdict(set)
    for order in sorted(orders, key=lambda order: order.created_at):
        month = order.created_at.strftime("%Y-%m")
        key = _customer_key(order)
        first_month.setdefault(key, month)
        active[month].add(key)

    return [
        {
            "month": month,
            "new_customers": sum(1 for key in customers if first_month[key] == month),
            "returning_customers": sum(1 for key in customers if first_month[key] < month),
        }
        for month, customers in sorted(active.items())
    ]


def customer_analytics(orders, top=DEFAULT_TOP_LIMIT) -> dict:
    """Top spenders and purchase-frequency segments over paid orders, and monthly retention over all orders."""
    spend = _spend_per_customer(orders)
    return {
        "top_spenders": sorted(spend, key=lambda entry: -entry["total_spent"])[: max(int(top), 0)],
        "segmentation": _segmentation(spend),
        "retention": _retention(orders),
    }


def customer_lifetime_value(orders, user_id, now: datetime | None = None) -> dict:
    """Spend summary for one registered customer.

    Raises ObjectNotFoundError when the customer has no paid order.
    """
    placed = [order for order in orders if order.is_paid and order.user_id and str(order.user_id) == str(user_id)]
    if not placed:
        raise ObjectNotFoundError({"orders": ["No orders found for this customer"]})

    now = now or datetime.now(UTC)
    first = min(order.created_at for order in placed)
    spent = sum(order.total_amount for order in placed)
    return {
        "user_id": str(user_id),
        "total_spent": round_money(spent),
        "order_count": len(placed),
        "average_order_value": round_money(spent / len(placed)),
        "customer_since": first,
        "last_purchase": max(order.created_at for order in placed),
        "days_as_customer": round((now - first).total_seconds() / SECONDS_PER_DAY, 1),
    }
