"""Read-only order analytics.

Plain functions over a sequence of Order aggregates. Callers load the orders
through ``OrderRepository`` (deleted orders are never included) and pass them
in; nothing here writes to the store.
"""

from collections import defaultdict
from datetime import datetime

from protean.exceptions import ObjectNotFoundError

from ordering.order.order import OrderStatus
from ordering.shared.money import line_total, round_money
from ordering.shared.value_objects import normalize_payment_method

DEFAULT_TOP_LIMIT = 10

# Expected years a customer keeps buying, for the lifetime value estimate
ESTIMATED_LIFESPAN_YEARS = 2

SECONDS_PER_DAY = 24 * 60 * 60


def _within(moment: datetime | None, start=None, end=None) -> bool:
    if moment is None:
        return False
    if start and moment < start:
        return False
    if end and moment > end:
        return False
    return True


def revenue_report(orders, start=None, end=None, payment_method=None) -> dict:
    """Revenue over paid orders, filtered by payment date and method.

    Raises ObjectNotFoundError when no paid order matches the filters.
    """
    method = normalize_payment_method(payment_method) if payment_method else None

    paid = [
        order
        for order in orders
        if order.is_paid
        and (order.total_amount or 0) > 0
        and ((start is None and end is None) or _within(order.paid_at, start, end))
        and (method is None or order.payment_method == method)
    ]
    if not paid:
        raise ObjectNotFoundError({"orders": ["No paid orders found with these filters"]})

    total = round_money(sum(order.total_amount for order in paid))
    highest = max(paid, key=lambda order: order.total_amount)

    monthly = defaultdict(float)
    by_method = defaultdict(lambda: {"count": 0, "total": 0.0})
    for order in paid:
        monthly[order.paid_at.strftime("%Y-%m")] += order.total_amount
        by_method[order.payment_method]["count"] += 1
        by_method[order.payment_method]["total"] += order.total_amount

    return {
        "total_revenue": total,
        "average_order_value": round_money(total / len(paid)),
        "paid_orders_count": len(paid),
        "highest_order": {
            "order_id": str(highest.id),
            "user_id": highest.user_id,
            "total_amount": highest.total_amount,
            "paid_at": highest.paid_at,
            "item_count": len(highest.items),
        },
        "monthly_breakdown": {month: round_money(amount) for month, amount in sorted(monthly.items())},
        "by_payment_method": {
            name: {"count": summary["count"], "total": round_money(summary["total"])}
            for name, summary in by_method.items()
        },
        "filters": {
            "start_date": start,
            "end_date": end,
            "payment_method": method or "all",
        },
    }


def orders_count_by_status(orders) -> dict:
    """Count of orders in every known status, including the empty ones."""
    breakdown = {status.value: 0 for status in OrderStatus}
    for order in orders:
        if order.status in breakdown:
            breakdown[order.status] += 1
    return {"total_orders": sum(breakdown.values()), "breakdown": breakdown}


def top_selling_products(orders, limit=DEFAULT_TOP_LIMIT, start=None, end=None) -> list[dict]:
    """Products ranked by units sold across paid orders."""
    products = {}
    for order in orders:
        if not order.is_paid:
            continue
        if (start or end) and not _within(order.created_at, start, end):
            continue
        for item in order.items:
            entry = products.setdefault(
                str(item.product_id),
                {
                    "product_id": str(item.product_id),
                    "name": item.name,
                    "image": item.image,
                    "total_sold": 0,
                    "total_revenue": 0.0,
                },
            )
            entry["total_sold"] += item.quantity
            entry["total_revenue"] = round_money(entry["total_revenue"] + line_total(item.price, item.quantity))

    ranked = sorted(products.values(), key=lambda entry: (-entry["total_sold"], -entry["total_revenue"]))
    return ranked[: max(int(limit), 0)]


def top_customers(orders, limit=DEFAULT_TOP_LIMIT, start=None, end=None) -> list[dict]:
    """Customers ranked by total spend across paid orders. Guests are keyed by email."""
    customers = {}
    for order in orders:
        if not order.is_paid:
            continue
        if (start or end) and not _within(order.created_at, start, end):
            continue

        if order.user_id:
            key = ("user", str(order.user_id))
            template = {"user_id": str(order.user_id), "guest_email": None, "is_guest": False, "name": None}
        else:
            key = ("guest", order.guest_email)
            template = {"user_id": None, "guest_email": order.guest_email, "is_guest": True, "name": order.guest_name}

        entry = customers.setdefault(key, {**template, "total_spent": 0.0, "order_count": 0})
        entry["total_spent"] = round_money(entry["total_spent"] + order.total_amount)
        entry["order_count"] += 1

    ranked = sorted(customers.values(), key=lambda entry: -entry["total_spent"])
    return ranked[: max(int(limit), 0)]


def most_reviewed_products(reviews, limit=DEFAULT_TOP_LIMIT) -> list[dict]:
    """Products ranked by review count, then by average rating."""
    ratings = defaultdict(list)
    for review in reviews:
        ratings[str(review.product_id)].append(review.rating)

    ranked = [
        {
            "product_id": product_id,
            "total_reviews": len(scores),
            "avg_rating": round(sum(scores) / len(scores), 2),
        }
        for product_id, scores in ratings.items()
    ]
    ranked.sort(key=lambda entry: (-entry["total_reviews"], -entry["avg_rating"]))
    return ranked[: max(int(limit), 0)]


def _paid_orders_by_user(orders) -> dict[str, list]:
    """Paid orders of registered customers, grouped per user, oldest first."""
    by_user = defaultdict(list)
    for order in orders:
        if order.is_paid and order.user_id:
            by_user[str(order.user_id)].append(order)
    for placed in by_user.values():
        placed.sort(key=lambda order: order.created_at)
    return by_user


def customer_lifetime_values(orders, lifespan_years=ESTIMATED_LIFESPAN_YEARS) -> list[dict]:
    """Estimated lifetime value per registered customer, highest first.

    The estimate is average order value × purchase frequency × expected
    lifespan in years. Guests have no lasting identity and are left out.
    """
    values = []
    for user_id, placed in _paid_orders_by_user(orders).items():
        spent = sum(order.total_amount for order in placed)
        average = spent / len(placed)
        values.append(
            {
                "user_id": user_id,
                "order_count": len(placed),
                "total_spent": round_money(spent),
                "average_order_value": round_money(average),
                "clv": round_money(average * len(placed) * lifespan_years),
            }
        )
    return sorted(values, key=lambda entry: -entry["clv"])


def avg_time_between_orders(orders) -> list[dict]:
    """Mean gap in days between consecutive paid orders, for customers with two or more."""
    results = []
    for user_id, placed in _paid_orders_by_user(orders).items():
        if len(placed) < 2:
            continue
        gaps = [
            (later.created_at - earlier.created_at).total_seconds() / SECONDS_PER_DAY
            for earlier, later in zip(placed, placed[1:])
        ]
        results.append(
            {
                "user_id": user_id,
                "order_count": len(placed),
                "avg_days_between_orders": round(sum(gaps) / len(gaps), 1),
            }
        )
    return sorted(results, key=lambda entry: entry["avg_days_between_orders"])
