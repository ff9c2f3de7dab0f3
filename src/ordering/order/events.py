"""Domain events for the Order aggregate.

Every status change, settlement and admin action on an order is recorded as
a versioned, immutable event.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was created, either directly or from a cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier()
    guest_email = String()
    is_guest = Boolean(required=True)
    source = String(required=True)  # "quick_order" | "cart"
    payment_method = String(required=True)
    is_paid = Boolean(required=True)
    total_amount = Float(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved from one lifecycle status to another."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """Payment was recorded on the order (admin action or cash on delivery)."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    cancelled_by = String(required=True)  # "customer" | "admin"
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderTrackingAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    shipping_provider = String(required=True)


@ordering.event(part_of="Order")
class OrderDeleted:
    """An admin soft-deleted the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    deleted_by = Identifier()
    deleted_at = DateTime(required=True)
