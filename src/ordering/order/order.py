"""Order aggregate (CQRS): the lifecycle of a placed order.

An order holds an immutable snapshot of what was bought, where it ships and
how it is paid. Lines, prices and the total are captured at creation time
and never re-derived from the live catalogue.

State Machine (5 states):
    PROCESSING → CONFIRMED → SHIPPED → DELIVERED (forward only, steps may be skipped)
    CANCELLED (from PROCESSING only via status update; admin/customer paths below)
    DELIVERED and CANCELLED are terminal.

Payment runs alongside the status: non-cash orders are paid at creation,
cash orders settle when they are delivered.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderDeleted,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderStatusChanged,
    OrderTrackingAdded,
)
from ordering.shared.errors import ConflictError
from ordering.shared.money import round_money
from ordering.shared.value_objects import (
    PaymentDetails,
    PaymentMethod,
    ShippingAddress,
    VariantSelection,
    normalize_payment_method,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderSource(Enum):
    QUICK_ORDER = "quick_order"
    CART = "cart"


_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Forward order of the fulfillment chain. Updates may skip ahead but never move back.
_STATUS_RANK = {
    OrderStatus.PROCESSING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.DELIVERED: 3,
}

# Once an order is confirmed, a status update can no longer cancel it
_NON_CANCELLABLE_STATES = {
    OrderStatus.CONFIRMED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
}

ESTIMATED_DELIVERY_DAYS = 3

_ADDRESS_FIELDS = ("full_name", "phone", "country", "city", "street", "postal_code", "notes")


def parse_status(value) -> OrderStatus:
    """Case-insensitive status lookup; raises ValidationError for unknown values."""
    if value is None or not str(value).strip():
        raise ValidationError({"status": ["Please provide a new order status"]})
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError({"status": [f"Invalid status: {str(value).strip().lower()}"]}) from None


def build_shipping_address(data) -> ShippingAddress:
    if not data:
        raise ValidationError({"shipping_address": ["Shipping address is required"]})
    if isinstance(data, ShippingAddress):
        return data

    fields = {key: data.get(key) for key in _ADDRESS_FIELDS}
    fields["notes"] = fields["notes"] or ""
    missing = [key for key in _ADDRESS_FIELDS[:-1] if not fields[key]]
    if missing:
        raise ValidationError({key: ["Missing shipping address field"] for key in missing})
    return ShippingAddress(**fields)


def build_payment_details(payment_method, details=None, payer_email=None, now=None) -> PaymentDetails:
    """Payment record for a new order. A synthetic ``pay_<epoch-ms>`` id is used when none is given."""
    details = details or {}
    now = now or datetime.now(UTC)

    card = details.get("card_last4") or details.get("card")
    card_last4 = str(card)[-4:] if card else "0000"

    return PaymentDetails(
        provider=details.get("provider") or payment_method,
        payment_id=details.get("payment_id") or f"pay_{int(now.timestamp() * 1000)}",
        payer_email=details.get("payer_email") or payer_email,
        card_last4=card_last4,
        receipt_url=details.get("receipt_url") or "",
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased line, frozen at the moment the order was placed."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=1000, default="")
    variant = ValueObject(VariantSelection)


@ordering.entity(part_of="Order")
class OrderActivity:
    """Append-only audit entry."""

    action = String(required=True, max_length=100)
    actor = String(max_length=255)
    note = String(max_length=500)
    logged_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    # Ownership: a registered user or a guest, never both
    user_id = Identifier()
    is_guest = Boolean(default=False)
    guest_email = String(max_length=254)
    guest_name = String(max_length=255)

    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_details = ValueObject(PaymentDetails)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    source = String(choices=OrderSource, default=OrderSource.QUICK_ORDER.value)

    total_amount = Float(required=True, min_value=0.0)
    items_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    tax_price = Float(default=0.0)

    is_paid = Boolean(default=False)
    paid_at = DateTime()
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    is_cancelled = Boolean(default=False)
    cancelled_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()

    notes = Text()
    tracking_number = String(max_length=255)
    shipping_provider = String(max_length=100)
    activity = HasMany(OrderActivity)

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["Order must have at least one item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        ownership,
        items,
        shipping_address,
        payment_method,
        payment_details=None,
        total_amount=None,
        items_price=None,
        shipping_price=0.0,
        tax_price=0.0,
        source=OrderSource.QUICK_ORDER.value,
    ):
        """Create an order from checkout data.

        Args:
            ownership: Owner fields from ``ownership_for`` (user_id, is_guest,
                guest_email, guest_name).
            items: List of dicts with product_id, name, quantity, price,
                image and an optional variant dict.
            shipping_address: Dict or ShippingAddress.
            payment_method: One of cash, paypal, stripe, card.
            payment_details: PaymentDetails built by ``build_payment_details``.
            total_amount: Grand total; defaults to the items price.
        """
        if not items:
            raise ValidationError({"items": ["Order must have at least one item"]})

        method = normalize_payment_method(payment_method)
        address = build_shipping_address(shipping_address)
        now = datetime.now(UTC)
        is_paid = method != PaymentMethod.CASH.value

        if items_price is None:
            items_price = sum(float(item["price"]) * int(item["quantity"]) for item in items)
        if total_amount is None:
            total_amount = items_price + (shipping_price or 0.0) + (tax_price or 0.0)

        order = cls(
            user_id=ownership.get("user_id"),
            is_guest=ownership.get("is_guest", False),
            guest_email=ownership.get("guest_email"),
            guest_name=ownership.get("guest_name"),
            items=[
                OrderItem(
                    product_id=str(item["product_id"]),
                    name=item["name"],
                    quantity=item["quantity"],
                    price=item["price"],
                    image=item.get("image") or "",
                    variant=VariantSelection.build(item.get("variant")),
                )
                for item in items
            ],
            shipping_address=address,
            payment_details=payment_details or build_payment_details(method, now=now),
            payment_method=method,
            payment_status=PaymentStatus.PAID.value if is_paid else PaymentStatus.PENDING.value,
            status=OrderStatus.PROCESSING.value,
            source=source,
            total_amount=round_money(total_amount),
            items_price=round_money(items_price),
            shipping_price=round_money(shipping_price),
            tax_price=round_money(tax_price),
            is_paid=is_paid,
            paid_at=now if is_paid else None,
            created_at=now,
            updated_at=now,
        )
        order._record("Order placed", actor=ownership.get("user_id") or ownership.get("guest_email"), note=source)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=ownership.get("user_id"),
                guest_email=ownership.get("guest_email"),
                is_guest=bool(ownership.get("is_guest")),
                source=source,
                payment_method=method,
                is_paid=is_paid,
                total_amount=order.total_amount,
                item_count=len(order.items),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def _record(self, action, actor=None, note=None, now=None):
        self.add_activity(
            OrderActivity(
                action=action,
                actor=str(actor) if actor else None,
                note=note,
                logged_at=now or datetime.now(UTC),
            )
        )

    def _assert_not_deleted(self):
        if self.is_deleted:
            raise ObjectNotFoundError({"order": ["Order not found"]})

    def _settle_cash_payment(self, now):
        """Cash on delivery: record payment once the goods are handed over."""
        if self.payment_method == PaymentMethod.CASH.value and not self.is_paid:
            self._mark_payment_received(now)

    def _mark_payment_received(self, now):
        self.is_paid = True
        self.paid_at = now
        self.payment_status = PaymentStatus.PAID.value
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_method=self.payment_method,
                amount=self.total_amount,
                paid_at=now,
            )
        )

    def _enter_delivered(self, now):
        self.is_delivered = True
        self.delivered_at = now
        self._settle_cash_payment(now)
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def _enter_cancelled(self, now, cancelled_by):
        self.is_cancelled = True
        self.cancelled_at = now
        self.raise_(OrderCancelled(order_id=str(self.id), cancelled_by=cancelled_by, cancelled_at=now))

    def _change_status(self, target, now, actor=None):
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_by=str(actor) if actor else None,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status state machine
    # -------------------------------------------------------------------
    def update_status(self, new_status, notes=None, actor=None):
        """Move the order to ``new_status`` (admin). All transition rules live here."""
        self._assert_not_deleted()
        target = parse_status(new_status)
        current = self.current_status

        if current == OrderStatus.DELIVERED:
            raise ConflictError({"status": ["Delivered orders cannot be updated"]})
        if current == OrderStatus.CANCELLED:
            raise ConflictError({"status": ["Cancelled orders cannot be updated"]})
        if target == OrderStatus.CANCELLED and current in _NON_CANCELLABLE_STATES:
            raise ConflictError({"status": ["You cannot cancel an order that is already confirmed or beyond"]})
        if target == current:
            raise ConflictError({"status": ["Order already has this status"]})
        if target in _STATUS_RANK and _STATUS_RANK[target] < _STATUS_RANK[current]:
            raise ConflictError({"status": [f"Cannot move an order from {current.value} back to {target.value}"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self._change_status(target, now, actor)
            if target == OrderStatus.CANCELLED:
                self._enter_cancelled(now, cancelled_by="admin")
            if target == OrderStatus.DELIVERED:
                self._enter_delivered(now)
            if notes:
                self.notes = notes
            self._record(f"Status changed to {target.value}", actor=actor, note=notes, now=now)

    def cancel_by_customer(self, actor=None):
        """Customer cancellation. Paid orders that already shipped need an admin."""
        self._assert_not_deleted()
        current = self.current_status

        if current == OrderStatus.CANCELLED or self.is_cancelled:
            raise ConflictError({"status": ["This order has already been cancelled"]})
        if current == OrderStatus.DELIVERED or self.is_delivered:
            raise ConflictError({"status": ["Delivered orders cannot be cancelled"]})
        if current == OrderStatus.SHIPPED and self.payment_status == PaymentStatus.PAID.value:
            raise ConflictError({"status": ["Shipped and paid orders cannot be cancelled"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self._change_status(OrderStatus.CANCELLED, now, actor)
            self._enter_cancelled(now, cancelled_by="customer")
            self._record("Cancelled by customer", actor=actor, now=now)

    # -------------------------------------------------------------------
    # Admin shortcuts
    # -------------------------------------------------------------------
    def mark_paid(self, notes=None, actor=None):
        """Record payment. Payment here also confirms fulfillment: the order becomes delivered."""
        self._assert_not_deleted()
        if self.current_status == OrderStatus.CANCELLED or self.is_cancelled:
            raise ConflictError({"status": ["This order is cancelled and cannot be marked as paid"]})
        if self.is_paid:
            raise ConflictError({"is_paid": ["Order is already marked as paid"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self._mark_payment_received(now)
            if self.current_status != OrderStatus.DELIVERED:
                self._change_status(OrderStatus.DELIVERED, now, actor)
            if not self.is_delivered:
                self.is_delivered = True
                self.delivered_at = now
                self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))
            if notes:
                self.notes = notes
            self._record("Marked as paid", actor=actor, note=notes, now=now)

    def mark_delivered(self, notes=None, actor=None):
        self._assert_not_deleted()
        if self.current_status == OrderStatus.CANCELLED or self.is_cancelled:
            raise ConflictError({"status": ["This order was cancelled and cannot be marked as delivered"]})
        if self.is_delivered:
            raise ConflictError({"is_delivered": ["Order is already marked as delivered"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            if self.current_status != OrderStatus.DELIVERED:
                self._change_status(OrderStatus.DELIVERED, now, actor)
            self._enter_delivered(now)
            if notes:
                self.notes = notes
            self._record("Marked as delivered", actor=actor, note=notes, now=now)

    def mark_cancelled(self, notes=None, actor=None):
        self._assert_not_deleted()
        if self.current_status == OrderStatus.DELIVERED:
            raise ConflictError({"status": ["Delivered orders cannot be cancelled"]})
        if self.current_status == OrderStatus.CANCELLED or self.is_cancelled:
            raise ConflictError({"status": ["Order is already cancelled"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self._change_status(OrderStatus.CANCELLED, now, actor)
            self._enter_cancelled(now, cancelled_by="admin")
            if notes:
                self.notes = notes
            self._record("Marked as cancelled", actor=actor, note=notes, now=now)

    def add_tracking(self, tracking_number, shipping_provider, actor=None):
        self._assert_not_deleted()
        if not tracking_number or not shipping_provider:
            raise ValidationError({"tracking": ["Tracking number and shipping provider are required"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.tracking_number = tracking_number
            self.shipping_provider = shipping_provider
            self.updated_at = now
            self._record("Tracking info updated", actor=actor, note=f"{shipping_provider} - {tracking_number}", now=now)

        self.raise_(
            OrderTrackingAdded(
                order_id=str(self.id),
                tracking_number=tracking_number,
                shipping_provider=shipping_provider,
            )
        )

    def soft_delete(self, actor=None):
        """Hide the order from every read path. Nothing is physically removed."""
        if self.is_deleted:
            raise ConflictError({"order": ["Order already deleted"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_deleted = True
            self.deleted_at = now
            self.updated_at = now
            self._record("Order deleted", actor=actor, note="Marked as deleted by admin", now=now)

        self.raise_(OrderDeleted(order_id=str(self.id), deleted_by=str(actor) if actor else None, deleted_at=now))

    # -------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------
    def tracking_summary(self) -> dict:
        if self.current_status == OrderStatus.CANCELLED or self.is_cancelled:
            raise ConflictError({"status": ["This order was cancelled and cannot be tracked"]})

        estimated_delivery = "Pending shipment"
        if self.current_status == OrderStatus.SHIPPED:
            shipped_at = self.updated_at or self.created_at
            estimated_delivery = shipped_at + timedelta(days=ESTIMATED_DELIVERY_DAYS)

        return {
            "order_id": str(self.id),
            "status": self.status,
            "is_paid": self.is_paid,
            "is_delivered": self.is_delivered,
            "paid_at": self.paid_at,
            "delivered_at": self.delivered_at,
            "tracking_number": self.tracking_number or "Not assigned yet",
            "shipping_provider": self.shipping_provider,
            "estimated_delivery": estimated_delivery,
            "items_count": len(self.items),
            "total_amount": self.total_amount,
            "products": [
                {"name": item.name, "image": item.image, "quantity": item.quantity, "price": item.price}
                for item in self.items
            ],
        }

    def contains_product(self, product_id) -> bool:
        return any(str(item.product_id) == str(product_id) for item in self.items)
