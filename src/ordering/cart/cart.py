"""Shopping Cart aggregate (CQRS): a customer's or guest's cart that converts to an Order at checkout.

The cart keeps a price/name snapshot per line, recomputes its totals after
every mutation and becomes read-only once it has been converted. Totals are
derived by ``compute_totals``, called explicitly from every mutator.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.cart.events import (
    CartCleared,
    CartConverted,
    CartItemAdded,
    CartItemRemoved,
    CartPaymentMethodSelected,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from ordering.order.order import Order, OrderSource, build_payment_details, build_shipping_address
from ordering.shared.errors import ConflictError
from ordering.shared.money import round_money
from ordering.shared.requester import Authenticated, normalize_email, ownership_for
from ordering.shared.value_objects import PaymentMethod, VariantSelection, normalize_payment_method

MAX_CART_LINES = 50
MAX_LINE_QUANTITY = 100
CART_LIFETIME = timedelta(days=30)


def _variant_key(variant):
    return variant.to_dict() if variant else None


def compute_totals(items, shipping_cost=0.0):
    """Return ``(subtotal, total_amount)`` for a set of lines, rounded to 2 decimals.

    Every line needs a non-zero price and quantity.
    """
    subtotal = Decimal("0")
    for item in items:
        if not item.price or not item.quantity:
            raise ValidationError({"items": ["Each cart item must have a price and a quantity"]})
        subtotal += Decimal(str(item.price)) * int(item.quantity)

    subtotal = round_money(subtotal)
    return subtotal, round_money(Decimal(str(subtotal)) + Decimal(str(shipping_cost or 0.0)))


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=1000, default="")
    variant = ValueObject(VariantSelection)
    added_at = DateTime()

    def is_same_line(self, product_id, variant) -> bool:
        return str(self.product_id) == str(product_id) and _variant_key(self.variant) == _variant_key(variant)

    def matches_variant(self, variant_id) -> bool:
        return self.variant is not None and str(self.variant.variant_id) == str(variant_id)


@ordering.aggregate
class ShoppingCart:
    user_id = Identifier()  # Null for guest carts
    is_guest = Boolean(default=False)
    guest_email = String(max_length=254)
    items = HasMany(CartItem)
    payment_method = String(choices=PaymentMethod)
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0)
    is_converted = Boolean(default=False)
    order_id = Identifier()
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_cannot_exceed_line_limit(self):
        if len(self.items or []) > MAX_CART_LINES:
            raise ValidationError({"items": [f"A cart can hold at most {MAX_CART_LINES} items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None, guest_email=None, shipping_cost=0.0):
        guest_email = normalize_email(guest_email)
        if bool(user_id) == bool(guest_email):
            raise ValidationError({"cart": ["A cart belongs to either a user or a guest email"]})

        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            is_guest=not user_id,
            guest_email=None if user_id else guest_email,
            shipping_cost=shipping_cost or 0.0,
            subtotal=0.0,
            total_amount=round_money(shipping_cost or 0.0),
            created_at=now,
            updated_at=now,
            expires_at=now + CART_LIFETIME,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def is_expired(self, now=None) -> bool:
        now = now or datetime.now(UTC)
        return self.expires_at is not None and self.expires_at <= now

    def _assert_mutable(self):
        if self.is_converted:
            raise ConflictError({"cart": ["Cart has already been converted to an order"]})

    def _touch(self):
        now = datetime.now(UTC)
        self.updated_at = now
        self.expires_at = now + CART_LIFETIME

    def calculate_totals(self):
        self.subtotal, self.total_amount = compute_totals(self.items, self.shipping_cost)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, price, quantity, image="", variant=None):
        """Add a line, or increase the quantity of the same product and variant."""
        self._assert_mutable()
        if not price or not quantity:
            raise ValidationError({"items": ["Each cart item must have a price and a quantity"]})

        variant = VariantSelection.build(variant)
        existing = next((i for i in self.items if i.is_same_line(product_id, variant)), None)

        if existing:
            existing.quantity += quantity
            item = existing
        else:
            if len(self.items) >= MAX_CART_LINES:
                raise ValidationError({"items": [f"A cart can hold at most {MAX_CART_LINES} items"]})
            item = CartItem(
                product_id=str(product_id),
                name=name,
                price=price,
                quantity=quantity,
                image=image or "",
                variant=variant,
                added_at=datetime.now(UTC),
            )
            self.add_items(item)

        self.calculate_totals()
        self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variant_id=str(variant.variant_id) if variant and variant.variant_id else None,
                quantity=quantity,
                line_quantity=item.quantity,
                subtotal=self.subtotal,
            )
        )
        return item

    def _find_for_removal(self, item_id):
        """Line id first, then product id, then variant id."""
        item_id = str(item_id)
        return (
            next((i for i in self.items if str(i.id) == item_id), None)
            or next((i for i in self.items if str(i.product_id) == item_id), None)
            or next((i for i in self.items if i.matches_variant(item_id)), None)
        )

    def _find_for_update(self, item_id):
        item_id = str(item_id)
        return next((i for i in self.items if str(i.product_id) == item_id), None) or next(
            (i for i in self.items if i.matches_variant(item_id)), None
        )

    def remove_item(self, item_id):
        self._assert_mutable()
        item = self._find_for_removal(item_id)
        if item is None:
            raise ObjectNotFoundError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.calculate_totals()
        self._touch()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                subtotal=self.subtotal,
            )
        )

    def update_item_quantity(self, item_id, new_quantity):
        self._assert_mutable()
        item = self._find_for_update(item_id)
        if item is None:
            raise ObjectNotFoundError({"item_id": ["Item not found in cart"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.calculate_totals()
        self._touch()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
                subtotal=self.subtotal,
            )
        )

    def clear(self):
        self._assert_mutable()
        removed = list(self.items)
        if removed:
            self.remove_items(removed)
        self.calculate_totals()
        self._touch()

        self.raise_(CartCleared(cart_id=str(self.id), removed_count=len(removed)))

    def select_payment_method(self, payment_method):
        self._assert_mutable()
        self.payment_method = normalize_payment_method(payment_method)
        self._touch()

        self.raise_(CartPaymentMethodSelected(cart_id=str(self.id), payment_method=self.payment_method))

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def can_convert_to_order(self, payment_method=None) -> bool:
        """Raise if the cart cannot be checked out; never mutates the cart."""
        if self.is_converted:
            raise ConflictError({"cart": ["Cart has already been converted to an order"]})
        if not self.items:
            raise ValidationError({"items": ["Cart is empty"]})
        if not (payment_method or self.payment_method):
            raise ValidationError({"payment_method": ["Please select a payment method"]})
        for item in self.items:
            if not item.product_id or not item.quantity or not item.price:
                raise ValidationError({"items": ["Each cart item must have a product, a quantity and a price"]})
        return True

    def convert_to_order(self, requester, shipping_address, payment_method=None, payment_details=None, guest_name=None):
        """Check out the cart and return the new Order.

        The cart is only marked converted once the order has been built, so a
        failed attempt leaves it unchanged. The caller persists both aggregates
        in the same unit of work.
        """
        method = normalize_payment_method(payment_method) if payment_method else self.payment_method
        self.can_convert_to_order(payment_method=method)
        address = build_shipping_address(shipping_address)
        subtotal, total = compute_totals(self.items, self.shipping_cost)

        now = datetime.now(UTC)
        owner_email = requester.email if isinstance(requester, Authenticated) else self.guest_email
        details = build_payment_details(method, payment_details, payer_email=owner_email, now=now)

        order = Order.place(
            ownership=ownership_for(
                requester,
                guest_email=self.guest_email,
                payer_email=details.payer_email,
                guest_name=guest_name,
            ),
            items=[
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "price": item.price,
                    "image": item.image,
                    "variant": item.variant,
                }
                for item in self.items
            ],
            shipping_address=address,
            payment_method=method,
            payment_details=details,
            total_amount=total,
            items_price=subtotal,
            shipping_price=self.shipping_cost,
            source=OrderSource.CART.value,
        )

        self.payment_method = method
        self.subtotal = subtotal
        self.total_amount = total
        self.is_converted = True
        self.order_id = str(order.id)
        self.updated_at = now

        self.raise_(
            CartConverted(
                cart_id=str(self.id),
                order_id=str(order.id),
                user_id=self.user_id,
                guest_email=self.guest_email,
                total_amount=total,
                item_count=len(self.items),
                converted_at=now,
            )
        )
        return order
