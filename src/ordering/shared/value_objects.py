"""Value objects shared by the ShoppingCart and Order aggregates."""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String

from ordering.domain import ordering


class PaymentMethod(Enum):
    CASH = "cash"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CARD = "card"


def normalize_payment_method(value):
    """Lower-case and validate a payment method; returns the stored value."""
    if value is None or not str(value).strip():
        raise ValidationError({"payment_method": ["Payment method is required"]})

    method = str(value).strip().lower()
    if method not in {m.value for m in PaymentMethod}:
        raise ValidationError({"payment_method": ["Payment method is either: cash, paypal, stripe, or card"]})
    return method


@ordering.value_object
class ShippingAddress:
    """Where an order ships to, captured at checkout.

    Once recorded on an Order the address never changes, whatever happens to
    the customer's saved addresses later.
    """

    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=50)
    country = String(required=True, max_length=100)
    city = String(required=True, max_length=100)
    street = String(required=True, max_length=255)
    postal_code = String(required=True, max_length=20)
    notes = String(max_length=500, default="")


@ordering.value_object
class PaymentDetails:
    """Payment reference recorded on an order. No gateway is called."""

    provider = String(max_length=50)
    payment_id = String(max_length=255)
    payer_email = String(max_length=254)
    card_last4 = String(max_length=4, default="0000")
    receipt_url = String(max_length=1000, default="")


@ordering.value_object
class VariantSelection:
    """The purchasable configuration of a product chosen for a line.

    Two lines hold the same variant when their selections are equal field by
    field.
    """

    variant_id = Identifier()
    name = String(max_length=255)
    sku = String(max_length=50)
    color = String(max_length=50)
    size = String(max_length=50)
    price = Float(min_value=0.0)

    @classmethod
    def build(cls, data):
        """Build a selection from a dict, or return None when nothing was chosen."""
        if not data:
            return None
        if isinstance(data, cls):
            return data

        fields = {key: data.get(key) for key in ("variant_id", "name", "sku", "color", "size", "price")}
        for key in ("name", "color", "size"):
            if fields[key] is not None:
                fields[key] = str(fields[key]).strip()
        if fields["sku"] is not None:
            fields["sku"] = str(fields["sku"]).strip().upper()
        if fields["variant_id"] is not None:
            fields["variant_id"] = str(fields["variant_id"])
        return cls(**fields)
