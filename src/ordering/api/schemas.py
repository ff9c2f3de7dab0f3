"""Pydantic request schemas for the Ordering API.

These are external contracts, kept separate from the internal Protean
commands. Guest callers may put ``guest_email`` in the body of any mutation.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    full_name: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=50)
    country: str = Field(..., max_length=100)
    city: str = Field(..., max_length=100)
    street: str = Field(..., max_length=255)
    postal_code: str = Field(..., max_length=20)
    notes: str = ""


class PaymentDetailsSchema(BaseModel):
    provider: str | None = None
    payment_id: str | None = None
    payer_email: str | None = Field(None, max_length=254)
    card_last4: str | None = None
    receipt_url: str | None = None


class GuestRequest(BaseModel):
    guest_email: str | None = Field(None, max_length=254)


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(GuestRequest):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=100)
    variant: list[str] | str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                    "variant": ["var-red-m"],
                    "guest_email": "jane.doe@example.com",
                }
            ]
        }
    }


class UpdateCartItemRequest(GuestRequest):
    quantity: int = Field(..., ge=1, le=100)


class SelectPaymentMethodRequest(GuestRequest):
    payment_method: str


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(GuestRequest):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    shipping_address: ShippingAddressSchema
    payment_method: str
    payment_details: PaymentDetailsSchema | None = None
    guest_name: str | None = Field(None, max_length=255)


class ConvertCartRequest(GuestRequest):
    shipping_address: ShippingAddressSchema
    payment_method: str | None = None
    payment_details: PaymentDetailsSchema | None = None
    guest_name: str | None = Field(None, max_length=255)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "full_name": "Jane Doe",
                        "phone": "+1-555-0100",
                        "country": "US",
                        "city": "Springfield",
                        "street": "123 Main St",
                        "postal_code": "62704",
                    },
                    "payment_method": "card",
                    "payment_details": {"card_last4": "4242"},
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    notes: str | None = None


class AdminNotesRequest(BaseModel):
    notes: str | None = None


class TrackingInfoRequest(BaseModel):
    tracking_number: str | None = None
    shipping_provider: str | None = None


class RateProductRequest(GuestRequest):
    product_id: str
    rating: int
    comment: str = ""
