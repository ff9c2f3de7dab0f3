"""Application tests for cart conversion and quick orders."""

import json

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.conversion import ConvertCartToOrder
from ordering.cart.items import AddToCart
from ordering.cart.management import SelectPaymentMethod
from ordering.order.creation import PlaceOrder
from ordering.order.order import Order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

JANE = {"user_id": "user-001", "user_email": "jane@example.com"}
GUEST = {"guest_email": "guest@example.com"}


def _fill_cart(requester, payment_method="card"):
    cart_id = current_domain.process(AddToCart(product_id="prod-001", quantity=2, **requester), asynchronous=False)
    current_domain.process(AddToCart(product_id="prod-002", quantity=1, **requester), asynchronous=False)
    if payment_method:
        current_domain.process(SelectPaymentMethod(payment_method=payment_method, **requester), asynchronous=False)
    return cart_id


def _convert(shipping_address, requester, **kwargs):
    return current_domain.process(
        ConvertCartToOrder(shipping_address=json.dumps(shipping_address), **requester, **kwargs),
        asynchronous=False,
    )


class TestConvertCartCommand:
    def test_order_and_cart_are_stored(self, shipping_address):
        cart_id = _fill_cart(JANE)
        order_id = _convert(shipping_address, JANE)

        order = current_domain.repository_for(Order).get(order_id)
        cart = current_domain.repository_for(ShoppingCart).get(cart_id)

        assert order.total_amount == 25.0
        assert order.user_id == "user-001"
        assert order.payment_details.payer_email == "jane@example.com"
        assert cart.is_converted is True
        assert cart.order_id == order_id

    def test_guest_conversion(self, shipping_address):
        _fill_cart(GUEST, payment_method="cash")
        order_id = _convert(shipping_address, GUEST, guest_name="Pat Guest")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_guest is True
        assert order.guest_email == "guest@example.com"
        assert order.guest_name == "Pat Guest"
        assert order.is_paid is False

    def test_payment_details_payload(self, shipping_address):
        _fill_cart(JANE)
        order_id = _convert(
            shipping_address,
            JANE,
            payment_details=json.dumps({"payment_id": "ch_999", "card_last4": "4242"}),
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.payment_details.payment_id == "ch_999"
        assert order.payment_details.card_last4 == "4242"

    def test_second_conversion_finds_no_active_cart(self, shipping_address):
        _fill_cart(JANE)
        _convert(shipping_address, JANE)
        with pytest.raises(ObjectNotFoundError):
            _convert(shipping_address, JANE)
        assert len(current_domain.repository_for(Order).all_visible()) == 1

    def test_missing_payment_method_stores_nothing(self, shipping_address):
        cart_id = _fill_cart(JANE, payment_method=None)
        with pytest.raises(ValidationError):
            _convert(shipping_address, JANE)
        assert current_domain.repository_for(ShoppingCart).get(cart_id).is_converted is False
        assert current_domain.repository_for(Order).all_visible() == []

    def test_malformed_address_payload(self):
        _fill_cart(JANE)
        with pytest.raises(ValidationError):
            current_domain.process(ConvertCartToOrder(shipping_address="{not json", **JANE), asynchronous=False)


class TestPlaceOrderCommand:
    def _place(self, shipping_address, product_id="prod-001", quantity=1, payment_method="card", **requester):
        return current_domain.process(
            PlaceOrder(
                product_id=product_id,
                quantity=quantity,
                shipping_address=json.dumps(shipping_address),
                payment_method=payment_method,
                **(requester or JANE),
            ),
            asynchronous=False,
        )

    def test_quick_order(self, shipping_address):
        order = current_domain.repository_for(Order).get(self._place(shipping_address, quantity=3))
        assert order.source == "quick_order"
        assert order.total_amount == 30.0
        assert order.items[0].name == "Linen Shirt"
        assert order.is_paid is True

    def test_guest_quick_order(self, shipping_address):
        order_id = self._place(shipping_address, payment_method="cash", guest_email="Guest@Example.com")
        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_guest is True
        assert order.guest_email == "guest@example.com"
        assert order.guest_name == "Guest User"
        assert order.payment_status == "pending"

    def test_unknown_product(self, shipping_address):
        with pytest.raises(ObjectNotFoundError):
            self._place(shipping_address, product_id="prod-missing")

    def test_inactive_product(self, shipping_address):
        with pytest.raises(ValidationError):
            self._place(shipping_address, product_id="prod-retired")

    def test_insufficient_stock(self, shipping_address):
        with pytest.raises(ValidationError) as exc:
            self._place(shipping_address, product_id="prod-002", quantity=4)
        assert "quantity" in exc.value.messages

    def test_invalid_payment_method(self, shipping_address):
        with pytest.raises(ValidationError):
            self._place(shipping_address, payment_method="barter")
