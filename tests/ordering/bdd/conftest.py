"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.shared.errors import ConflictError
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for the domain error raised by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Cart Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="cart")
def empty_cart():
    return ShoppingCart.create(user_id="user-001")


@given(parsers.cfparse("an empty cart with shipping cost {cost:f}"), target_fixture="cart")
def empty_cart_with_shipping(cost):
    return ShoppingCart.create(user_id="user-001", shipping_cost=cost)


@given(parsers.cfparse('the cart holds {qty:d} of "{product_id}" at {price:f}'), target_fixture="cart")
def cart_holds(cart, qty, product_id, price):
    cart.add_item(product_id, f"Product {product_id}", price, qty)
    return cart


@given(parsers.cfparse('the cart pays by "{method}"'), target_fixture="cart")
def cart_pays_by(cart, method):
    cart.select_payment_method(method)
    return cart


# ---------------------------------------------------------------------------
# Order Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an order paid by "{method}"'), target_fixture="order")
def order_paid_by(place_order, method):
    return place_order(payment_method=method)


@given(parsers.cfparse('the order status was changed to "{status}"'), target_fixture="order")
def order_status_was_changed(order, status):
    order.update_status(status)
    return order


# ---------------------------------------------------------------------------
# Shared Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_one_line(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.items) == count


@then("the action fails with a validation error")
def fails_with_validation_error(error):
    assert isinstance(error["exc"], ValidationError)


@then("the action is refused")
def action_is_refused(error):
    assert isinstance(error["exc"], ConflictError)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the order is paid")
def order_is_paid(order):
    assert order.is_paid is True
    assert order.payment_status == "paid"


@then("the order is not paid")
def order_is_not_paid(order):
    assert order.is_paid is False
    assert order.payment_status == "pending"
