"""Tests for the Order status state machine."""

import pytest
from ordering.order.events import OrderCancelled, OrderDelivered, OrderPaid, OrderStatusChanged
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.shared.errors import ConflictError
from protean.exceptions import ValidationError


class TestTransitions:
    def test_forward_progression(self, place_order):
        order = place_order()
        order.update_status("confirmed")
        order.update_status("shipped")
        order.update_status("delivered")
        assert order.status == OrderStatus.DELIVERED.value
        assert order.is_delivered is True
        assert order.delivered_at is not None

    def test_status_input_is_case_insensitive(self, place_order):
        order = place_order()
        order.update_status("  CONFIRMED ")
        assert order.status == "confirmed"

    def test_unknown_status(self, place_order):
        order = place_order()
        with pytest.raises(ValidationError):
            order.update_status("lost")
        assert order.status == OrderStatus.PROCESSING.value

    def test_missing_status(self, place_order):
        order = place_order()
        with pytest.raises(ValidationError):
            order.update_status("")

    def test_noop_transition(self, place_order):
        order = place_order()
        with pytest.raises(ConflictError):
            order.update_status("processing")

    @pytest.mark.parametrize("target", ["processing", "confirmed", "shipped", "cancelled", "delivered"])
    def test_delivered_accepts_nothing(self, place_order, target):
        order = place_order()
        order.update_status("delivered")
        with pytest.raises(ConflictError):
            order.update_status(target)

    @pytest.mark.parametrize("path", [["confirmed"], ["confirmed", "shipped"]])
    def test_cannot_cancel_after_confirmation(self, place_order, path):
        order = place_order()
        for status in path:
            order.update_status(status)
        with pytest.raises(ConflictError):
            order.update_status("cancelled")
        assert order.is_cancelled is False

    @pytest.mark.parametrize(
        "path, target",
        [
            (["confirmed"], "processing"),
            (["shipped"], "processing"),
            (["confirmed", "shipped"], "confirmed"),
        ],
    )
    def test_status_never_moves_backward(self, place_order, path, target):
        order = place_order()
        for status in path:
            order.update_status(status)
        with pytest.raises(ConflictError):
            order.update_status(target)
        assert order.status == path[-1]

    def test_forward_steps_may_be_skipped(self, place_order):
        order = place_order()
        order.update_status("shipped")
        assert order.status == OrderStatus.SHIPPED.value

    def test_cancel_from_processing(self, place_order):
        order = place_order()
        order.update_status("cancelled")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.is_cancelled is True
        assert order.cancelled_at is not None
        assert any(isinstance(e, OrderCancelled) for e in order._events)

    def test_cancelled_is_terminal(self, place_order):
        order = place_order()
        order.update_status("cancelled")
        with pytest.raises(ConflictError):
            order.update_status("processing")

    def test_status_change_raises_event(self, place_order):
        order = place_order()
        order.update_status("confirmed", actor="admin-001")
        changed = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert changed[-1].previous_status == "processing"
        assert changed[-1].new_status == "confirmed"
        assert changed[-1].changed_by == "admin-001"

    def test_notes_and_activity(self, place_order):
        order = place_order()
        order.update_status("confirmed", notes="Stock reserved", actor="admin-001")
        assert order.notes == "Stock reserved"
        assert order.activity[-1].action == "Status changed to confirmed"
        assert order.activity[-1].actor == "admin-001"


class TestCashOnDelivery:
    def test_cash_order_is_settled_on_delivery(self, place_order):
        order = place_order(payment_method="cash")
        assert order.is_paid is False

        order.update_status("delivered")

        assert order.is_paid is True
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.paid_at is not None
        assert any(isinstance(e, OrderPaid) for e in order._events)
        assert any(isinstance(e, OrderDelivered) for e in order._events)

    def test_prepaid_order_is_not_paid_twice(self, place_order):
        order = place_order(payment_method="paypal")
        paid_at = order.paid_at
        order.update_status("delivered")
        assert order.paid_at == paid_at
        assert not any(isinstance(e, OrderPaid) for e in order._events)


class TestOrderInvariants:
    def test_order_needs_items(self, shipping_address):
        with pytest.raises(ValidationError):
            Order.place(
                ownership={"user_id": "user-001", "is_guest": False},
                items=[],
                shipping_address=shipping_address,
                payment_method="card",
            )

    def test_total_is_fixed_at_creation(self, place_order):
        order = place_order(price=12.5, quantity=2)
        assert order.total_amount == 25.0
        order.update_status("confirmed")
        order.update_status("shipped")
        assert order.total_amount == 25.0
