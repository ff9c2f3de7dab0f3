"""Tests for the admin and customer actions on an Order."""

from datetime import timedelta

import pytest
from ordering.order.events import OrderCancelled, OrderDeleted, OrderPaid, OrderTrackingAdded
from ordering.order.order import ESTIMATED_DELIVERY_DAYS, OrderStatus, PaymentStatus
from ordering.shared.errors import ConflictError
from protean.exceptions import ObjectNotFoundError, ValidationError


class TestMarkPaid:
    def test_cash_order_becomes_paid_and_delivered(self, place_order):
        order = place_order(payment_method="cash")
        order.mark_paid(notes="Collected at the door", actor="admin-001")

        assert order.is_paid is True
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.DELIVERED.value
        assert order.is_delivered is True
        assert order.notes == "Collected at the door"
        assert any(isinstance(e, OrderPaid) for e in order._events)

    def test_already_paid(self, place_order):
        order = place_order(payment_method="card")
        with pytest.raises(ConflictError):
            order.mark_paid()

    def test_cancelled_order(self, place_order):
        order = place_order(payment_method="cash")
        order.mark_cancelled()
        with pytest.raises(ConflictError):
            order.mark_paid()
        assert order.is_paid is False


class TestMarkDelivered:
    def test_mark_delivered(self, place_order):
        order = place_order()
        order.update_status("shipped")
        order.mark_delivered(actor="admin-001")
        assert order.status == OrderStatus.DELIVERED.value
        assert order.is_delivered is True
        assert order.activity[-1].action == "Marked as delivered"

    def test_cash_is_settled(self, place_order):
        order = place_order(payment_method="cash")
        order.mark_delivered()
        assert order.is_paid is True
        assert order.paid_at is not None

    def test_twice(self, place_order):
        order = place_order()
        order.mark_delivered()
        with pytest.raises(ConflictError):
            order.mark_delivered()

    def test_cancelled_order(self, place_order):
        order = place_order()
        order.mark_cancelled()
        with pytest.raises(ConflictError):
            order.mark_delivered()


class TestMarkCancelled:
    def test_admin_can_cancel_a_shipped_order(self, place_order):
        order = place_order()
        order.update_status("confirmed")
        order.update_status("shipped")
        order.mark_cancelled(notes="Lost in transit", actor="admin-001")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.is_cancelled is True
        cancelled = [e for e in order._events if isinstance(e, OrderCancelled)]
        assert cancelled[-1].cancelled_by == "admin"

    def test_delivered_order(self, place_order):
        order = place_order()
        order.mark_delivered()
        with pytest.raises(ConflictError):
            order.mark_cancelled()

    def test_already_cancelled(self, place_order):
        order = place_order()
        order.mark_cancelled()
        with pytest.raises(ConflictError):
            order.mark_cancelled()


class TestCustomerCancellation:
    def test_processing_order(self, place_order):
        order = place_order()
        order.cancel_by_customer(actor="user-001")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancelled_at is not None
        cancelled = [e for e in order._events if isinstance(e, OrderCancelled)]
        assert cancelled[-1].cancelled_by == "customer"

    def test_confirmed_order(self, place_order):
        order = place_order()
        order.update_status("confirmed")
        order.cancel_by_customer()
        assert order.is_cancelled is True

    def test_shipped_and_paid(self, place_order):
        order = place_order(payment_method="card")
        order.update_status("shipped")
        with pytest.raises(ConflictError):
            order.cancel_by_customer()
        assert order.status == OrderStatus.SHIPPED.value

    def test_shipped_cash_order(self, place_order):
        order = place_order(payment_method="cash")
        order.update_status("shipped")
        order.cancel_by_customer()
        assert order.is_cancelled is True

    def test_delivered_order(self, place_order):
        order = place_order()
        order.update_status("delivered")
        with pytest.raises(ConflictError):
            order.cancel_by_customer()

    def test_already_cancelled(self, place_order):
        order = place_order()
        order.cancel_by_customer()
        with pytest.raises(ConflictError):
            order.cancel_by_customer()


class TestTracking:
    def test_add_tracking(self, place_order):
        order = place_order()
        order.add_tracking("TRK-123", "UPS", actor="admin-001")
        assert order.tracking_number == "TRK-123"
        assert order.shipping_provider == "UPS"
        assert order.activity[-1].note == "UPS - TRK-123"
        assert any(isinstance(e, OrderTrackingAdded) for e in order._events)

    @pytest.mark.parametrize("number, provider", [("", "UPS"), ("TRK-123", None)])
    def test_both_values_are_required(self, place_order, number, provider):
        order = place_order()
        with pytest.raises(ValidationError):
            order.add_tracking(number, provider)
        assert order.tracking_number is None

    def test_summary_before_shipment(self, place_order):
        summary = place_order(quantity=3).tracking_summary()
        assert summary["estimated_delivery"] == "Pending shipment"
        assert summary["tracking_number"] == "Not assigned yet"
        assert summary["items_count"] == 1
        assert summary["products"][0]["quantity"] == 3

    def test_summary_of_a_shipped_order(self, place_order):
        order = place_order()
        order.update_status("shipped")
        order.add_tracking("TRK-123", "UPS")

        summary = order.tracking_summary()

        assert summary["tracking_number"] == "TRK-123"
        assert summary["estimated_delivery"] == order.updated_at + timedelta(days=ESTIMATED_DELIVERY_DAYS)

    def test_cancelled_orders_cannot_be_tracked(self, place_order):
        order = place_order()
        order.cancel_by_customer()
        with pytest.raises(ConflictError):
            order.tracking_summary()


class TestSoftDelete:
    def test_soft_delete(self, place_order):
        order = place_order()
        order.soft_delete(actor="admin-001")
        assert order.is_deleted is True
        assert order.deleted_at is not None
        assert any(isinstance(e, OrderDeleted) for e in order._events)

    def test_twice(self, place_order):
        order = place_order()
        order.soft_delete()
        with pytest.raises(ConflictError):
            order.soft_delete()

    def test_deleted_order_rejects_changes(self, place_order):
        order = place_order()
        order.soft_delete()
        with pytest.raises(ObjectNotFoundError):
            order.update_status("confirmed")
        with pytest.raises(ObjectNotFoundError):
            order.cancel_by_customer()
