"""Tests for the Order aggregate: placement, status machine, cancellation and history."""

from datetime import timedelta

import pytest
from protean.exceptions import ValidationError

from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.pricing.calculator import Discount, OrderTotals, cart_lines, compute_order_totals
from storefront.shared.errors import InvalidTransitionError
from storefront.shared.settings import StorefrontSettings

ADDRESS = {
    "name": "Asha Raman",
    "phone": "9876543210",
    "street": "12 Sivakasi Main Road",
    "city": "Sivakasi",
    "state": "Tamil Nadu",
    "pincode": "626123",
}


def _lines():
    return cart_lines(
        [
            {"product": "P1", "name": "Sky Rocket", "price": 100, "quantity": 2, "image": "rocket.png"},
            {"product": "P2", "name": "Sparklers", "price": 50, "quantity": 1},
        ]
    )


def _place(**overrides):
    lines = _lines()
    kwargs = {
        "order_number": "ORD-000001",
        "customer_id": "cust-001",
        "lines": lines,
        "shipping_address": ADDRESS,
        "payment_method": "upi",
        "totals": compute_order_totals(lines),
    }
    kwargs.update(overrides)
    order = Order.place(**kwargs)
    order._events.clear()
    return order


def _order_at(status):
    order = _place()
    path = {
        OrderStatus.PENDING: [],
        OrderStatus.PROCESSING: ["processing"],
        OrderStatus.PACKED: ["processing", "packed"],
        OrderStatus.SHIPPED: ["processing", "packed", "shipped"],
        OrderStatus.DELIVERED: ["processing", "packed", "shipped", "delivered"],
        OrderStatus.CANCELLED: ["cancelled"],
    }[status]
    for step in path:
        order.update_status(step)
    order._events.clear()
    return order


class TestPlacement:
    def test_initial_state(self):
        order = _place()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.refund_status == "none"
        assert order.order_number == "ORD-000001"

    def test_pricing_is_persisted_as_computed(self):
        order = _place()
        assert order.items_price == 250
        assert order.discount_amount == 0
        assert order.tax_price == 0
        assert order.shipping_price == 150
        assert order.total_price == 400

    def test_totals_hold_with_a_discount(self):
        lines = _lines()
        order = _place(totals=compute_order_totals(lines, Discount(percentage=10)), coupon_code="SAVE10")
        assert order.items_price == 225
        assert order.discount_amount == 25
        assert order.total_price == order.items_price + order.tax_price + order.shipping_price

    def test_items_are_snapshotted(self):
        order = _place()
        first = next(item for item in order.items if item.product_id == "P1")
        assert first.name == "Sky Rocket"
        assert first.price == 100.0
        assert first.quantity == 2
        assert first.image == "rocket.png"

    def test_creation_is_not_recorded_in_history(self):
        assert _place().history() == []

    def test_estimated_delivery_follows_settings(self):
        order = _place(settings=StorefrontSettings(estimated_delivery_days=5))
        assert order.estimated_delivery_date - order.created_at == timedelta(days=5)

    def test_receipt_at_placement_awaits_verification(self):
        order = _place(payment_receipt="receipts/upi-123.png")
        assert order.payment_status == PaymentStatus.PENDING_VERIFICATION.value
        assert order.status == OrderStatus.PENDING.value

    def test_inconsistent_totals_are_rejected(self):
        bad = OrderTotals(items_price=250, discount_amount=0, tax_price=0, shipping_price=150, total_price=390)
        with pytest.raises(ValidationError) as exc:
            _place(totals=bad)
        assert "total_price" in exc.value.messages

    @pytest.mark.parametrize("missing", ["name", "phone", "street", "city", "state", "pincode"])
    def test_shipping_address_fields_are_required(self, missing):
        address = {key: value for key, value in ADDRESS.items() if key != missing}
        with pytest.raises(ValidationError):
            _place(shipping_address=address)

    def test_country_defaults_to_india(self):
        assert _place().shipping_address.country == "India"

    def test_unknown_payment_method_is_rejected(self):
        with pytest.raises(ValidationError):
            _place(payment_method="cheque")

    def test_raises_order_placed(self):
        lines = _lines()
        order = Order.place(
            order_number="ORD-000007",
            customer_id="cust-001",
            lines=lines,
            shipping_address=ADDRESS,
            payment_method="card",
            totals=compute_order_totals(lines),
        )
        event = order._events[-1]
        assert event.__class__.__name__ == "OrderPlaced"
        assert event.order_number == "ORD-000007"
        assert event.total_price == 400


class TestStatusUpdates:
    def test_happy_path_records_every_change(self):
        order = _order_at(OrderStatus.DELIVERED)
        assert [change.status for change in order.history()] == ["processing", "packed", "shipped", "delivered"]

    def test_delivery_sets_actual_delivery_date(self):
        order = _order_at(OrderStatus.SHIPPED)
        assert order.actual_delivery_date is None
        order.update_status("delivered")
        assert order.actual_delivery_date is not None

    def test_tracking_number_and_note(self):
        order = _order_at(OrderStatus.PACKED)
        order.update_status("shipped", tracking_number="TRK-42", note="Handed to courier")
        assert order.tracking_number == "TRK-42"
        assert order.history()[-1].note == "Handed to courier"

    def test_same_status_only_updates_tracking(self):
        order = _order_at(OrderStatus.SHIPPED)
        entries = len(order.history())
        order.update_status("shipped", tracking_number="TRK-99")
        assert order.tracking_number == "TRK-99"
        assert len(order.history()) == entries

    def test_cannot_go_backwards(self):
        order = _order_at(OrderStatus.SHIPPED)
        with pytest.raises(InvalidTransitionError) as exc:
            order.update_status("processing")
        assert exc.value.kind == "InvalidTransition"
        assert "status" in exc.value.messages

    def test_delivered_cannot_be_cancelled_by_admin(self):
        with pytest.raises(InvalidTransitionError):
            _order_at(OrderStatus.DELIVERED).update_status("cancelled")

    def test_unknown_status_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            _place().update_status("teleported")

    def test_status_change_event(self):
        order = _place()
        order.update_status("processing")
        event = order._events[-1]
        assert event.__class__.__name__ == "OrderStatusChanged"
        assert event.previous_status == "pending"
        assert event.new_status == "processing"


class TestCancellation:
    def test_shipped_order_cannot_be_cancelled(self):
        order = _order_at(OrderStatus.SHIPPED)
        assert order.can_be_cancelled() is False
        with pytest.raises(InvalidTransitionError):
            order.cancel(reason="Changed my mind")
        assert order.status == OrderStatus.SHIPPED.value

    def test_processing_order_can_be_cancelled(self):
        order = _order_at(OrderStatus.PROCESSING)
        order.cancel(reason="Changed my mind", comment="Ordered twice")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancellation_comment == "Ordered twice"
        assert order.cancelled_at is not None
        assert order.history()[-1].status == "cancelled"

    def test_pending_order_can_be_cancelled(self):
        order = _place()
        order.cancel(reason="Wrong address")
        assert order.status == OrderStatus.CANCELLED.value
        assert order._events[-1].__class__.__name__ == "OrderCancelled"

    @pytest.mark.parametrize("status", [OrderStatus.PACKED, OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_other_states_are_not_cancellable(self, status):
        assert _order_at(status).can_be_cancelled() is False
