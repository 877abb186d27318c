"""Order aggregate - a priced, immutable-total order and its three state machines.

Pricing fields are written once at placement (see ``storefront.pricing``) and
never recomputed afterwards. What changes over time is tracked by three
independent state machines:

Fulfilment status:
    PENDING → PROCESSING → PACKED → SHIPPED → DELIVERED
    PENDING ⇄ PAYMENT_VERIFICATION (receipt submitted / rejected)
    CANCELLED from PENDING, PAYMENT_VERIFICATION, PROCESSING
    DELIVERED, CANCELLED → REFUNDED (refund processed)

Payment status:
    PENDING → PENDING_VERIFICATION → PAID → REFUNDED
    FAILED reachable while payment is unsettled, and retryable

Refund status:
    NONE → REQUESTED → APPROVED | REJECTED, APPROVED → PROCESSED

Every status change after placement is appended to ``status_history``.
"""

import json
from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentReceiptSubmitted,
    PaymentStatusChanged,
    RefundProcessed,
    RefundRequested,
)
from storefront.pricing.calculator import CartLine, OrderTotals
from storefront.shared.clock import as_utc, utc_now
from storefront.shared.errors import InvalidTransitionError
from storefront.shared.settings import StorefrontSettings, get_settings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAYMENT_VERIFICATION = "payment_verification"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PENDING_VERIFICATION = "pending_verification"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(Enum):
    NONE = "none"
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD = "card"
    UPI = "upi"
    NET_BANKING = "net_banking"


_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PAYMENT_VERIFICATION,
        OrderStatus.PROCESSING,
        OrderStatus.PACKED,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAYMENT_VERIFICATION: {
        OrderStatus.PENDING,
        OrderStatus.PROCESSING,
        OrderStatus.PACKED,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.PACKED,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PACKED: {OrderStatus.SHIPPED, OrderStatus.DELIVERED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal
}

# Customers may only cancel before the order is packed
_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.PENDING_VERIFICATION,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    },
    PaymentStatus.PENDING_VERIFICATION: {
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
        PaymentStatus.PENDING,
        PaymentStatus.REFUNDED,
    },
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: {
        PaymentStatus.PENDING,
        PaymentStatus.PENDING_VERIFICATION,
        PaymentStatus.PAID,
    },
    PaymentStatus.REFUNDED: set(),
}

_REFUND_TRANSITIONS = {
    RefundStatus.NONE: {RefundStatus.REQUESTED},
    RefundStatus.REQUESTED: {RefundStatus.APPROVED, RefundStatus.REJECTED},
    RefundStatus.APPROVED: {RefundStatus.PROCESSED},
    RefundStatus.REJECTED: set(),
    RefundStatus.PROCESSED: set(),
}


def _parse(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError({field_name: [f"Invalid value '{value}'"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order is delivered, frozen at placement time."""

    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    country = String(max_length=100, default="India")

    def formatted(self) -> str:
        return f"{self.street}, {self.city}, {self.state} - {self.pincode}, {self.country}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A product line captured at placement; later catalogue edits don't touch it."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)

    @property
    def line_total(self):
        return self.price * self.quantity


@storefront.entity(part_of="Order")
class StatusChange:
    status = String(required=True, choices=OrderStatus)
    timestamp = DateTime(required=True)
    note = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=20)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_receipt = String(max_length=500)
    payment_verified_at = DateTime()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_history = HasMany(StatusChange)

    # Pricing, written once at placement. items_price is net of discount_amount.
    items_price = Integer(required=True, min_value=0)
    discount_amount = Integer(default=0, min_value=0)
    tax_price = Integer(default=0, min_value=0)
    shipping_price = Integer(default=0, min_value=0)
    total_price = Integer(required=True, min_value=0)
    coupon_code = String(max_length=50)

    tracking_number = String(max_length=100)
    estimated_delivery_date = DateTime()
    actual_delivery_date = DateTime()
    notes = Text()

    cancellation_reason = String(max_length=500)
    cancellation_comment = String(max_length=1000)
    cancelled_at = DateTime()

    refund_status = String(choices=RefundStatus, default=RefundStatus.NONE.value)
    refund_reason = String(max_length=500)
    refund_comment = String(max_length=1000)
    refund_requested_at = DateTime()
    refund_admin_comment = String(max_length=1000)
    refund_processed_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_its_components(self):
        expected = (self.items_price or 0) + (self.tax_price or 0) + (self.shipping_price or 0)
        if self.total_price != expected:
            raise ValidationError({"total_price": ["Total price must equal items, tax and shipping"]})

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        customer_id,
        lines: list[CartLine],
        shipping_address: dict,
        payment_method: str,
        totals: OrderTotals,
        coupon_code: str | None = None,
        payment_receipt: str | None = None,
        notes: str | None = None,
        settings: StorefrontSettings | None = None,
    ):
        """Create an order from priced cart lines.

        Args:
            order_number: Human-facing number, already allocated by the caller.
            lines: Cart lines whose names and prices are snapshotted onto the order.
            shipping_address: Dict with name, phone, street, city, state, pincode
                and optionally country.
            totals: Output of ``compute_order_totals`` for the same lines.
            payment_receipt: Optional proof of payment; puts the payment
                straight into verification.
        """
        settings = settings or get_settings()
        now = utc_now()

        order = cls(
            order_number=order_number,
            customer_id=str(customer_id),
            items=[
                OrderItem(
                    product_id=line.product_id,
                    name=line.name,
                    price=float(line.unit_price),
                    quantity=line.quantity,
                    image=line.image,
                )
                for line in lines
            ],
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            payment_status=(
                PaymentStatus.PENDING_VERIFICATION.value if payment_receipt else PaymentStatus.PENDING.value
            ),
            payment_receipt=payment_receipt,
            status=OrderStatus.PENDING.value,
            coupon_code=coupon_code or None,
            notes=notes,
            estimated_delivery_date=now + timedelta(days=settings.estimated_delivery_days),
            created_at=now,
            updated_at=now,
            **totals.as_dict(),
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=order.customer_id,
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "name": item.name,
                            "price": item.price,
                            "quantity": item.quantity,
                        }
                        for item in order.items
                    ]
                ),
                items_price=order.items_price,
                discount_amount=order.discount_amount,
                tax_price=order.tax_price,
                shipping_price=order.shipping_price,
                total_price=order.total_price,
                coupon_code=order.coupon_code,
                payment_method=order.payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    def history(self) -> list:
        """Status changes, oldest first."""
        return sorted(self.status_history, key=lambda change: as_utc(change.timestamp))

    # -------------------------------------------------------------------
    # Fulfilment status
    # -------------------------------------------------------------------
    def _record_status(self, target: OrderStatus, note=None):
        now = utc_now()
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self.add_status_history(StatusChange(status=target.value, timestamp=now, note=note))

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                tracking_number=self.tracking_number,
                note=note,
                changed_at=now,
            )
        )

    def update_status(self, new_status, tracking_number=None, note=None):
        """Administrative status change.

        Re-submitting the current status only updates the tracking number and
        leaves the history untouched.
        """
        target = _parse(OrderStatus, new_status, "status")
        current = OrderStatus(self.status)

        if tracking_number:
            self.tracking_number = tracking_number

        if target == current:
            self.updated_at = utc_now()
            return

        if target not in _STATUS_TRANSITIONS[current]:
            raise InvalidTransitionError(f"Cannot change order status from {current.value} to {target.value}")

        if target == OrderStatus.DELIVERED:
            self.actual_delivery_date = utc_now()
        elif target == OrderStatus.CANCELLED:
            self.cancelled_at = utc_now()

        self._record_status(target, note)

    def cancel(self, reason, comment=None):
        """Customer cancellation, allowed only before the order is packed."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidTransitionError(f"Order cannot be cancelled in {current.value} status")

        now = utc_now()
        self.cancellation_reason = reason
        self.cancellation_comment = comment
        self.cancelled_at = now
        self._record_status(OrderStatus.CANCELLED, note=f"Cancelled by customer: {reason}")

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                reason=reason,
                comment=comment,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _change_payment_status(self, target: PaymentStatus) -> bool:
        current = PaymentStatus(self.payment_status)
        if target == current:
            return False
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot change payment status from {current.value} to {target.value}",
                field="payment_status",
            )

        now = utc_now()
        self.payment_status = target.value
        self.updated_at = now
        if target == PaymentStatus.PAID:
            self.payment_verified_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                amount=self.total_price,
                changed_at=now,
            )
        )
        return True

    def submit_payment_receipt(self, receipt):
        current = OrderStatus(self.status)
        if current not in (OrderStatus.PENDING, OrderStatus.PAYMENT_VERIFICATION):
            raise InvalidTransitionError(f"Cannot submit a payment receipt for an order in {current.value} status")

        self._change_payment_status(PaymentStatus.PENDING_VERIFICATION)
        self.payment_receipt = receipt

        if current == OrderStatus.PENDING:
            self._record_status(OrderStatus.PAYMENT_VERIFICATION, note="Payment receipt submitted")

        self.raise_(
            PaymentReceiptSubmitted(
                order_id=str(self.id),
                order_number=self.order_number,
                receipt=receipt,
                submitted_at=utc_now(),
            )
        )

    def verify_payment(self, note=None):
        """Confirm the payment; a verifying order moves on to processing."""
        self._change_payment_status(PaymentStatus.PAID)
        if OrderStatus(self.status) == OrderStatus.PAYMENT_VERIFICATION:
            self._record_status(OrderStatus.PROCESSING, note=note or "Payment verified")

    def reject_payment(self, reason=None):
        """Mark the payment failed; a verifying order goes back to pending."""
        self._change_payment_status(PaymentStatus.FAILED)
        if OrderStatus(self.status) == OrderStatus.PAYMENT_VERIFICATION:
            self._record_status(OrderStatus.PENDING, note=reason or "Payment rejected")

    def update_payment_status(self, new_status):
        self._change_payment_status(_parse(PaymentStatus, new_status, "payment_status"))

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def request_refund(self, reason, comment=None):
        if PaymentStatus(self.payment_status) != PaymentStatus.PAID:
            raise InvalidTransitionError(
                "Only paid orders are eligible for a refund",
                kind="NotEligible",
                field="refund_status",
            )
        if RefundStatus(self.refund_status) != RefundStatus.NONE:
            raise InvalidTransitionError(
                f"Refund is already {self.refund_status}",
                field="refund_status",
            )

        now = utc_now()
        self.refund_status = RefundStatus.REQUESTED.value
        self.refund_reason = reason
        self.refund_comment = comment
        self.refund_requested_at = now
        self.updated_at = now

        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                reason=reason,
                comment=comment,
                requested_at=now,
            )
        )

    def process_refund(self, decision, admin_comment=None):
        """Approve, reject or complete a refund.

        Completing a refund moves the order to ``refunded``, which is what the
        reporting side keys on. The payment status is left as it is.
        """
        target = _parse(RefundStatus, decision, "refund_status")
        current = RefundStatus(self.refund_status)
        if target not in _REFUND_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot move refund from {current.value} to {target.value}",
                field="refund_status",
            )

        now = utc_now()
        self.refund_status = target.value
        self.refund_admin_comment = admin_comment
        self.refund_processed_at = now
        self.updated_at = now

        if target == RefundStatus.PROCESSED and self.status != OrderStatus.REFUNDED.value:
            self._record_status(OrderStatus.REFUNDED, note=admin_comment or "Refund processed")

        self.raise_(
            RefundProcessed(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                refund_status=target.value,
                amount=self.total_price,
                admin_comment=admin_comment,
                processed_at=now,
            )
        )


@storefront.repository(part_of=Order)
class OrderRepository:
    def for_customer(self, customer_id) -> list:
        """A customer's orders, newest first."""
        return self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").all().items

    def everything(self) -> list:
        return self._dao.query.order_by("-created_at").all().items

    def find_by_number(self, order_number) -> "Order | None":
        return self._dao.query.filter(order_number=order_number).all().first
