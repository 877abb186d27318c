"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate and dispatched once the
unit of work commits.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order; the pricing fields are final."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item snapshots
    items_price = Integer(required=True)
    discount_amount = Integer()
    tax_price = Integer()
    shipping_price = Integer()
    total_price = Integer(required=True)
    coupon_code = String()
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """The fulfilment status of an order moved on."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    tracking_number = String()
    note = String()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """The customer cancelled the order before it was packed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    comment = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentReceiptSubmitted:
    """The customer attached evidence of payment for verification."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    receipt = String(required=True)
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentStatusChanged:
    """The payment status of an order moved on."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    amount = Integer()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundRequested:
    """The customer asked for a paid order to be refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    comment = String()
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundProcessed:
    """An administrator approved, rejected or completed a refund."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    refund_status = String(required=True)
    amount = Integer()
    admin_comment = String()
    processed_at = DateTime(required=True)
