"""Order placement - command and handler.

The handler re-prices the cart on the server through the shared pricing
calculator (and the coupon engine when a code is given), allocates the next
order number and persists the order in one unit of work.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.coupon.coupon import normalize_code
from storefront.coupon.validation import validate_coupon
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.pricing.calculator import OrderTotals, cart_lines, price_cart
from storefront.shared.sequence import Sequence

logger = structlog.get_logger(__name__)

ORDER_SEQUENCE = "orders"


def format_order_number(value: int) -> str:
    return f"ORD-{value:06d}"


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, name, price, quantity, image}
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=20)
    coupon_code = String(max_length=50)
    payment_receipt = String(max_length=500)
    notes = Text()
    expected_total = Integer()  # Total the client displayed; rejected if stale


def _ensure_products_available(lines):
    wanted = {line.product_id for line in lines}
    products = current_domain.repository_for(Product).find_many(wanted)
    available = {str(product.id) for product in products if product.is_active}
    missing = sorted(wanted - available)
    if missing:
        raise ValidationError({"items": [f"Products are unavailable: {', '.join(missing)}"]})


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        lines = cart_lines(items)
        _ensure_products_available(lines)

        if command.coupon_code:
            breakdown = validate_coupon(command.coupon_code, lines).breakdown
        else:
            breakdown = price_cart(lines)
        totals = OrderTotals.from_breakdown(breakdown)

        if command.expected_total is not None and command.expected_total != totals.total_price:
            raise ValidationError(
                {"total_price": [f"Order total changed: expected {command.expected_total}, got {totals.total_price}"]}
            )

        number = current_domain.repository_for(Sequence).next_value(ORDER_SEQUENCE)
        order = Order.place(
            order_number=format_order_number(number),
            customer_id=command.customer_id,
            lines=lines,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            totals=totals,
            coupon_code=normalize_code(command.coupon_code) or None,
            payment_receipt=command.payment_receipt,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            total_price=order.total_price,
            coupon_code=order.coupon_code,
        )
        return str(order.id)
