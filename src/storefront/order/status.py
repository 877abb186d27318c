"""Administrative order status updates - command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    tracking_number = String(max_length=100)
    note = String(max_length=500)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.update_status(
            command.status,
            tracking_number=command.tracking_number,
            note=command.note,
        )
        repo.add(order)
        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
