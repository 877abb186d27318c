"""Order refunds - commands and handler.

Customers request a refund for a paid order; an administrator then approves
or rejects it, and finally marks an approved refund as processed.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    comment = String(max_length=1000)


@storefront.command(part_of="Order")
class ProcessRefund:
    order_id = Identifier(required=True)
    decision = String(required=True, max_length=20)  # approved | rejected | processed
    admin_comment = String(max_length=1000)


@storefront.command_handler(part_of=Order)
class ManageRefundsHandler:
    @handle(RequestRefund)
    def request_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_refund(reason=command.reason, comment=command.comment)
        repo.add(order)
        logger.info("Refund requested", order_id=str(order.id), reason=command.reason)

    @handle(ProcessRefund)
    def process_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.process_refund(command.decision, admin_comment=command.admin_comment)
        repo.add(order)
        logger.info("Refund processed", order_id=str(order.id), refund_status=order.refund_status)
