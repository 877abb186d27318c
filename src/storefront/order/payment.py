"""Order payment - commands and handler.

Covers receipt submission by the customer and verification, rejection or a
direct status override by an administrator.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class SubmitPaymentReceipt:
    order_id = Identifier(required=True)
    receipt = String(required=True, max_length=500)


@storefront.command(part_of="Order")
class VerifyPayment:
    order_id = Identifier(required=True)
    note = String(max_length=500)


@storefront.command(part_of="Order")
class RejectPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=30)


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(SubmitPaymentReceipt)
    def submit_payment_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.submit_payment_receipt(command.receipt)
        repo.add(order)

    @handle(VerifyPayment)
    def verify_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.verify_payment(note=command.note)
        repo.add(order)

    @handle(RejectPayment)
    def reject_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.reject_payment(reason=command.reason)
        repo.add(order)

    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_payment_status(command.payment_status)
        repo.add(order)
