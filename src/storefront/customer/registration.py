"""Customer registration - command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.customer.customer import Customer, CustomerRole
from storefront.domain import storefront


@storefront.command(part_of="Customer")
class RegisterCustomer:
    """Create a shopper account (or an administrator, when ``role`` says so)."""

    name: String(required=True, max_length=100)
    email: String(required=True, max_length=254)
    phone: String(max_length=20)
    role: String(choices=CustomerRole, default=CustomerRole.CUSTOMER.value)


@storefront.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        repo = current_domain.repository_for(Customer)
        if repo.find_by_email(command.email) is not None:
            raise ValidationError({"email": ["An account with this email already exists"]})

        customer = Customer.register(
            name=command.name,
            email=command.email,
            phone=command.phone,
            role=command.role or CustomerRole.CUSTOMER.value,
        )
        repo.add(customer)
        return str(customer.id)
