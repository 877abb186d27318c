"""Customer aggregate: account, role and wishlist.

Spend, order counts, loyalty points and tier are not stored here. They are
derived from the customer's orders by the reporting layer whenever they are
read.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text

from storefront.customer.events import CustomerRegistered, WishlistItemAdded, WishlistItemRemoved
from storefront.domain import storefront
from storefront.shared.clock import utc_now


class CustomerRole(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


def normalize_email(email) -> str:
    return (email or "").strip().lower()


@storefront.aggregate
class Customer:
    """A shopper (or administrator) of the storefront."""

    name: String(required=True, max_length=100)
    email: String(required=True, max_length=254)
    phone: String(max_length=20)
    role: String(choices=CustomerRole, default=CustomerRole.CUSTOMER.value)
    is_active: Boolean(default=True)
    wishlist: Text(default="[]")  # JSON: product ids, in the order they were added
    registered_at: DateTime()

    @invariant.post
    def email_must_look_like_an_address(self):
        local_part, _, domain_part = (self.email or "").partition("@")
        if not local_part or "." not in domain_part or " " in self.email:
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})

    @classmethod
    def register(cls, name, email, phone=None, role=CustomerRole.CUSTOMER.value):
        now = utc_now()
        customer = cls(
            name=name,
            email=normalize_email(email),
            phone=phone,
            role=role,
            registered_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                name=customer.name,
                email=customer.email,
                role=customer.role,
                registered_at=now,
            )
        )
        return customer

    @property
    def is_admin(self) -> bool:
        return self.role == CustomerRole.ADMIN.value

    @property
    def wishlist_product_ids(self) -> list:
        return json.loads(self.wishlist) if self.wishlist else []

    @property
    def wishlist_count(self) -> int:
        return len(self.wishlist_product_ids)

    def add_to_wishlist(self, product_id):
        product_ids = self.wishlist_product_ids
        if str(product_id) in product_ids:
            raise ValidationError({"wishlist": ["Product already in wishlist"]})

        self.wishlist = json.dumps(product_ids + [str(product_id)])
        self.raise_(WishlistItemAdded(customer_id=str(self.id), product_id=str(product_id)))

    def remove_from_wishlist(self, product_id):
        product_ids = self.wishlist_product_ids
        if str(product_id) not in product_ids:
            raise ValidationError({"wishlist": ["Product is not in wishlist"]})

        product_ids.remove(str(product_id))
        self.wishlist = json.dumps(product_ids)
        self.raise_(WishlistItemRemoved(customer_id=str(self.id), product_id=str(product_id)))


@storefront.repository(part_of=Customer)
class CustomerRepository:
    def customers(self) -> list:
        """Every non-admin account."""
        return self._dao.query.filter(role=CustomerRole.CUSTOMER.value).all().items

    def find_by_email(self, email) -> Customer | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first
