"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    email = String(required=True)
    role = String(required=True)
    registered_at = DateTime(required=True)


@storefront.event(part_of="Customer")
class WishlistItemAdded:
    __version__ = 1

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Customer")
class WishlistItemRemoved:
    __version__ = 1

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
