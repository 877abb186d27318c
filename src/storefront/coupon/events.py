"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Coupon")
class CouponCreated:
    """An administrator created a new discount coupon."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_percentage = Integer(required=True)
    applicable_products = Text()  # JSON: list of product ids
    usage_limit = Integer()
    valid_from = DateTime()
    valid_until = DateTime()


@storefront.event(part_of="Coupon")
class CouponUpdated:
    """Coupon terms were changed by an administrator."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    changed_fields = Text()  # JSON: list of field names


@storefront.event(part_of="Coupon")
class CouponDeactivated:
    """A coupon was switched off and can no longer be validated."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)


@storefront.event(part_of="Coupon")
class CouponRedeemed:
    """A placed order consumed one use of the coupon."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    used_count = Integer(required=True)
    usage_limit = Integer()
