"""Coupon validation against a cart, the read side of the coupon engine."""

from datetime import datetime

from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon, CouponApplication
from storefront.pricing.calculator import CartLine
from storefront.shared.errors import CouponNotFoundError
from storefront.shared.settings import StorefrontSettings


def validate_coupon(
    code: str,
    lines: list[CartLine],
    as_of: datetime | None = None,
    settings: StorefrontSettings | None = None,
) -> CouponApplication:
    """Price ``lines`` with the coupon ``code`` or raise why it cannot be used.

    Raises ``CouponNotFoundError`` for unknown or inactive codes and
    ``CouponStateError`` (with its ``kind``) for every other rejection.
    """
    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        raise CouponNotFoundError(code)
    return coupon.apply_to(lines, as_of=as_of, settings=settings)
