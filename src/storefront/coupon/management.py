"""Coupon administration and redemption: commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.coupon.coupon import Coupon, normalize_code
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_percentage = Integer(required=True)
    applicable_products = Text()  # JSON: list of product ids
    description = String(max_length=255)
    usage_limit = Integer()
    valid_from = DateTime()
    valid_until = DateTime()
    created_by = Identifier()


@storefront.command(part_of="Coupon")
class UpdateCoupon:
    coupon_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: field -> new value


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


@storefront.command(part_of="Coupon")
class RedeemCoupon:
    """Record one use of a coupon after an order referencing it was placed."""

    code = String(required=True, max_length=50)


def _ensure_code_available(code, exclude_id=None):
    existing = current_domain.repository_for(Coupon).find_by_code(code)
    if existing is not None and str(existing.id) != str(exclude_id):
        raise ValidationError({"code": ["Coupon code already exists"]})


def _ensure_products_exist(product_ids):
    wanted = {str(product_id) for product_id in product_ids or []}
    if not wanted:
        return
    found = current_domain.repository_for(Product).find_many(wanted)
    if len(found) != len(wanted):
        raise ValidationError({"applicable_products": ["Some products are invalid"]})


@storefront.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        code = normalize_code(command.code)
        if not code:
            raise ValidationError({"code": ["Coupon code is required"]})
        _ensure_code_available(code)

        product_ids = json.loads(command.applicable_products) if command.applicable_products else []
        _ensure_products_exist(product_ids)

        coupon = Coupon.create(
            code=code,
            discount_percentage=command.discount_percentage,
            applicable_products=product_ids,
            description=command.description,
            usage_limit=command.usage_limit,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            created_by=command.created_by,
        )
        current_domain.repository_for(Coupon).add(coupon)
        logger.info("Coupon created", coupon_id=str(coupon.id), code=coupon.code)
        return str(coupon.id)

    @handle(UpdateCoupon)
    def update_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        changes = json.loads(command.changes)

        if "code" in changes and normalize_code(changes["code"]) != coupon.code:
            _ensure_code_available(changes["code"], exclude_id=coupon.id)
        if "applicable_products" in changes:
            _ensure_products_exist(changes["applicable_products"])

        coupon.update(**changes)
        repo.add(coupon)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)

    @handle(RedeemCoupon)
    def redeem_coupon(self, command):
        """Best effort: a missing or exhausted coupon is logged, never raised."""
        repo = current_domain.repository_for(Coupon)
        coupon = repo.find_by_code(command.code)
        if coupon is None:
            logger.warning("Redeemed coupon not found", code=normalize_code(command.code))
            return False
        if not coupon.has_remaining_uses():
            logger.warning(
                "Coupon usage limit reached, redemption not recorded",
                code=coupon.code,
                used_count=coupon.used_count,
                usage_limit=coupon.usage_limit,
            )
            return False

        coupon.redeem()
        repo.add(coupon)
        logger.info("Coupon redeemed", code=coupon.code, used_count=coupon.used_count)
        return True
