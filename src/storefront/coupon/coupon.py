"""Coupon aggregate: percentage discounts with date, usage and product restrictions.

A coupon is looked up by its upper-cased code. Validation walks the checks in a
fixed order (active, start date, expiry, usage limit, applicability) and the
first failing check decides the rejection reason.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed, CouponUpdated
from storefront.domain import storefront
from storefront.pricing.calculator import CartLine, Discount, PriceBreakdown, price_cart
from storefront.shared.clock import as_utc
from storefront.shared.errors import CouponNotFoundError, CouponRejection, CouponStateError
from storefront.shared.settings import StorefrontSettings

_UPDATABLE_FIELDS = (
    "code",
    "discount_percentage",
    "applicable_products",
    "description",
    "usage_limit",
    "valid_from",
    "valid_until",
    "is_active",
)


def normalize_code(code) -> str:
    return (code or "").strip().upper()


@dataclass(frozen=True)
class CouponApplication:
    """A successful validation: the coupon summary plus the priced cart."""

    code: str
    discount_percentage: int
    description: str | None
    breakdown: PriceBreakdown

    @property
    def total_discount(self) -> int:
        return self.breakdown.total_discount

    def to_dict(self) -> dict:
        return {
            "coupon": {
                "code": self.code,
                "discount_percentage": self.discount_percentage,
                "description": self.description,
            },
            "discount": {
                "total_discount": self.breakdown.total_discount,
                "original_total": self.breakdown.original_total,
                "discounted_total": self.breakdown.discounted_total,
                "shipping_cost": self.breakdown.shipping,
                "final_total": self.breakdown.total,
                "applicable_items": [line.to_dict() for line in self.breakdown.applicable_lines],
            },
        }


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    discount_percentage = Integer(required=True, min_value=1, max_value=100)
    applicable_products = Text(default="[]")  # JSON: product ids; empty list = every product
    description = String(max_length=255)
    is_active = Boolean(default=True)
    usage_limit = Integer(min_value=1)  # None = unlimited
    used_count = Integer(default=0, min_value=0)
    valid_from = DateTime()
    valid_until = DateTime()  # None = never expires
    created_by = Identifier()
    created_at = DateTime()

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.usage_limit is not None and (self.used_count or 0) > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon cannot be used more times than its usage limit"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_until) < as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["Coupon cannot expire before it becomes valid"]})

    @classmethod
    def create(
        cls,
        code,
        discount_percentage,
        applicable_products=None,
        description=None,
        usage_limit=None,
        valid_from=None,
        valid_until=None,
        created_by=None,
    ):
        now = datetime.now(UTC)
        coupon = cls(
            code=normalize_code(code),
            discount_percentage=discount_percentage,
            applicable_products=json.dumps([str(p) for p in (applicable_products or [])]),
            description=description,
            usage_limit=usage_limit,
            used_count=0,
            valid_from=valid_from or now,
            valid_until=valid_until,
            created_by=created_by,
            created_at=now,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_percentage=coupon.discount_percentage,
                applicable_products=coupon.applicable_products,
                usage_limit=coupon.usage_limit,
                valid_from=coupon.valid_from,
                valid_until=coupon.valid_until,
            )
        )
        return coupon

    @property
    def product_ids(self) -> frozenset:
        return frozenset(json.loads(self.applicable_products) if self.applicable_products else [])

    def as_discount(self) -> Discount:
        return Discount(percentage=self.discount_percentage, applicable_products=self.product_ids)

    def has_remaining_uses(self) -> bool:
        return self.usage_limit is None or (self.used_count or 0) < self.usage_limit

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update(self, **changes):
        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in sorted(unknown)})

        if "code" in changes:
            changes["code"] = normalize_code(changes["code"])
        if "applicable_products" in changes:
            changes["applicable_products"] = json.dumps([str(p) for p in (changes["applicable_products"] or [])])

        with atomic_change(self):
            for field_name, value in changes.items():
                setattr(self, field_name, value)

        self.raise_(
            CouponUpdated(
                coupon_id=str(self.id),
                code=self.code,
                changed_fields=json.dumps(sorted(changes)),
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})
        self.is_active = False
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code))

    # -------------------------------------------------------------------
    # Validation against a cart
    # -------------------------------------------------------------------
    def check_redeemable(self, as_of: datetime | None = None):
        """Raise the first reason this coupon cannot be used at ``as_of``."""
        now = as_utc(as_of) or datetime.now(UTC)

        if not self.is_active:
            raise CouponNotFoundError(self.code)
        if self.valid_from and as_utc(self.valid_from) > now:
            raise CouponStateError(CouponRejection.NOT_YET_VALID)
        if self.valid_until and as_utc(self.valid_until) < now:
            raise CouponStateError(CouponRejection.EXPIRED)
        if not self.has_remaining_uses():
            raise CouponStateError(CouponRejection.LIMIT_EXCEEDED)

    def apply_to(
        self,
        lines: list[CartLine],
        as_of: datetime | None = None,
        settings: StorefrontSettings | None = None,
    ) -> CouponApplication:
        self.check_redeemable(as_of)

        discount = self.as_discount()
        if not any(discount.applies_to(line.product_id) for line in lines):
            raise CouponStateError(CouponRejection.NOT_APPLICABLE)

        return CouponApplication(
            code=self.code,
            discount_percentage=self.discount_percentage,
            description=self.description,
            breakdown=price_cart(lines, discount, settings),
        )

    # -------------------------------------------------------------------
    # Usage bookkeeping
    # -------------------------------------------------------------------
    def redeem(self):
        """Consume one use. Refuses to go past the usage limit."""
        if not self.has_remaining_uses():
            raise CouponStateError(CouponRejection.LIMIT_EXCEEDED)

        self.used_count = (self.used_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                used_count=self.used_count,
                usage_limit=self.usage_limit,
            )
        )


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code) -> Coupon | None:
        """Case-insensitive lookup; returns inactive coupons too."""
        return self._dao.query.filter(code=normalize_code(code)).all().first
