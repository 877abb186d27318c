"""Tests for the Coupon aggregate: redeemability checks, cart application and usage."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from storefront.coupon.coupon import Coupon
from storefront.pricing.calculator import cart_lines
from storefront.shared.errors import CouponNotFoundError, CouponRejection, CouponStateError

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _coupon(**overrides):
    defaults = {
        "code": "save10",
        "discount_percentage": 10,
        "valid_from": NOW - timedelta(days=7),
    }
    defaults.update(overrides)
    return Coupon.create(**defaults)


def _cart():
    return cart_lines(
        [
            {"product": "P1", "name": "Sky Rocket", "price": 100, "quantity": 2},
            {"product": "P2", "name": "Sparklers", "price": 50, "quantity": 1},
        ]
    )


class TestCouponCreation:
    def test_code_is_stored_upper_case(self):
        assert _coupon(code="  save10 ").code == "SAVE10"

    def test_new_coupon_is_active_and_unused(self):
        coupon = _coupon()
        assert coupon.is_active is True
        assert coupon.used_count == 0
        assert coupon.product_ids == frozenset()

    def test_percentage_must_be_between_1_and_100(self):
        with pytest.raises(ValidationError):
            _coupon(discount_percentage=0)
        with pytest.raises(ValidationError):
            _coupon(discount_percentage=101)

    def test_cannot_expire_before_it_starts(self):
        with pytest.raises(ValidationError) as exc:
            _coupon(valid_from=NOW, valid_until=NOW - timedelta(days=1))
        assert "valid_until" in exc.value.messages

    def test_raises_created_event(self):
        coupon = _coupon()
        assert coupon._events[-1].__class__.__name__ == "CouponCreated"


class TestRedeemability:
    def test_inactive_coupon_reads_as_not_found(self):
        coupon = _coupon()
        coupon.deactivate()
        with pytest.raises(CouponNotFoundError) as exc:
            coupon.check_redeemable(NOW)
        assert exc.value.kind == CouponRejection.NOT_FOUND
        assert exc.value.message == "Invalid coupon code"

    def test_not_yet_valid(self):
        coupon = _coupon(valid_from=NOW + timedelta(days=1))
        with pytest.raises(CouponStateError) as exc:
            coupon.check_redeemable(NOW)
        assert exc.value.kind == CouponRejection.NOT_YET_VALID

    def test_expired_yesterday(self):
        coupon = _coupon(valid_until=NOW - timedelta(days=1))
        with pytest.raises(CouponStateError) as exc:
            coupon.apply_to(_cart(), as_of=NOW)
        assert exc.value.kind == CouponRejection.EXPIRED
        assert exc.value.message == "Coupon has expired"

    def test_expiry_is_checked_before_usage_limit(self):
        coupon = _coupon(valid_until=NOW - timedelta(days=1), usage_limit=1)
        coupon.redeem()
        with pytest.raises(CouponStateError) as exc:
            coupon.check_redeemable(NOW)
        assert exc.value.kind == CouponRejection.EXPIRED

    def test_usage_limit_exceeded(self):
        coupon = _coupon(usage_limit=2)
        coupon.redeem()
        coupon.redeem()
        with pytest.raises(CouponStateError) as exc:
            coupon.check_redeemable(NOW)
        assert exc.value.kind == CouponRejection.LIMIT_EXCEEDED

    def test_unlimited_coupon_never_runs_out(self):
        coupon = _coupon()
        for _ in range(5):
            coupon.redeem()
        coupon.check_redeemable(NOW)
        assert coupon.used_count == 5

    def test_naive_timestamps_are_treated_as_utc(self):
        coupon = _coupon(valid_until=(NOW + timedelta(hours=1)).replace(tzinfo=None))
        coupon.check_redeemable(NOW)


class TestApplyToCart:
    def test_not_applicable_to_any_line(self):
        coupon = _coupon(applicable_products=["P9"])
        with pytest.raises(CouponStateError) as exc:
            coupon.apply_to(_cart(), as_of=NOW)
        assert exc.value.kind == CouponRejection.NOT_APPLICABLE

    def test_partial_cart(self):
        application = _coupon(applicable_products=["P1"]).apply_to(_cart(), as_of=NOW)

        discount = application.to_dict()["discount"]
        assert discount["original_total"] == 250
        assert discount["total_discount"] == 20
        assert discount["discounted_total"] == 230
        assert discount["shipping_cost"] == 150
        assert discount["final_total"] == 380
        assert [item["product"] for item in discount["applicable_items"]] == ["P1"]

    def test_whole_cart(self):
        application = _coupon().apply_to(_cart(), as_of=NOW)
        assert application.total_discount == 25
        assert application.breakdown.total == 375

    def test_summary_carries_code_and_percentage(self):
        application = _coupon(description="Diwali special").apply_to(_cart(), as_of=NOW)
        assert application.to_dict()["coupon"] == {
            "code": "SAVE10",
            "discount_percentage": 10,
            "description": "Diwali special",
        }


class TestRedemption:
    def test_redeem_increments_and_raises_event(self):
        coupon = _coupon(usage_limit=3)
        coupon.redeem()
        assert coupon.used_count == 1
        assert coupon._events[-1].__class__.__name__ == "CouponRedeemed"

    def test_redeem_refuses_past_limit(self):
        coupon = _coupon(usage_limit=1)
        coupon.redeem()
        with pytest.raises(CouponStateError):
            coupon.redeem()
        assert coupon.used_count == 1


class TestAdministration:
    def test_update_changes_fields(self):
        coupon = _coupon()
        coupon.update(discount_percentage=25, code="bigsave", applicable_products=["P1"])
        assert coupon.discount_percentage == 25
        assert coupon.code == "BIGSAVE"
        assert coupon.product_ids == frozenset({"P1"})

    def test_update_rejects_unknown_fields(self):
        with pytest.raises(ValidationError) as exc:
            _coupon().update(used_count=0)
        assert "used_count" in exc.value.messages

    def test_deactivate_twice_fails(self):
        coupon = _coupon()
        coupon.deactivate()
        with pytest.raises(ValidationError):
            coupon.deactivate()
