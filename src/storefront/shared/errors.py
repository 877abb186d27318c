"""Storefront error taxonomy layered on Protean's exceptions.

Every error carries a machine-checkable ``kind`` next to its human-readable
message. Validation-type failures subclass ``ValidationError`` and lookups
subclass ``ObjectNotFoundError``, so Protean's FastAPI exception handlers
render them as 400 and 404 responses respectively.
"""

from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError


class CouponRejection(Enum):
    NOT_FOUND = "NotFound"
    NOT_YET_VALID = "NotYetValid"
    EXPIRED = "Expired"
    LIMIT_EXCEEDED = "LimitExceeded"
    NOT_APPLICABLE = "NotApplicable"


_COUPON_MESSAGES = {
    CouponRejection.NOT_FOUND: "Invalid coupon code",
    CouponRejection.NOT_YET_VALID: "Coupon is not yet valid",
    CouponRejection.EXPIRED: "Coupon has expired",
    CouponRejection.LIMIT_EXCEEDED: "Coupon usage limit exceeded",
    CouponRejection.NOT_APPLICABLE: "This coupon is not applicable to any items in your cart",
}


class CouponNotFoundError(ObjectNotFoundError):
    """No active coupon exists for the code."""

    kind = CouponRejection.NOT_FOUND

    def __init__(self, code):
        self.code = code
        self.message = _COUPON_MESSAGES[self.kind]
        super().__init__({"coupon": [self.message]})


class CouponStateError(ValidationError):
    """The coupon exists but cannot be used right now, or not for this cart."""

    def __init__(self, kind: CouponRejection):
        self.kind = kind
        self.message = _COUPON_MESSAGES[kind]
        super().__init__({"coupon": [self.message]})


class InvalidTransitionError(ValidationError):
    """An order was asked to move to a state its current state does not allow."""

    def __init__(self, message: str, kind: str = "InvalidTransition", field: str = "status"):
        self.kind = kind
        self.message = message
        super().__init__({field: [message]})
