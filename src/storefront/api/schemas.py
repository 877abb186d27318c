"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the internal Protean
commands they are translated into.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str = Field(validation_alias=AliasChoices("product_id", "product"))
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    image: str | None = None


class ShippingAddressSchema(BaseModel):
    name: str
    phone: str
    street: str
    city: str
    state: str
    pincode: str
    country: str = "India"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    cart_items: list[CartItemSchema]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE10",
                    "cart_items": [
                        {"product_id": "prod-001", "name": "Sky Rocket", "price": 100, "quantity": 2},
                        {"product_id": "prod-002", "name": "Sparklers", "price": 50, "quantity": 1},
                    ],
                }
            ]
        }
    }


class UseCouponRequest(BaseModel):
    code: str


class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    discount_percentage: int = Field(ge=1, le=100)
    applicable_products: list[str] = []
    description: str | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    created_by: str | None = None


class UpdateCouponRequest(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    discount_percentage: int | None = Field(default=None, ge=1, le=100)
    applicable_products: list[str] | None = None
    description: str | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool | None = None


class CouponIdResponse(BaseModel):
    coupon_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    items: list[CartItemSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema
    payment_method: str
    coupon_code: str | None = None
    payment_receipt: str | None = None
    notes: str | None = None
    # Figures the client displayed at checkout; only the total is checked.
    items_price: int | None = None
    discount_amount: int | None = None
    tax_price: int | None = None
    shipping_price: int | None = None
    total_price: int | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    note: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1)
    comment: str | None = None


class PaymentReceiptRequest(BaseModel):
    receipt: str = Field(min_length=1)


class VerifyPaymentRequest(BaseModel):
    note: str | None = None


class RejectPaymentRequest(BaseModel):
    reason: str | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str


class RequestRefundRequest(BaseModel):
    reason: str = Field(min_length=1)
    comment: str | None = None


class ProcessRefundRequest(BaseModel):
    decision: str
    admin_comment: str | None = None


# ---------------------------------------------------------------------------
# Products and customers
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str
    category: str
    price: float = Field(ge=0)
    original_price: float | None = Field(default=None, ge=0)
    stock: int = Field(ge=0, default=0)
    description: str | None = None
    image: str | None = None
    is_featured: bool = False


class ProductIdResponse(BaseModel):
    product_id: str


class RegisterCustomerRequest(BaseModel):
    name: str
    email: str
    phone: str | None = None
    role: str = "customer"


class CustomerIdResponse(BaseModel):
    customer_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
