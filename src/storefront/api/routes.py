"""FastAPI routes for the Storefront - coupons, orders, products, customers and dashboards."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddProductRequest,
    CancelOrderRequest,
    CouponIdResponse,
    CreateCouponRequest,
    CustomerIdResponse,
    OrderIdResponse,
    PaymentReceiptRequest,
    PlaceOrderRequest,
    ProcessRefundRequest,
    ProductIdResponse,
    RegisterCustomerRequest,
    RejectPaymentRequest,
    RequestRefundRequest,
    StatusResponse,
    UpdateCouponRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
    UseCouponRequest,
    ValidateCouponRequest,
    VerifyPaymentRequest,
)
from storefront.catalogue.management import AddProduct
from storefront.catalogue.product import Product
from storefront.coupon.coupon import normalize_code
from storefront.coupon.management import CreateCoupon, DeactivateCoupon, RedeemCoupon, UpdateCoupon
from storefront.coupon.validation import validate_coupon
from storefront.customer.registration import RegisterCustomer
from storefront.customer.wishlist import AddToWishlist, RemoveFromWishlist
from storefront.order.cancellation import CancelOrder
from storefront.order.order import Order
from storefront.order.payment import RejectPayment, SubmitPaymentReceipt, UpdatePaymentStatus, VerifyPayment
from storefront.order.placement import PlaceOrder
from storefront.order.refunds import ProcessRefund, RequestRefund
from storefront.order.status import UpdateOrderStatus
from storefront.pricing.calculator import cart_lines
from storefront.reporting.cache import build_report_cache
from storefront.reporting.dashboard import DashboardService
from storefront.shared.clock import as_utc
from storefront.shared.errors import CouponNotFoundError, CouponStateError


def _iso(moment):
    moment = as_utc(moment)
    return moment.isoformat() if moment else None


def order_detail(order: Order) -> dict:
    address = order.shipping_address
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_id": str(order.customer_id),
        "items": [
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
                "image": item.image,
            }
            for item in order.items
        ],
        "shipping_address": {
            "name": address.name,
            "phone": address.phone,
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "pincode": address.pincode,
            "country": address.country,
            "formatted": address.formatted(),
        },
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "status": order.status,
        "items_price": order.items_price,
        "discount_amount": order.discount_amount,
        "tax_price": order.tax_price,
        "shipping_price": order.shipping_price,
        "total_price": order.total_price,
        "coupon_code": order.coupon_code,
        "tracking_number": order.tracking_number,
        "estimated_delivery_date": _iso(order.estimated_delivery_date),
        "actual_delivery_date": _iso(order.actual_delivery_date),
        "cancellation_reason": order.cancellation_reason,
        "cancelled_at": _iso(order.cancelled_at),
        "refund_status": order.refund_status,
        "refund_reason": order.refund_reason,
        "refund_processed_at": _iso(order.refund_processed_at),
        "can_be_cancelled": order.can_be_cancelled(),
        "status_history": [
            {"status": change.status, "timestamp": _iso(change.timestamp), "note": change.note}
            for change in order.history()
        ],
        "created_at": _iso(order.created_at),
    }


def get_dashboard(request: Request) -> DashboardService:
    """Dashboard service bound to the application's report cache."""
    cache = getattr(request.app.state, "report_cache", None)
    if cache is None:
        cache = request.app.state.report_cache = build_report_cache()
    return DashboardService(cache)


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate")
async def validate_coupon_route(body: ValidateCouponRequest):
    lines = cart_lines([item.model_dump() for item in body.cart_items])
    try:
        application = validate_coupon(body.code, lines)
    except CouponNotFoundError as exc:
        return JSONResponse(
            status_code=404,
            content={"success": False, "kind": exc.kind.value, "message": exc.message},
        )
    except CouponStateError as exc:
        return JSONResponse(
            status_code=400,
            content={"success": False, "kind": exc.kind.value, "message": exc.message},
        )
    return {"success": True, "message": "Coupon applied successfully", **application.to_dict()}


@coupon_router.post("/use")
async def use_coupon(body: UseCouponRequest):
    """Record a coupon use. Always succeeds; bookkeeping problems are only logged."""
    code = normalize_code(body.code)
    if code:
        current_domain.process(RedeemCoupon(code=code), asynchronous=False)
    return {"success": True}


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    command = CreateCoupon(
        code=body.code,
        discount_percentage=body.discount_percentage,
        applicable_products=json.dumps(body.applicable_products),
        description=body.description,
        usage_limit=body.usage_limit,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        created_by=body.created_by,
    )
    result = current_domain.process(command, asynchronous=False)
    return CouponIdResponse(coupon_id=result)


@coupon_router.put("/{coupon_id}", response_model=StatusResponse)
async def update_coupon(coupon_id: str, body: UpdateCouponRequest) -> StatusResponse:
    command = UpdateCoupon(
        coupon_id=coupon_id,
        changes=json.dumps(body.model_dump(mode="json", exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@coupon_router.put("/{coupon_id}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(coupon_id: str) -> StatusResponse:
    current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=body.customer_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        payment_receipt=body.payment_receipt,
        notes=body.notes,
        expected_total=body.total_price,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("")
async def list_orders(customer_id: str):
    orders = current_domain.repository_for(Order).for_customer(customer_id)
    return {"orders": [order_detail(order) for order in orders]}


@order_router.get("/{order_id}")
async def get_order(order_id: str):
    order = current_domain.repository_for(Order).get(order_id)
    return order_detail(order)


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        tracking_number=body.tracking_number,
        note=body.note,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, comment=body.comment)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment-receipt", response_model=StatusResponse)
async def submit_payment_receipt(order_id: str, body: PaymentReceiptRequest) -> StatusResponse:
    command = SubmitPaymentReceipt(order_id=order_id, receipt=body.receipt)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment/verify", response_model=StatusResponse)
async def verify_payment(order_id: str, body: VerifyPaymentRequest | None = None) -> StatusResponse:
    command = VerifyPayment(order_id=order_id, note=body.note if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment/reject", response_model=StatusResponse)
async def reject_payment(order_id: str, body: RejectPaymentRequest | None = None) -> StatusResponse:
    command = RejectPayment(order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment-status", response_model=StatusResponse)
async def update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> StatusResponse:
    command = UpdatePaymentStatus(order_id=order_id, payment_status=body.payment_status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/refund", response_model=StatusResponse)
async def request_refund(order_id: str, body: RequestRefundRequest) -> StatusResponse:
    command = RequestRefund(order_id=order_id, reason=body.reason, comment=body.comment)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/process-refund", response_model=StatusResponse)
async def process_refund(order_id: str, body: ProcessRefundRequest) -> StatusResponse:
    command = ProcessRefund(order_id=order_id, decision=body.decision, admin_comment=body.admin_comment)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


def product_detail(product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "price": product.price,
        "original_price": product.original_price,
        "stock": product.stock,
        "image": product.image,
        "is_active": product.is_active,
        "is_featured": product.is_featured,
    }


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest) -> ProductIdResponse:
    command = AddProduct(**body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("")
async def list_products(category: str):
    products = current_domain.repository_for(Product).in_category(category)
    return {"products": [product_detail(product) for product in products]}


@product_router.get("/{product_id}")
async def get_product(product_id: str):
    product = current_domain.repository_for(Product).get(product_id)
    return product_detail(product)


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.post("", status_code=201, response_model=CustomerIdResponse)
async def register_customer(body: RegisterCustomerRequest) -> CustomerIdResponse:
    command = RegisterCustomer(name=body.name, email=body.email, phone=body.phone, role=body.role)
    result = current_domain.process(command, asynchronous=False)
    return CustomerIdResponse(customer_id=result)


@customer_router.post("/{customer_id}/wishlist/{product_id}", response_model=StatusResponse)
async def add_to_wishlist(customer_id: str, product_id: str) -> StatusResponse:
    current_domain.process(AddToWishlist(customer_id=customer_id, product_id=product_id), asynchronous=False)
    return StatusResponse()


@customer_router.delete("/{customer_id}/wishlist/{product_id}", response_model=StatusResponse)
async def remove_from_wishlist(customer_id: str, product_id: str) -> StatusResponse:
    current_domain.process(RemoveFromWishlist(customer_id=customer_id, product_id=product_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Dashboard Router
# ---------------------------------------------------------------------------
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@dashboard_router.get("/overview/{customer_id}")
async def customer_overview(customer_id: str, dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.customer_overview(customer_id)


@dashboard_router.get("/admin/overview")
async def admin_overview(dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.admin_overview()


@dashboard_router.get("/admin/analytics")
async def admin_analytics(dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.analytics()


@dashboard_router.get("/admin/customers")
async def admin_customers(dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.customer_statistics()


@dashboard_router.get("/admin/order-stats")
async def admin_order_stats(dashboard: DashboardService = Depends(get_dashboard)):
    return dashboard.order_statistics()
