"""Storefront API package."""

from storefront.api.routes import (
    coupon_router,
    customer_router,
    dashboard_router,
    order_router,
    product_router,
)

__all__ = ["coupon_router", "customer_router", "dashboard_router", "order_router", "product_router"]
