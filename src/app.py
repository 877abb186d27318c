"""Storefront FastAPI application.

Processes commands synchronously via HTTP. Every request runs inside the
storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (test / development / production).
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.domain import storefront
from storefront.reporting.cache import build_report_cache
from storefront.utils.logging import bind_request_context, clear_request_context

storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Fireworks storefront: coupons, checkout pricing, orders and dashboards",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Dashboard figures are cached per process for report_cache_ttl_seconds
app.state.report_cache = build_report_cache()

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and tag log lines with the request."""
    request_id = bind_request_context(
        request.method,
        request.url.path,
        request_id=request.headers.get("x-request-id"),
    )
    try:
        with storefront.domain_context():
            response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["x-request-id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    coupon_router,
    customer_router,
    dashboard_router,
    order_router,
    product_router,
)

app.include_router(coupon_router)
app.include_router(order_router)
app.include_router(product_router)
app.include_router(customer_router)
app.include_router(dashboard_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
