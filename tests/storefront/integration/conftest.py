import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

from storefront.api import coupon_router, customer_router, dashboard_router, order_router, product_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(coupon_router)
    app.include_router(order_router)
    app.include_router(product_router)
    app.include_router(customer_router)
    app.include_router(dashboard_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def product_id(client):
    response = client.post("/products", json={"name": "Sky Rocket", "category": "Rockets", "price": 500})
    assert response.status_code == 201
    return response.json()["product_id"]
