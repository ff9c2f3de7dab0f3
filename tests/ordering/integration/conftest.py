import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import cart_router, customer_router, order_router, review_router
from ordering.api.errors import register_exception_handlers

USER = {"Authorization": "Bearer user-token"}
OTHER = {"Authorization": "Bearer other-token"}
ADMIN = {"Authorization": "Bearer admin-token"}


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(review_router)
    app.include_router(customer_router)
    return TestClient(app)


@pytest.fixture()
def auth_headers():
    return {"user": USER, "other": OTHER, "admin": ADMIN}
