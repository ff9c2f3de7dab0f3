"""Ordering domain API package."""

from ordering.api.routes import cart_router, customer_router, order_router, review_router

__all__ = ["cart_router", "customer_router", "order_router", "review_router"]
