"""Ordering bounded context: Shopping Cart, Orders and Product Reviews.

Handles guest and registered checkout, the cart-to-order conversion, the
order status state machine, reviews of delivered products, and read-only
order analytics.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
