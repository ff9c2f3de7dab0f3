"""RateOrderedProduct: review a product from one of the requester's delivered orders."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.review.review import ProductReview
from ordering.shared.errors import AccessDeniedError, ConflictError
from ordering.shared.requester import requester_from

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ProductReview")
class RateOrderedProduct:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    rating = Integer(required=True)
    comment = Text()
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command_handler(part_of=ProductReview)
class RateOrderedProductHandler:
    @handle(RateOrderedProduct)
    def rate_ordered_product(self, command):
        requester = requester_from(command)
        order = current_domain.repository_for(Order).delivered_for(requester, command.order_id)

        if not order.contains_product(command.product_id):
            raise AccessDeniedError({"product_id": ["This product was not part of your order"]})

        repo = current_domain.repository_for(ProductReview)
        if repo.exists_for(requester, command.order_id, command.product_id):
            raise ConflictError({"review": ["You have already reviewed this product from this order"]})

        review = ProductReview.rate(order, command.product_id, command.rating, command.comment)
        repo.add(review)

        logger.info("product_rated", review_id=str(review.id), product_id=str(command.product_id))
        return str(review.id)
