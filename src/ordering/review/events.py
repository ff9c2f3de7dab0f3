"""Domain events for the ProductReview aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ProductReview")
class ProductRated:
    """A customer rated a product from one of their delivered orders."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier()
    guest_email = String()
    rating = Integer(required=True)
    rated_at = DateTime(required=True)
