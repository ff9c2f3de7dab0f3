"""ProductReview aggregate (CQRS): a rating left on a product from a delivered order.

Reviews are write-once. One review exists per (order, product, owner); the
handler checks this before a new review is stored.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.review.events import ProductRated

MIN_RATING = 1
MAX_RATING = 5


@ordering.aggregate
class ProductReview:
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier()
    is_guest = Boolean(default=False)
    guest_email = String(max_length=254)
    guest_name = String(max_length=255)
    rating = Integer(required=True)
    comment = Text(default="")
    created_at = DateTime()

    @invariant.post
    def rating_must_be_in_range(self):
        if self.rating is not None and not MIN_RATING <= self.rating <= MAX_RATING:
            raise ValidationError({"rating": [f"Rating must be a number between {MIN_RATING} and {MAX_RATING}"]})

    @classmethod
    def rate(cls, order, product_id, rating, comment=""):
        """Create a review owned by whoever owns ``order``."""
        now = datetime.now(UTC)
        review = cls(
            product_id=str(product_id),
            order_id=str(order.id),
            user_id=order.user_id,
            is_guest=order.is_guest,
            guest_email=order.guest_email,
            guest_name=order.guest_name,
            rating=rating,
            comment=(comment or "").strip(),
            created_at=now,
        )
        review.raise_(
            ProductRated(
                review_id=str(review.id),
                product_id=str(product_id),
                order_id=str(order.id),
                user_id=order.user_id,
                guest_email=order.guest_email,
                rating=rating,
                rated_at=now,
            )
        )
        return review
