"""Repository for the ProductReview aggregate."""

from ordering.domain import ordering
from ordering.review.review import ProductReview
from ordering.shared.queries import fetch_all
from ordering.shared.requester import Requester, cart_filter


@ordering.repository(part_of=ProductReview)
class ProductReviewRepository:
    def exists_for(self, requester: Requester, order_id, product_id) -> bool:
        """Whether the requester already reviewed this product from this order."""
        matches = self._dao.query.filter(
            order_id=str(order_id),
            product_id=str(product_id),
            **cart_filter(requester),
        ).limit(1)
        return bool(matches.all().items)

    def for_product(self, product_id) -> list[ProductReview]:
        return fetch_all(self._dao.query.filter(product_id=str(product_id)).order_by("-created_at"))

    def all_reviews(self) -> list[ProductReview]:
        return fetch_all(self._dao.query.order_by("created_at"))
