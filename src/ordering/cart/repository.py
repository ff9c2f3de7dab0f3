"""Repository for the ShoppingCart aggregate."""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.shared.queries import fetch_all
from ordering.shared.requester import Authenticated, Requester, cart_filter


@ordering.repository(part_of=ShoppingCart)
class CartRepository:
    def find_active_for(self, requester: Requester) -> ShoppingCart | None:
        """The requester's unconverted, unexpired cart, most recent first."""
        now = datetime.now(UTC)
        carts = fetch_all(self._dao.query.filter(is_converted=False, **cart_filter(requester)).order_by("-updated_at"))
        return next((cart for cart in carts if not cart.is_expired(now)), None)

    def get_active_for(self, requester: Requester) -> ShoppingCart:
        cart = self.find_active_for(requester)
        if cart is None:
            raise ObjectNotFoundError({"cart": ["No active cart found"]})
        return cart

    def find_or_create_for(self, requester: Requester) -> ShoppingCart:
        cart = self.find_active_for(requester)
        if cart is not None:
            return cart

        if isinstance(requester, Authenticated):
            return ShoppingCart.create(user_id=requester.user_id)
        return ShoppingCart.create(guest_email=requester.email)
