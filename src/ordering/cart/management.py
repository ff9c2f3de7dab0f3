"""Cart management: clearing the cart and choosing how to pay."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.shared.requester import requester_from


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    """Remove every line from the requester's active cart."""

    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command(part_of="ShoppingCart")
class SelectPaymentMethod:
    payment_method = String(required=True, max_length=20)
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_active_for(requester_from(command))
        cart.clear()
        repo.add(cart)
        return str(cart.id)

    @handle(SelectPaymentMethod)
    def select_payment_method(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_active_for(requester_from(command))
        cart.select_payment_method(command.payment_method)
        repo.add(cart)
        return str(cart.id)
