"""Cart to order conversion: command and handler.

The cart and the new order are written in the handler's unit of work, so
either both are stored or neither is.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.payloads import load_json
from ordering.shared.requester import requester_from

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class ConvertCartToOrder:
    shipping_address = Text(required=True)  # JSON: {full_name, phone, country, city, street, postal_code, notes}
    payment_method = String(max_length=20)  # Falls back to the method selected on the cart
    payment_details = Text()  # JSON: {provider, payment_id, payer_email, card_last4, receipt_url}
    guest_name = String(max_length=255)
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command_handler(part_of=ShoppingCart)
class ConvertCartHandler:
    @handle(ConvertCartToOrder)
    def convert_cart_to_order(self, command):
        requester = requester_from(command)
        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.get_active_for(requester)

        order = cart.convert_to_order(
            requester,
            shipping_address=load_json(command.shipping_address, "shipping_address"),
            payment_method=command.payment_method,
            payment_details=load_json(command.payment_details, "payment_details"),
            guest_name=command.guest_name,
        )

        current_domain.repository_for(Order).add(order)
        cart_repo.add(cart)

        logger.info(
            "cart_converted",
            cart_id=str(cart.id),
            order_id=str(order.id),
            total_amount=order.total_amount,
        )
        return str(order.id)
