"""Quick order: buy a single product without going through a cart."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.order.order import Order, OrderSource, build_payment_details, build_shipping_address
from ordering.shared.money import line_total
from ordering.shared.payloads import load_json
from ordering.shared.requester import Authenticated, ownership_for, requester_from
from ordering.shared.value_objects import normalize_payment_method

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=20)
    payment_details = Text()  # JSON: payment details dict
    guest_name = String(max_length=255)
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        requester = requester_from(command)

        product = get_catalogue().get_product(command.product_id)
        if product is None:
            raise ObjectNotFoundError({"product": ["Product not found"]})
        if not product.is_active:
            raise ValidationError({"product": ["Product is not available"]})
        if command.quantity > product.stock:
            raise ValidationError({"quantity": [f"Only {product.stock} item(s) left in stock"]})

        method = normalize_payment_method(command.payment_method)
        address = build_shipping_address(load_json(command.shipping_address, "shipping_address"))
        owner_email = requester.email if isinstance(requester, Authenticated) else command.guest_email
        details = build_payment_details(
            method,
            load_json(command.payment_details, "payment_details"),
            payer_email=owner_email,
        )

        order = Order.place(
            ownership=ownership_for(
                requester,
                guest_email=command.guest_email,
                payer_email=details.payer_email,
                guest_name=command.guest_name,
            ),
            items=[
                {
                    "product_id": product.product_id,
                    "name": product.name,
                    "quantity": command.quantity,
                    "price": product.base_price,
                    "image": product.primary_image,
                }
            ],
            shipping_address=address,
            payment_method=method,
            payment_details=details,
            total_amount=line_total(product.base_price, command.quantity),
            source=OrderSource.QUICK_ORDER.value,
        )
        current_domain.repository_for(Order).add(order)

        logger.info("order_placed", order_id=str(order.id), source=order.source, total_amount=order.total_amount)
        return str(order.id)
