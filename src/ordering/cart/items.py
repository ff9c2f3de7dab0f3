"""Cart item management: commands and handler.

Products and variants are resolved from the catalogue; the line stores the
name, price and image found there at the time the item is added.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import MAX_LINE_QUANTITY, ShoppingCart
from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.shared.requester import requester_from

logger = structlog.get_logger(__name__)


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    variant_ids = Text()  # JSON array of variant ids
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command(part_of="ShoppingCart")
class UpdateCartItemQuantity:
    item_id = Identifier(required=True)  # Product id or variant id
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command(part_of="ShoppingCart")
class RemoveCartItem:
    item_id = Identifier(required=True)  # Line id, product id or variant id
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


def _parse_variant_ids(raw) -> list[str]:
    if not raw:
        return []
    ids = json.loads(raw) if isinstance(raw, str) else raw
    if isinstance(ids, str | int):
        ids = [ids]
    return [str(v) for v in ids]


def resolve_lines(product_id, quantity, variant_ids=None) -> list[dict]:
    """Build the cart lines for a product and its selected variants.

    Each selected variant becomes its own line at the variant price. Without
    variants a single line at the base price is returned.
    """
    product = get_catalogue().get_product(product_id)
    if product is None:
        raise ObjectNotFoundError({"product": ["Product not found"]})

    if not variant_ids:
        return [
            {
                "product_id": product.product_id,
                "name": product.name,
                "price": product.base_price,
                "quantity": quantity,
                "image": product.primary_image,
            }
        ]

    lines = []
    for variant_id in variant_ids:
        variant = product.variant(variant_id)
        if variant is None:
            raise ObjectNotFoundError({"variant": [f"Variant with ID {variant_id} not found"]})
        lines.append(
            {
                "product_id": product.product_id,
                "name": f"{product.name} - {variant.name}",
                "price": variant.price,
                "quantity": quantity,
                "image": product.primary_image,
                "variant": {
                    "variant_id": variant.variant_id,
                    "name": variant.name,
                    "sku": variant.sku,
                    "color": variant.color,
                    "size": variant.size,
                    "price": variant.price,
                },
            }
        )
    return lines


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        requester = requester_from(command)
        try:
            variant_ids = _parse_variant_ids(command.variant_ids)
        except json.JSONDecodeError:
            raise ValidationError({"variant_ids": ["Invalid variant selection"]}) from None
        lines = resolve_lines(command.product_id, command.quantity, variant_ids)

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.find_or_create_for(requester)
        for line in lines:
            cart.add_item(**line)
        repo.add(cart)

        logger.info(
            "cart_item_added",
            cart_id=str(cart.id),
            product_id=str(command.product_id),
            lines=len(lines),
        )
        return str(cart.id)

    @handle(UpdateCartItemQuantity)
    def update_cart_item_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_active_for(requester_from(command))
        cart.update_item_quantity(item_id=command.item_id, new_quantity=command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get_active_for(requester_from(command))
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)
        return str(cart.id)
