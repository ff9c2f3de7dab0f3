"""Order fulfillment (admin): delivery and tracking information."""

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.requester import require_admin


@ordering.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)
    notes = Text()
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command(part_of="Order")
class AddTrackingInfo:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=255)
    shipping_provider = String(max_length=100)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(MarkOrderDelivered)
    def mark_order_delivered(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_visible(command.order_id)
        order.mark_delivered(notes=command.notes, actor=actor_id)
        repo.add(order)
        return str(order.id)

    @handle(AddTrackingInfo)
    def add_tracking_info(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_visible(command.order_id)
        order.add_tracking(
            tracking_number=command.tracking_number,
            shipping_provider=command.shipping_provider,
            actor=actor_id,
        )
        repo.add(order)
        return str(order.id)
