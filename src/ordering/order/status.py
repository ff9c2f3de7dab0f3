"""Order status update (admin): the central state machine transition."""

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.requester import require_admin


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)  # Case-insensitive
    notes = Text()
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_visible(command.order_id)
        order.update_status(command.status, notes=command.notes, actor=actor_id)
        repo.add(order)
        return str(order.id)
