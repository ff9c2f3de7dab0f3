"""Order payment (admin): record that an order has been paid.

Recording payment also marks the order delivered.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.requester import require_admin


@ordering.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    notes = Text()
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(MarkOrderPaid)
    def mark_order_paid(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_visible(command.order_id)
        order.mark_paid(notes=command.notes, actor=actor_id)
        repo.add(order)
        return str(order.id)
