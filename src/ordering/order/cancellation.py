"""Order cancellation: by the customer who owns the order, or by an admin.

Customer cancellation is stricter: a shipped and paid order needs an admin.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.requester import Authenticated, require_admin, requester_from

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelMyOrder:
    order_id = Identifier(required=True)
    user_id = Identifier()
    user_email = String(max_length=254)
    is_admin = Boolean(default=False)
    guest_email = String(max_length=254)


@ordering.command(part_of="Order")
class MarkOrderCancelled:
    order_id = Identifier(required=True)
    notes = Text()
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelMyOrder)
    def cancel_my_order(self, command):
        requester = requester_from(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_for(requester, command.order_id)

        actor = requester.user_id if isinstance(requester, Authenticated) else requester.email
        order.cancel_by_customer(actor=actor)
        repo.add(order)

        logger.info("order_cancelled_by_customer", order_id=str(order.id))
        return str(order.id)

    @handle(MarkOrderCancelled)
    def mark_order_cancelled(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get_visible(command.order_id)
        order.mark_cancelled(notes=command.notes, actor=actor_id)
        repo.add(order)
        return str(order.id)
