"""Order deletion (admin). Orders are soft-deleted and kept in the store."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.shared.requester import require_admin

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        actor_id = require_admin(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.soft_delete(actor=actor_id)
        repo.add(order)

        logger.info("order_deleted", order_id=str(order.id), deleted_by=actor_id)
        return str(order.id)
