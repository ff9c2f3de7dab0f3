"""BDD tests for the order status state machine."""

from ordering.shared.errors import ConflictError
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

scenarios("features/order_state_machine.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order status is changed to "{status}"'))
def change_status(order, status, error):
    try:
        order.update_status(status, actor="admin-001")
    except (ValidationError, ConflictError) as exc:
        error["exc"] = exc
