"""Repository for the Order aggregate.

Every read goes through ``order_filter`` and skips soft-deleted orders.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from ordering.order.order import Order, parse_status
from ordering.shared.queries import fetch_all
from ordering.shared.requester import Authenticated, Requester, can_access, cart_filter, is_owner, order_filter

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SORT_FIELDS = {
    "newest": "-created_at",
    "oldest": "created_at",
    "total_desc": "-total_amount",
    "total_asc": "total_amount",
}


@dataclass(frozen=True)
class OrderPage:
    items: list
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def _as_bool(value, field_name):
    if value is None or isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError({field_name: [f"Invalid value: {value}"]})


def _as_datetime(value, field_name):
    if value is None:
        return value
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError({field_name: ["Invalid date"]}) from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _is_admin(requester) -> bool:
    return isinstance(requester, Authenticated) and requester.is_admin


@ordering.repository(part_of=Order)
class OrderRepository:
    def get_visible(self, order_id) -> Order:
        """Any non-deleted order, for admin operations."""
        order = self.get(order_id)
        if order.is_deleted:
            raise ObjectNotFoundError({"order": ["Order not found"]})
        return order

    def get_for(self, requester: Requester, order_id) -> Order:
        """The order, if the requester may see it. Foreign orders look missing."""
        order = self.get_visible(order_id)
        if not can_access(requester, order):
            raise ObjectNotFoundError({"order": ["Order not found"]})
        return order

    def list_for(
        self,
        requester: Requester,
        status=None,
        paid=None,
        guest_status=None,
        created_after=None,
        created_before=None,
        search=None,
        sort="newest",
        page=1,
        limit=DEFAULT_PAGE_SIZE,
    ) -> OrderPage:
        criteria = {"is_deleted": False, **order_filter(requester)}

        if status:
            criteria["status"] = parse_status(status).value
        if _is_admin(requester):
            paid = _as_bool(paid, "paid")
            if paid is not None:
                criteria["is_paid"] = paid
            if guest_status:
                if guest_status not in ("guest", "registered"):
                    raise ValidationError({"guest_status": ["Use 'guest' or 'registered'"]})
                criteria["is_guest"] = guest_status == "guest"

        created_after = _as_datetime(created_after, "created_after")
        created_before = _as_datetime(created_before, "created_before")
        if created_after:
            criteria["created_at__gte"] = created_after
        if created_before:
            criteria["created_at__lte"] = created_before

        if sort not in SORT_FIELDS:
            raise ValidationError({"sort": [f"Sort by one of: {', '.join(SORT_FIELDS)}"]})

        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        start = (page - 1) * limit
        query = self._dao.query.filter(**criteria).order_by(SORT_FIELDS[sort])

        if not search:
            result = query.limit(limit).offset(start).all()
            return OrderPage(items=result.items, total=result.total, page=page, limit=limit)

        # Product names live inside the item snapshots, so the search runs in memory
        needle = search.strip().lower()
        orders = [o for o in fetch_all(query) if any(needle in item.name.lower() for item in o.items)]
        return OrderPage(items=orders[start : start + limit], total=len(orders), page=page, limit=limit)

    def delivered_for(self, requester: Requester, order_id) -> Order:
        """The requester's own delivered order. Admins are held to their own orders too."""
        order = self.get_visible(order_id)
        if not is_owner(requester, order) or not order.is_delivered:
            raise ObjectNotFoundError({"order": ["Delivered order not found"]})
        return order

    def purchase_history(self, requester: Requester) -> list[Order]:
        """Every order the requester placed, newest first. Admins get their own history here too."""
        query = self._dao.query.filter(is_deleted=False, **cart_filter(requester)).order_by("-created_at")
        return fetch_all(query)

    def paid_orders(self) -> list[Order]:
        return fetch_all(self._dao.query.filter(is_deleted=False, is_paid=True).order_by("created_at"))

    def all_visible(self) -> list[Order]:
        return fetch_all(self._dao.query.filter(is_deleted=False).order_by("created_at"))
