"""FastAPI routes for the Ordering domain: cart, orders and their analytics, reviews and customers."""

import json
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.analytics.customers import customer_analytics, customer_lifetime_value
from ordering.analytics.reports import (
    DEFAULT_TOP_LIMIT,
    avg_time_between_orders,
    customer_lifetime_values,
    most_reviewed_products,
    orders_count_by_status,
    revenue_report,
    top_customers,
    top_selling_products,
)
from ordering.api.auth import optional_identity, protect, resolve_requester, restrict_to
from ordering.api.schemas import (
    AddToCartRequest,
    AdminNotesRequest,
    ConvertCartRequest,
    GuestRequest,
    PlaceOrderRequest,
    RateProductRequest,
    SelectPaymentMethodRequest,
    TrackingInfoRequest,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
)
from ordering.auth import Identity
from ordering.cart.cart import ShoppingCart
from ordering.cart.conversion import ConvertCartToOrder
from ordering.cart.items import AddToCart, RemoveCartItem, UpdateCartItemQuantity
from ordering.cart.management import ClearCart, SelectPaymentMethod
from ordering.order.cancellation import CancelMyOrder, MarkOrderCancelled
from ordering.order.creation import PlaceOrder
from ordering.order.fulfillment import AddTrackingInfo, MarkOrderDelivered
from ordering.order.order import Order
from ordering.order.payment import MarkOrderPaid
from ordering.order.removal import DeleteOrder
from ordering.order.status import UpdateOrderStatus
from ordering.review.rating import RateOrderedProduct
from ordering.review.review import ProductReview
from ordering.shared.requester import DEFAULT_GUEST_NAME, identify, requester_fields

admin_only = restrict_to("admin")


def success(data, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"status": "success", "data": data}))


def _requester_fields(identity: Identity | None, guest_email: str | None) -> dict:
    return requester_fields(resolve_requester(identity, guest_email))


def _admin_fields(identity: Identity) -> dict:
    return {"actor_id": identity.user_id, "is_admin": identity.is_admin}


def _dump(model) -> str | None:
    return json.dumps(model.model_dump(exclude_none=True)) if model is not None else None


def _aware(moment: datetime | None) -> datetime | None:
    if moment is None or moment.tzinfo:
        return moment
    return moment.replace(tzinfo=UTC)


def _cart(cart_id) -> dict:
    return {"cart": current_domain.repository_for(ShoppingCart).get(cart_id).to_dict()}


def _order(order_id) -> dict:
    return {"order": current_domain.repository_for(Order).get(order_id).to_dict()}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def get_cart(
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    requester = resolve_requester(identity, guest_email)
    cart = current_domain.repository_for(ShoppingCart).get_active_for(requester)
    return success({"cart": cart.to_dict()})


@cart_router.post("")
async def add_to_cart(
    body: AddToCartRequest,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    variant_ids = [body.variant] if isinstance(body.variant, str) else body.variant
    command = AddToCart(
        product_id=body.product_id,
        quantity=body.quantity,
        variant_ids=json.dumps(variant_ids) if variant_ids else None,
        **_requester_fields(identity, body.guest_email or guest_email),
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return success(_cart(cart_id))


@cart_router.delete("")
async def clear_cart(
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = ClearCart(**_requester_fields(identity, guest_email))
    cart_id = current_domain.process(command, asynchronous=False)
    return success(_cart(cart_id))


@cart_router.patch("/items/{item_id}")
async def update_cart_item(
    item_id: str,
    body: UpdateCartItemRequest,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = UpdateCartItemQuantity(
        item_id=item_id,
        quantity=body.quantity,
        **_requester_fields(identity, body.guest_email or guest_email),
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return success(_cart(cart_id))


@cart_router.delete("/items/{item_id}")
async def remove_cart_item(
    item_id: str,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = RemoveCartItem(item_id=item_id, **_requester_fields(identity, guest_email))
    cart_id = current_domain.process(command, asynchronous=False)
    return success(_cart(cart_id))


@cart_router.patch("/payment-method")
async def select_payment_method(
    body: SelectPaymentMethodRequest,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = SelectPaymentMethod(
        payment_method=body.payment_method,
        **_requester_fields(identity, body.guest_email or guest_email),
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return success(_cart(cart_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def place_order(
    body: PlaceOrderRequest,
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = PlaceOrder(
        product_id=body.product_id,
        quantity=body.quantity,
        shipping_address=_dump(body.shipping_address),
        payment_method=body.payment_method,
        payment_details=_dump(body.payment_details),
        guest_name=body.guest_name,
        **_requester_fields(identity, body.guest_email),
    )
    order_id = current_domain.process(command, asynchronous=False)
    return success(_order(order_id), status_code=201)


@order_router.post("/convert-cart", status_code=201)
async def convert_cart(
    body: ConvertCartRequest,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = ConvertCartToOrder(
        shipping_address=_dump(body.shipping_address),
        payment_method=body.payment_method,
        payment_details=_dump(body.payment_details),
        guest_name=body.guest_name,
        **_requester_fields(identity, body.guest_email or guest_email),
    )
    order_id = current_domain.process(command, asynchronous=False)
    return success(_order(order_id), status_code=201)


@order_router.get("")
async def list_orders(
    guest_email: str | None = Query(None),
    status: str | None = Query(None),
    paid: str | None = Query(None),
    guest_status: str | None = Query(None),
    created_after: datetime | None = Query(None),
    created_before: datetime | None = Query(None),
    search: str | None = Query(None),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    requester = resolve_requester(identity, guest_email)
    result = current_domain.repository_for(Order).list_for(
        requester,
        status=status,
        paid=paid,
        guest_status=guest_status,
        created_after=_aware(created_after),
        created_before=_aware(created_before),
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return success(
        {
            "results": len(result.items),
            "total": result.total,
            "page": result.page,
            "pages": result.pages,
            "orders": [order.to_dict() for order in result.items],
        }
    )


# Analytics routes are declared before "/{order_id}" so the path does not shadow them.
@order_router.get("/analytics/total-revenue")
async def total_revenue(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    payment_method: str | None = Query(None),
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    orders = current_domain.repository_for(Order).paid_orders()
    report = revenue_report(orders, start=_aware(start_date), end=_aware(end_date), payment_method=payment_method)
    return success({"revenue": report})


@order_router.get("/analytics/orders-count-by-status")
async def count_by_status(identity: Identity = Depends(admin_only)) -> JSONResponse:
    orders = current_domain.repository_for(Order).all_visible()
    return success(orders_count_by_status(orders))


@order_router.get("/analytics/top-products")
async def top_products(
    limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    orders = current_domain.repository_for(Order).paid_orders()
    products = top_selling_products(orders, limit=limit, start=_aware(start_date), end=_aware(end_date))
    return success({"results": len(products), "products": products})


@order_router.get("/analytics/top-customers")
async def top_customers_report(
    limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    orders = current_domain.repository_for(Order).paid_orders()
    customers = top_customers(orders, limit=limit, start=_aware(start_date), end=_aware(end_date))
    return success({"results": len(customers), "customers": customers})


@order_router.get("/analytics/most-reviewed-products")
async def most_reviewed(
    limit: int = Query(DEFAULT_TOP_LIMIT, ge=1, le=100),
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    reviews = current_domain.repository_for(ProductReview).all_reviews()
    products = most_reviewed_products(reviews, limit=limit)
    return success({"results": len(products), "products": products})


@order_router.get("/analytics/customer-lifetime-value")
async def lifetime_values(identity: Identity = Depends(admin_only)) -> JSONResponse:
    customers = customer_lifetime_values(current_domain.repository_for(Order).paid_orders())
    return success({"results": len(customers), "customers": customers})


@order_router.get("/analytics/avg-time-between-orders")
async def time_between_orders(identity: Identity = Depends(admin_only)) -> JSONResponse:
    customers = avg_time_between_orders(current_domain.repository_for(Order).paid_orders())
    return success({"results": len(customers), "customers": customers})


@order_router.get("/{order_id}")
async def get_order(
    order_id: str,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    requester = resolve_requester(identity, guest_email)
    order = current_domain.repository_for(Order).get_for(requester, order_id)
    return success({"order": order.to_dict()})


@order_router.patch("/{order_id}/cancel")
async def cancel_my_order(
    order_id: str,
    body: GuestRequest | None = None,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    email = (body.guest_email if body else None) or guest_email
    command = CancelMyOrder(order_id=order_id, **_requester_fields(identity, email))
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.get("/{order_id}/track")
async def track_order(
    order_id: str,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    requester = resolve_requester(identity, guest_email)
    order = current_domain.repository_for(Order).get_for(requester, order_id)
    return success({"tracking": order.tracking_summary()})


@order_router.post("/{order_id}/rate", status_code=201)
async def rate_ordered_product(
    order_id: str,
    body: RateProductRequest,
    guest_email: str | None = Query(None),
    identity: Identity | None = Depends(optional_identity),
) -> JSONResponse:
    command = RateOrderedProduct(
        order_id=order_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
        **_requester_fields(identity, body.guest_email or guest_email),
    )
    review_id = current_domain.process(command, asynchronous=False)
    review = current_domain.repository_for(ProductReview).get(review_id)
    return success({"review": review.to_dict()}, status_code=201)


# ---------------------------------------------------------------------------
# Admin order operations
# ---------------------------------------------------------------------------
@order_router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, notes=body.notes, **_admin_fields(identity))
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.patch("/{order_id}/mark-paid")
async def mark_order_paid(
    order_id: str,
    body: AdminNotesRequest | None = None,
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    command = MarkOrderPaid(order_id=order_id, notes=body.notes if body else None, **_admin_fields(identity))
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.patch("/{order_id}/mark-delivered")
async def mark_order_delivered(
    order_id: str,
    body: AdminNotesRequest | None = None,
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    command = MarkOrderDelivered(order_id=order_id, notes=body.notes if body else None, **_admin_fields(identity))
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.patch("/{order_id}/mark-cancelled")
async def mark_order_cancelled(
    order_id: str,
    body: AdminNotesRequest | None = None,
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    command = MarkOrderCancelled(order_id=order_id, notes=body.notes if body else None, **_admin_fields(identity))
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.patch("/{order_id}/tracking")
async def add_tracking_info(
    order_id: str,
    body: TrackingInfoRequest,
    identity: Identity = Depends(admin_only),
) -> JSONResponse:
    command = AddTrackingInfo(
        order_id=order_id,
        tracking_number=body.tracking_number,
        shipping_provider=body.shipping_provider,
        **_admin_fields(identity),
    )
    current_domain.process(command, asynchronous=False)
    return success(_order(order_id))


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str, identity: Identity = Depends(admin_only)) -> Response:
    command = DeleteOrder(order_id=order_id, **_admin_fields(identity))
    current_domain.process(command, asynchronous=False)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Review Router
# ---------------------------------------------------------------------------
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


@review_router.get("")
async def list_reviews(product_id: str = Query(...)) -> JSONResponse:
    reviews = current_domain.repository_for(ProductReview).for_product(product_id)
    return success({"results": len(reviews), "reviews": [review.to_dict() for review in reviews]})


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


def _history_entry(order) -> dict:
    data = order.to_dict()
    return {key: data[key] for key in ("id", "status", "total_amount", "is_paid", "is_guest", "created_at", "items")}


def _purchase_history(requester, customer: dict) -> JSONResponse:
    orders = current_domain.repository_for(Order).purchase_history(requester)
    return success(
        {
            "results": len(orders),
            "customer": customer,
            "orders": [_history_entry(order) for order in orders],
        }
    )


@customer_router.get("/guest/orders")
async def guest_purchase_history(guest_email: str = Query(...)) -> JSONResponse:
    requester = identify(guest_email=guest_email)
    customer = {"id": "guest", "name": DEFAULT_GUEST_NAME, "email": requester.email, "is_guest": True}
    return _purchase_history(requester, customer)


@customer_router.get("/me/purchase-history")
async def my_purchase_history(identity: Identity = Depends(protect)) -> JSONResponse:
    requester = identify(user_id=identity.user_id, email=identity.email)
    customer = {"id": identity.user_id, "email": identity.email, "is_guest": False}
    return _purchase_history(requester, customer)


@customer_router.get("/analytics")
async def customers_overview(identity: Identity = Depends(admin_only)) -> JSONResponse:
    orders = current_domain.repository_for(Order).all_visible()
    return success(customer_analytics(orders))


@customer_router.get("/{customer_id}/purchase-history")
async def customer_purchase_history(customer_id: str, identity: Identity = Depends(admin_only)) -> JSONResponse:
    customer = {"id": customer_id, "email": None, "is_guest": False}
    return _purchase_history(identify(user_id=customer_id), customer)


@customer_router.get("/{customer_id}/lifetime-value")
async def customer_lifetime(customer_id: str, identity: Identity = Depends(admin_only)) -> JSONResponse:
    orders = current_domain.repository_for(Order).paid_orders()
    return success({"lifetime_value": customer_lifetime_value(orders, customer_id)})
