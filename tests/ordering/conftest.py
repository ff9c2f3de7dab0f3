import pytest
from ordering.auth import StaticTokenVerifier, reset_verifier, set_verifier
from ordering.catalogue import reset_catalogue, set_catalogue
from ordering.catalogue.fake_adapter import InMemoryCatalogue
from protean import current_domain
from protean.integrations.pytest import DomainFixture

SHIPPING_ADDRESS = {
    "full_name": "Jane Doe",
    "phone": "+1-555-0100",
    "country": "US",
    "city": "Springfield",
    "street": "123 Main St",
    "postal_code": "62704",
}


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    bed = DomainFixture(ordering)
    bed.setup()
    setup_db(ordering)
    yield bed
    drop_db(ordering)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def catalogue():
    catalogue = InMemoryCatalogue()
    catalogue.add_product("prod-001", "Linen Shirt", 10.0, stock=20, thumbnail="shirt.png")
    catalogue.add_product("prod-002", "Canvas Tote", 5.0, stock=3)
    catalogue.add_product("prod-retired", "Retired Mug", 8.0, is_active=False)
    catalogue.add_product(
        "prod-tee",
        "Cotton Tee",
        15.0,
        stock=50,
        variants=[
            {"variant_id": "var-red-m", "name": "Red / M", "price": 18.0, "sku": "tee-red-m", "color": "Red"},
            {"variant_id": "var-blue-l", "name": "Blue / L", "price": 19.5, "sku": "tee-blue-l", "size": "L"},
        ],
    )
    set_catalogue(catalogue)
    yield catalogue
    reset_catalogue()


@pytest.fixture(autouse=True)
def verifier():
    verifier = StaticTokenVerifier(
        {
            "user-token": {"user_id": "user-001", "role": "user", "email": "jane@example.com"},
            "other-token": {"user_id": "user-002", "role": "user", "email": "sam@example.com"},
            "admin-token": {"user_id": "admin-001", "role": "admin", "email": "ops@example.com"},
        }
    )
    set_verifier(verifier)
    yield verifier
    reset_verifier()


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def place_order():
    """Factory for a single-line order owned by user-001."""
    from ordering.order.order import Order

    def _place(payment_method="card", price=10.0, quantity=2, product_id="prod-001", ownership=None, **kwargs):
        return Order.place(
            ownership=ownership or {"user_id": "user-001", "is_guest": False, "guest_email": None, "guest_name": None},
            items=[{"product_id": product_id, "name": "Linen Shirt", "quantity": quantity, "price": price}],
            shipping_address=dict(SHIPPING_ADDRESS),
            payment_method=payment_method,
            **kwargs,
        )

    return _place
