"""
Catalog visibility and owner-only management.
"""

import pytest

from wirebazaar.extensions import db
from wirebazaar.models import OrderItem
from wirebazaar.services import order_service, products_service
from wirebazaar.services.authorization_service import AuthorizationError
from wirebazaar.services.identity_service import BackendNotConfiguredError
from wirebazaar.validation import NotFoundError

from conftest import CUSTOMER_INFO


def _product(**overrides):
    patch = {
        "name": "Copper wire 2.5mm",
        "description": "90m coil, FR insulation",
        "category": "wires",
        "price": 1450.0,
        "image_url": "https://cdn.wirebazaar.local/copper-25.jpg",
        "stock_quantity": 40,
        "is_active": True,
    }
    patch.update(overrides)
    return patch


@pytest.fixture
def catalog(owner_actor):
    active = products_service.create_product(owner_actor, patch=_product())
    hidden = products_service.create_product(
        owner_actor, patch=_product(name="Discontinued cable", category="cables", is_active=False),
    )
    return active, hidden


class TestVisibility:

    def test_anonymous_sees_active_only(self, catalog, anonymous):
        active, hidden = catalog
        listing = products_service.list_products(anonymous)
        assert [p["id"] for p in listing["items"]] == [active["id"]]

    def test_owner_sees_inactive(self, catalog, owner_actor):
        assert products_service.list_products(owner_actor)["count"] == 2

    def test_inactive_product_hidden_from_customers(self, catalog, actor_a, owner_actor):
        _, hidden = catalog
        with pytest.raises(NotFoundError):
            products_service.get_product(actor_a, hidden["id"])
        assert products_service.get_product(owner_actor, hidden["id"])["name"] == "Discontinued cable"

    def test_category_filter(self, catalog, owner_actor):
        listing = products_service.list_products(owner_actor, category="cables")
        assert [p["name"] for p in listing["items"]] == ["Discontinued cable"]

    def test_pagination(self, owner_actor, anonymous):
        for n in range(5):
            products_service.create_product(owner_actor, patch=_product(name=f"Wire {n}"))

        page = products_service.list_products(anonymous, page=2, per_page=2)

        assert [p["name"] for p in page["items"]] == ["Wire 2", "Wire 3"]
        assert page["pagination"]["total"] == 5
        assert page["pagination"]["total_pages"] == 3
        assert page["pagination"]["has_next"]
        assert page["pagination"]["has_prev"]


class TestManagement:

    def test_customers_cannot_write(self, catalog, actor_a):
        active, _ = catalog
        with pytest.raises(AuthorizationError):
            products_service.create_product(actor_a, patch=_product())
        with pytest.raises(AuthorizationError):
            products_service.update_product(actor_a, product_id=active["id"], patch={"price": 1.0})
        with pytest.raises(AuthorizationError):
            products_service.delete_product(actor_a, product_id=active["id"])

    def test_update_ignores_unknown_fields(self, catalog, owner_actor):
        active, _ = catalog
        updated = products_service.update_product(
            owner_actor, product_id=active["id"], patch={"price": 1500.0, "id": "hijack"},
        )
        assert updated["price"] == 1500.0
        assert updated["id"] == active["id"]

    def test_update_missing(self, app, owner_actor):
        assert products_service.update_product(owner_actor, product_id="missing", patch={}) is None

    def test_delete_keeps_order_item_snapshot(self, catalog, owner_actor, actor_a):
        active, _ = catalog
        order = order_service.checkout(
            [{"product_id": active["id"], "product_name": active["name"], "unit_price": active["price"], "quantity": 1}],
            CUSTOMER_INFO,
            actor=actor_a,
        )

        assert products_service.delete_product(owner_actor, product_id=active["id"])

        item = db.session.query(OrderItem).filter_by(order_id=order["id"]).one()
        assert item.product_id is None
        assert item.product_name == "Copper wire 2.5mm"
        assert item.product_price == 1450.0

    def test_delete_missing(self, app, owner_actor):
        assert products_service.delete_product(owner_actor, product_id="missing") is False


def test_catalog_requires_backend(local_app, anonymous):
    with pytest.raises(BackendNotConfiguredError, match="Catalog"):
        products_service.list_products(anonymous)
