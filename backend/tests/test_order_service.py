"""
Order access layer against the database backend.

Verifies:
- Saved orders read back identically for the same customer
- Customers cannot read or change other customers' orders
- Customers may only touch their own pending orders; owners anything
- Guest checkouts land in the local slot
- Read failures degrade to empty results; write failures surface
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from wirebazaar.extensions import db
from wirebazaar.models import Order, OrderItem, SecurityEvent
from wirebazaar.services import order_service, products_service
from wirebazaar.services.authorization_service import AuthorizationError
from wirebazaar.services.order_storage import DatabaseOrderStore, OrderPersistenceError, get_fallback_store
from wirebazaar.validation import ConflictError, NotFoundError, ValidationError

from conftest import CUSTOMER_INFO, cart


@pytest.fixture
def order_a(actor_a):
    return order_service.checkout(
        cart(("Copper wire 2.5mm", 1450.0, 2), ("PVC conduit", 120.5, 4)),
        CUSTOMER_INFO,
        actor=actor_a,
    )


class TestCheckout:

    def test_totals(self, order_a):
        assert order_a["subtotal"] == pytest.approx(3382.0)
        assert order_a["shipping_cost"] == 50
        assert order_a["total_amount"] == pytest.approx(order_a["subtotal"] + order_a["shipping_cost"])
        assert order_a["status"] == "pending"
        assert order_a["payment_status"] == "pending"
        assert order_a["payment_method"] == "qr_code"
        assert order_a["order_number"].startswith("WB")

    def test_item_snapshots(self, order_a):
        names = [i["product_name"] for i in order_a["items"]]
        assert names == ["Copper wire 2.5mm", "PVC conduit"]
        assert order_a["items"][0]["subtotal"] == pytest.approx(2900.0)

    def test_free_shipping_over_threshold(self, actor_a):
        order = order_service.checkout(cart(("Armoured cable", 2600.0, 2)), CUSTOMER_INFO, actor=actor_a)
        assert order["shipping_cost"] == 0
        assert order["total_amount"] == pytest.approx(5200.0)

    def test_empty_cart(self, actor_a):
        with pytest.raises(ValidationError):
            order_service.checkout([], CUSTOMER_INFO, actor=actor_a)

    def test_missing_customer_fields(self, actor_a):
        with pytest.raises(ValidationError, match="pincode"):
            order_service.checkout(cart(("Wire", 10.0, 1)), {**CUSTOMER_INFO, "pincode": ""}, actor=actor_a)

    def test_guest_goes_to_local_slot(self, app, anonymous):
        order = order_service.checkout(cart(("Wire", 10.0, 1)), CUSTOMER_INFO, actor=anonymous)
        assert order["user_id"] is None
        assert order["id"]
        assert db.session.query(Order).count() == 0
        assert get_fallback_store().list_orders()[0]["id"] == order["id"]

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_price(self, actor_a, price):
        with pytest.raises(ValidationError, match="unit_price"):
            order_service.checkout(cart(("Wire", price, 1)), CUSTOMER_INFO, actor=actor_a)
        assert db.session.query(Order).count() == 0

    def test_line_total_overflow(self, actor_a):
        with pytest.raises(ValidationError, match="too large"):
            order_service.checkout(cart(("Wire", 1e308, 10)), CUSTOMER_INFO, actor=actor_a)


class TestForeignKeys:

    def test_unknown_product_rejected_before_insert(self, enforce_foreign_keys, actor_a):
        items = [{"product_id": "cable-42", "product_name": "Wire", "unit_price": 10.0, "quantity": 1}]
        with pytest.raises(ValidationError, match="cable-42"):
            order_service.checkout(items, CUSTOMER_INFO, actor=actor_a)
        assert db.session.query(Order).count() == 0

    def test_catalog_product_linked(self, enforce_foreign_keys, actor_a, owner_actor):
        product = products_service.create_product(owner_actor, patch={
            "name": "Copper wire 2.5mm",
            "description": "90m coil",
            "category": "wires",
            "price": 1450.0,
            "image_url": "https://cdn.wirebazaar.local/wire.jpg",
        })
        items = [{"product_id": product["id"], "product_name": "Copper wire 2.5mm", "unit_price": 1450.0, "quantity": 1}]

        order = order_service.checkout(items, CUSTOMER_INFO, actor=actor_a)

        row = db.session.query(OrderItem).filter_by(order_id=order["id"]).one()
        assert row.product_id == product["id"]

    def test_owner_checkout(self, enforce_foreign_keys, owner_actor):
        order = order_service.checkout(cart(("Wire", 10.0, 1)), CUSTOMER_INFO, actor=owner_actor)
        assert order["user_id"] == owner_actor.identity_id
        assert db.session.query(OrderItem).filter_by(order_id=order["id"]).count() == 1


class TestRoundTrip:

    def test_get_by_id_reproduces_saved_order(self, order_a, actor_a):
        fetched = order_service.get_order_by_id(order_a["id"], actor_a.identity_id, actor=actor_a)
        assert fetched == order_a
        assert fetched["total_amount"] == pytest.approx(fetched["subtotal"] + fetched["shipping_cost"])

    def test_list_own_newest_first(self, order_a, actor_a):
        second = order_service.checkout(cart(("Switch", 99.0, 1)), CUSTOMER_INFO, actor=actor_a)
        orders = order_service.list_orders(actor_a.identity_id, actor=actor_a)
        assert [o["id"] for o in orders] == [second["id"], order_a["id"]]


class TestIsolation:

    def test_other_customer_cannot_list(self, order_a, actor_a, actor_b):
        with pytest.raises(AuthorizationError):
            order_service.list_orders(actor_a.identity_id, actor=actor_b)
        assert order_service.list_orders(actor_b.identity_id, actor=actor_b) == []

    def test_other_customer_cannot_read(self, order_a, actor_b):
        assert order_service.get_order_by_id(order_a["id"], actor_b.identity_id, actor=actor_b) is None

    def test_admin_listing_requires_owner(self, order_a, actor_a):
        with pytest.raises(AuthorizationError):
            order_service.list_orders(actor=actor_a)

    def test_owner_lists_everything(self, order_a, actor_b, owner_actor):
        order_service.checkout(cart(("Wire", 10.0, 1)), CUSTOMER_INFO, actor=actor_b)
        assert len(order_service.list_orders(actor=owner_actor)) == 2

    def test_cannot_save_for_someone_else(self, actor_a, actor_b):
        order = {
            "order_number": order_service.generate_order_number(),
            "user_id": actor_a.identity_id,
            "customer_info": CUSTOMER_INFO,
            "items": cart(("Wire", 10.0, 1)),
            "subtotal": 10.0,
            "shipping_cost": 100,
            "total_amount": 110.0,
        }
        with pytest.raises(AuthorizationError):
            order_service.save_order(order, actor=actor_b)
        assert db.session.query(Order).count() == 0


class TestStatusUpdates:

    def test_cross_customer_update_rejected_without_change(self, order_a, actor_b):
        with pytest.raises(AuthorizationError):
            order_service.update_order_status(
                order_a["id"], "cancelled", None, actor_b.identity_id, actor=actor_b,
            )

        assert db.session.get(Order, order_a["id"]).status == "pending"
        event = db.session.query(SecurityEvent).filter_by(event_type="AUTHORIZATION_DENIED").one()
        assert event.identity_id == actor_b.identity_id
        assert event.resource == "orders"

    def test_customer_cancels_own_pending_order(self, order_a, actor_a):
        updated = order_service.update_order_status(
            order_a["id"], "cancelled", None, actor_a.identity_id, actor=actor_a,
        )
        assert updated["status"] == "cancelled"

    def test_customer_cannot_touch_non_pending_order(self, order_a, actor_a, owner_actor):
        order_service.update_order_status(order_a["id"], "shipped", "paid", actor=owner_actor)

        with pytest.raises(AuthorizationError):
            order_service.update_order_status(
                order_a["id"], "cancelled", None, actor_a.identity_id, actor=actor_a,
            )

    def test_owner_updates_status_and_payment(self, order_a, owner_actor):
        updated = order_service.update_order_status(order_a["id"], "processing", "paid", actor=owner_actor)
        assert updated["status"] == "processing"
        assert updated["payment_status"] == "paid"

    def test_status_validated(self, order_a, owner_actor):
        with pytest.raises(ValidationError):
            order_service.update_order_status(order_a["id"], "teleported", actor=owner_actor)
        with pytest.raises(ValidationError):
            order_service.update_order_status(order_a["id"], "shipped", "completed", actor=owner_actor)

    def test_unknown_order(self, app, owner_actor):
        with pytest.raises(NotFoundError):
            order_service.update_order_status("missing", "shipped", actor=owner_actor)

    def test_guest_order_update_has_no_ownership_check(self, app, anonymous):
        order = order_service.checkout(cart(("Wire", 10.0, 1)), CUSTOMER_INFO, actor=anonymous)
        updated = order_service.update_order_status(order["id"], "processing", "paid", actor=anonymous)
        assert updated["status"] == "processing"
        assert updated["payment_status"] == "paid"
        assert order_service.update_order_status("nope", "processing", actor=anonymous) is None


class TestPersistenceFailures:

    def test_duplicate_order_number(self, order_a, actor_a):
        duplicate = {**order_a, "id": None}
        with pytest.raises(ConflictError):
            order_service.save_order(duplicate, actor=actor_a)

    def test_item_failure_after_order_insert(self, actor_a):
        # quantity 0 violates the order_items check constraint
        order = {
            "order_number": order_service.generate_order_number(),
            "user_id": actor_a.identity_id,
            "customer_info": CUSTOMER_INFO,
            "items": cart(("Wire", 10.0, 0)),
            "subtotal": 0.0,
            "shipping_cost": 100,
            "total_amount": 100.0,
        }
        with pytest.raises(OrderPersistenceError):
            order_service.save_order(order, actor=actor_a)

        # Known gap: the order row stays behind without items
        row = db.session.query(Order).filter_by(order_number=order["order_number"]).one()
        assert db.session.query(OrderItem).filter_by(order_id=row.id).count() == 0

    def test_customer_read_failure_returns_empty(self, order_a, actor_a, monkeypatch):
        def broken(self, user_id=None):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(DatabaseOrderStore, "list_orders", broken)
        assert order_service.list_orders(actor_a.identity_id, actor=actor_a) == []

    def test_admin_read_failure_falls_back_to_local(self, order_a, owner_actor, anonymous, monkeypatch):
        guest = order_service.checkout(cart(("Wire", 10.0, 1)), CUSTOMER_INFO, actor=anonymous)

        def broken(self, user_id=None):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(DatabaseOrderStore, "list_orders", broken)
        orders = order_service.list_orders(actor=owner_actor)
        assert [o["id"] for o in orders] == [guest["id"]]

    def test_point_read_failure_returns_none(self, order_a, actor_a, monkeypatch):
        def broken(self, order_id, user_id=None):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(DatabaseOrderStore, "get_order", broken)
        assert order_service.get_order_by_id(order_a["id"], actor_a.identity_id, actor=actor_a) is None
