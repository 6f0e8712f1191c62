"""
Device-local order slot and the no-backend configuration.
"""

import json

import pytest

from wirebazaar.services import customer_auth_service, order_service, owner_auth_service
from wirebazaar.services.authorization_service import Actor
from wirebazaar.services.identity_service import BackendNotConfiguredError
from wirebazaar.services.order_storage import LocalOrderStore, get_order_store
from wirebazaar.validation import ValidationError

from conftest import CUSTOMER_INFO, cart


class TestLocalOrderStore:

    def test_missing_slot_is_empty(self, tmp_path):
        store = LocalOrderStore(tmp_path)
        assert store.list_orders() == []
        assert store.get_order("x") is None

    def test_insert_prepends_and_persists(self, tmp_path):
        store = LocalOrderStore(tmp_path)
        store.insert_order({"id": "1", "user_id": None, "status": "pending"})
        store.insert_order({"id": "2", "user_id": "u1", "status": "pending"})

        assert store.path.name == "wire_cable_orders.json"
        on_disk = json.loads(store.path.read_text(encoding="utf-8"))
        assert [o["id"] for o in on_disk] == ["2", "1"]

        reopened = LocalOrderStore(tmp_path)
        assert [o["id"] for o in reopened.list_orders()] == ["2", "1"]

    def test_user_filter(self, tmp_path):
        store = LocalOrderStore(tmp_path)
        store.insert_order({"id": "1", "user_id": "u1"})
        store.insert_order({"id": "2", "user_id": "u2"})

        assert [o["id"] for o in store.list_orders("u1")] == ["1"]
        assert store.get_order("2", "u1") is None
        assert store.get_order("2")["user_id"] == "u2"

    def test_update_status_stamps_updated_at(self, tmp_path):
        store = LocalOrderStore(tmp_path)
        store.insert_order({"id": "1", "status": "pending", "payment_status": "pending"})

        updated = store.update_status("1", {"status": "shipped", "payment_status": "paid"})

        assert updated["status"] == "shipped"
        assert updated["updated_at"].endswith("Z")
        assert store.get_order("1")["payment_status"] == "paid"

    def test_update_unknown_id_is_noop(self, tmp_path):
        store = LocalOrderStore(tmp_path)
        store.insert_order({"id": "1", "status": "pending"})
        assert store.update_status("missing", {"status": "shipped"}) is None
        assert store.get_order("1")["status"] == "pending"


class TestNoBackendConfigured:

    def test_primary_store_is_local(self, local_app):
        assert not get_order_store().is_remote

    def test_orders_saved_and_read_locally(self, local_app):
        actor = Actor(identity_id="device-user")
        order = order_service.checkout(cart(("Wire", 250.0, 2)), CUSTOMER_INFO, actor=actor)

        assert order["id"]
        assert order["created_at"].endswith("Z")
        assert order_service.get_order_by_id(order["id"], actor=Actor.anonymous()) == order
        assert order_service.list_orders("device-user", actor=actor) == [order]

    def test_local_path_skips_ownership_checks(self, local_app):
        order = order_service.checkout(
            cart(("Wire", 250.0, 2)), CUSTOMER_INFO, actor=Actor(identity_id="someone"),
        )
        stranger = Actor(identity_id="someone-else")

        assert len(order_service.list_orders(actor=stranger)) == 1
        updated = order_service.update_order_status(order["id"], "cancelled", actor=stranger)
        assert updated["status"] == "cancelled"

    def test_status_still_validated(self, local_app):
        with pytest.raises(ValidationError):
            order_service.update_order_status("x", "lost", actor=Actor.anonymous())

    def test_login_unavailable(self, local_app):
        with pytest.raises(BackendNotConfiguredError, match="not configured"):
            customer_auth_service.request_otp("asha@example.com")
        with pytest.raises(BackendNotConfiguredError):
            owner_auth_service.login("owner@wirebazaar.local", "Password123")
