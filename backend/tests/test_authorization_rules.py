"""
Row-level rule set, evaluated without a database.

Three caller classes: anonymous, customer, owner.
"""

from wirebazaar.services.authorization_service import (
    Actor,
    can_access_address,
    can_access_profile,
    can_insert_inquiry,
    can_insert_order,
    can_insert_order_items,
    can_list_orders,
    can_manage_inquiries,
    can_manage_products,
    can_read_order,
    can_read_order_items,
    can_read_owner_account,
    can_read_product,
    can_update_order,
)

ANON = Actor.anonymous()
ALICE = Actor(identity_id="alice")
BOB = Actor(identity_id="bob")
OWNER = Actor(identity_id="owner-1", is_owner=True)


class TestOrders:

    def test_read_own_only(self):
        assert can_read_order(ALICE, "alice")
        assert not can_read_order(ALICE, "bob")
        assert not can_read_order(ANON, "alice")

    def test_owner_reads_all(self):
        assert can_read_order(OWNER, "alice")

    def test_admin_listing_is_owner_only(self):
        assert can_list_orders(OWNER, None)
        assert not can_list_orders(ALICE, None)
        assert can_list_orders(ALICE, "alice")
        assert not can_list_orders(BOB, "alice")

    def test_insert_for_self_only(self):
        assert can_insert_order(ALICE, "alice")
        assert not can_insert_order(ALICE, "bob")
        assert not can_insert_order(ANON, None)

    def test_customer_updates_own_pending_only(self):
        assert can_update_order(ALICE, "alice", "pending")
        assert not can_update_order(ALICE, "alice", "shipped")
        assert not can_update_order(BOB, "alice", "pending")

    def test_owner_updates_anything(self):
        assert can_update_order(OWNER, "alice", "delivered")

    def test_items_inherit_parent(self):
        assert can_read_order_items(ALICE, "alice")
        assert not can_read_order_items(BOB, "alice")
        assert can_read_order_items(OWNER, "alice")
        assert can_insert_order_items(ALICE, "alice")
        assert not can_insert_order_items(OWNER, "alice")


class TestOtherTables:

    def test_profiles_and_addresses_private(self):
        assert can_access_profile(ALICE, "alice")
        assert not can_access_profile(OWNER, "alice")
        assert can_access_address(BOB, "bob")
        assert not can_access_address(ANON, "bob")

    def test_products(self):
        assert can_read_product(ANON, True)
        assert not can_read_product(ANON, False)
        assert can_read_product(OWNER, False)
        assert can_manage_products(OWNER)
        assert not can_manage_products(ALICE)

    def test_inquiries(self):
        assert can_insert_inquiry(ANON)
        assert can_manage_inquiries(OWNER)
        assert not can_manage_inquiries(ALICE)

    def test_owner_account_self_lookup(self):
        assert can_read_owner_account(OWNER, "owner-1")
        assert not can_read_owner_account(ALICE, "owner-1")
