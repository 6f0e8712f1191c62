# Overview: Order access layer; routes every order read/write to the configured store.

"""
Order Access Layer

Backend selection:
- The primary store (database or local) is chosen once at startup.
- Orders without a customer identity (guest checkout) always live in the
  local fallback slot.
- Database paths run the authorization rule set before touching a row.
- The local path has no ownership checks.

Error handling:
- Database read failures are logged and turned into [] / None.
- An administrative listing that fails falls back to the local slot.
- Database write failures are logged and re-raised as OrderPersistenceError.
"""
from __future__ import annotations

import math
import random
import time

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db, is_backend_configured
from ..models import Product
from ..models.identity import new_id
from ..validation import NotFoundError, ValidationError, validate_order_status
from .authorization_service import (
    Actor,
    can_insert_order,
    can_insert_order_items,
    can_list_orders,
    can_read_order,
    can_read_order_items,
    can_update_order,
    require,
)
from .order_storage import OrderPersistenceError, get_fallback_store, get_order_store
from wirebazaar.time_utils import days_from_now, to_utc_z, utcnow


ORDER_NUMBER_PREFIX = "WB"
FREE_SHIPPING_THRESHOLD = 5000
NEAR_ZONE_PREFIX = "4"
NEAR_ZONE_SHIPPING = 50
FAR_ZONE_SHIPPING = 100
NEAR_ZONE_DAYS = 3
FAR_ZONE_DAYS = 5
DEFAULT_PAYMENT_METHOD = "qr_code"

CUSTOMER_INFO_FIELDS = ("name", "email", "phone", "address", "pincode")


# =============================================================================
# DERIVED VALUES
# =============================================================================

def generate_order_number() -> str:
    """
    Human-readable order number: WB + last 8 digits of the millisecond
    clock + 3-digit random suffix. Practically unique, not guaranteed.
    """
    millis = str(int(time.time() * 1000))[-8:]
    suffix = f"{random.randint(0, 999):03d}"
    return f"{ORDER_NUMBER_PREFIX}{millis}{suffix}"


def _is_near_zone(postal_code: str) -> bool:
    return (postal_code or "").startswith(NEAR_ZONE_PREFIX)


def calculate_shipping_cost(postal_code: str, subtotal: float) -> int:
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return 0
    return NEAR_ZONE_SHIPPING if _is_near_zone(postal_code) else FAR_ZONE_SHIPPING


def calculate_estimated_delivery(postal_code: str) -> str:
    days = NEAR_ZONE_DAYS if _is_near_zone(postal_code) else FAR_ZONE_DAYS
    return to_utc_z(days_from_now(days))


# =============================================================================
# READS
# =============================================================================

def _require_item_read(order: dict, actor: Actor) -> None:
    require(
        can_read_order_items(actor, order.get("user_id")), actor,
        resource="order_items", action="read",
        reason="Order items are visible to the order's customer and owners",
    )


def list_orders(user_id: str | None = None, *, actor: Actor) -> list[dict]:
    """
    Orders, newest first.

    With user_id: that customer's orders (caller must be the customer or an
    owner). Without: every order, owners only.
    """
    store = get_order_store()
    if not store.is_remote:
        return store.list_orders(user_id)

    require(
        can_list_orders(actor, user_id), actor,
        resource="orders", action="list",
        reason="Customers may only list their own orders",
    )

    try:
        orders = store.list_orders(user_id)
    except SQLAlchemyError:
        current_app.logger.exception("Error fetching orders")
        if user_id is None:
            return get_fallback_store().list_orders()
        return []

    for order in orders:
        _require_item_read(order, actor)
    return orders


def get_order_by_id(order_id: str, user_id: str | None = None, *, actor: Actor) -> dict | None:
    """
    Point lookup with the same scoping as list_orders.

    Lookups with no customer scope from a non-owner are guest-order lookups
    and read the local slot.
    """
    store = get_order_store()
    if not store.is_remote or (user_id is None and not actor.is_owner):
        return get_fallback_store().get_order(order_id, user_id)

    if user_id is not None:
        require(
            can_read_order(actor, user_id), actor,
            resource="orders", action="read",
            reason="Orders are visible to their customer and owners",
        )

    try:
        order = store.get_order(order_id, user_id)
    except SQLAlchemyError:
        current_app.logger.exception("Error fetching order %s", order_id)
        return None

    if order is not None:
        _require_item_read(order, actor)
    return order


# =============================================================================
# WRITES
# =============================================================================

def save_order(order: dict, *, actor: Actor) -> dict:
    """
    Persist a new order.

    Database + customer identity: order row then item rows (see
    DatabaseOrderStore.insert_order). Anything else is prepended to the
    local slot.

    Raises:
        AuthorizationError: order declared for another identity
        ConflictError: duplicate order number
        OrderPersistenceError: database write failed
    """
    validate_order_status(order.get("status") or "pending", order.get("payment_status") or "pending")

    store = get_order_store()
    user_id = order.get("user_id")

    if not store.is_remote or not user_id:
        stored = dict(order)
        stored.setdefault("id", new_id())
        stored.setdefault("created_at", to_utc_z(utcnow()))
        return get_fallback_store().insert_order(stored)

    require(
        can_insert_order(actor, user_id), actor,
        resource="orders", action="insert",
        reason="Orders can only be placed for the calling customer",
    )
    require(
        can_insert_order_items(actor, user_id), actor,
        resource="order_items", action="insert",
        reason="Order items can only be added to the caller's own orders",
    )

    try:
        return store.insert_order(order)
    except OrderPersistenceError:
        current_app.logger.exception("Error saving order %s", order.get("order_number"))
        raise


def update_order_status(
    order_id: str,
    status: str,
    payment_status: str | None = None,
    user_id: str | None = None,
    *,
    actor: Actor,
) -> dict | None:
    """
    Partial update of status (and optionally payment_status).

    Database path (customer scope given, or an owner caller): the update
    rule is checked against the stored row first; a customer touching an
    order that is not theirs gets AuthorizationError and nothing changes.

    Local path: no ownership check; an unknown id is a no-op (returns None).
    """
    validate_order_status(status, payment_status)

    fields: dict = {"status": status}
    if payment_status:
        fields["payment_status"] = payment_status

    store = get_order_store()
    if not store.is_remote or (user_id is None and not actor.is_owner):
        return get_fallback_store().update_status(order_id, fields)

    try:
        existing = store.get_order(order_id)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Error fetching order %s for update", order_id)
        raise OrderPersistenceError("Failed to update order status") from exc

    if existing is None:
        raise NotFoundError("Order not found")

    require(
        can_update_order(actor, existing["user_id"], existing["status"]), actor,
        resource="orders", action="update",
        reason="Customers may only update their own pending orders",
    )

    if user_id is not None and existing["user_id"] != user_id:
        raise NotFoundError("Order not found")

    try:
        return store.update_status(order_id, fields, user_id)
    except OrderPersistenceError:
        current_app.logger.exception("Error updating order status for %s", order_id)
        raise


# =============================================================================
# CHECKOUT
# =============================================================================

def _build_items(cart_items: list[dict]) -> list[dict]:
    if not isinstance(cart_items, list) or not cart_items:
        raise ValidationError("Cart is empty")

    items = []
    for raw in cart_items:
        if not isinstance(raw, dict):
            raise ValidationError("Invalid cart item")

        name = str(raw.get("product_name") or "").strip()
        if not name:
            raise ValidationError("product_name is required for every cart item")

        quantity = raw.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError("quantity must be a positive integer")

        unit_price = raw.get("unit_price")
        if (
            not isinstance(unit_price, (int, float))
            or isinstance(unit_price, bool)
            or not math.isfinite(unit_price)
            or unit_price < 0
        ):
            raise ValidationError("unit_price must be a non-negative number")

        line_total = round(unit_price * quantity, 2)
        if not math.isfinite(line_total):
            raise ValidationError("Cart line total is too large")

        items.append({
            "product_id": raw.get("product_id") or None,
            "product_name": name,
            "unit_price": float(unit_price),
            "quantity": quantity,
            "subtotal": line_total,
        })
    return items


def _check_products_exist(items: list[dict]) -> None:
    """Cart lines may only link to catalog rows that exist."""
    if not is_backend_configured():
        return
    for item in items:
        product_id = item["product_id"]
        if product_id is None:
            continue
        if not isinstance(product_id, str) or db.session.get(Product, product_id) is None:
            raise ValidationError(f"Unknown product: {product_id}")


def _clean_customer_info(customer_info: dict) -> dict:
    if not isinstance(customer_info, dict):
        raise ValidationError("customer_info is required")
    info = {k: str(customer_info.get(k) or "").strip() for k in CUSTOMER_INFO_FIELDS}
    missing = [k for k in CUSTOMER_INFO_FIELDS if not info[k]]
    if missing:
        raise ValidationError(f"Missing customer fields: {', '.join(missing)}")
    return info


def checkout(
    cart_items: list[dict],
    customer_info: dict,
    *,
    actor: Actor,
    payment_method: str = DEFAULT_PAYMENT_METHOD,
    qr_code_data: str | None = None,
    transaction_id: str | None = None,
) -> dict:
    """
    Turn a cart into a pending order and save it.

    total_amount is always subtotal + shipping_cost. Guests (no identity)
    get a local-slot order.
    """
    items = _build_items(cart_items)
    _check_products_exist(items)
    info = _clean_customer_info(customer_info)

    subtotal = round(sum(i["subtotal"] for i in items), 2)
    shipping_cost = calculate_shipping_cost(info["pincode"], subtotal)

    order = {
        "order_number": generate_order_number(),
        "user_id": actor.identity_id,
        "customer_info": info,
        "items": items,
        "subtotal": subtotal,
        "shipping_cost": shipping_cost,
        "total_amount": round(subtotal + shipping_cost, 2),
        "status": "pending",
        "payment_status": "pending",
        "payment_method": payment_method or DEFAULT_PAYMENT_METHOD,
        "qr_code_data": qr_code_data,
        "transaction_id": transaction_id,
        "estimated_delivery": calculate_estimated_delivery(info["pincode"]),
    }
    return save_order(order, actor=actor)
