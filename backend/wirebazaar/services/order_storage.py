# Overview: Order persistence backends; database rows or a device-local JSON slot.

"""
Order Storage

One interface, two interchangeable backends:

- DatabaseOrderStore: orders + order_items tables through SQLAlchemy.
- LocalOrderStore: a single named slot (wire_cable_orders.json) holding the
  whole ordered list of orders, newest first. Every access reads or writes
  the full list; there is no partial update and no concurrency guard, so two
  writers on the same device can lose each other's updates.

The primary backend is picked once by init_order_storage() from
DATA_BACKEND. A LocalOrderStore is always available as well; guest orders
(no customer identity) are kept there even when a database is configured.

Stores are plain persistence. Authorization is applied by order_service
before a store is called.
"""

from __future__ import annotations

import json
from pathlib import Path

from flask import Flask, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Order, OrderItem
from ..validation import ConflictError, ValidationError
from wirebazaar.time_utils import parse_iso_datetime, to_utc_z, utcnow


ORDER_SLOT_NAME = "wire_cable_orders"
DATA_BACKENDS = ("database", "local")


class OrderPersistenceError(Exception):
    """A write to the order backend failed."""


class OrderStore:
    """Backend interface. Orders travel as plain dicts (Order.to_dict() shape)."""

    is_remote = False

    def list_orders(self, user_id: str | None = None) -> list[dict]:
        raise NotImplementedError

    def get_order(self, order_id: str, user_id: str | None = None) -> dict | None:
        raise NotImplementedError

    def insert_order(self, order: dict) -> dict:
        raise NotImplementedError

    def update_status(self, order_id: str, fields: dict, user_id: str | None = None) -> dict | None:
        raise NotImplementedError


class LocalOrderStore(OrderStore):
    """Device-local fallback slot. No ownership checks on any path."""

    def __init__(self, directory: str | Path):
        self.path = Path(directory) / f"{ORDER_SLOT_NAME}.json"

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return []
        return json.loads(text)

    def _write(self, orders: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(orders, indent=2), encoding="utf-8")

    def list_orders(self, user_id: str | None = None) -> list[dict]:
        orders = self._read()
        if user_id is None:
            return orders
        return [o for o in orders if o.get("user_id") == user_id]

    def get_order(self, order_id: str, user_id: str | None = None) -> dict | None:
        for order in self.list_orders(user_id):
            if order.get("id") == order_id:
                return order
        return None

    def insert_order(self, order: dict) -> dict:
        orders = self._read()
        orders.insert(0, order)
        self._write(orders)
        return order

    def update_status(self, order_id: str, fields: dict, user_id: str | None = None) -> dict | None:
        orders = self._read()
        for order in orders:
            if order.get("id") == order_id:
                order.update(fields)
                order["updated_at"] = to_utc_z(utcnow())
                self._write(orders)
                return order
        return None


def _order_row_from_dict(order: dict) -> Order:
    info = order.get("customer_info") or {}
    return Order(
        user_id=order["user_id"],
        order_number=order["order_number"],
        status=order.get("status") or "pending",
        payment_status=order.get("payment_status") or "pending",
        payment_method=order.get("payment_method") or "qr_code",
        subtotal=order["subtotal"],
        shipping_cost=order.get("shipping_cost") or 0,
        total_amount=order["total_amount"],
        customer_name=info.get("name", ""),
        customer_email=info.get("email", ""),
        customer_phone=info.get("phone", ""),
        shipping_address={
            "address": info.get("address", ""),
            "pincode": info.get("pincode", ""),
            "name": info.get("name", ""),
            "phone": info.get("phone", ""),
        },
        qr_code_data=order.get("qr_code_data"),
        transaction_id=order.get("transaction_id"),
        estimated_delivery=parse_iso_datetime(order.get("estimated_delivery")),
    )


def _item_rows_from_dict(order_id: str, order: dict) -> list[OrderItem]:
    rows = []
    for item in order.get("items") or []:
        unit_price = item["unit_price"]
        quantity = item["quantity"]
        rows.append(OrderItem(
            order_id=order_id,
            product_id=item.get("product_id"),
            product_name=item["product_name"],
            product_price=unit_price,
            quantity=quantity,
            subtotal=item.get("subtotal", unit_price * quantity),
        ))
    return rows


class DatabaseOrderStore(OrderStore):
    """SQLAlchemy-backed store. Errors propagate to order_service."""

    is_remote = True

    def _query(self, user_id: str | None = None):
        query = db.session.query(Order)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        return query

    def list_orders(self, user_id: str | None = None) -> list[dict]:
        rows = self._query(user_id).order_by(Order.created_at.desc()).all()
        return [row.to_dict() for row in rows]

    def get_order(self, order_id: str, user_id: str | None = None) -> dict | None:
        row = self._query(user_id).filter(Order.id == order_id).first()
        return row.to_dict() if row else None

    def insert_order(self, order: dict) -> dict:
        """
        Insert the order row, then its item rows.

        The two inserts are committed separately. If the items fail, the
        order row has already been committed and stays behind without
        items; the failure is still raised to the caller.
        """
        try:
            row = _order_row_from_dict(order)
        except KeyError as exc:
            raise ValidationError(f"Missing order field: {exc.args[0]}")

        db.session.add(row)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if "order_number" in str(exc.orig):
                raise ConflictError("Order number already exists.") from exc
            raise OrderPersistenceError("Failed to save order") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise OrderPersistenceError("Failed to save order") from exc

        order_id = row.id
        try:
            db.session.add_all(_item_rows_from_dict(order_id, order))
            db.session.commit()
        except (KeyError, SQLAlchemyError) as exc:
            db.session.rollback()
            raise OrderPersistenceError(f"Failed to save order items for order {order_id}") from exc

        db.session.expire_all()
        return db.session.get(Order, order_id).to_dict()

    def update_status(self, order_id: str, fields: dict, user_id: str | None = None) -> dict | None:
        row = self._query(user_id).filter(Order.id == order_id).first()
        if row is None:
            return None
        for k, v in fields.items():
            setattr(row, k, v)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise OrderPersistenceError("Failed to update order status") from exc
        return row.to_dict()


def init_order_storage(app: Flask) -> None:
    """Select the order backend once, at startup."""
    backend = app.config.get("DATA_BACKEND", "database")
    if backend not in DATA_BACKENDS:
        raise ValueError(f"DATA_BACKEND must be one of {DATA_BACKENDS}, got {backend!r}")

    directory = app.config.get("ORDER_FALLBACK_DIR") or app.instance_path
    local = LocalOrderStore(directory)

    app.extensions["wirebazaar.order_fallback"] = local
    app.extensions["wirebazaar.order_store"] = DatabaseOrderStore() if backend == "database" else local


def get_order_store() -> OrderStore:
    return current_app.extensions["wirebazaar.order_store"]


def get_fallback_store() -> LocalOrderStore:
    return current_app.extensions["wirebazaar.order_fallback"]
