# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order routes

Customers see and create their own orders; guests (no token) check out into
the local order slot. Owners use /admin/orders and may update any order.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..decorators import require_auth, optional_auth, require_owner
from .errors import SERVICE_ERRORS, error_response


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


def _scope_user_id() -> str | None:
    """Customer scope for the caller; owners and guests are unscoped."""
    if g.actor.is_owner:
        return None
    return g.actor.identity_id


@orders_bp.get("/orders")
@require_auth
def list_my_orders():
    try:
        orders = order_service.list_orders(g.actor.identity_id, actor=g.actor)
        return jsonify({"items": orders, "count": len(orders)}), 200
    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/orders")
@optional_auth
def checkout_route():
    """
    Place an order from a cart.

    Request body:
    {
        "items": [{"product_id": "...", "product_name": "...", "unit_price": 120.0, "quantity": 2}],
        "customer_info": {"name": "...", "email": "...", "phone": "...", "address": "...", "pincode": "400001"},
        "qr_code_data": "...",       // optional
        "transaction_id": "..."      // optional
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.checkout(
            data.get("items"),
            data.get("customer_info"),
            actor=g.actor,
            payment_method=data.get("payment_method") or order_service.DEFAULT_PAYMENT_METHOD,
            qr_code_data=data.get("qr_code_data"),
            transaction_id=data.get("transaction_id"),
        )
        return jsonify(order), 201
    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/orders/<order_id>")
@optional_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order_by_id(order_id, _scope_user_id(), actor=g.actor)
    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to fetch order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500

    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order), 200


@orders_bp.patch("/orders/<order_id>/status")
@optional_auth
def update_order_status_route(order_id: str):
    """Request body: {"status": "...", "payment_status": "..."}"""
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_order_status(
            order_id,
            data.get("status"),
            data.get("payment_status"),
            _scope_user_id(),
            actor=g.actor,
        )
    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500

    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order), 200


@orders_bp.get("/admin/orders")
@require_owner
def admin_list_orders():
    try:
        orders = order_service.list_orders(actor=g.actor)
        return jsonify({"items": orders, "count": len(orders)}), 200
    except SERVICE_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list all orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/shipping/quote")
def shipping_quote():
    """Query params: pincode (str), subtotal (float)."""
    pincode = request.args.get("pincode", "")
    subtotal = request.args.get("subtotal", type=float)
    if not pincode or subtotal is None:
        return jsonify({"error": "pincode and subtotal are required"}), 400

    return jsonify({
        "shipping_cost": order_service.calculate_shipping_cost(pincode, subtotal),
        "estimated_delivery": order_service.calculate_estimated_delivery(pincode),
    }), 200
