# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/wirebazaar/routes/products.py
"""
Catalog routes.

Reads are public (active products only, unless the caller is an owner).
Writes require an owner session.
"""
from flask import Blueprint, request, g
from ..services.products_service import (
    list_products as list_products_service,
    get_product,
    create_product,
    update_product,
    delete_product,
)
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import optional_auth, require_owner
from .errors import SERVICE_ERRORS, error_response

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "category", "price", "image_url", "stock_quantity", "is_active"},
    required_on_create={"name", "description", "category", "price", "image_url"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@optional_auth
def list_products():
    """
    List products with optional pagination.

    Query params:
    - category: str (optional) - exact category match
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        return list_products_service(
            g.actor,
            category=request.args.get("category"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except SERVICE_ERRORS as e:
        return error_response(e)


@products_bp.get("/<product_id>")
@optional_auth
def get_product_route(product_id: str):
    try:
        return get_product(g.actor, product_id)
    except SERVICE_ERRORS as e:
        return error_response(e)


@products_bp.post("")
@require_owner
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)  # Handles price validation including max check
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = create_product(g.actor, patch=patch)
    except SERVICE_ERRORS as e:
        return error_response(e)

    return created, 201


@products_bp.delete("/<product_id>")
@require_owner
def delete_product_route(product_id: str):
    """Hard delete; existing order items keep their snapshot."""
    try:
        deleted = delete_product(g.actor, product_id=product_id)
    except SERVICE_ERRORS as e:
        return error_response(e)

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.put("/<product_id>")
@require_owner
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)  # Handles price validation including max check
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = update_product(g.actor, product_id=product_id, patch=patch)
    except SERVICE_ERRORS as e:
        return error_response(e)

    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200
