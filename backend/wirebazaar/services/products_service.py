# backend/wirebazaar/services/products_service.py
"""
Products Service

Catalog reads are public for active products; owners see inactive ones too.
Create, update and delete are owner-only.

Deleting a product is a hard delete. Order items keep their name/price
snapshot and lose only the product link.
"""
from __future__ import annotations
from ..extensions import db
from ..models import OrderItem, Product
from ..validation import NotFoundError
from .authorization_service import Actor, can_manage_products, can_read_product, require
from .identity_service import require_backend

PRODUCT_MUTABLE_FIELDS = {"name", "description", "category", "price", "image_url", "stock_quantity", "is_active"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_manager(actor: Actor, action: str) -> None:
    require(
        can_manage_products(actor), actor,
        resource="products", action=action,
        reason="Only owners can manage products",
    )


def list_products(
    actor: Actor,
    category: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Catalog listing with optional category filter and pagination.

    Args:
        actor: caller; owners also see inactive products
        category: exact category match
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    require_backend("Catalog")

    base_query = db.session.query(Product)
    if not actor.is_owner:
        base_query = base_query.filter(Product.is_active.is_(True))
    if category:
        base_query = base_query.filter(Product.category == category)
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(actor: Actor, product_id: str) -> dict:
    require_backend("Catalog")

    p = db.session.get(Product, product_id)
    # Inactive products are indistinguishable from missing ones for customers
    if p is None or not can_read_product(actor, p.is_active):
        raise NotFoundError("Product not found")
    return p.to_dict()


def create_product(actor: Actor, *, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        AuthorizationError: caller is not an owner
    """
    require_backend("Catalog")
    _require_manager(actor, "insert")

    p = Product()
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(actor: Actor, *, product_id: str, patch: dict) -> dict | None:
    """
    Update a product. Returns None if not found.

    Existing order items are untouched; they carry their own snapshot.
    """
    require_backend("Catalog")
    _require_manager(actor, "update")

    p = db.session.get(Product, product_id)
    if not p:
        return None

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()


def delete_product(actor: Actor, *, product_id: str) -> bool:
    """
    Hard-delete a product. Returns False if not found.

    Order items that referenced it keep their snapshot with product_id NULL.
    """
    require_backend("Catalog")
    _require_manager(actor, "delete")

    p = db.session.get(Product, product_id)
    if not p:
        return False

    db.session.query(OrderItem).filter(OrderItem.product_id == product_id).update(
        {OrderItem.product_id: None}, synchronize_session=False
    )
    db.session.delete(p)
    db.session.commit()
    return True
