from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .identity import new_id


class Product(db.Model):
    """
    Catalog entry.

    Anyone may read active products; owners see and manage everything.
    Price and name edits never touch existing order items (they keep
    their own snapshot).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonneg"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": self.price,
            "image_url": self.image_url,
            "stock_quantity": self.stock_quantity,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
