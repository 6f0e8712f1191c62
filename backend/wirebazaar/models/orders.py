from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .identity import new_id


ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed")


class Order(db.Model):
    """
    Customer order header.

    Every database-backed order belongs to a profile (user_id is required).
    total_amount == subtotal + shipping_cost by convention only; no
    constraint enforces it. Status transitions are unconstrained: any
    authorized writer may set any allowed value.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("subtotal >= 0", name="ck_orders_subtotal_nonneg"),
        db.CheckConstraint("shipping_cost >= 0", name="ck_orders_shipping_nonneg"),
        db.CheckConstraint("total_amount >= 0", name="ck_orders_total_nonneg"),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    order_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    payment_method = db.Column(db.String(32), nullable=False)

    subtotal = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    shipping_cost = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)

    # Contact snapshot taken at checkout
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    shipping_address = db.Column(db.JSON, nullable=False)

    qr_code_data = db.Column(db.Text, nullable=True)
    transaction_id = db.Column(db.String(128), nullable=True)
    estimated_delivery = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.created_at",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        address = self.shipping_address or {}
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "customer_info": {
                "name": self.customer_name,
                "email": self.customer_email,
                "phone": self.customer_phone,
                "address": address.get("address", ""),
                "pincode": address.get("pincode", ""),
            },
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping_cost,
            "total_amount": self.total_amount,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "qr_code_data": self.qr_code_data,
            "transaction_id": self.transaction_id,
            "estimated_delivery": to_utc_z(self.estimated_delivery),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """
    Line item with a name/price snapshot.

    product_id is nulled if the product is deleted; the snapshot keeps the
    historical order readable.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_qty_positive"),
        db.CheckConstraint("product_price >= 0", name="ck_order_items_price_nonneg"),
        db.CheckConstraint("subtotal >= 0", name="ck_order_items_subtotal_nonneg"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": self.product_price,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }
