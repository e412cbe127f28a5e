from datetime import datetime
from models import db, new_id

ORDER_STATUSES = ("pending", "paid", "shipped", "cancelled")


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    total_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)  # pending, paid, shipped, cancelled
    shipping_address = db.Column(db.JSON, nullable=True)
    payment_info = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.position",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "total_cents": self.total_cents,
            "currency": self.currency,
            "status": self.status,
            "shipping_address": self.shipping_address,
            "payment_info": self.payment_info,
            "items": [oi.to_dict() for oi in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # No FK cascade: line items outlive edits to the product row
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    price_cents = db.Column(db.Integer, nullable=False)  # frozen unit price
    quantity = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", lazy="joined")

    @property
    def subtotal_cents(self):
        return self.price_cents * self.quantity

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "subtotal_cents": self.subtotal_cents,
            "product": self.product.to_dict() if self.product else None,
        }
