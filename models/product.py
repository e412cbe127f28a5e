from datetime import datetime
from models import db, new_id


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sku = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    # Pricing, in minor currency units
    price_cents = db.Column(db.Integer, nullable=False, index=True)
    currency = db.Column(db.String(3), nullable=False, default="USD")

    # Changed only by the conditional decrement or an admin edit
    stock = db.Column(db.Integer, nullable=False, default=0)

    images = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "currency": self.currency,
            "stock": self.stock,
            "images": list(self.images or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Product sku={self.sku} stock={self.stock}>"
