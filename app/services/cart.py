import logging
from typing import List

from flask import current_app
from sqlalchemy.orm import contains_eager

from models import db
from models.cart import CartItem
from models.product import Product
from app.services.exceptions import InsufficientStockError, NotFoundError

logger = logging.getLogger(__name__)


def load_cart_snapshot(user_id: str) -> List[CartItem]:
    """Cart rows for ``user_id`` with their current product eagerly joined."""
    return (
        CartItem.query.filter_by(user_id=user_id)
        .join(CartItem.product)
        .options(contains_eager(CartItem.product))
        .order_by(CartItem.created_at.asc(), CartItem.id.asc())
        .all()
    )


def add_to_cart(user_id: str, product_id: str, quantity: int) -> CartItem:
    """
    Put ``quantity`` units of a product in the user's cart.

    One row per (user, product): an existing row gets its quantity replaced.
    Does NOT commit.
    """
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("product not found")
    if product.stock < quantity:
        raise InsufficientStockError(product.id, product.name)

    cart_item = CartItem.query.filter_by(user_id=user_id, product_id=product_id).first()
    if cart_item:
        cart_item.quantity = quantity
    else:
        cart_item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.session.add(cart_item)
    db.session.flush()
    return cart_item


def remove_from_cart(user_id: str, item_id: str) -> None:
    deleted = CartItem.query.filter_by(id=item_id, user_id=user_id).delete(synchronize_session=False)
    if not deleted:
        raise NotFoundError("cart item not found")


def clear_cart(user_id: str) -> int:
    """Bulk delete every cart row of the user. Does NOT commit."""
    return CartItem.query.filter_by(user_id=user_id).delete(synchronize_session=False)


def cart_view(user_id: str) -> dict:
    """
    Cart rows with subtotals. A cart mixing currencies has no meaningful
    total, so ``total_cents`` and ``currency`` are None and
    ``mixed_currency`` is set; placing such a cart is refused.
    """
    items = load_cart_snapshot(user_id)
    rows = []
    currencies = set()
    for ci in items:
        currencies.add(ci.product.currency)
        rows.append({
            "id": ci.id,
            "product_id": ci.product_id,
            "product": ci.product.to_dict(),
            "quantity": ci.quantity,
            "subtotal_cents": ci.product.price_cents * ci.quantity,
        })
    if len(currencies) > 1:
        return {"items": rows, "total_cents": None, "currency": None, "mixed_currency": True}
    currency = currencies.pop() if currencies else current_app.config.get("DEFAULT_CURRENCY", "USD")
    return {
        "items": rows,
        "total_cents": sum(r["subtotal_cents"] for r in rows),
        "currency": currency,
        "mixed_currency": False,
    }


__all__ = [
    "load_cart_snapshot",
    "add_to_cart",
    "remove_from_cart",
    "clear_cart",
    "cart_view",
]
