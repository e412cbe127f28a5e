import logging
from typing import List, Optional

from sqlalchemy import func, or_, update

from models import db
from models.cart import CartItem
from models.order import OrderItem
from models.product import Product
from app.services.exceptions import ConflictError, NotFoundError
from app.utils.pagination import clamp_page

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "price_asc": (Product.price_cents.asc(), Product.id.asc()),
    "price_desc": (Product.price_cents.desc(), Product.id.desc()),
    "name_asc": (Product.name.asc(), Product.id.asc()),
    "name_desc": (Product.name.desc(), Product.id.desc()),
    "created_desc": (Product.created_at.desc(), Product.id.desc()),
}


def decrement_stock(product_id: str, quantity: int) -> bool:
    """
    Conditionally take ``quantity`` units out of stock.

    Issues a single ``UPDATE products SET stock = stock - :q WHERE id = :id
    AND stock >= :q`` in the caller's session and returns True when exactly
    one row changed. A missing product and an exhausted one both return
    False. Does NOT commit; caller is responsible for commit/rollback.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_product(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("product not found")
    return product


def list_products(q: Optional[str] = None, min_price=None, max_price=None,
                  sort: Optional[str] = None, page=1, size=20):
    page, size = clamp_page(page, size)
    query = Product.query
    if q:
        pattern = f"%{q.lower()}%"
        query = query.filter(
            or_(func.lower(Product.name).like(pattern), func.lower(Product.description).like(pattern))
        )
    if min_price is not None:
        query = query.filter(Product.price_cents >= min_price)
    if max_price is not None:
        query = query.filter(Product.price_cents <= max_price)

    total = query.count()
    products = (
        query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["created_desc"]))
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return products, total, page, size


def _ensure_sku_free(sku: str):
    if Product.query.filter_by(sku=sku).first():
        raise ConflictError("product with this SKU already exists")


def create_product(data: dict) -> Product:
    _ensure_sku_free(data["sku"])
    product = Product(
        sku=data["sku"],
        name=data["name"],
        description=data.get("description") or "",
        price_cents=data["price_cents"],
        currency=data.get("currency", "USD"),
        stock=data["stock"],
        images=list(data.get("images") or []),
    )
    db.session.add(product)
    db.session.flush()
    logger.info("product %s created (sku=%s)", product.id, product.sku)
    return product


def bulk_create_products(rows: List[dict]) -> List[Product]:
    seen = set()
    for row in rows:
        if row["sku"] in seen:
            raise ConflictError(f"duplicate SKU {row['sku']} in import")
        seen.add(row["sku"])
    return [create_product(row) for row in rows]


def update_product(product_id: str, changes: dict) -> Product:
    product = get_product(product_id)
    for field in ("name", "description", "price_cents", "currency", "stock", "images"):
        if field in changes and changes[field] is not None:
            setattr(product, field, changes[field])
    db.session.flush()
    return product


def delete_product(product_id: str) -> None:
    product = get_product(product_id)
    if OrderItem.query.filter_by(product_id=product.id).first():
        raise ConflictError("product is referenced by existing orders")
    CartItem.query.filter_by(product_id=product.id).delete(synchronize_session=False)
    db.session.delete(product)
    logger.info("product %s deleted", product_id)


__all__ = [
    "decrement_stock",
    "get_product",
    "list_products",
    "create_product",
    "bulk_create_products",
    "update_product",
    "delete_product",
]
