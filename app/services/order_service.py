"""
Order placement and order reads.

``place_order`` turns a user's cart into an order in one transaction:

1. snapshot the cart (cart rows joined with their products, prices frozen),
2. conditionally decrement stock for every row,
3. insert the order and its line items,
4. clear the cart.

Stock is never read-modify-written here; ``decrement_stock`` is a single
conditional UPDATE, so two placements racing for the last unit cannot both
succeed. Any error inside the transaction rolls back every step.
"""
import logging
from typing import Any, Dict, List, Tuple

from flask import current_app

from models import db
from models.order import ORDER_STATUSES, Order, OrderItem
from app.metrics import ORDERS_PLACED, STOCK_EXHAUSTED
from app.services.cart import clear_cart, load_cart_snapshot
from app.services.catalog import decrement_stock
from app.services.exceptions import (
    AuthorizationError,
    EmptyCartError,
    InsufficientStockError,
    InvalidStatusError,
    MixedCurrencyError,
    NotFoundError,
)
from app.utils.db import transactional
from app.utils.pagination import clamp_page

logger = logging.getLogger(__name__)


def _order_currency(cart_items) -> str:
    currencies = {ci.product.currency for ci in cart_items}
    if len(currencies) > 1:
        raise MixedCurrencyError(details={"currencies": sorted(currencies)})
    if currencies:
        return currencies.pop()
    return current_app.config.get("DEFAULT_CURRENCY", "USD")


def place_order(user_id: str, shipping_address: Dict[str, Any]) -> Order:
    """Create an order from the user's cart; see module docstring."""
    with transactional("Order placement failed"):
        cart_items = load_cart_snapshot(user_id)
        if not cart_items:
            raise EmptyCartError()
        currency = _order_currency(cart_items)

        total_cents = 0
        staged: List[OrderItem] = []
        for position, ci in enumerate(cart_items):
            unit_price = ci.product.price_cents
            if not decrement_stock(ci.product_id, ci.quantity):
                STOCK_EXHAUSTED.inc()
                raise InsufficientStockError(ci.product_id, ci.product.name)
            total_cents += unit_price * ci.quantity
            staged.append(
                OrderItem(
                    product_id=ci.product_id,
                    price_cents=unit_price,
                    quantity=ci.quantity,
                    position=position,
                )
            )

        order = Order(
            user_id=user_id,
            total_cents=total_cents,
            currency=currency,
            status="pending",
            shipping_address=shipping_address,
        )
        db.session.add(order)
        db.session.flush()

        for oi in staged:
            oi.order_id = order.id
        db.session.add_all(staged)

        clear_cart(user_id)
        order_id = order.id

    ORDERS_PLACED.inc()
    logger.info("order %s placed by %s total=%s %s", order_id, user_id, total_cents, currency)
    return _load_order(order_id)


def _load_order(order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("order not found")
    return order


def get_order(order_id: str, requesting_user_id: str) -> Order:
    order = _load_order(order_id)
    if order.user_id != requesting_user_id:
        raise AuthorizationError("order not found")
    return order


def _paginate(query, page, size) -> Tuple[List[Order], int, int, int]:
    page, size = clamp_page(page, size)
    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return orders, total, page, size


def list_orders_for_user(user_id: str, page=1, size=20):
    return _paginate(Order.query.filter_by(user_id=user_id), page, size)


def list_all_orders(page=1, size=20):
    return _paginate(Order.query, page, size)


def update_order_status(order_id: str, new_status: str) -> Order:
    """
    Set an order's status. Any allowed status may follow any other; only
    membership in ``ORDER_STATUSES`` is checked. Does NOT commit.
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidStatusError(details={"allowed": list(ORDER_STATUSES)})
    order = _load_order(order_id)
    previous = order.status
    order.status = new_status
    db.session.flush()
    logger.info("order %s status %s -> %s", order_id, previous, new_status)
    return order


__all__ = [
    "place_order",
    "get_order",
    "list_orders_for_user",
    "list_all_orders",
    "update_order_status",
]
