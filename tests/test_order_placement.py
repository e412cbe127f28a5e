import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from models import db
from models.cart import CartItem
from models.order import Order, OrderItem
from models.product import Product
from app.services import cart as cart_service
from app.services import order_service
from app.services.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    MixedCurrencyError,
    PersistenceError,
)
from app.version import API_PREFIX
from conftest import auth_header, create_product, obtain_token

ADDRESS = {"line1": "1 Main St", "city": "Springfield", "zip": "12345"}


def _add(client, headers, product_id, qty):
    return client.post(f"{API_PREFIX}/cart", json={"product_id": product_id, "quantity": qty}, headers=headers)


def _place(client, headers, address=ADDRESS):
    return client.post(f"{API_PREFIX}/orders", json={"shipping_address": address}, headers=headers)


def _stock(product_id):
    db.session.expire_all()
    return db.session.get(Product, product_id).stock


# -------------------- Happy path --------------------

def test_place_order_decrements_stock_and_clears_cart(client, app, shopper):
    pid = create_product(sku="A", price_cents=1000, stock=5)
    assert _add(client, shopper["headers"], pid, 2).status_code == 200

    resp = _place(client, shopper["headers"])
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "success"
    order = body["order"]
    assert order["status"] == "pending"
    assert order["total_cents"] == 2000
    assert order["currency"] == "USD"
    assert order["shipping_address"] == ADDRESS
    assert len(order["items"]) == 1
    assert order["items"][0]["price_cents"] == 1000
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["product"]["id"] == pid

    assert _stock(pid) == 3
    assert CartItem.query.filter_by(user_id=shopper["user_id"]).count() == 0
    assert Order.query.count() == 1


def test_total_is_sum_of_line_items(client, app, shopper):
    a = create_product(sku="A", price_cents=250, stock=10)
    b = create_product(sku="B", price_cents=1999, stock=10)
    c = create_product(sku="C", price_cents=5, stock=10)
    _add(client, shopper["headers"], a, 4)
    _add(client, shopper["headers"], b, 1)
    _add(client, shopper["headers"], c, 7)

    order = _place(client, shopper["headers"]).get_json()["order"]
    assert order["total_cents"] == 250 * 4 + 1999 + 5 * 7
    assert order["total_cents"] == sum(i["price_cents"] * i["quantity"] for i in order["items"])
    assert [i["subtotal_cents"] for i in order["items"]] == [i["price_cents"] * i["quantity"] for i in order["items"]]


def test_line_item_price_is_frozen_after_product_edit(client, app, shopper, admin):
    pid = create_product(sku="A", price_cents=1000, stock=5)
    _add(client, shopper["headers"], pid, 1)
    order_id = _place(client, shopper["headers"]).get_json()["order"]["id"]

    r = client.put(f"{API_PREFIX}/admin/products/{pid}", json={"price_cents": 4000}, headers=admin["headers"])
    assert r.status_code == 200

    order = client.get(f"{API_PREFIX}/orders/{order_id}", headers=shopper["headers"]).get_json()["order"]
    assert order["items"][0]["price_cents"] == 1000
    assert order["total_cents"] == 1000
    assert order["items"][0]["product"]["price_cents"] == 4000


def test_exact_stock_can_be_bought_down_to_zero(client, app, shopper):
    pid = create_product(sku="A", stock=3)
    _add(client, shopper["headers"], pid, 3)
    assert _place(client, shopper["headers"]).status_code == 201
    assert _stock(pid) == 0


def test_orders_placed_counter_increments(client, app, shopper):
    before = REGISTRY.get_sample_value("orders_placed_total") or 0
    pid = create_product(sku="A", stock=3)
    _add(client, shopper["headers"], pid, 1)
    _place(client, shopper["headers"])
    assert REGISTRY.get_sample_value("orders_placed_total") == before + 1


# -------------------- Rejections --------------------

def test_empty_cart_is_rejected(client, app, shopper):
    resp = _place(client, shopper["headers"])
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["status"] == "error"
    assert body["error"] == "empty_cart"
    assert Order.query.count() == 0


def test_insufficient_stock_rolls_back_every_decrement(client, app, shopper):
    plenty = create_product(sku="A", name="Plenty", stock=5)
    scarce = create_product(sku="B", name="Scarce", stock=1)
    _add(client, shopper["headers"], plenty, 2)
    _add(client, shopper["headers"], scarce, 1)

    # Someone else drains the last unit after it went into the cart
    db.session.get(Product, scarce).stock = 0
    db.session.commit()

    resp = _place(client, shopper["headers"])
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "insufficient_stock"
    assert body["details"]["product_id"] == scarce
    assert "Scarce" in body["message"]

    assert _stock(plenty) == 5
    assert _stock(scarce) == 0
    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert CartItem.query.filter_by(user_id=shopper["user_id"]).count() == 2


def test_stock_exhausted_counter_increments(client, app, shopper):
    before = REGISTRY.get_sample_value("order_stock_exhausted_total") or 0
    pid = create_product(sku="A", stock=1)
    _add(client, shopper["headers"], pid, 1)
    db.session.get(Product, pid).stock = 0
    db.session.commit()
    _place(client, shopper["headers"])
    assert REGISTRY.get_sample_value("order_stock_exhausted_total") == before + 1


def test_mixed_currency_cart_is_rejected(client, app, shopper):
    usd = create_product(sku="A", currency="USD", stock=5)
    eur = create_product(sku="B", currency="EUR", stock=5)
    _add(client, shopper["headers"], usd, 1)
    _add(client, shopper["headers"], eur, 1)

    resp = _place(client, shopper["headers"])
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "mixed_currency"
    assert _stock(usd) == 5
    assert _stock(eur) == 5
    assert Order.query.count() == 0


def test_missing_shipping_address_is_validation_error(client, app, shopper):
    resp = client.post(f"{API_PREFIX}/orders", json={}, headers=shopper["headers"])
    assert resp.status_code == 422
    assert resp.get_json()["errors"]


def test_place_order_requires_auth(client, app):
    resp = _place(client, {})
    assert resp.status_code == 401


# -------------------- Contention --------------------

def test_two_shoppers_racing_for_last_unit(client, app):
    pid = create_product(sku="LAST", stock=1)
    t1, u1 = obtain_token(client, "first@example.com")
    t2, u2 = obtain_token(client, "second@example.com")
    assert _add(client, auth_header(t1), pid, 1).status_code == 200
    assert _add(client, auth_header(t2), pid, 1).status_code == 200

    first = _place(client, auth_header(t1))
    second = _place(client, auth_header(t2))

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.get_json()["error"] == "insufficient_stock"
    assert _stock(pid) == 0
    assert Order.query.count() == 1
    assert CartItem.query.filter_by(user_id=u2).count() == 1
    assert CartItem.query.filter_by(user_id=u1).count() == 0


def test_stale_snapshot_cannot_oversell(app, shopper):
    pid = create_product(sku="A", stock=5)
    cart_service.add_to_cart(shopper["user_id"], pid, 4)
    db.session.commit()

    # Stock drops between the cart read and the decrement
    db.session.execute(Product.__table__.update().where(Product.id == pid).values(stock=2))
    db.session.commit()

    with pytest.raises(InsufficientStockError) as exc:
        order_service.place_order(shopper["user_id"], ADDRESS)
    assert exc.value.product_id == pid
    assert _stock(pid) == 2
    assert Order.query.count() == 0


def test_service_rejects_empty_cart(app, shopper):
    with pytest.raises(EmptyCartError):
        order_service.place_order(shopper["user_id"], ADDRESS)


def test_service_rejects_mixed_currency(app, shopper):
    a = create_product(sku="A", currency="USD", stock=5)
    b = create_product(sku="B", currency="GBP", stock=5)
    cart_service.add_to_cart(shopper["user_id"], a, 1)
    cart_service.add_to_cart(shopper["user_id"], b, 1)
    db.session.commit()
    with pytest.raises(MixedCurrencyError):
        order_service.place_order(shopper["user_id"], ADDRESS)


def test_line_items_follow_cart_order(app, shopper):
    ids = [create_product(sku=f"S{i}", stock=5) for i in range(3)]
    for pid in ids:
        cart_service.add_to_cart(shopper["user_id"], pid, 1)
        db.session.commit()
    order = order_service.place_order(shopper["user_id"], ADDRESS)
    assert [oi.position for oi in order.items] == [0, 1, 2]
    assert {oi.product_id for oi in order.items} == set(ids)


def test_buy_three_of_five(app, shopper):
    pid = create_product(sku="A", price_cents=700, stock=5)
    cart_service.add_to_cart(shopper["user_id"], pid, 3)
    db.session.commit()

    order = order_service.place_order(shopper["user_id"], ADDRESS)
    assert order.total_cents == 3 * 700
    assert _stock(pid) == 2
    assert cart_service.load_cart_snapshot(shopper["user_id"]) == []


def test_buy_three_of_two_keeps_cart(app, shopper):
    pid = create_product(sku="A", stock=2)
    db.session.add(CartItem(user_id=shopper["user_id"], product_id=pid, quantity=3))
    db.session.commit()

    with pytest.raises(InsufficientStockError):
        order_service.place_order(shopper["user_id"], ADDRESS)
    assert _stock(pid) == 2
    assert CartItem.query.filter_by(user_id=shopper["user_id"]).one().quantity == 3
    assert Order.query.count() == 0


def test_failure_while_clearing_cart_undoes_everything(app, shopper, monkeypatch):
    a = create_product(sku="A", stock=5)
    b = create_product(sku="B", stock=4)
    cart_service.add_to_cart(shopper["user_id"], a, 2)
    cart_service.add_to_cart(shopper["user_id"], b, 1)
    db.session.commit()

    def _broken_clear(user_id):
        raise OperationalError("DELETE FROM cart_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr(order_service, "clear_cart", _broken_clear)
    with pytest.raises(PersistenceError):
        order_service.place_order(shopper["user_id"], ADDRESS)

    assert _stock(a) == 5
    assert _stock(b) == 4
    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert CartItem.query.filter_by(user_id=shopper["user_id"]).count() == 2


def test_cart_read_failure_is_persistence_error(client, app, shopper, monkeypatch):
    def _broken_snapshot(user_id):
        raise OperationalError("SELECT cart_items", {}, Exception("database is locked"))

    monkeypatch.setattr(order_service, "load_cart_snapshot", _broken_snapshot)
    resp = _place(client, shopper["headers"])
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "persistence_error"
    assert "locked" not in body["message"]
