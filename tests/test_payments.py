import pytest

from models import db
from models.order import Order
from app.services import payment_service
from app.version import API_PREFIX
from conftest import auth_header, create_product, obtain_token


@pytest.fixture()
def placed_order(client, app, shopper):
    pid = create_product(sku="A", price_cents=500, stock=5)
    client.post(f"{API_PREFIX}/cart", json={"product_id": pid, "quantity": 2}, headers=shopper["headers"])
    resp = client.post(f"{API_PREFIX}/orders", json={"shipping_address": {"line1": "x"}}, headers=shopper["headers"])
    return resp.get_json()["order"]["id"]


def _charge(client, headers, order_id, method="card"):
    return client.post(
        f"{API_PREFIX}/payments/charge",
        json={"order_id": order_id, "payment_method": method, "payment_details": {"last4": "4242"}},
        headers=headers,
    )


def test_successful_charge_marks_order_paid(client, app, shopper, placed_order, monkeypatch):
    monkeypatch.setattr(payment_service.random, "random", lambda: 0.0)
    resp = _charge(client, shopper["headers"], placed_order)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "success"
    assert body["transaction_id"].startswith("TXN_")
    assert len(body["transaction_id"]) == len("TXN_") + 8

    db.session.expire_all()
    order = db.session.get(Order, placed_order)
    assert order.status == "paid"
    assert order.payment_info == {"method": "card", "transaction_id": body["transaction_id"]}


def test_declined_charge_leaves_order_pending(client, app, shopper, placed_order, monkeypatch):
    monkeypatch.setattr(payment_service.random, "random", lambda: 0.99)
    resp = _charge(client, shopper["headers"], placed_order, method="upi")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "failed"
    db.session.expire_all()
    assert db.session.get(Order, placed_order).status == "pending"


def test_paid_order_cannot_be_charged_twice(client, app, shopper, placed_order, monkeypatch):
    monkeypatch.setattr(payment_service.random, "random", lambda: 0.0)
    _charge(client, shopper["headers"], placed_order)
    resp = _charge(client, shopper["headers"], placed_order)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "payment_failed"


def test_cannot_charge_someone_elses_order(client, app, placed_order):
    token, _ = obtain_token(client, "intruder@example.com")
    resp = _charge(client, auth_header(token), placed_order)
    assert resp.status_code == 404


def test_unknown_payment_method(client, app, shopper, placed_order):
    resp = _charge(client, shopper["headers"], placed_order, method="cash")
    assert resp.status_code == 422
