import logging

from app.tasks.notifications import notify_order_placed, notify_order_status
from app.version import API_PREFIX
from conftest import create_product


def test_notify_order_placed_logs(caplog):
    caplog.set_level("INFO")
    notify_order_placed("u1", "o1", 1500, "USD")
    assert any("o1" in r.getMessage() and "1500" in r.getMessage() for r in caplog.records)


def test_notify_order_status_logs(caplog):
    caplog.set_level("INFO")
    notify_order_status("u1", "o1", "shipped")
    assert any("shipped" in r.getMessage() for r in caplog.records)


def test_placement_triggers_notification(client, app, shopper, caplog):
    pid = create_product(stock=2)
    client.post(f"{API_PREFIX}/cart", json={"product_id": pid, "quantity": 1}, headers=shopper["headers"])
    caplog.set_level(logging.INFO, logger="app.tasks.notifications")
    resp = client.post(f"{API_PREFIX}/orders", json={"shipping_address": {"line1": "x"}}, headers=shopper["headers"])
    order_id = resp.get_json()["order"]["id"]
    assert any(order_id in r.getMessage() and "[notification]" in r.getMessage() for r in caplog.records)
