import logging
import random
import uuid

from flask import current_app

from models import db
from app.services.exceptions import PaymentError
from app.services.order_service import get_order

logger = logging.getLogger(__name__)


def _simulate_charge(method: str) -> bool:
    """Stand-in for a payment provider call; succeeds at PAYMENT_SUCCESS_RATE."""
    rate = float(current_app.config.get("PAYMENT_SUCCESS_RATE", 0.9))
    return random.random() < rate


def _transaction_id() -> str:
    return f"TXN_{uuid.uuid4().hex[:8]}"


def process_charge(user_id: str, order_id: str, payment_method: str, payment_details=None) -> dict:
    """
    Charge an order owned by ``user_id``.

    On a successful simulated charge the order moves to ``paid`` and records
    the payment info. A failed charge leaves the order untouched.
    Does NOT commit; caller is responsible for commit/rollback.
    """
    order = get_order(order_id, user_id)
    if order.status == "paid":
        raise PaymentError("order is already paid")

    if not _simulate_charge(payment_method):
        logger.warning("charge declined for order %s via %s", order.id, payment_method)
        return {
            "order_id": order.id,
            "status": "failed",
            "message": "Payment failed. Please try again.",
        }

    txn_id = _transaction_id()
    order.status = "paid"
    order.payment_info = {"method": payment_method, "transaction_id": txn_id}
    db.session.flush()
    logger.info("order %s paid via %s (%s)", order.id, payment_method, txn_id)
    return {
        "order_id": order.id,
        "status": "success",
        "transaction_id": txn_id,
        "message": "Payment processed successfully",
    }


__all__ = ["process_charge"]
