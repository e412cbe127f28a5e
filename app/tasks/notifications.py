import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_order_placed(self, user_id: str, order_id: str, total_cents: int, currency: str) -> None:
    """Log the order confirmation instead of mailing it."""
    logger.info(
        "[notification] order %s confirmed for user %s: %s %s",
        order_id, user_id, total_cents, currency,
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_order_status(self, user_id: str, order_id: str, status: str) -> None:
    logger.info("[notification] order %s for user %s is now %s", order_id, user_id, status)
