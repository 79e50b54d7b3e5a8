# checkout_engine/services/notification_service.py
from sqlalchemy.exc import SQLAlchemyError

from checkout_engine.celery_worker import celery_app
from checkout_engine.data.database import SessionLocal
from checkout_engine.domain.errors import TransientError
from checkout_engine.repos.order_repo import OrderRepo
from checkout_engine.services.mailer import get_mailer
from checkout_engine.utils.settings import CheckoutConfig, TASK_MAX_RETRIES, QUEUE_CRITICAL
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Fire-and-forget enqueue of customer notifications.
    An enqueue failure is logged and swallowed: it must never undo the
    state change that triggered it.
    """

    def __init__(self, config: CheckoutConfig):
        self.config = config

    def send_order_confirmation(self, order_id: int) -> bool:
        try:
            send_order_confirmation_email_task.apply_async(
                args=[order_id],
                queue=self.config.critical_queue,
            )
        except Exception as e:
            logger.error(f"Could not enqueue confirmation email for order {order_id}: {e}")
            return False
        logger.info(f"Confirmation email for order {order_id} enqueued")
        return True


@celery_app.task(
    name="checkout_engine.services.notification_service.send_order_confirmation_email_task",
    queue=QUEUE_CRITICAL,
    autoretry_for=(TransientError, OSError),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_jitter=True,
    max_retries=TASK_MAX_RETRIES,
)
def send_order_confirmation_email_task(order_id: int):
    db = SessionLocal()
    try:
        try:
            order = OrderRepo(db).get_order(order_id)
        except SQLAlchemyError as e:
            raise TransientError(f"could not load order {order_id}") from e

        if not order:
            logger.error(f"[NOTIFICATION] Order {order_id} not found, email dropped")
            return {"order_id": order_id, "status": "skipped"}

        template = "order_confirmation.html" if order.paid else "payment_failed.html"
        get_mailer().send(
            template,
            recipient=f"user:{order.user_id}",
            data={
                "order_id": order.id,
                "status": order.status,
                "total": str(order.amount_due),
            },
        )
        logger.info(f"[NOTIFICATION] User {order.user_id}: {template} sent for order {order.id}")
        return {"order_id": order.id, "template": template, "status": "sent"}
    finally:
        db.close()
