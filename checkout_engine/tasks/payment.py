# checkout_engine/tasks/payment.py
from decimal import Decimal

from redis.exceptions import RedisError

from checkout_engine.celery_worker import celery_app
from checkout_engine.data.database import SessionLocal
from checkout_engine.domain.errors import ConsistencyViolation, TransientError
from checkout_engine.services.lock_service import LockService
from checkout_engine.services.notification_service import NotificationService
from checkout_engine.services.payment_service import PaymentConfirmation, PaymentService
from checkout_engine.utils.settings import load_checkout_config, TASK_MAX_RETRIES, QUEUE_CRITICAL
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)
lock_service = LockService()

TASK_PROCESS_ORDER_PAYMENT = "process_payment"


def payment_task_id(order_id: int) -> str:
    return f"{TASK_PROCESS_ORDER_PAYMENT}:{order_id}"


def _release_enqueue_lock(order_id: int) -> None:
    key = LockService.task_key(TASK_PROCESS_ORDER_PAYMENT, order_id)
    try:
        lock_service.release(key, payment_task_id(order_id))
    except RedisError as e:
        #the key expires on its own
        logger.warning(f"Failed to release enqueue lock for order {order_id}: {e}")


@celery_app.task(
    name="checkout_engine.tasks.payment.process_order_payment_task",
    queue=QUEUE_CRITICAL,
    autoretry_for=(TransientError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    max_retries=TASK_MAX_RETRIES,
)
def process_order_payment_task(
    order_id: int,
    amount,
    transaction_id: str,
    status: str,
    payment_method: str = "stripe",
):
    logger.info(f"Processing {status} payment for order {order_id}")
    config = load_checkout_config()

    db = SessionLocal()
    try:
        service = PaymentService(db, notification_service=NotificationService(config))
        result = service.confirm_payment(
            PaymentConfirmation(
                order_id=order_id,
                amount=Decimal(str(amount)),
                transaction_id=transaction_id,
                status=status,
                payment_method=payment_method,
            )
        )
    except TransientError:
        #retried; keep the key so redeliveries are not enqueued meanwhile
        raise
    except ConsistencyViolation as e:
        logger.critical(f"Payment for order {order_id} rejected: {e.message}")
        _release_enqueue_lock(order_id)
        raise
    except Exception:
        _release_enqueue_lock(order_id)
        raise
    finally:
        db.close()

    _release_enqueue_lock(order_id)
    return result
