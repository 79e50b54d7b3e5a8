# checkout_engine/services/task_distributor.py
from redis.exceptions import RedisError

from checkout_engine.domain.errors import TransientError
from checkout_engine.services.lock_service import LockService
from checkout_engine.tasks.payment import (
    TASK_PROCESS_ORDER_PAYMENT,
    payment_task_id,
    process_order_payment_task,
)
from checkout_engine.utils.settings import CheckoutConfig
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentTaskDistributor:
    """
    Enqueues payment confirmations with the order id as idempotency key.

    The redis key is held until the task finishes (or its TTL runs out), so at
    most one confirmation task per order is in flight.
    """

    def __init__(self, lock_service: LockService, config: CheckoutConfig):
        self.lock_service = lock_service
        self.config = config

    def distribute_process_order_payment(self, payload: dict) -> bool:
        order_id = payload["order_id"]
        key = LockService.task_key(TASK_PROCESS_ORDER_PAYMENT, order_id)
        task_id = payment_task_id(order_id)

        try:
            acquired = self.lock_service.acquire(key, task_id, self.config.payment_task_unique_ttl)
        except RedisError as e:
            logger.error(f"Redis unavailable while enqueuing payment for order {order_id}: {e}")
            raise TransientError("task queue unavailable") from e

        if not acquired:
            logger.info(f"Payment task for order {order_id} already in flight, skipping enqueue")
            return False

        try:
            process_order_payment_task.apply_async(
                kwargs=payload,
                task_id=task_id,
                queue=self.config.critical_queue,
            )
        except Exception as e:
            self.lock_service.release(key, task_id)
            logger.error(f"Failed to enqueue payment task for order {order_id}: {e}")
            raise TransientError("task queue unavailable") from e

        logger.info(f"Enqueued task {task_id} on queue {self.config.critical_queue}")
        return True
