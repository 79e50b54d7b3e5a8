# checkout_engine/celery_worker.py
from celery import Celery
from celery.signals import task_failure
from kombu import Queue

from checkout_engine.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    QUEUE_CRITICAL,
    QUEUE_DEFAULT,
    RECLAIM_INTERVAL_SECONDS,
)
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

celery_app = Celery(
    "checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#tasks are registered from these modules
celery_app.conf.imports = (
    "checkout_engine.tasks.payment",
    "checkout_engine.tasks.reclaim",
    "checkout_engine.services.notification_service",
)

celery_app.conf.task_queues = (
    Queue(QUEUE_CRITICAL),
    Queue(QUEUE_DEFAULT),
)
celery_app.conf.task_default_queue = QUEUE_DEFAULT
#ack after the task body ran, a crashed worker hands the task to another one
celery_app.conf.task_acks_late = True
celery_app.conf.task_reject_on_worker_lost = True
celery_app.conf.worker_prefetch_multiplier = 1

celery_app.conf.beat_schedule = {
    "reclaim-abandoned-orders-every-minute": {
        "task": "checkout_engine.tasks.reclaim.reclaim_abandoned_orders_task",
        "schedule": float(RECLAIM_INTERVAL_SECONDS),
        "options": {"queue": QUEUE_DEFAULT},
    },
}

celery_app.conf.timezone = "UTC"


@task_failure.connect
def log_task_failure(sender=None, task_id=None, exception=None, args=None, kwargs=None, **_):
    #retries exhausted or non-retryable error: left in the result backend for inspection
    logger.error(
        f"Task {getattr(sender, 'name', sender)} [{task_id}] failed permanently: {exception!r} "
        f"args={args} kwargs={kwargs}"
    )
