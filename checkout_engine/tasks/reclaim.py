# checkout_engine/tasks/reclaim.py
from checkout_engine.celery_worker import celery_app
from checkout_engine.data.database import SessionLocal
from checkout_engine.services.reclaim_service import ReclaimService
from checkout_engine.utils.settings import load_checkout_config, QUEUE_DEFAULT
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="checkout_engine.tasks.reclaim.reclaim_abandoned_orders_task", queue=QUEUE_DEFAULT)
def reclaim_abandoned_orders_task():
    logger.info("Reclaim abandoned orders task started")

    db = SessionLocal()
    try:
        result = ReclaimService(db, load_checkout_config()).reclaim_abandoned_orders()
    finally:
        db.close()

    logger.info(f"Reclaim finished: {result['expired']} expired, {result['failed']} failed")
    return result
