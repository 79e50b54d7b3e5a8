# checkout_engine/services/reclaim_service.py
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy.orm import Session

from checkout_engine.domain import order_status
from checkout_engine.repos.order_repo import OrderRepo
from checkout_engine.services.promo_service import PromoService
from checkout_engine.utils.settings import CheckoutConfig
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class ReclaimService:
    """
    Expires pending orders older than the abandonment timeout and gives their
    promo reservation back. Best effort: one order per transaction, a failing
    order is logged and the sweep moves on.
    """

    def __init__(self, db: Session, config: CheckoutConfig):
        self.repo = OrderRepo(db)
        self.promo_service = PromoService(db)
        self.config = config

    def reclaim_abandoned_orders(self, now: datetime | None = None) -> Dict[str, int]:
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.config.abandoned_order_timeout

        orders = self.repo.get_abandoned_orders(cutoff)
        logger.info(f"Found {len(orders)} abandoned orders created before {cutoff.isoformat()}")

        expired = failed = 0
        for order_id, promo_id in [(o.id, o.promo_id) for o in orders]:
            try:
                #status guard first: if payment confirmation got there, skip the order
                if self.repo.transition_status(order_id, order_status.PENDING, order_status.EXPIRED) == 0:
                    self.repo.rollback()
                    logger.info(f"Order {order_id} left pending meanwhile, skipping")
                    continue

                if promo_id is not None:
                    self.promo_service.release(promo_id, order_id=order_id)

                self.repo.commit()
                expired += 1
                logger.info(f"Order {order_id} expired")
            except Exception as e:
                self.repo.rollback()
                failed += 1
                logger.error(f"Failed to reclaim order {order_id}: {e}")

        return {"expired": expired, "failed": failed}
