# checkout_engine/services/promo_service.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from checkout_engine.data.models import promo as promo_types
from checkout_engine.data.models.promo import PromoModel
from checkout_engine.domain.errors import (
    ConsistencyViolation,
    MinPurchaseNotMet,
    PromoExpired,
    PromoNotFound,
    PromoUsageLimitReached,
    UserNotAllowed,
)
from checkout_engine.repos.promo_repo import PromoRepo
from checkout_engine.services.snapshot_service import to_money
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    #sqlite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_discount(promo: PromoModel, order_total: Decimal) -> Decimal:
    if promo.discount_type == promo_types.PERCENT:
        discount = min(order_total * Decimal(str(promo.discount_value)) / Decimal(100), order_total)
    elif promo.discount_type == promo_types.FIXED:
        discount = min(Decimal(str(promo.discount_value)), order_total)
    else:
        #free_shipping: shipping is priced outside this service
        discount = Decimal("0.00")
    return to_money(discount)


class PromoService:
    """
    Promo reservation manager.

    validate_promo_code() is a plain read and may race; reserve() is the only
    step that claims capacity and it is decided by the database in one UPDATE.
    Every successful reserve() must be followed by exactly one finalize() or
    release(). Nothing here commits.
    """

    def __init__(self, db: Session):
        self.repo = PromoRepo(db)

    def validate_promo_code(self, code: str, user_id: int, order_total: Decimal, now: datetime | None = None):
        """Returns (promo, discounted_total, discount)."""
        now = now or datetime.now(timezone.utc)

        promo = self.repo.find_by_code(code)
        if not promo:
            raise PromoNotFound(code)

        if promo.expired_at is not None and now > _as_utc(promo.expired_at):
            raise PromoExpired(code)

        if promo.max_uses > 0 and promo.used_count + promo.reserved_count >= promo.max_uses:
            raise PromoUsageLimitReached(code)

        minimum = Decimal(str(promo.min_purchase_amount or 0))
        if minimum > 0 and order_total < minimum:
            raise MinPurchaseNotMet(code, minimum)

        if promo.user_specific and not self.repo.is_user_allowed(promo.id, user_id):
            raise UserNotAllowed(code)

        discount = compute_discount(promo, order_total)
        return promo, order_total - discount, discount

    def reserve(self, promo: PromoModel) -> None:
        if self.repo.reserve(promo.id) == 0:
            logger.info(f"Reservation refused for promo {promo.code}: capacity exhausted")
            raise PromoUsageLimitReached(promo.code)
        logger.info(f"Reserved one use of promo {promo.code}")

    def finalize(self, promo_id: int, user_id: int | None = None, order_id: int | None = None) -> None:
        if self.repo.finalize(promo_id) == 0:
            logger.critical(f"Finalize on promo {promo_id} with no outstanding reservation (order {order_id})")
            raise ConsistencyViolation(f"promo {promo_id} has no reservation to finalize")
        if user_id is not None and order_id is not None:
            self.repo.record_usage(promo_id, user_id, order_id)
        logger.info(f"Finalized promo {promo_id} for order {order_id}")

    def release(self, promo_id: int, order_id: int | None = None) -> bool:
        if self.repo.release(promo_id) == 0:
            logger.warning(f"Release on promo {promo_id} clamped at zero (order {order_id})")
            return False
        logger.info(f"Released promo {promo_id} reservation for order {order_id}")
        return True
