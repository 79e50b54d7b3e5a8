# checkout_engine/repos/promo_repo.py
from sqlalchemy import exists, or_, select, update
from sqlalchemy.orm import Session

from checkout_engine.data.models.promo import (
    PromoModel,
    PromoUserRestrictionModel,
    UserPromoUsageModel,
)


class PromoRepo:
    """
    Counter mutations are single conditional UPDATEs evaluated by the database,
    so concurrent callers never act on a stale read of used/reserved counts.
    None of them commit; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> PromoModel | None:
        return self.db.execute(
            select(PromoModel).where(PromoModel.code == code)
        ).scalar_one_or_none()

    def get_promo(self, promo_id: int) -> PromoModel | None:
        return self.db.get(PromoModel, promo_id)

    def is_user_allowed(self, promo_id: int, user_id: int) -> bool:
        return bool(
            self.db.execute(
                select(
                    exists().where(
                        PromoUserRestrictionModel.promo_id == promo_id,
                        PromoUserRestrictionModel.user_id == user_id,
                    )
                )
            ).scalar()
        )

    def _execute_update(self, stmt) -> int:
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount

    def reserve(self, promo_id: int) -> int:
        # UPDATE promos SET reserved_count = reserved_count + 1
        # WHERE id = :id AND (max_uses = 0 OR used_count + reserved_count < max_uses)
        return self._execute_update(
            update(PromoModel)
            .where(
                PromoModel.id == promo_id,
                or_(
                    PromoModel.max_uses == 0,
                    PromoModel.used_count + PromoModel.reserved_count < PromoModel.max_uses,
                ),
            )
            .values(reserved_count=PromoModel.reserved_count + 1)
        )

    def finalize(self, promo_id: int) -> int:
        return self._execute_update(
            update(PromoModel)
            .where(PromoModel.id == promo_id, PromoModel.reserved_count > 0)
            .values(
                used_count=PromoModel.used_count + 1,
                reserved_count=PromoModel.reserved_count - 1,
            )
        )

    def release(self, promo_id: int) -> int:
        #floor at zero, a second release affects no rows
        return self._execute_update(
            update(PromoModel)
            .where(PromoModel.id == promo_id, PromoModel.reserved_count > 0)
            .values(reserved_count=PromoModel.reserved_count - 1)
        )

    def record_usage(self, promo_id: int, user_id: int, order_id: int) -> None:
        self.db.add(UserPromoUsageModel(promo_id=promo_id, user_id=user_id, order_id=order_id))
