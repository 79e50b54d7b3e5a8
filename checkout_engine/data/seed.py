# checkout_engine/data/seed.py
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from checkout_engine.data.database import SessionLocal, init_db
from checkout_engine.data.models.promo import PromoModel, PERCENT, FIXED
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

DEV_PROMOS = [
    {"code": "SAVE10", "discount_type": PERCENT, "discount_value": Decimal("10"), "max_uses": 1},
    {"code": "WELCOME5", "discount_type": FIXED, "discount_value": Decimal("5"),
     "min_purchase_amount": Decimal("20"), "max_uses": 0},
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        #only seed if empty
        if db.query(PromoModel).first():
            return
        expires = datetime.now(timezone.utc) + timedelta(days=30)
        for promo in DEV_PROMOS:
            db.add(PromoModel(expired_at=expires, **promo))
        db.commit()
        logger.info(f"Seeded {len(DEV_PROMOS)} promo codes")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
