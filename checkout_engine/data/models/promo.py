from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)

from checkout_engine.data.database import Base

PERCENT = "percent"
FIXED = "fixed"
FREE_SHIPPING = "free_shipping"
DISCOUNT_TYPES = (PERCENT, FIXED, FREE_SHIPPING)


class PromoModel(Base):
    __tablename__ = "promos"

    id = Column(Integer, primary_key=True)
    code = Column(String(64), nullable=False, unique=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    min_purchase_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    max_uses = Column(Integer, nullable=False, default=0)  # 0 = unlimited
    used_count = Column(Integer, nullable=False, default=0)
    reserved_count = Column(Integer, nullable=False, default=0)

    user_specific = Column(Boolean, nullable=False, default=False)
    expired_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_promo_used_count"),
        CheckConstraint("reserved_count >= 0", name="ck_promo_reserved_count"),
        CheckConstraint("max_uses >= 0", name="ck_promo_max_uses"),
    )


class PromoUserRestrictionModel(Base):
    __tablename__ = "promo_user_restrictions"

    id = Column(Integer, primary_key=True)
    promo_id = Column(Integer, ForeignKey("promos.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, nullable=False)

    __table_args__ = (UniqueConstraint("promo_id", "user_id", name="u_promo_user"),)


class UserPromoUsageModel(Base):
    __tablename__ = "user_promo_usage"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    promo_id = Column(Integer, ForeignKey("promos.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
