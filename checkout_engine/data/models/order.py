from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from checkout_engine.data.database import Base
from checkout_engine.domain import order_status


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)

    #sum of quantity * snapshot price, fixed at checkout
    total_amount = Column(Numeric(12, 2), nullable=False)
    promo_code = Column(String(64), nullable=True)
    promo_id = Column(Integer, ForeignKey("promos.id"), nullable=True)
    discount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    status = Column(String(20), nullable=False, default=order_status.PENDING, index=True)
    paid = Column(Boolean, nullable=False, default=False)
    payment_method = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    @property
    def amount_due(self) -> Decimal:
        return self.total_amount - (self.discount or Decimal("0.00"))
