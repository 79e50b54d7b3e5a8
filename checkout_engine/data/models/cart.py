#checkout_engine/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Boolean, DateTime, Index, true
from sqlalchemy.orm import relationship

from checkout_engine.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    #one active cart per user
    __table_args__ = (
        Index(
            "u_active_cart_per_user",
            "user_id",
            unique=True,
            postgresql_where=is_active.is_(true()),
            sqlite_where=is_active.is_(true()),
        ),
    )
