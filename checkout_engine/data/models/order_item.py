from sqlalchemy import Column, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from checkout_engine.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    #cart line this item came from, removed from the cart once payment completes
    cart_item_id = Column(Integer, nullable=True)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # per-unit snapshot, never re-read

    order = relationship("OrderModel", back_populates="items")
