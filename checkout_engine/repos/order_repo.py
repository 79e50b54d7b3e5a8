# checkout_engine/repos/order_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from checkout_engine.data.models.order import OrderModel
from checkout_engine.data.models.order_item import OrderItemModel
from checkout_engine.domain import order_status


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        #parent and children go out in one flush, inside the caller's transaction
        order.items = items
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id).with_for_update()
        ).scalar_one_or_none()

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel).where(OrderItemModel.order_id == order_id)
            ).scalars()
        )

    def transition_status(self, order_id: int, from_status: str, to_status: str, **values) -> int:
        """
        Compare-and-set on status. Returns the number of rows moved (0 or 1), so
        only one of two racing writers can take an order out of `from_status`.
        """
        values.update(status=to_status, updated_at=datetime.now(timezone.utc))
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_abandoned_orders(self, cutoff: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(
                    OrderModel.status == order_status.PENDING,
                    OrderModel.created_at < cutoff,
                )
                .order_by(OrderModel.created_at)
            ).scalars()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
