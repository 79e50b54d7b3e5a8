# checkout_engine/services/order_service.py
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkout_engine.domain import order_status
from checkout_engine.domain.errors import InvalidStatusTransition, OrderNotFound, TransientError
from checkout_engine.repos.order_repo import OrderRepo
from checkout_engine.services.checkout_service import order_to_dict
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Reads and the fulfillment leg of the status machine.
    Leaving `pending` is owned by payment confirmation and the reclaim sweep.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound(order_id)

        if order.user_id != user_id:
            raise PermissionError("Access to this order is not allowed")

        return order_to_dict(order)

    def update_status(self, order_id: int, new_status: str) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        current = order.status
        if current == order_status.PENDING or not order_status.can_transition(current, new_status):
            raise InvalidStatusTransition(order_id, current, new_status)

        try:
            if self.repo.transition_status(order_id, current, new_status) == 0:
                self.repo.rollback()
                #someone moved it between our read and the update
                latest = self.repo.get_order(order_id)
                raise InvalidStatusTransition(order_id, latest.status, new_status)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Status update of order {order_id} failed: {e}")
            raise TransientError("order status could not be updated") from e

        logger.info(f"Order {order_id}: {current} -> {new_status}")
        return order_to_dict(self.repo.get_order(order_id))
