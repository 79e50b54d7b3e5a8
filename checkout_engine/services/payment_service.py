# checkout_engine/services/payment_service.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from checkout_engine.data.models.payment import PaymentModel
from checkout_engine.domain import order_status
from checkout_engine.domain.errors import CheckoutError, ConsistencyViolation, TransientError
from checkout_engine.repos.cart_repo import CartRepo
from checkout_engine.repos.order_repo import OrderRepo
from checkout_engine.repos.payment_repo import PaymentRepo
from checkout_engine.services.notification_service import NotificationService
from checkout_engine.services.promo_service import PromoService
from checkout_engine.services.snapshot_service import to_money
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

DUPLICATE = "duplicate"
RECORDED = "recorded"


@dataclass(frozen=True)
class PaymentConfirmation:
    order_id: int
    amount: Decimal
    transaction_id: str
    status: str
    payment_method: str = "stripe"


class PaymentService:
    """
    Records the outcome of a payment for a pending order.

    Payment row, order status, promo finalize/release and cart cleanup are one
    transaction. A confirmation for an order that already has a payment is a
    no-op. The confirmation email is enqueued after commit and may fail alone.
    """

    def __init__(self, db: Session, notification_service: NotificationService):
        self.db = db
        self.order_repo = OrderRepo(db)
        self.payment_repo = PaymentRepo(db)
        self.cart_repo = CartRepo(db)
        self.promo_service = PromoService(db)
        self.notification_service = notification_service

    def confirm_payment(self, confirmation: PaymentConfirmation) -> Dict[str, Any]:
        order_id = confirmation.order_id
        if confirmation.status not in order_status.PAYMENT_STATUSES:
            raise ConsistencyViolation(f"unknown payment status '{confirmation.status}' for order {order_id}")
        completed = confirmation.status == order_status.PAYMENT_COMPLETED

        try:
            if self.payment_repo.get_by_order(order_id):
                self.order_repo.rollback()
                logger.warning(f"Payment for order {order_id} already recorded, ignoring redelivery")
                return {"order_id": order_id, "outcome": DUPLICATE}

            order = self.order_repo.get_order_for_update(order_id)
            if not order:
                raise ConsistencyViolation(f"payment confirmation for unknown order {order_id}")

            new_status = order_status.PROCESSING if completed else order_status.CANCELLED
            moved = self.order_repo.transition_status(
                order_id,
                order_status.PENDING,
                new_status,
                paid=completed,
                payment_method=confirmation.payment_method,
            )
            if moved == 0:
                #a concurrent delivery of the same confirmation committed first
                if self.payment_repo.get_by_order(order_id):
                    self.order_repo.rollback()
                    logger.warning(f"Payment for order {order_id} recorded concurrently, ignoring")
                    return {"order_id": order_id, "outcome": DUPLICATE}
                raise ConsistencyViolation(
                    f"payment confirmation for order {order_id} in status '{order.status}'"
                )

            amount = to_money(confirmation.amount)
            if completed and amount != order.amount_due:
                logger.warning(f"Order {order_id}: paid {amount}, expected {order.amount_due}")

            self.payment_repo.add_payment(
                PaymentModel(
                    order_id=order_id,
                    payment_method=confirmation.payment_method,
                    amount=amount,
                    status=confirmation.status,
                    transaction_id=confirmation.transaction_id,
                )
            )

            if order.promo_id is not None:
                if completed:
                    self.promo_service.finalize(order.promo_id, user_id=order.user_id, order_id=order_id)
                else:
                    self.promo_service.release(order.promo_id, order_id=order_id)

            if completed:
                self._clear_ordered_cart_items(order_id)

            self.order_repo.commit()

        except IntegrityError:
            #a concurrent delivery inserted the payment first
            self.order_repo.rollback()
            if self.payment_repo.get_by_order(order_id):
                logger.warning(f"Payment for order {order_id} recorded concurrently, ignoring")
                return {"order_id": order_id, "outcome": DUPLICATE}
            raise ConsistencyViolation(f"payment for order {order_id} violates a constraint")
        except CheckoutError:
            self.order_repo.rollback()
            raise
        except SQLAlchemyError as e:
            self.order_repo.rollback()
            logger.error(f"Payment confirmation for order {order_id} failed on storage: {e}")
            raise TransientError(f"payment for order {order_id} could not be recorded") from e

        logger.info(f"Payment {confirmation.status} recorded for order {order_id}, order is now {new_status}")

        self.notification_service.send_order_confirmation(order_id)
        return {"order_id": order_id, "outcome": RECORDED, "order_status": new_status}

    def _clear_ordered_cart_items(self, order_id: int) -> None:
        cart_item_ids = [i.cart_item_id for i in self.order_repo.get_order_items(order_id) if i.cart_item_id]
        cart_id = self.cart_repo.get_cart_id_for_items(cart_item_ids)
        removed = self.cart_repo.delete_items(cart_item_ids)
        logger.info(f"Removed {removed} cart item(s) ordered in order {order_id}")

        if cart_id is not None and self.cart_repo.count_items(cart_id) == 0:
            self.cart_repo.deactivate_cart(cart_id)
            logger.info(f"Cart {cart_id} emptied by order {order_id}, deactivated")
