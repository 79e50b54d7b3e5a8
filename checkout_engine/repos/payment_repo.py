# checkout_engine/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from checkout_engine.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order(self, order_id: int) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        ).scalar_one_or_none()

    def add_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment
