# checkout_engine/api/routers/payments.py
from fastapi import APIRouter, Depends

from checkout_engine.domain.schemas import PaymentConfirmationIn, PaymentConfirmationOut
from checkout_engine.services.lock_service import LockService
from checkout_engine.services.task_distributor import PaymentTaskDistributor
from checkout_engine.utils.settings import CheckoutConfig, load_checkout_config

router = APIRouter(prefix="/payments", tags=["payments"])


def get_lock_service() -> LockService:
    return LockService()


@router.post("/confirmations", response_model=PaymentConfirmationOut, status_code=202)
def confirm_payment(
    payload: PaymentConfirmationIn,
    lock_service: LockService = Depends(get_lock_service),
    config: CheckoutConfig = Depends(load_checkout_config),
):
    """
    Provider callback. Only enqueues; the outcome is recorded by the worker.
    A repeated callback while the first one is in flight is accepted and dropped.
    """
    distributor = PaymentTaskDistributor(lock_service, config)
    enqueued = distributor.distribute_process_order_payment(payload.model_dump(mode="json"))
    return {"order_id": payload.order_id, "enqueued": enqueued}
