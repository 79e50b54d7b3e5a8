# checkout_engine/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout_engine.api.routers.carts import get_product_client
from checkout_engine.data.database import get_db
from checkout_engine.domain.schemas import CheckoutOut, OrderCreate, OrderOut, OrderStatusUpdate
from checkout_engine.services.checkout_service import CheckoutService
from checkout_engine.services.order_service import OrderService
from checkout_engine.services.product_client import ProductClient
from checkout_engine.utils.settings import CheckoutConfig, load_checkout_config

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=CheckoutOut, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    config: CheckoutConfig = Depends(load_checkout_config),
):
    """
    Checkout: creates a pending order from the selected cart lines.
    Cart lines stay in the cart until the payment is confirmed.
    """
    svc = CheckoutService(db, product_client=product_client, config=config)
    return svc.create_order(payload.user_id, payload.cart_item_ids, payload.promo_code)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    return OrderService(db).get_order(order_id, user_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    return OrderService(db).update_status(order_id, payload.status)
