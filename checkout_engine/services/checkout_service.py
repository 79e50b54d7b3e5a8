# checkout_engine/services/checkout_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkout_engine.data.models.order import OrderModel
from checkout_engine.data.models.order_item import OrderItemModel
from checkout_engine.domain import order_status
from checkout_engine.domain.errors import CartItemsMissing, CheckoutError, TransientError
from checkout_engine.repos.cart_repo import CartRepo
from checkout_engine.repos.order_repo import OrderRepo
from checkout_engine.services.product_client import ProductClient
from checkout_engine.services.promo_service import PromoService
from checkout_engine.services.snapshot_service import PriceSnapshotResolver, to_money
from checkout_engine.utils.settings import CheckoutConfig
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "discount": order.discount,
        "amount_due": order.amount_due,
        "promo_code": order.promo_code,
        "paid": order.paid,
        "payment_method": order.payment_method,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ],
    }


class CheckoutService:
    """
    Turns cart lines into a pending order.

    Promo reservation, the order row and its items share one transaction: if
    anything fails before commit the reservation is rolled back with the rest.
    Cart lines are left alone here; they are removed once payment completes.
    """

    def __init__(self, db: Session, product_client: ProductClient, config: CheckoutConfig):
        self.db = db
        self.cart_repo = CartRepo(db)
        self.order_repo = OrderRepo(db)
        self.promo_service = PromoService(db)
        self.resolver = PriceSnapshotResolver(product_client)
        self.config = config

    def create_order(self, user_id: int, cart_item_ids: List[int], promo_code: str | None = None) -> Dict[str, Any]:
        requested_ids = set(cart_item_ids)

        try:
            #1. the requested lines must all be in the user's active cart
            cart = self.cart_repo.get_active_cart_by_user(user_id)
            cart_items = self.cart_repo.get_items_by_ids(cart.id, list(requested_ids)) if cart else []
            missing = requested_ids - {i.id for i in cart_items}
            if not requested_ids or missing:
                raise CartItemsMissing(missing or requested_ids)

            #2. snapshot prices and stock
            quantities: Dict[int, int] = {}
            for item in cart_items:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
            snapshots = self.resolver.resolve(quantities)

            #3. total from snapshot unit prices
            order_items = [
                OrderItemModel(
                    product_id=item.product_id,
                    cart_item_id=item.id,
                    quantity=item.quantity,
                    price=snapshots[item.product_id].unit_price,
                )
                for item in cart_items
            ]
            total = to_money(sum((i.price * i.quantity for i in order_items), Decimal("0.00")))

            #4. promo: validate, then claim capacity
            promo = None
            discount = Decimal("0.00")
            if promo_code:
                promo, _, discount = self.promo_service.validate_promo_code(promo_code, user_id, total)
                self.promo_service.reserve(promo)

            #5. order + items, atomically with the reservation
            order = OrderModel(
                user_id=user_id,
                total_amount=total,
                promo_code=promo.code if promo else None,
                promo_id=promo.id if promo else None,
                discount=discount,
                status=order_status.PENDING,
                paid=False,
            )
            self.order_repo.add_order(order, order_items)
            self.order_repo.commit()

        except CheckoutError:
            self.order_repo.rollback()
            raise
        except SQLAlchemyError as e:
            self.order_repo.rollback()
            logger.error(f"Checkout for user {user_id} failed on storage: {e}")
            raise TransientError("order could not be created") from e

        logger.info(
            f"Order {order.id} created for user {user_id}: total {order.total_amount}, "
            f"discount {order.discount}, promo {order.promo_code or '-'}"
        )

        #6. pending order + payment choices
        result = order_to_dict(self.order_repo.get_order(order.id))
        result["payment_options"] = list(self.config.payment_methods)
        return result
