from typing import Dict, Any

from requests import RequestException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from checkout_engine.data.models.cart import CartModel
from checkout_engine.data.models.cart_item import CartItemModel
from checkout_engine.domain.errors import (
    CartItemNotFound,
    CheckoutError,
    InvalidQuantity,
    ProductMissing,
    TransientError,
)
from checkout_engine.repos.cart_repo import CartRepo
from checkout_engine.services.product_client import ProductClient
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    One active cart per user, created on first access.
    Lines are merged per product; checkout reads them, payment removes them.
    """

    def __init__(self, db: Session, product_client: ProductClient):
        self.repo = CartRepo(db)
        self.product_client = product_client

    def _cart_to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "is_active": cart.is_active,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "added_at": i.added_at,
                }
                for i in items
            ],
        }

    def _get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_active_cart_by_user(user_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, is_active=True))
        except IntegrityError:
            self.repo.rollback()
            return self.repo.get_active_cart_by_user(user_id)

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        try:
            return self._cart_to_dict(self._get_or_create_cart(user_id))
        except SQLAlchemyError as e:
            self.repo.rollback()
            raise TransientError("cart could not be loaded") from e

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise InvalidQuantity("quantity must be at least 1")

        try:
            product = self.product_client.fetch_product(product_id)
        except RequestException as e:
            raise TransientError("catalog lookup failed") from e
        if not product:
            raise ProductMissing([product_id])

        try:
            cart = self._get_or_create_cart(user_id)
            existing = self.repo.get_cart_item(cart.id, product_id)
            if existing:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
            else:
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                )
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Adding product {product_id} for user {user_id} failed: {e}")
            raise TransientError("cart could not be updated") from e

        return self._cart_to_dict(cart)

    def remove_item(self, user_id: int, cart_item_id: int) -> Dict[str, Any]:
        try:
            cart = self._get_or_create_cart(user_id)
            item = self.repo.get_cart_item_by_id(cart.id, cart_item_id)
            if not item:
                raise CartItemNotFound(cart_item_id)

            self.repo.delete_cart_item(item)
            self.repo.commit()
        except CheckoutError:
            raise
        except SQLAlchemyError as e:
            self.repo.rollback()
            raise TransientError("cart could not be updated") from e

        logger.info(f"Removed item {cart_item_id} from cart {cart.id}")
        return self._cart_to_dict(cart)
