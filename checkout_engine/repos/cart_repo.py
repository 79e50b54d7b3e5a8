# checkout_engine/repos/cart_repo.py
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from checkout_engine.data.models.cart import CartModel
from checkout_engine.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.user_id == user_id, CartModel.is_active.is_(True))
            .order_by(CartModel.id.desc())
        ).scalars().first()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_items_by_ids(self, cart_id: int, item_ids: list[int]) -> list[CartItemModel]:
        if not item_ids:
            return []
        return list(
            self.db.execute(
                select(CartItemModel).where(
                    CartItemModel.cart_id == cart_id,
                    CartItemModel.id.in_(item_ids),
                )
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_cart_item_by_id(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == item_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_items(self, item_ids: list[int]) -> int:
        if not item_ids:
            return 0
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.id.in_(item_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count_items(self, cart_id: int) -> int:
        return self.db.execute(
            select(func.count(CartItemModel.id)).where(CartItemModel.cart_id == cart_id)
        ).scalar_one()

    def get_cart_id_for_items(self, item_ids: list[int]) -> int | None:
        if not item_ids:
            return None
        return self.db.execute(
            select(CartItemModel.cart_id).where(CartItemModel.id.in_(item_ids)).limit(1)
        ).scalar_one_or_none()

    def deactivate_cart(self, cart_id: int) -> None:
        cart = self.get_cart(cart_id)
        if cart:
            cart.is_active = False
            self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
