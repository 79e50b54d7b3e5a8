#checkout_engine/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from checkout_engine.data.database import get_db
from checkout_engine.domain.schemas import CartOut, ItemIn
from checkout_engine.services.cart_service import CartService
from checkout_engine.services.product_client import ProductClient

router = APIRouter(prefix="/carts", tags=["carts"])


def get_product_client() -> ProductClient:
    return ProductClient()


def get_service(db: Session, product_client: ProductClient):
    return CartService(db=db, product_client=product_client)


@router.get("/me", response_model=CartOut)
def get_cart(
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    return get_service(db, product_client).get_cart(user_id)


@router.post("/me/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    return get_service(db, product_client).add_item(
        user_id=user_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


@router.delete("/me/items/{cart_item_id}", response_model=CartOut)
def remove_item(
    cart_item_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    return get_service(db, product_client).remove_item(user_id, cart_item_id)
