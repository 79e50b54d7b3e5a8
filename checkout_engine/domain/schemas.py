# checkout_engine/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product ID (> 0)")
    quantity: int = Field(..., ge=1, description="Quantity (>= 1)")


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    added_at: datetime


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    is_active: bool
    items: List[CartItemOut]

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    """Checkout request: which cart lines to buy and an optional promo code."""

    user_id: int = Field(..., gt=0)
    cart_item_ids: List[int] = Field(..., min_length=1)
    promo_code: str | None = Field(default=None, max_length=64)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    total_amount: Decimal
    discount: Decimal
    amount_due: Decimal
    promo_code: str | None = None
    paid: bool
    payment_method: str | None = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(OrderOut):
    payment_options: List[str]


class OrderStatusUpdate(BaseModel):
    status: Literal["shipped", "delivered", "cancelled"]


class PaymentConfirmationIn(BaseModel):
    """Provider callback, reduced to what the confirmation handler needs."""

    order_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., ge=0)
    transaction_id: str = Field(..., min_length=1, max_length=128)
    status: Literal["completed", "failed"]
    payment_method: str = Field(default="stripe", max_length=32)


class PaymentConfirmationOut(BaseModel):
    order_id: int
    enqueued: bool
