#import all models so SQLAlchemy registers them in Base.metadata

from checkout_engine.data.models.cart import CartModel
from checkout_engine.data.models.cart_item import CartItemModel
from checkout_engine.data.models.promo import PromoModel, PromoUserRestrictionModel, UserPromoUsageModel
from checkout_engine.data.models.order import OrderModel
from checkout_engine.data.models.order_item import OrderItemModel
from checkout_engine.data.models.payment import PaymentModel

__all__ = [
    "CartModel",
    "CartItemModel",
    "PromoModel",
    "PromoUserRestrictionModel",
    "UserPromoUsageModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
]
