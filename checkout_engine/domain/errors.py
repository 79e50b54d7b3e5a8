# checkout_engine/domain/errors.py
"""
Error taxonomy of the checkout engine.

ValidationError / NotFound / ConflictError carry a message that is safe to show
to the caller. TransientError and ConsistencyViolation are rendered with a
generic message; the detail only goes to the logs.
"""


class CheckoutError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CheckoutError):
    status_code = 400


class CartItemsMissing(ValidationError):
    status_code = 422

    def __init__(self, missing_ids):
        self.missing_ids = sorted(missing_ids)
        super().__init__(
            f"one or more cart items do not exist: {', '.join(str(i) for i in self.missing_ids)}"
        )


class ProductMissing(ValidationError):
    status_code = 422

    def __init__(self, product_ids):
        self.product_ids = sorted(product_ids)
        super().__init__(
            f"product(s) no longer available: {', '.join(str(i) for i in self.product_ids)}"
        )


class OutOfStock(ValidationError):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class InvalidQuantity(ValidationError):
    pass


class PromoNotFound(ValidationError):
    status_code = 404

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"promo code '{code}' not found")


class PromoExpired(ValidationError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"promo code '{code}' has expired")


class MinPurchaseNotMet(ValidationError):
    def __init__(self, code: str, minimum):
        self.code = code
        self.minimum = minimum
        super().__init__(f"minimum purchase amount of {minimum:.2f} required for promo code '{code}'")


class UserNotAllowed(ValidationError):
    status_code = 403

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"promo code '{code}' is not valid for this user")


class InvalidStatusTransition(ValidationError):
    status_code = 409

    def __init__(self, order_id: int, current: str, target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(f"order {order_id} cannot move from '{current}' to '{target}'")


class NotFound(CheckoutError):
    status_code = 404


class OrderNotFound(NotFound):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"order {order_id} not found")


class CartItemNotFound(NotFound):
    def __init__(self, cart_item_id: int):
        self.cart_item_id = cart_item_id
        super().__init__(f"cart item {cart_item_id} not found")


class ConflictError(CheckoutError):
    status_code = 409


class PromoUsageLimitReached(ConflictError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"promo code '{code}' has reached its usage limit")


class TransientError(CheckoutError):
    """Database timeout, broker or catalog unavailable. Retried by workers."""


class ConsistencyViolation(CheckoutError):
    """A broken invariant, e.g. finalizing a promo with no reservation."""
