# checkout_engine/domain/order_status.py
PENDING = "pending"
PROCESSING = "processing"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"
EXPIRED = "expired"

ALLOWED_TRANSITIONS = {
    PENDING: {PROCESSING, CANCELLED, EXPIRED},
    PROCESSING: {SHIPPED, CANCELLED},
    SHIPPED: {DELIVERED},
    DELIVERED: set(),
    CANCELLED: set(),
    EXPIRED: set(),
}

TERMINAL = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"
PAYMENT_STATUSES = (PAYMENT_COMPLETED, PAYMENT_FAILED)


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())
