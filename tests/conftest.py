"""Shared fixtures: SQLite database, catalog/lock fakes, row factories."""

import os
import tempfile

#must happen before checkout_engine is imported, settings are read at import time
_DB_DIR = tempfile.mkdtemp(prefix="checkout-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'checkout.db')}"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

import checkout_engine.data.models  # noqa: E402,F401
from checkout_engine.data.database import Base, SessionLocal, engine  # noqa: E402
from checkout_engine.data.models import (  # noqa: E402
    CartItemModel,
    CartModel,
    OrderItemModel,
    OrderModel,
    PromoModel,
    PromoUserRestrictionModel,
)
from checkout_engine.utils.settings import CheckoutConfig  # noqa: E402


class FakeProductClient:
    def __init__(self, products=None):
        self.products = {p["id"]: p for p in (products or [])}
        self.calls = []

    def fetch_products(self, product_ids):
        self.calls.append(sorted(product_ids))
        return [self.products[i] for i in product_ids if i in self.products]

    def fetch_product(self, product_id):
        return self.products.get(product_id)


class FakeLockService:
    def __init__(self):
        self.locks = {}
        self.released = []

    def acquire(self, key, token, ttl):
        if key in self.locks:
            return False
        self.locks[key] = token
        return True

    def release(self, key, token):
        self.released.append(key)
        if self.locks.get(key) == token:
            del self.locks[key]
            return True
        return False


class FakeNotificationService:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_order_confirmation(self, order_id):
        self.sent.append(order_id)
        return not self.fail


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def no_broker(mocker):
    #nothing in the suite should reach a real broker
    mocker.patch(
        "checkout_engine.services.notification_service.send_order_confirmation_email_task.apply_async"
    )
    mocker.patch("checkout_engine.tasks.payment.process_order_payment_task.apply_async")


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def config():
    return CheckoutConfig(
        payment_methods=("stripe", "paypal"),
        abandoned_order_timeout=timedelta(minutes=30),
        payment_task_unique_ttl=300,
    )


@pytest.fixture
def catalog():
    return FakeProductClient(
        [
            {"id": 1, "price": 10, "discount": 1, "stock_quantity": 5},
            {"id": 2, "price": "25.50", "discount": "0.50", "stock_quantity": 10},
            {"id": 3, "price": 100, "discount": 0, "stock_quantity": 1},
        ]
    )


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifier():
    return FakeNotificationService()


@pytest.fixture
def failing_notifier():
    return FakeNotificationService(fail=True)


@pytest.fixture
def make_cart(db):
    """Creates the user's active cart with (product_id, quantity) lines; returns item ids."""

    def _make(user_id, lines):
        cart = db.query(CartModel).filter_by(user_id=user_id, is_active=True).first()
        if cart is None:
            cart = CartModel(user_id=user_id, is_active=True)
            db.add(cart)
            db.flush()
        items = [CartItemModel(cart_id=cart.id, product_id=p, quantity=q) for p, q in lines]
        db.add_all(items)
        db.commit()
        return [i.id for i in items]

    return _make


@pytest.fixture
def make_promo(db):
    def _make(code="SAVE10", **overrides):
        values = {
            "code": code,
            "discount_type": "percent",
            "discount_value": Decimal("10"),
            "min_purchase_amount": Decimal("0"),
            "max_uses": 0,
            "used_count": 0,
            "reserved_count": 0,
            "user_specific": False,
            "expired_at": datetime.now(timezone.utc) + timedelta(days=1),
        }
        allowed_users = overrides.pop("allowed_users", [])
        values.update(overrides)
        promo = PromoModel(**values)
        db.add(promo)
        db.flush()
        for user_id in allowed_users:
            db.add(PromoUserRestrictionModel(promo_id=promo.id, user_id=user_id))
        db.commit()
        return promo

    return _make


@pytest.fixture
def make_order(db):
    """Inserts an order directly, bypassing checkout; optionally holding a promo reservation."""

    def _make(user_id=1, status="pending", created_at=None, promo=None, items=((1, 2, "9.00", None),)):
        order_items = [
            OrderItemModel(product_id=p, quantity=q, price=Decimal(price), cart_item_id=cart_item_id)
            for p, q, price, cart_item_id in items
        ]
        total = sum((i.price * i.quantity for i in order_items), Decimal("0.00"))
        order = OrderModel(
            user_id=user_id,
            total_amount=total,
            discount=Decimal("0.00"),
            status=status,
            paid=False,
            promo_code=promo.code if promo else None,
            promo_id=promo.id if promo else None,
            created_at=created_at or datetime.now(timezone.utc),
        )
        order.items = order_items
        db.add(order)
        if promo is not None:
            promo.reserved_count += 1
        db.commit()
        return order

    return _make
