from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from checkout_engine.data.models import (
    CartItemModel,
    CartModel,
    OrderModel,
    PaymentModel,
    PromoModel,
    UserPromoUsageModel,
)
from checkout_engine.domain.errors import ConsistencyViolation, TransientError
from checkout_engine.repos.payment_repo import PaymentRepo
from checkout_engine.services.checkout_service import CheckoutService
from checkout_engine.services.payment_service import PaymentConfirmation, PaymentService
from checkout_engine.services.reclaim_service import ReclaimService


@pytest.fixture
def place_order(db, catalog, config, make_cart):
    """Checkout through the real service so the order references its cart lines."""

    def _place(user_id=1, lines=((1, 2),), promo_code=None, extra_lines=()):
        item_ids = make_cart(user_id=user_id, lines=list(lines))
        if extra_lines:
            make_cart(user_id=user_id, lines=list(extra_lines))
        return CheckoutService(db, catalog, config).create_order(user_id, item_ids, promo_code)

    return _place


def _confirmation(order, status="completed", transaction_id="txn-1"):
    return PaymentConfirmation(
        order_id=order["id"],
        amount=order["amount_due"],
        transaction_id=transaction_id,
        status=status,
    )


def _reload(db, model, pk):
    db.expire_all()
    return db.get(model, pk)


def test_completed_payment_moves_order_to_processing(db, notifier, place_order, make_promo):
    promo = make_promo("SAVE10", max_uses=1)
    order = place_order(promo_code="SAVE10")

    result = PaymentService(db, notifier).confirm_payment(_confirmation(order))

    assert result == {"order_id": order["id"], "outcome": "recorded", "order_status": "processing"}
    stored = _reload(db, OrderModel, order["id"])
    assert stored.status == "processing"
    assert stored.paid is True
    assert stored.payment_method == "stripe"

    payment = db.query(PaymentModel).one()
    assert payment.amount == Decimal("16.20")
    assert payment.transaction_id == "txn-1"

    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (1, 0)
    usage = db.query(UserPromoUsageModel).one()
    assert (usage.user_id, usage.order_id) == (1, order["id"])

    assert notifier.sent == [order["id"]]


def test_completed_payment_empties_and_deactivates_cart(db, notifier, place_order):
    order = place_order()

    PaymentService(db, notifier).confirm_payment(_confirmation(order))

    db.expire_all()
    assert db.query(CartItemModel).count() == 0
    assert db.query(CartModel).filter_by(user_id=1, is_active=True).count() == 0


def test_lines_not_in_the_order_keep_the_cart_active(db, notifier, place_order):
    order = place_order(lines=((1, 1),), extra_lines=((2, 3),))

    PaymentService(db, notifier).confirm_payment(_confirmation(order))

    db.expire_all()
    remaining = db.query(CartItemModel).all()
    assert [(i.product_id, i.quantity) for i in remaining] == [(2, 3)]
    assert db.query(CartModel).filter_by(user_id=1, is_active=True).count() == 1


def test_failed_payment_cancels_and_releases(db, notifier, place_order, make_promo):
    promo = make_promo("SAVE10", max_uses=1)
    order = place_order(promo_code="SAVE10")

    result = PaymentService(db, notifier).confirm_payment(_confirmation(order, status="failed"))

    assert result["order_status"] == "cancelled"
    stored = _reload(db, OrderModel, order["id"])
    assert stored.status == "cancelled"
    assert stored.paid is False

    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (0, 0)
    assert db.query(UserPromoUsageModel).count() == 0
    assert db.query(PaymentModel).one().status == "failed"
    #cart stays so the user can try again
    assert db.query(CartItemModel).count() == 1
    assert notifier.sent == [order["id"]]


def test_redelivered_confirmation_is_a_no_op(db, notifier, place_order, make_promo):
    promo = make_promo("SAVE10", max_uses=5)
    order = place_order(promo_code="SAVE10")
    service = PaymentService(db, notifier)

    service.confirm_payment(_confirmation(order))
    second = service.confirm_payment(_confirmation(order, transaction_id="txn-2"))

    assert second == {"order_id": order["id"], "outcome": "duplicate"}
    assert db.query(PaymentModel).count() == 1
    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (1, 0)
    assert notifier.sent == [order["id"]]


def _miss_first_payment_lookup(mocker):
    """Makes the next duplicate pre-check run as if the other delivery had not committed yet."""
    real_get = PaymentRepo.get_by_order
    calls = {"n": 0}

    def first_miss(self, order_id):
        calls["n"] += 1
        return None if calls["n"] == 1 else real_get(self, order_id)

    mocker.patch.object(PaymentRepo, "get_by_order", first_miss)


def test_racing_redelivery_is_reported_as_duplicate(db, notifier, place_order, make_promo, mocker):
    promo = make_promo("SAVE10", max_uses=5)
    order = place_order(promo_code="SAVE10")
    service = PaymentService(db, notifier)
    service.confirm_payment(_confirmation(order))

    _miss_first_payment_lookup(mocker)
    result = service.confirm_payment(_confirmation(order, transaction_id="txn-2"))

    assert result == {"order_id": order["id"], "outcome": "duplicate"}
    assert db.query(PaymentModel).count() == 1
    assert _reload(db, OrderModel, order["id"]).status == "processing"
    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (1, 0)
    assert notifier.sent == [order["id"]]


def test_racing_failed_redelivery_is_reported_as_duplicate(db, notifier, place_order, mocker):
    order = place_order()
    service = PaymentService(db, notifier)
    service.confirm_payment(_confirmation(order, status="failed"))

    _miss_first_payment_lookup(mocker)
    result = service.confirm_payment(_confirmation(order, status="failed"))

    assert result["outcome"] == "duplicate"
    assert _reload(db, OrderModel, order["id"]).status == "cancelled"


def test_unique_payment_row_catches_a_concurrent_insert(db, notifier, place_order, mocker):
    order = place_order()
    service = PaymentService(db, notifier)
    service.confirm_payment(_confirmation(order))

    #both deliveries passed the status guard; the unique order_id decides
    _miss_first_payment_lookup(mocker)
    mocker.patch.object(service.order_repo, "transition_status", return_value=1)

    result = service.confirm_payment(_confirmation(order, transaction_id="txn-2"))

    assert result["outcome"] == "duplicate"
    assert db.query(PaymentModel).count() == 1


def test_payment_for_unknown_order(db, notifier):
    confirmation = PaymentConfirmation(order_id=404, amount=Decimal("1"), transaction_id="t", status="completed")

    with pytest.raises(ConsistencyViolation):
        PaymentService(db, notifier).confirm_payment(confirmation)

    assert db.query(PaymentModel).count() == 0


def test_payment_after_expiry_is_rejected(db, notifier, config, place_order, make_promo):
    promo = make_promo("SAVE10", max_uses=1)
    order = place_order(promo_code="SAVE10")
    ReclaimService(db, config).reclaim_abandoned_orders(now=datetime.now(timezone.utc) + timedelta(minutes=31))

    with pytest.raises(ConsistencyViolation):
        PaymentService(db, notifier).confirm_payment(_confirmation(order))

    stored = _reload(db, OrderModel, order["id"])
    assert stored.status == "expired"
    assert db.query(PaymentModel).count() == 0
    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (0, 0)
    assert notifier.sent == []


def test_unknown_payment_status(db, notifier, place_order):
    order = place_order()

    with pytest.raises(ConsistencyViolation):
        PaymentService(db, notifier).confirm_payment(_confirmation(order, status="refunded"))

    assert _reload(db, OrderModel, order["id"]).status == "pending"


def test_amount_mismatch_is_recorded_as_paid(db, notifier, place_order):
    order = place_order()
    confirmation = PaymentConfirmation(
        order_id=order["id"], amount=Decimal("1.005"), transaction_id="t", status="completed"
    )

    PaymentService(db, notifier).confirm_payment(confirmation)

    assert db.query(PaymentModel).one().amount == Decimal("1.01")
    assert _reload(db, OrderModel, order["id"]).paid is True


def test_notification_failure_does_not_undo_payment(db, failing_notifier, place_order):
    order = place_order()

    result = PaymentService(db, failing_notifier).confirm_payment(_confirmation(order))

    assert result["outcome"] == "recorded"
    assert _reload(db, OrderModel, order["id"]).status == "processing"


def test_storage_failure_is_transient_and_leaves_no_trace(db, notifier, place_order, make_promo, mocker):
    promo = make_promo("SAVE10", max_uses=1)
    order = place_order(promo_code="SAVE10")
    service = PaymentService(db, notifier)
    mocker.patch.object(
        service.payment_repo, "add_payment", side_effect=OperationalError("INSERT", {}, Exception("timeout"))
    )

    with pytest.raises(TransientError):
        service.confirm_payment(_confirmation(order))

    assert _reload(db, OrderModel, order["id"]).status == "pending"
    promo = _reload(db, PromoModel, promo.id)
    assert (promo.used_count, promo.reserved_count) == (0, 1)
    assert notifier.sent == []
