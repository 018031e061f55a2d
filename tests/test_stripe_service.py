from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe

from services import payments, stripe_service, users
from services.errors import PaymentError
from tests.conftest import make_user

PERIOD_END = 1767225600  # 2026-01-01T00:00:00Z


def subscription_obj(tier="yearly", amount=3000, status="active", cancel_at_period_end=False):
    return {
        "id": "sub_123",
        "customer": "cus_123",
        "status": status,
        "cancel_at_period_end": cancel_at_period_end,
        "items": {
            "data": [
                {
                    "current_period_end": PERIOD_END,
                    "price": {"unit_amount": amount, "metadata": {"tier": tier}},
                }
            ]
        },
    }


def event(event_type, obj):
    return {"type": event_type, "data": {"object": obj}}


# --- Checkout ---
def test_checkout_creates_customer_price_and_session(monkeypatch):
    user = make_user()
    customer = MagicMock(return_value={"id": "cus_new"})
    price = MagicMock(return_value={"id": "price_1"})
    session = MagicMock(return_value=SimpleNamespace(url="https://checkout.stripe.test/s"))
    monkeypatch.setattr(stripe.Customer, "create", customer)
    monkeypatch.setattr(stripe.Price, "create", price)
    monkeypatch.setattr(stripe.checkout.Session, "create", session)

    result = stripe_service.create_checkout_session(user, "monthly")

    assert result.url == "https://checkout.stripe.test/s"
    assert users.get_user(user["id"])["stripe_customer_id"] == "cus_new"
    assert price.call_args.kwargs["recurring"] == {"interval": "month", "interval_count": 1}
    kwargs = session.call_args.kwargs
    assert kwargs["mode"] == "subscription"
    assert kwargs["client_reference_id"] == str(user["id"])
    assert kwargs["success_url"].startswith("http://testserver/payment/success")


def test_lifetime_checkout_is_one_time(monkeypatch):
    user = make_user(stripe_customer_id="cus_old")
    price = MagicMock(return_value={"id": "price_1"})
    session = MagicMock(return_value=SimpleNamespace(url="u"))
    monkeypatch.setattr(stripe.Price, "create", price)
    monkeypatch.setattr(stripe.checkout.Session, "create", session)

    stripe_service.create_checkout_session(user, "lifetime")

    assert "recurring" not in price.call_args.kwargs
    assert session.call_args.kwargs["mode"] == "payment"
    assert session.call_args.kwargs["customer"] == "cus_old"


def test_checkout_rejects_unknown_tier():
    with pytest.raises(PaymentError):
        stripe_service.create_checkout_session(make_user(), "gold")


def test_checkout_wraps_stripe_errors(monkeypatch):
    user = make_user(stripe_customer_id="cus_old")
    monkeypatch.setattr(stripe.Price, "create", MagicMock(side_effect=stripe.StripeError("boom")))
    with pytest.raises(PaymentError, match="Failed to create checkout session"):
        stripe_service.create_checkout_session(user, "yearly")


# --- Cancellation ---
def test_cancel_sets_pending_cancellation(monkeypatch):
    user = make_user(stripe_subscription_id="sub_123", subscription_tier="yearly", subscription_status="active")
    modify = MagicMock(return_value=subscription_obj(cancel_at_period_end=True))
    monkeypatch.setattr(stripe.Subscription, "modify", modify)

    updated = stripe_service.cancel_subscription(user)

    modify.assert_called_once_with("sub_123", cancel_at_period_end=True)
    assert updated["subscription_status"] == "pending_cancellation"
    assert updated["subscription_end_date"].startswith("2026-01-01")


def test_cancel_already_canceled_in_stripe(monkeypatch):
    user = make_user(stripe_subscription_id="sub_123", subscription_tier="monthly", subscription_status="active")
    error = stripe.InvalidRequestError("A canceled subscription can only update its metadata", "cancel_at_period_end")
    monkeypatch.setattr(stripe.Subscription, "modify", MagicMock(side_effect=error))

    updated = stripe_service.cancel_subscription(user)
    assert updated["subscription_status"] == "pending_cancellation"


def test_cancel_other_stripe_error(monkeypatch):
    user = make_user(stripe_subscription_id="sub_123", subscription_tier="monthly", subscription_status="active")
    error = stripe.InvalidRequestError("No such subscription", "id")
    monkeypatch.setattr(stripe.Subscription, "modify", MagicMock(side_effect=error))
    with pytest.raises(PaymentError):
        stripe_service.cancel_subscription(user)


# --- Tier detection ---
def test_tier_from_subscription_prefers_metadata_then_amount():
    assert stripe_service.tier_from_subscription(subscription_obj(tier="yearly", amount=500)) == "yearly"
    assert stripe_service.tier_from_subscription(subscription_obj(tier="", amount=3000)) == "yearly"
    assert stripe_service.tier_from_subscription({}) == "monthly"


def test_period_end_falls_back_to_items():
    assert stripe_service.period_end({"current_period_end": 5}) == 5
    assert stripe_service.period_end(subscription_obj()) == PERIOD_END
    assert stripe_service.period_end(None) is None


# --- Webhook events ---
def test_lifetime_checkout_completed_records_payment():
    user = make_user()
    session = {
        "id": "cs_1",
        "mode": "payment",
        "client_reference_id": str(user["id"]),
        "customer": "cus_9",
        "amount_total": 10000,
        "currency": "usd",
    }
    assert stripe_service.handle_event(event("checkout.session.completed", session))
    # Stripe retries deliveries
    stripe_service.handle_event(event("checkout.session.completed", session))

    updated = users.get_user(user["id"])
    assert updated["subscription_tier"] == "lifetime"
    assert updated["is_lifetime"] is True
    assert updated["stripe_customer_id"] == "cus_9"
    assert len(payments.list_user_payments(user["id"])) == 1


def test_subscription_checkout_completed(monkeypatch):
    user = make_user()
    monkeypatch.setattr(stripe.Subscription, "retrieve", MagicMock(return_value=subscription_obj()))
    session = {
        "id": "cs_2",
        "mode": "subscription",
        "client_reference_id": str(user["id"]),
        "customer": "cus_123",
        "subscription": "sub_123",
    }
    stripe_service.handle_event(event("checkout.session.completed", session))

    updated = users.get_user(user["id"])
    assert updated["subscription_tier"] == "yearly"
    assert updated["subscription_status"] == "active"
    assert updated["stripe_subscription_id"] == "sub_123"
    assert updated["subscription_end_date"].startswith("2026-01-01")


def test_invoice_paid_reads_nested_subscription(monkeypatch):
    user = make_user(stripe_customer_id="cus_123")
    monkeypatch.setattr(stripe.Subscription, "retrieve", MagicMock(return_value=subscription_obj("monthly", 500)))
    invoice = {
        "id": "in_1",
        "customer": "cus_123",
        "amount_paid": 500,
        "currency": "usd",
        "parent": {"subscription_details": {"subscription": "sub_123"}},
    }
    stripe_service.handle_event(event("invoice.payment_succeeded", invoice))

    assert users.get_user(user["id"])["subscription_tier"] == "monthly"
    [payment] = payments.list_user_payments(user["id"])
    assert payment["payment_type"] == "subscription"
    assert payment["amount"] == 500


def test_subscription_deleted_cancels_user():
    user = make_user(stripe_customer_id="cus_123", subscription_tier="monthly", subscription_status="active")
    stripe_service.handle_event(event("customer.subscription.deleted", {"id": "sub_123", "customer": "cus_123"}))
    assert users.get_user(user["id"])["subscription_status"] == "canceled"


def test_event_for_unknown_customer_fails():
    with pytest.raises(PaymentError):
        stripe_service.handle_event(event("customer.subscription.updated", subscription_obj()))


def test_unhandled_event_type_is_ignored():
    assert stripe_service.handle_event(event("charge.refunded", {})) is False


def test_construct_event_bad_signature():
    with pytest.raises(PaymentError, match="Invalid webhook signature"):
        stripe_service.construct_event(b"{}", "t=1,v1=bad")
