"""
Stripe integration: checkout sessions, subscription management and webhook
event handling.

Webhook handlers update the user's subscription columns and record payments.
Stripe objects are read with item access (obj["field"]), which works for both
stripe.StripeObject instances and plain dicts.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe

from constants import (
    LIFETIME_TIERS,
    RECURRING_TIERS,
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_PENDING_CANCELLATION,
    TIER_INTERVALS,
    TIER_LIFETIME,
    TIER_MONTHLY,
    TIER_PREMIUM_LIFETIME,
    TIER_PRICES,
    TIER_YEARLY,
)
from services import payments, users
from services.config import get_app_config, get_stripe_config
from services.errors import PaymentError

logger = logging.getLogger(__name__)

AMOUNT_TO_RECURRING_TIER = {
    TIER_PRICES[TIER_MONTHLY]: TIER_MONTHLY,
    TIER_PRICES[TIER_YEARLY]: TIER_YEARLY,
}
AMOUNT_TO_LIFETIME_TIER = {
    TIER_PRICES[TIER_LIFETIME]: TIER_LIFETIME,
    TIER_PRICES[TIER_PREMIUM_LIFETIME]: TIER_PREMIUM_LIFETIME,
}


def _configure() -> None:
    secret = get_stripe_config().secret_key
    if not secret:
        raise PaymentError("Stripe is not configured")
    stripe.api_key = secret


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError, AttributeError):
        return default
    return default if value is None else value


def _id(value: Any) -> Optional[str]:
    """Expandable fields arrive either as an id string or as an object."""
    if value is None or isinstance(value, str):
        return value
    return _get(value, "id")


def _from_timestamp(ts: Any) -> Optional[str]:
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).isoformat()


# =============================================================================
# Checkout
# =============================================================================


def get_or_create_customer(user: Dict[str, Any]) -> str:
    """Return the user's Stripe customer id, creating (and storing) one if needed."""
    if user.get("stripe_customer_id"):
        return user["stripe_customer_id"]
    _configure()
    customer = stripe.Customer.create(
        email=user["email"], metadata={"user_id": str(user["id"])}
    )
    users.update_user(user["id"], {"stripe_customer_id": customer["id"]})
    logger.info(f"Created Stripe customer for user id={user['id']}")
    return customer["id"]


def create_price(product_id: str, tier: str) -> str:
    if tier not in TIER_PRICES:
        raise PaymentError(f"invalid subscription tier: {tier}")
    params: Dict[str, Any] = {
        "product": product_id,
        "unit_amount": TIER_PRICES[tier],
        "currency": "usd",
        "metadata": {"tier": tier},
    }
    if tier in RECURRING_TIERS:
        params["recurring"] = {"interval": TIER_INTERVALS[tier], "interval_count": 1}
    price = stripe.Price.create(**params)
    return price["id"]


def create_checkout_session(user: Dict[str, Any], tier: str):
    """Create a Stripe Checkout Session for the tier and return it (has .url)."""
    if tier not in TIER_PRICES:
        raise PaymentError(f"invalid subscription tier: {tier}")
    product_id = get_stripe_config().product_for_tier(tier)
    if not product_id:
        raise PaymentError(f"product ID for tier {tier} is not set")

    _configure()
    base_url = get_app_config().app_base_url
    try:
        customer_id = get_or_create_customer(user)
        price_id = create_price(product_id, tier)
        session = stripe.checkout.Session.create(
            customer=customer_id,
            success_url=f"{base_url}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/payment/cancel",
            mode="payment" if tier in LIFETIME_TIERS else "subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            client_reference_id=str(user["id"]),
            automatic_tax={"enabled": True},
            customer_update={"address": "auto", "shipping": "auto", "name": "auto"},
            tax_id_collection={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout failed for user id={user['id']}: {e}")
        raise PaymentError("Failed to create checkout session") from e

    logger.info(f"Checkout session created for user id={user['id']} tier={tier}")
    return session


# =============================================================================
# Subscriptions
# =============================================================================


def get_subscription(subscription_id: str):
    _configure()
    return stripe.Subscription.retrieve(subscription_id)


def cancel_subscription(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cancel the user's subscription at period end and update the local status.

    A subscription Stripe already considers canceled is only updated locally.
    Returns the updated user row.
    """
    subscription_id = user.get("stripe_subscription_id")
    subscription = None
    if subscription_id:
        _configure()
        try:
            subscription = stripe.Subscription.modify(
                subscription_id, cancel_at_period_end=True
            )
        except stripe.InvalidRequestError as e:
            message = str(e)
            if "canceled subscription" not in message and "invalid-canceled-subscription-fields" not in message:
                logger.error(f"Failed to cancel subscription {subscription_id}: {e}")
                raise PaymentError("Failed to cancel subscription") from e
            logger.info("Subscription already canceled in Stripe, updating local status")
            return users.update_user(
                user["id"], {"subscription_status": STATUS_PENDING_CANCELLATION}
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to cancel subscription {subscription_id}: {e}")
            raise PaymentError("Failed to cancel subscription") from e

    if _get(subscription, "status") == STATUS_ACTIVE and _get(subscription, "cancel_at_period_end"):
        status = STATUS_PENDING_CANCELLATION
    else:
        status = STATUS_CANCELED

    changes: Dict[str, Any] = {"subscription_status": status}
    if not user.get("subscription_end_date"):
        end = _from_timestamp(period_end(subscription))
        if end:
            changes["subscription_end_date"] = end
    return users.update_user(user["id"], changes)


def period_end(subscription: Any) -> Optional[int]:
    """current_period_end, which newer API versions report per subscription item."""
    end = _get(subscription, "current_period_end")
    if end:
        return end
    items = _get(_get(subscription, "items"), "data", [])
    if items:
        return _get(items[0], "current_period_end")
    return None


def tier_from_subscription(subscription: Any) -> str:
    """Price metadata first, then the unit amount, defaulting to monthly."""
    items = _get(_get(subscription, "items"), "data", [])
    if items:
        price = _get(items[0], "price")
        tier = _get(_get(price, "metadata"), "tier")
        if tier in RECURRING_TIERS:
            return tier
        amount = _get(price, "unit_amount")
        if amount in AMOUNT_TO_RECURRING_TIER:
            return AMOUNT_TO_RECURRING_TIER[amount]
    tier = _get(_get(subscription, "metadata"), "tier")
    if tier in RECURRING_TIERS:
        return tier
    return TIER_MONTHLY


# =============================================================================
# Webhooks
# =============================================================================


def construct_event(payload: bytes, signature: str):
    secret = get_stripe_config().webhook_secret
    if not secret:
        raise PaymentError("Stripe webhook secret is not configured")
    try:
        return stripe.Webhook.construct_event(payload, signature, secret)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise PaymentError("Invalid webhook signature") from e


def _user_for_customer(customer: Any) -> Dict[str, Any]:
    customer_id = _id(customer)
    user = users.get_user_by_stripe_customer(customer_id)
    if user is None:
        raise PaymentError(f"user not found for Stripe customer ID: {customer_id}")
    return user


def _handle_checkout_completed(session: Any) -> None:
    reference = _get(session, "client_reference_id")
    try:
        user_id = int(reference)
    except (TypeError, ValueError):
        raise PaymentError(f"Invalid client reference id: {reference!r}") from None
    user = users.get_user(user_id)
    if user is None:
        raise PaymentError(f"user not found: {user_id}")

    changes: Dict[str, Any] = {}
    customer_id = _id(_get(session, "customer"))
    if customer_id and not user.get("stripe_customer_id"):
        changes["stripe_customer_id"] = customer_id

    mode = _get(session, "mode")
    if mode == "payment":
        amount = _get(session, "amount_total", 0)
        if not payments.payment_exists(_get(session, "id")):
            payments.create_payment(
                user_id=user_id,
                amount=amount,
                currency=_get(session, "currency", "usd"),
                payment_type="one-time",
                status="succeeded",
                description="Lifetime subscription",
                stripe_id=_get(session, "id"),
            )
        tier = AMOUNT_TO_LIFETIME_TIER.get(amount)
        if tier is None:
            logger.warning(f"Unexpected one-time amount {amount} for user id={user_id}")
        else:
            changes.update(
                subscription_tier=tier,
                subscription_status=STATUS_ACTIVE,
                subscription_end_date=None,
                is_lifetime=True,
            )
    elif mode == "subscription":
        subscription_id = _id(_get(session, "subscription"))
        if subscription_id:
            subscription = get_subscription(subscription_id)
            changes.update(
                stripe_subscription_id=subscription_id,
                subscription_tier=tier_from_subscription(subscription),
                subscription_status=STATUS_ACTIVE,
                subscription_end_date=_from_timestamp(period_end(subscription)),
            )

    if changes:
        users.update_user(user_id, changes)
    logger.info(f"User id={user_id} completed checkout ({mode})")


def _handle_invoice_paid(invoice: Any) -> None:
    subscription_id = _id(_get(invoice, "subscription"))
    if not subscription_id:
        # Newer API versions nest the subscription under parent.subscription_details
        details = _get(_get(invoice, "parent"), "subscription_details")
        subscription_id = _id(_get(details, "subscription"))
    if not subscription_id:
        return

    user = _user_for_customer(_get(invoice, "customer"))
    if not payments.payment_exists(_get(invoice, "id")):
        payments.create_payment(
            user_id=user["id"],
            amount=_get(invoice, "amount_paid", 0),
            currency=_get(invoice, "currency", "usd"),
            payment_type="subscription",
            status="succeeded",
            description="Subscription payment",
            stripe_id=_get(invoice, "id"),
        )

    subscription = get_subscription(subscription_id)
    users.update_user(
        user["id"],
        {
            "stripe_subscription_id": subscription_id,
            "subscription_tier": tier_from_subscription(subscription),
            "subscription_status": STATUS_ACTIVE,
            "subscription_end_date": _from_timestamp(period_end(subscription)),
        },
    )


def _handle_subscription_updated(subscription: Any) -> None:
    user = _user_for_customer(_get(subscription, "customer"))
    changes = {
        "stripe_subscription_id": _get(subscription, "id"),
        "subscription_status": _get(subscription, "status", ""),
    }
    end = _from_timestamp(period_end(subscription))
    if end:
        changes["subscription_end_date"] = end
    users.update_user(user["id"], changes)
    logger.info(f"Subscription {changes['stripe_subscription_id']} updated")


def _handle_subscription_deleted(subscription: Any) -> None:
    user = _user_for_customer(_get(subscription, "customer"))
    users.update_user(user["id"], {"subscription_status": STATUS_CANCELED})
    logger.info(f"Subscription {_get(subscription, 'id')} cancelled")


EVENT_HANDLERS = {
    "checkout.session.completed": _handle_checkout_completed,
    "invoice.payment_succeeded": _handle_invoice_paid,
    "customer.subscription.updated": _handle_subscription_updated,
    "customer.subscription.deleted": _handle_subscription_deleted,
}


def handle_event(event: Any) -> bool:
    """
    Dispatch a verified webhook event.

    Returns:
        bool: True when the event type was handled, False when ignored.
    """
    event_type = _get(event, "type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Ignoring Stripe event {event_type}")
        return False
    handler(_get(_get(event, "data"), "object"))
    return True


def handle_webhook(payload: bytes, signature: str) -> bool:
    return handle_event(construct_event(payload, signature))
