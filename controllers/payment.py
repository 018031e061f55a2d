"""
Payment controllers: Stripe checkout, subscription cancellation, payment
history and the webhook endpoint.
"""

import asyncio
import logging

from fasthtml.common import *
from starlette.responses import JSONResponse, RedirectResponse

from controllers.helpers import error_page, redirect, render
from services import stripe_service
from services.errors import PaymentError
from services.payments import list_user_payments
from services.users import can_subscribe_to_tier, expire_subscription_if_ended, has_active_subscription
from utils.dates import format_date_long
from views import payment as views

logger = logging.getLogger(__name__)


def checkout_controller(tier: str, sess, user):
    tier = (tier or "").strip()
    if not tier:
        return error_page(400, sess, user, message="Subscription tier is required")
    user = expire_subscription_if_ended(user)
    if not can_subscribe_to_tier(user.get("subscription_tier"), tier):
        return error_page(400, sess, user, message="You cannot subscribe to this tier")
    try:
        session = stripe_service.create_checkout_session(user, tier)
    except PaymentError as e:
        logger.error(f"❌ Checkout failed for user id={user['id']}: {e}")
        return error_page(500, sess, user, message="We couldn't start the checkout. Please try again later.")
    return RedirectResponse(session.url, status_code=303)


def success_controller(session_id: str, sess, user=None):
    if not session_id:
        return error_page(400, sess, user, message="Missing checkout session")
    logger.info(f"Checkout {session_id} completed for user id={(user or {}).get('id')}")
    return render("Thank you", views.checkout_success(user or {}), sess=sess, user=user)


def cancel_payment_controller(sess):
    return redirect("/pricing", sess, "Payment cancelled", "info")


def history_controller(sess, user):
    return render("Payment history", views.payment_history(list_user_payments(user["id"])), sess=sess, user=user)


# =============================================================================
# Subscription cancellation
# =============================================================================


def cancel_confirm_controller(sess, user):
    if not has_active_subscription(user):
        return redirect("/pricing")
    return render("Cancel subscription", views.cancel_confirm(user, sess), sess=sess, user=user)


def cancel_subscription_controller(sess, user):
    if not has_active_subscription(user):
        return redirect("/pricing")
    try:
        updated = stripe_service.cancel_subscription(user)
    except PaymentError as e:
        return error_page(500, sess, user, message=str(e))

    end = format_date_long(updated.get("subscription_end_date"))
    if end:
        message = f"Your subscription has been cancelled but will remain active until {end}."
    else:
        message = "Your subscription has been cancelled."
    return redirect("/owner", sess, message)


# =============================================================================
# Webhook
# =============================================================================


async def webhook_controller(req):
    signature = req.headers.get("stripe-signature")
    if not signature:
        return JSONResponse({"error": "Stripe signature is required"}, status_code=400)
    payload = await req.body()
    try:
        handled = await asyncio.to_thread(stripe_service.handle_webhook, payload, signature)
    except PaymentError as e:
        logger.warning(f"⚠️ Rejected Stripe webhook: {e}")
        return JSONResponse({"error": str(e)}, status_code=400)
    return JSONResponse({"received": True, "handled": handled})
