"""
Payment pages: checkout result, subscription cancellation and history.
"""

from typing import Any, Dict, List

from fasthtml.common import *
from monsterui.all import *

from components import DataTable, PostButton, badge_cell
from constants import CARD_BASE
from utils.dates import format_date_long, format_date_simple
from utils.formatting import format_cents, humanize_tier


def checkout_success(user: Dict[str, Any]) -> Card:
    return Card(
        DivCentered(
            UkIcon("circle-check", height=48, width=48, cls="text-green-600"),
            H2("Thank you for subscribing!", cls="text-2xl font-bold"),
            P(
                "Your payment is being processed. Your plan is updated as soon as "
                "Stripe confirms it, usually within a few seconds.",
                cls="text-center text-gray-600",
            ),
            P(f"Current plan: {humanize_tier(user.get('subscription_tier'))}", cls="text-sm"),
            A("Go to your armory", href="/owner", cls=ButtonT.primary),
            cls="space-y-4",
        ),
        cls=CARD_BASE,
    )


def cancel_confirm(user: Dict[str, Any], sess) -> Card:
    end = user.get("subscription_end_date")
    return Card(
        H2("Cancel your subscription?", cls="text-2xl font-bold mb-2"),
        P(
            f"You keep full access until {format_date_long(end)}." if end
            else "Your subscription ends immediately.",
            cls="mb-6",
        ),
        Div(
            PostButton("Cancel subscription", "/subscription/cancel", sess, cls=ButtonT.destructive),
            A("Keep my plan", href="/owner/profile/subscription", cls=ButtonT.ghost),
            cls="flex gap-2",
        ),
        cls=CARD_BASE,
    )


def _status_badge(status: str):
    return badge_cell(status or "", "green" if status == "succeeded" else "gray")


def payment_history(payments: List[Dict[str, Any]]) -> Div:
    columns = [
        ("Date", lambda p: format_date_simple(p.get("created_at"))),
        ("Description", lambda p: p.get("description") or ""),
        ("Type", lambda p: p.get("payment_type") or ""),
        ("Amount", lambda p: format_cents(p.get("amount"), p.get("currency") or "usd")),
        ("Status", lambda p: _status_badge(p.get("status"))),
    ]
    return Div(
        H2("Payment history", cls="text-2xl font-bold mb-4"),
        DataTable(columns, payments, empty_message="No payments yet."),
    )
