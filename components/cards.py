"""
Card components: statistics, pricing plans, promotion banners and detail lists.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from fasthtml.common import *
from monsterui.all import *

from constants import CARD_BASE, STAT_CARD
from utils.dates import format_date_simple
from utils.formatting import format_cents

from .forms import CsrfInput


def StatCard(
    title: str,
    value: str,
    subtitle: str = "",
    icon: str = "bar-chart",
    color: str = "red",
) -> Card:
    """Create a clean metric card with icon, value, and context."""
    return Card(
        Div(
            UkIcon(icon, cls=f"text-{color}-600", height=28, width=28),
            H3(value, cls="text-2xl font-bold text-gray-900 mb-1"),
            P(subtitle, cls="text-sm text-gray-600") if subtitle else None,
            cls="flex flex-col items-start space-y-1",
        ),
        header=H4(title, cls="text-xs font-medium text-gray-500 uppercase tracking-wider"),
        cls=STAT_CARD,
    )


def GrowthBadge(rate: float) -> Span:
    tone = "green" if rate >= 0 else "red"
    sign = "+" if rate >= 0 else ""
    return Span(
        f"{sign}{rate}%",
        cls=f"inline-block px-2 py-1 text-xs bg-{tone}-100 text-{tone}-700 rounded-full font-medium",
    )


def PricingCard(plan: Dict[str, Any], price_cents: int, sess=None, can_buy: bool = False, current: bool = False) -> Card:
    """
    One plan on the pricing page.

    Logged-in users who may buy the plan get a checkout form; everyone else
    sees why they can't (current plan, already better) or a sign-up link.
    """
    logged_in = bool(sess and sess.get("auth"))
    if current:
        action = Span("Your current plan", cls="text-sm font-semibold text-green-700")
    elif logged_in and can_buy:
        action = Form(
            CsrfInput(sess),
            Input(type="hidden", name="tier", value=plan["tier"]),
            Button("Subscribe", type="submit", cls=(ButtonT.primary, "w-full")),
            method="post",
            action="/checkout",
        )
    elif logged_in:
        action = Span("Not available for your plan", cls="text-sm text-gray-500")
    else:
        action = A("Sign up to subscribe", href="/register", cls=f"{ButtonT.primary} w-full text-center")

    return Card(
        Div(
            H3(plan["title"], cls="text-xl font-bold"),
            Div(
                Span(format_cents(price_cents), cls="text-3xl font-bold"),
                Span(f" {plan['period']}", cls="text-sm text-gray-500"),
            ),
            Ul(*[Li(f, cls="text-sm text-gray-700") for f in plan["features"]], cls="space-y-1 list-disc ml-4"),
            cls="space-y-4",
        ),
        footer=action,
        cls=(CardT.hover, "p-6 h-full border-2 border-red-700" if current else "p-6 h-full"),
    )


def PromotionBanner(promotion: Dict[str, Any]) -> Div:
    banner = promotion.get("banner")
    return Div(
        Img(src=banner, alt=promotion.get("name", ""), cls="w-full h-32 object-cover rounded-lg mb-3") if banner else None,
        H3(promotion.get("name", ""), cls="text-xl font-bold"),
        P(promotion.get("description") or "", cls="text-sm"),
        P(
            f"Sign up by {format_date_simple(promotion.get('end_date'))} and get "
            f"{promotion.get('benefit_days') or 0} days of full access free.",
            cls="text-sm font-semibold mt-2",
        ),
        A("Claim offer", href="/register", cls=f"{ButtonT.primary} mt-4 inline-block"),
        cls="p-6 rounded-xl bg-amber-50 border border-amber-300 text-amber-900 mb-8",
    )


def DetailList(items: Iterable[Tuple[str, Any]], title: Optional[str] = None) -> Card:
    """Label/value pairs for show pages."""
    return Card(
        H2(title, cls="text-2xl font-bold mb-4") if title else None,
        Dl(
            *[
                Div(
                    Dt(label, cls="text-sm font-medium text-gray-500"),
                    Dd("—" if value in (None, "") else value, cls="text-gray-900"),
                    cls="grid grid-cols-3 gap-4 py-2 border-b border-gray-100",
                )
                for label, value in items
            ],
        ),
        cls=CARD_BASE,
    )
