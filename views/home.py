"""
Public pages: home, about, contact and pricing.
"""

from fasthtml.common import *
from monsterui.all import *

from components import (
    FormCard,
    PricingCard,
    PromotionBanner,
    TextAreaField,
    TextField,
    features_section,
    hero_section,
    section_header,
)
from constants import CARD_BASE, PRICING_PLANS, TIER_PRICES
from utils.formatting import humanize_tier


def home_page(promotions, logged_in: bool = False):
    return Div(
        *[PromotionBanner(p) for p in promotions],
        hero_section(logged_in=logged_in),
        features_section(),
    )


def about_page():
    return Card(
        H1("About The Virtual Armory", cls="text-3xl font-bold mb-4"),
        P(
            "The Virtual Armory is an inventory for firearm collectors. Record each gun "
            "with its manufacturer, caliber and type, log your ammunition by brand, grain "
            "and casing, and keep an eye on what you've spent and what you've shot.",
            cls="mb-4",
        ),
        P(
            "Free accounts can track two guns and four ammunition items. A subscription "
            "removes the limits.",
            cls="mb-4",
        ),
        A("See pricing", href="/pricing", cls=ButtonT.primary),
        cls=CARD_BASE,
    )


def contact_form(sess, values=None, errors=None):
    return FormCard(
        "Contact us",
        TextField("Name", "name", values, required=True),
        TextField("Email", "email", values, type="email", required=True),
        TextField("Subject", "subject", values, required=True),
        TextAreaField("Message", "message", values, rows=6),
        action="/contact",
        sess=sess,
        submit_label="Send message",
        errors=errors,
    )


def pricing_page(sess, current_tier: str, purchasable):
    """purchasable: set of tiers the visitor may buy now."""
    cards = [
        PricingCard(
            plan,
            TIER_PRICES[plan["tier"]],
            sess=sess,
            can_buy=plan["tier"] in purchasable,
            current=plan["tier"] == current_tier,
        )
        for plan in PRICING_PLANS
    ]
    return Div(
        section_header(
            "PRICING",
            "Unlock your whole collection",
            f"You are on the {humanize_tier(current_tier)} plan." if sess and sess.get("auth") else "Start free, upgrade when your collection grows.",
        ),
        Grid(*cards, cols="1 sm:2 lg:4", gap=6),
    )
