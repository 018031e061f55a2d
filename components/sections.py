# components/sections.py
from fasthtml.common import *
from monsterui.all import *

from constants import FLEX_BETWEEN, FLEX_COL


def section_header(mono_text, heading, subheading, center=True):
    pos = "items-center text-center" if center else "items-start text-start"
    return Div(
        P(mono_text, cls="text-xs font-semibold tracking-widest text-red-700 uppercase"),
        H2(heading, cls="text-3xl font-bold text-gray-900"),
        P(subheading, cls="text-gray-600 max-w-2xl"),
        cls=f"mx-auto {FLEX_COL} {pos} gap-3 mb-8",
    )


def hero_section(logged_in: bool = False):
    """Home page hero with the primary call to action."""
    if logged_in:
        actions = [
            A("Open my armory", href="/owner", cls="px-8 py-4 bg-red-700 text-white rounded-full font-semibold hover:bg-red-800 inline-block"),
        ]
    else:
        actions = [
            A("Create a free account", href="/register", cls="px-8 py-4 bg-red-700 text-white rounded-full font-semibold hover:bg-red-800 inline-block"),
            A("See pricing", href="/pricing", cls="px-8 py-4 bg-white/10 text-white rounded-full font-semibold border border-white/30 hover:bg-white/20 inline-block"),
        ]
    return Section(
        Div(
            H1("Your collection, catalogued.", cls="text-4xl md:text-5xl font-bold text-white mb-4"),
            P(
                "Keep track of every firearm and every round you own: what you paid, when you bought it, and how much you've shot.",
                cls="text-lg text-stone-200 max-w-2xl mb-8",
            ),
            Div(*actions, cls="flex gap-4 flex-wrap"),
            cls="max-w-4xl",
        ),
        cls="rounded-3xl bg-gradient-to-br from-stone-800 via-stone-900 to-black px-8 py-20 lg:px-16 mb-12",
    )


def features_section():
    """Feature grid using MonsterUI Card patterns."""
    feature_items = [
        ("target", "Arsenal", "Record every gun with its manufacturer, caliber, type and price."),
        ("package", "Munitions depot", "Track rounds on hand and rounds expended per box."),
        ("bar-chart", "Totals at a glance", "See what your collection cost and what's left to shoot."),
        ("lock", "Private", "Your inventory is visible to you alone."),
    ]
    cards = [
        Card(
            Div(
                UkIcon(icon, cls="w-10 h-10 text-red-700 mb-4"),
                H4(title, cls="text-lg font-semibold text-gray-900 mb-2"),
                P(desc, cls="text-sm text-gray-600"),
                cls="flex flex-col items-center text-center h-full",
            ),
            cls=(CardT.hover, "p-6"),
        )
        for icon, title, desc in feature_items
    ]
    return Section(
        section_header("FEATURES", "Everything in one place", "Built for collectors who like to know exactly what they have."),
        Grid(*cards, cols="1 sm:2 lg:4", gap=6),
        cls="mb-12",
    )


def FooterLinkGroup(title, links):
    return DivVStacked(
        H4(title),
        *[A(text, href=href, cls=TextT.muted) for text, href in links],
    )


def footer():
    site = [("Home", "/"), ("About", "/about"), ("Pricing", "/pricing"), ("Contact", "/contact")]
    account = [("Log in", "/login"), ("Sign up", "/register"), ("Forgot password", "/forgot-password")]

    return Container(cls="uk-background-muted py-12 mt-16")(
        Div(
            Div(
                H3("The Virtual Armory"),
                UkIcon("shield", cls=TextT.lead),
                cls=FLEX_BETWEEN,
            ),
            DividerLine(),
            Div(
                FooterLinkGroup("Site", site),
                FooterLinkGroup("Account", account),
                cls=FLEX_BETWEEN,
            ),
            DividerLine(),
            P("© The Virtual Armory. All rights reserved.", cls=TextT.lead + TextT.sm),
            cls="space-y-8 p-8",
        )
    )
