"""
Navigation component with auth-aware rendering.
Shows the owner links and an account dropdown when logged in, and the admin
back-office link for admins.
"""

from fasthtml.common import *
from monsterui.all import *


# ============================================================================
# Helper Function for Dropdown Items
# ============================================================================


def _dropdown_link(icon: str, label: str, href: str, cls: str = "") -> Li:
    return Li(
        A(
            UkIcon(icon, width=16, height=16),
            Span(label, cls="ml-2"),
            href=href,
            cls=f"flex items-center px-4 py-2 hover:bg-gray-100 text-sm {cls}",
        )
    )


def _build_account_dropdown_items(email: str, admin: bool):
    """
    Build dropdown menu items for authenticated users.

    Returns:
        List of Li elements for MonsterUI DropDownNavContainer
    """
    items = [
        Li(
            Div(
                P(email, cls="font-semibold text-gray-900 text-sm truncate"),
                P("Logged in", cls="text-xs text-gray-500"),
                cls="px-4 py-2 border-b",
            ),
        ),
        _dropdown_link("user", "Profile", "/owner/profile"),
        _dropdown_link("credit-card", "Subscription", "/owner/profile/subscription"),
        _dropdown_link("receipt", "Payment History", "/owner/payment-history"),
    ]
    if admin:
        items.append(_dropdown_link("shield", "Admin", "/admin/dashboard"))
    items += [
        Li(cls="uk-nav-divider"),
        _dropdown_link("sign-out", "Log out", "/logout"),
    ]
    return items


# ============================================================================
# Main Navigation Component
# ============================================================================


def NavComponent(sess=None, user=None):
    """
    Reusable navigation component with auth-aware rendering.

    Args:
        sess: Session dict (contains auth status and user email)
        user: The logged-in user row, when the request has one

    Returns:
        NavBar component with links for the visitor's role
    """
    base_links = [
        A("Pricing", href="/pricing", cls="text-sm hover:text-red-700"),
        A("About", href="/about", cls="text-sm hover:text-red-700"),
        A("Contact", href="/contact", cls="text-sm hover:text-red-700"),
    ]

    is_authenticated = bool(sess and sess.get("auth"))

    if is_authenticated:
        email = (user or {}).get("email") or sess.get("user_email", "")
        admin = bool(sess.get("is_admin"))
        base_links = [
            A("Dashboard", href="/owner", cls="text-sm hover:text-red-700"),
            A("Arsenal", href="/owner/guns/arsenal", cls="text-sm hover:text-red-700"),
            A("Munitions", href="/owner/munitions", cls="text-sm hover:text-red-700"),
        ] + base_links
        initial = email[0].upper() if email else "U"
        auth_section = Div(
            Button(
                Div(
                    initial,
                    cls="w-8 h-8 rounded-full bg-gradient-to-br from-stone-500 to-stone-800 flex items-center justify-center text-white text-sm font-semibold",
                    style="width: 32px; height: 32px; min-width: 32px;",
                ),
                UkIcon("chevron-down", width=16, height=16, cls="ml-1"),
                cls="flex items-center gap-2 bg-transparent border-none hover:opacity-80 cursor-pointer p-0",
            ),
            DropDownNavContainer(
                *_build_account_dropdown_items(email, admin),
                cls="uk-nav uk-dropdown-nav min-w-[220px]",
            ),
            cls="relative",
            uk_dropdown="mode: click; pos: bottom-right",
        )
    else:
        auth_section = Div(
            A("Log in", href="/login", cls="text-sm hover:text-red-700"),
            A("Sign up", href="/register", cls=f"{ButtonT.primary} text-sm px-4 py-2 rounded"),
            cls="flex items-center gap-4",
        )

    return NavBar(
        *base_links,
        auth_section,
        brand=A(
            DivLAligned(
                H3("The Virtual Armory", cls="text-lg font-bold"),
                UkIcon("shield", height=26, width=26),
            ),
            href="/",
            cls="no-underline",
        ),
        sticky=True,
        cls="backdrop-blur bg-white/70 shadow-sm px-4 py-3 border-b border-gray-200 z-50",
    )
