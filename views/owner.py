"""
Owner pages: dashboard, arsenal, gun and munitions CRUD, and profile.
"""

from typing import Any, Dict, List, Optional

from fasthtml.common import *
from monsterui.all import *

from components import (
    DataTable,
    DeleteButton,
    DetailList,
    FormCard,
    PageHeader,
    Pagination,
    PostButton,
    SearchForm,
    SelectField,
    SortHeader,
    StatCard,
    TextField,
    badge_cell,
    link_cell,
    number_cell,
)
from constants import CARD_BASE, FREE_TIER_AMMO_LIMIT, FREE_TIER_GUN_LIMIT, STATUS_PENDING_CANCELLATION
from services import reference_data as refs
from services.inventory import InventoryTotals, Listing, ammo_limit_message, gun_limit_message
from utils.dates import format_date_long, format_date_simple
from utils.formatting import cents_to_input, format_cents, format_number, humanize_tier
from utils.pagination import ListParams


def _ref_name(row: Dict[str, Any], attr: str, resource) -> str:
    ref = row.get(attr)
    return resource.display_name(ref) if ref else "—"


def _options(rows: List[Dict[str, Any]], resource):
    return [(r["id"], resource.display_name(r)) for r in rows]


def LimitNotice(message: str) -> Div:
    return Alert(
        DivLAligned(
            P(message),
            A("View plans", href="/pricing", cls=f"{ButtonT.primary} ml-auto"),
        ),
        cls=AlertT.warning,
    )


# =============================================================================
# Guns
# =============================================================================


def gun_columns(params: ListParams, base_path: str):
    return [
        (SortHeader("Name", "name", params, base_path), lambda g: link_cell(g.get("name"), f"/owner/guns/{g['id']}")),
        (SortHeader("Manufacturer", "manufacturer", params, base_path), lambda g: _ref_name(g, "manufacturer", refs.MANUFACTURERS)),
        (SortHeader("Caliber", "caliber", params, base_path), lambda g: _ref_name(g, "caliber", refs.CALIBERS)),
        (SortHeader("Type", "weapon_type", params, base_path), lambda g: _ref_name(g, "weapon_type", refs.WEAPON_TYPES)),
        (SortHeader("Acquired", "acquired", params, base_path), lambda g: format_date_simple(g.get("acquired"))),
        ("Paid", lambda g: format_cents(g.get("paid"))),
    ]


def guns_section(listing: Listing, params: ListParams, base_path: str = "/owner") -> Div:
    notice = None
    if listing.limited and listing.total > len(listing.rows):
        notice = LimitNotice(gun_limit_message(listing.total))
    return Div(
        Div(
            H2("Arsenal", cls="text-2xl font-bold"),
            A("Add gun", href="/owner/guns/new", cls=ButtonT.primary),
            cls="flex justify-between items-center mb-4",
        ),
        notice,
        SearchForm(params, base_path),
        DataTable(gun_columns(params, base_path), listing.rows, empty_message="No guns yet. Add your first one."),
        Pagination(params, min(listing.total, FREE_TIER_GUN_LIMIT) if listing.limited else listing.total, base_path),
        cls="mb-12",
    )


def gun_form(sess, action: str, title: str, values=None, errors=None, cancel_href: str = "/owner"):
    return FormCard(
        title,
        TextField("Name", "name", values, required=True),
        SelectField("Manufacturer", "manufacturer_id", _options(refs.list_manufacturers(), refs.MANUFACTURERS), values, required=True),
        Div(
            Input(
                type="search",
                name="q",
                placeholder="Filter calibers…",
                cls="uk-input mb-2",
                hx_get="/api/calibers/search",
                hx_trigger="keyup changed delay:300ms",
                hx_target="#caliber_id",
            ),
            SelectField("Caliber", "caliber_id", _options(refs.list_calibers(), refs.CALIBERS), values, required=True),
        ),
        SelectField("Weapon type", "weapon_type_id", _options(refs.list_weapon_types(), refs.WEAPON_TYPES), values, required=True),
        TextField("Serial number", "serial_number", values),
        TextField("Purpose", "purpose", values),
        TextField("Finish", "finish", values),
        TextField("Acquired", "acquired", values, type="date"),
        TextField("Paid ($)", "paid", values, placeholder="0.00"),
        action=action,
        sess=sess,
        errors=errors,
        cancel_href=cancel_href,
    )


def gun_form_values(gun: Dict[str, Any]) -> Dict[str, Any]:
    """Column values of a stored gun as the edit form expects them."""
    values = dict(gun)
    values["paid"] = cents_to_input(gun.get("paid"))
    values["acquired"] = (gun.get("acquired") or "")[:10]
    return values


def gun_detail(gun: Dict[str, Any], sess) -> Div:
    return Div(
        DetailList(
            [
                ("Name", gun.get("name")),
                ("Manufacturer", _ref_name(gun, "manufacturer", refs.MANUFACTURERS)),
                ("Caliber", _ref_name(gun, "caliber", refs.CALIBERS)),
                ("Weapon type", _ref_name(gun, "weapon_type", refs.WEAPON_TYPES)),
                ("Serial number", gun.get("serial_number")),
                ("Purpose", gun.get("purpose")),
                ("Finish", gun.get("finish")),
                ("Acquired", format_date_simple(gun.get("acquired"))),
                ("Paid", format_cents(gun.get("paid"))),
                ("Added", format_date_simple(gun.get("created_at"))),
            ],
            title=gun.get("name"),
        ),
        Div(
            A("Edit", href=f"/owner/guns/{gun['id']}/edit", cls=ButtonT.secondary),
            DeleteButton(f"/owner/guns/{gun['id']}/delete", sess),
            A("Back", href="/owner/guns/arsenal", cls=ButtonT.ghost),
            cls="flex gap-2 justify-center",
        ),
    )


# =============================================================================
# Ammunition
# =============================================================================


def ammo_columns(params: ListParams, base_path: str):
    return [
        (SortHeader("Name", "name", params, base_path), lambda a: link_cell(a.get("name"), f"/owner/munitions/{a['id']}")),
        ("Brand", lambda a: _ref_name(a, "brand", refs.BRANDS)),
        ("Caliber", lambda a: _ref_name(a, "caliber", refs.CALIBERS)),
        ("Grain", lambda a: _ref_name(a, "grain", refs.GRAINS)),
        ("Rounds", lambda a: number_cell(a.get("count"))),
        ("Expended", lambda a: number_cell(a.get("expended"))),
        (SortHeader("Acquired", "acquired", params, base_path), lambda a: format_date_simple(a.get("acquired"))),
        ("Paid", lambda a: format_cents(a.get("paid"))),
    ]


def ammo_section(listing: Listing, params: ListParams, base_path: str = "/owner/munitions") -> Div:
    notice = None
    if listing.limited and listing.total > len(listing.rows):
        notice = LimitNotice(ammo_limit_message(listing.total))
    return Div(
        Div(
            H2("Munitions depot", cls="text-2xl font-bold"),
            A("Add ammunition", href="/owner/munitions/new", cls=ButtonT.primary),
            cls="flex justify-between items-center mb-4",
        ),
        notice,
        SearchForm(params, base_path),
        DataTable(ammo_columns(params, base_path), listing.rows, empty_message="No ammunition yet."),
        Pagination(params, min(listing.total, FREE_TIER_AMMO_LIMIT) if listing.limited else listing.total, base_path),
        cls="mb-12",
    )


def ammo_form(sess, action: str, title: str, values=None, errors=None, cancel_href: str = "/owner/munitions"):
    return FormCard(
        title,
        TextField("Name", "name", values, required=True),
        SelectField("Brand", "brand_id", _options(refs.list_brands(), refs.BRANDS), values, required=True),
        SelectField("Caliber", "caliber_id", _options(refs.list_calibers(), refs.CALIBERS), values, required=True),
        SelectField("Bullet style", "bullet_style_id", _options(refs.list_bullet_styles(), refs.BULLET_STYLES), values, placeholder="(none)"),
        SelectField("Grain", "grain_id", _options(refs.list_grains(), refs.GRAINS), values, placeholder="(none)"),
        SelectField("Casing", "casing_id", _options(refs.list_casings(), refs.CASINGS), values, placeholder="(none)"),
        TextField("Rounds", "count", values, type="number", min="0"),
        TextField("Expended", "expended", values, type="number", min="0"),
        TextField("Acquired", "acquired", values, type="date"),
        TextField("Paid ($)", "paid", values, placeholder="0.00"),
        action=action,
        sess=sess,
        errors=errors,
        cancel_href=cancel_href,
    )


def ammo_form_values(ammo: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(ammo)
    values["paid"] = cents_to_input(ammo.get("paid"))
    values["acquired"] = (ammo.get("acquired") or "")[:10]
    return values


def ammo_detail(ammo: Dict[str, Any], sess) -> Div:
    remaining = (ammo.get("count") or 0) - (ammo.get("expended") or 0)
    return Div(
        DetailList(
            [
                ("Name", ammo.get("name")),
                ("Brand", _ref_name(ammo, "brand", refs.BRANDS)),
                ("Caliber", _ref_name(ammo, "caliber", refs.CALIBERS)),
                ("Bullet style", _ref_name(ammo, "bullet_style", refs.BULLET_STYLES)),
                ("Grain", _ref_name(ammo, "grain", refs.GRAINS)),
                ("Casing", _ref_name(ammo, "casing", refs.CASINGS)),
                ("Rounds", format_number(ammo.get("count"))),
                ("Expended", format_number(ammo.get("expended"))),
                ("Remaining", format_number(remaining)),
                ("Acquired", format_date_simple(ammo.get("acquired"))),
                ("Paid", format_cents(ammo.get("paid"))),
            ],
            title=ammo.get("name"),
        ),
        Div(
            A("Edit", href=f"/owner/munitions/{ammo['id']}/edit", cls=ButtonT.secondary),
            DeleteButton(f"/owner/munitions/{ammo['id']}/delete", sess),
            A("Back", href="/owner/munitions", cls=ButtonT.ghost),
            cls="flex gap-2 justify-center",
        ),
    )


def ammo_search_results(rows: List[Dict[str, Any]], term: str) -> Div:
    params = ListParams(search=term)
    return Div(
        H2(f"Results for “{term}”" if term else "All ammunition", cls="text-2xl font-bold mb-4"),
        SearchForm(params, "/owner/munitions/search"),
        DataTable(ammo_columns(params, "/owner/munitions/search"), rows, empty_message="No matching ammunition."),
        id="ammo-search-results",
    )


def caliber_options(rows: List[Dict[str, Any]]):
    return tuple(
        [Option("Select…", value="")]
        + [Option(refs.CALIBERS.display_name(r), value=str(r["id"])) for r in rows]
    )


# =============================================================================
# Dashboard
# =============================================================================


def totals_grid(totals: InventoryTotals) -> Grid:
    return Grid(
        StatCard("Guns", format_number(totals.gun_count), f"{format_cents(totals.guns_paid)} invested", icon="target"),
        StatCard("Ammo items", format_number(totals.ammo_items), f"{format_cents(totals.ammo_paid)} invested", icon="package"),
        StatCard("Rounds", format_number(totals.ammo_rounds), f"{format_number(totals.ammo_remaining)} remaining", icon="layers"),
        StatCard("Expended", format_number(totals.ammo_expended), "rounds shot", icon="flame"),
        cols="1 sm:2 lg:4",
        gap=4,
        cls="mb-10",
    )


def owner_dashboard(user: Dict[str, Any], totals: InventoryTotals, guns: Listing, ammo: Listing, params: ListParams) -> Div:
    return Div(
        PageHeader("Your Armory", user.get("email", "")),
        totals_grid(totals),
        guns_section(guns, params, "/owner"),
        ammo_section(ammo, ListParams(), "/owner/munitions"),
    )


# =============================================================================
# Profile and subscription
# =============================================================================


def profile_page(user: Dict[str, Any]) -> Div:
    return Div(
        DetailList(
            [
                ("Email", user.get("email")),
                ("Pending email", user.get("pending_email")),
                ("Verified", "Yes" if user.get("verified") else "No"),
                ("Plan", humanize_tier(user.get("subscription_tier"))),
                ("Member since", format_date_simple(user.get("created_at"))),
                ("Last login", format_date_simple(user.get("last_login"))),
            ],
            title="Profile",
        ),
        Div(
            A("Edit profile", href="/owner/profile/edit", cls=ButtonT.secondary),
            A("Subscription", href="/owner/profile/subscription", cls=ButtonT.secondary),
            A("Delete account", href="/owner/profile/delete", cls=ButtonT.destructive),
            cls="flex gap-2 justify-center",
        ),
    )


def profile_edit_form(sess, values, errors=None):
    return FormCard(
        "Edit profile",
        TextField("Email", "email", values, type="email", required=True),
        P("Changing your email sends a verification link to the new address.", cls="text-xs text-gray-500"),
        action="/owner/profile/update",
        sess=sess,
        errors=errors,
        cancel_href="/owner/profile",
    )


def subscription_page(user: Dict[str, Any], active: bool, sess) -> Div:
    status = user.get("subscription_status") or "—"
    end = user.get("subscription_end_date")
    actions = [A("View plans", href="/pricing", cls=ButtonT.primary)]
    if active and user.get("stripe_subscription_id") and status != STATUS_PENDING_CANCELLATION:
        actions.append(A("Cancel subscription", href="/subscription/cancel/confirm", cls=ButtonT.destructive))
    return Div(
        DetailList(
            [
                ("Plan", humanize_tier(user.get("subscription_tier"))),
                ("Status", badge_cell(status, "green" if active else "gray")),
                ("Renews / ends", "Never" if user.get("is_lifetime") else format_date_long(end) or "—"),
                ("Granted by admin", "Yes" if user.get("is_admin_granted") else "No"),
            ],
            title="Subscription",
        ),
        Div(*actions, A("Payment history", href="/owner/payment-history", cls=ButtonT.ghost), cls="flex gap-2 justify-center"),
    )


def delete_account_confirm(sess) -> Card:
    return Card(
        H2("Delete your account?", cls="text-2xl font-bold mb-2"),
        P(
            "Your account, guns and ammunition will be removed. Registering again with "
            "the same email restores them.",
            cls="mb-6",
        ),
        Div(
            PostButton("Delete my account", "/owner/profile/delete", sess, cls=ButtonT.destructive),
            A("Cancel", href="/owner/profile", cls=ButtonT.ghost),
            cls="flex gap-2",
        ),
        cls=CARD_BASE,
    )
