"""
Admin back-office views.

Reference tables share one set of index/form/show views driven by their
ReferenceResource description; users, promotions, payments and the Stripe
IP filter have their own.
"""

from typing import Any, Dict, List, Optional

from fasthtml.common import *
from monsterui.all import *

from components import (
    CheckboxField,
    DataTable,
    DeleteButton,
    DetailList,
    FormCard,
    GrowthBadge,
    PageHeader,
    Pagination,
    PostButton,
    SearchForm,
    SelectField,
    SortHeader,
    StatCard,
    TextAreaField,
    TextField,
    badge_cell,
    link_cell,
    number_cell,
)
from constants import (
    CARD_BASE,
    PAID_TIERS,
    ROLE_ADMIN,
    ROLE_USER,
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_PENDING_CANCELLATION,
    TIER_FREE,
    TIER_PROMOTION,
)
from services.reference_data import REFERENCE_RESOURCES, ReferenceResource
from services.users import is_admin
from utils.dates import format_date_relative, format_date_simple
from utils.formatting import format_cents, format_number, humanize_tier, truncate
from utils.pagination import ListParams

TIER_OPTIONS = [(t, humanize_tier(t)) for t in (TIER_FREE, TIER_PROMOTION) + PAID_TIERS]
STATUS_OPTIONS = [(s, s.replace("_", " ").title()) for s in (STATUS_ACTIVE, STATUS_PENDING_CANCELLATION, STATUS_CANCELED)]


def AdminNav() -> Div:
    links = [("Dashboard", "/admin/dashboard"), ("Users", "/admin/users")]
    links += [(r.plural_label, f"/admin/{r.slug}") for r in REFERENCE_RESOURCES.values()]
    links += [
        ("Guns", "/admin/guns"),
        ("Munitions", "/admin/munitions"),
        ("Payments", "/admin/payments-history"),
        ("Promotions", "/admin/promotions"),
        ("Stripe security", "/admin/stripe-security"),
    ]
    return Div(
        *[A(label, href=href, cls="text-sm px-3 py-1 rounded-full bg-stone-200 hover:bg-stone-300") for label, href in links],
        cls="flex flex-wrap gap-2 mb-8",
    )


def _index_header(title: str, new_href: Optional[str] = None) -> Div:
    return Div(
        H2(title, cls="text-2xl font-bold"),
        A("New", href=new_href, cls=ButtonT.primary) if new_href else None,
        cls="flex justify-between items-center mb-4",
    )


def _yes_no(value) -> str:
    return "Yes" if value else "No"


# =============================================================================
# Dashboard
# =============================================================================


def _growth_card(title: str, value: int, previous: int, rate: float, icon: str) -> Card:
    return Card(
        Div(
            UkIcon(icon, cls="text-red-600", height=28, width=28),
            DivLAligned(H3(format_number(value), cls="text-2xl font-bold"), GrowthBadge(rate)),
            P(f"{format_number(previous)} last month", cls="text-sm text-gray-600"),
            cls="flex flex-col items-start space-y-1",
        ),
        header=H4(title, cls="text-xs font-medium text-gray-500 uppercase tracking-wider"),
        cls="p-5",
    )


def user_columns(params: ListParams, base_path: str):
    return [
        (SortHeader("Email", "email", params, base_path), lambda u: link_cell(u.get("email"), f"/admin/users/{u['id']}")),
        (SortHeader("Plan", "subscription_tier", params, base_path), lambda u: humanize_tier(u.get("subscription_tier"))),
        ("Status", lambda u: u.get("subscription_status") or "—"),
        ("Role", lambda u: badge_cell("admin", "red") if is_admin(u) else "user"),
        ("Verified", lambda u: _yes_no(u.get("verified"))),
        (SortHeader("Joined", "created_at", params, base_path), lambda u: format_date_simple(u.get("created_at"))),
        (SortHeader("Last login", "last_login", params, base_path), lambda u: format_date_relative(u.get("last_login")) if u.get("last_login") else "Never"),
        ("", lambda u: badge_cell("deleted", "gray") if u.get("deleted_at") else ""),
    ]


def admin_dashboard(stats: Dict[str, Any], users, params: ListParams) -> Div:
    """stats: counts and growth rates computed by the dashboard controller."""
    return Div(
        PageHeader("Admin dashboard", "Users, subscribers and growth"),
        AdminNav(),
        Grid(
            StatCard("Total users", format_number(stats["total_users"]), icon="users"),
            StatCard("Paying subscribers", format_number(stats["subscribers"]), icon="credit-card"),
            _growth_card("New users this month", stats["new_users"], stats["new_users_previous"], stats["user_growth"], "user-plus"),
            _growth_card("New subscribers this month", stats["new_subscribers"], stats["new_subscribers_previous"], stats["subscriber_growth"], "trending-up"),
            cols="1 sm:2 lg:4",
            gap=4,
            cls="mb-10",
        ),
        _index_header("Recent users"),
        SearchForm(params, "/admin/dashboard", placeholder="Search by email"),
        DataTable(user_columns(params, "/admin/dashboard"), users.rows, empty_message="No users yet."),
        Pagination(params, users.total, "/admin/dashboard"),
    )


# =============================================================================
# Reference tables
# =============================================================================


def reference_index(resource: ReferenceResource, rows: List[Dict[str, Any]]) -> Div:
    base = f"/admin/{resource.slug}"
    columns = [
        (
            resource.fields[0].label,
            lambda r: link_cell(resource.display_name(r), f"{base}/{r['id']}"),
        )
    ]
    columns += [
        (spec.label, (lambda r, name=spec.name: r.get(name) if r.get(name) not in (None, "") else "—"))
        for spec in resource.fields[1:]
    ]
    return Div(
        AdminNav(),
        _index_header(resource.plural_label, f"{base}/new"),
        DataTable(columns, rows, empty_message=f"No {resource.plural_label.lower()} yet."),
    )


def reference_form(resource: ReferenceResource, sess, action: str, title: str, values=None, errors=None) -> Card:
    fields = [
        TextField(
            spec.label,
            spec.name,
            values,
            type="number" if spec.kind == "int" else "text",
            required=spec.required,
        )
        for spec in resource.fields
    ]
    return FormCard(
        title,
        *fields,
        action=action,
        sess=sess,
        errors=errors,
        cancel_href=f"/admin/{resource.slug}",
    )


def reference_detail(resource: ReferenceResource, row: Dict[str, Any], sess) -> Div:
    base = f"/admin/{resource.slug}/{row['id']}"
    items = [(spec.label, row.get(spec.name)) for spec in resource.fields]
    items += [("Created", format_date_simple(row.get("created_at"))), ("Updated", format_date_simple(row.get("updated_at")))]
    return Div(
        DetailList(items, title=f"{resource.label}: {resource.display_name(row)}"),
        Div(
            A("Edit", href=f"{base}/edit", cls=ButtonT.secondary),
            DeleteButton(f"{base}/delete", sess),
            A("Back", href=f"/admin/{resource.slug}", cls=ButtonT.ghost),
            cls="flex gap-2 justify-center",
        ),
    )


# =============================================================================
# Users
# =============================================================================


def users_index(result, params: ListParams) -> Div:
    return Div(
        AdminNav(),
        _index_header("Users"),
        SearchForm(params, "/admin/users", placeholder="Search by email"),
        DataTable(user_columns(params, "/admin/users"), result.rows, empty_message="No users found."),
        Pagination(params, result.total, "/admin/users"),
    )


def user_detail(user: Dict[str, Any], sess, granted_by: Optional[Dict[str, Any]] = None) -> Div:
    base = f"/admin/users/{user['id']}"
    deleted = bool(user.get("deleted_at"))
    if deleted:
        lifecycle = PostButton("Restore", f"{base}/restore", sess)
    else:
        lifecycle = DeleteButton(f"{base}/delete", sess)
    return Div(
        DetailList(
            [
                ("Email", user.get("email")),
                ("Pending email", user.get("pending_email")),
                ("Role", user.get("role")),
                ("Verified", _yes_no(user.get("verified"))),
                ("Plan", humanize_tier(user.get("subscription_tier"))),
                ("Status", user.get("subscription_status")),
                ("Ends", "Never" if user.get("is_lifetime") else format_date_simple(user.get("subscription_end_date"))),
                ("Stripe customer", user.get("stripe_customer_id")),
                ("Admin granted", _yes_no(user.get("is_admin_granted"))),
                ("Granted by", granted_by.get("email") if granted_by else None),
                ("Grant reason", user.get("grant_reason")),
                ("Failed logins", user.get("login_attempts")),
                ("Last login", format_date_simple(user.get("last_login"))),
                ("Joined", format_date_simple(user.get("created_at"))),
                ("Deleted", format_date_simple(user.get("deleted_at")) if deleted else None),
            ],
            title=user.get("email"),
        ),
        Div(
            A("Edit", href=f"{base}/edit", cls=ButtonT.secondary),
            A("Grant subscription", href=f"{base}/grant-subscription", cls=ButtonT.primary),
            lifecycle,
            A("Back", href="/admin/users", cls=ButtonT.ghost),
            cls="flex gap-2 justify-center",
        ),
    )


def user_edit_form(sess, user_id: int, values, errors=None) -> Card:
    return FormCard(
        "Edit user",
        TextField("Email", "email", values, type="email", required=True),
        SelectField("Role", "role", [(ROLE_USER, "User"), (ROLE_ADMIN, "Admin")], values, placeholder="(user)"),
        CheckboxField("Verified", "verified", values),
        SelectField("Subscription tier", "subscription_tier", TIER_OPTIONS, values, placeholder="(free)"),
        SelectField("Subscription status", "subscription_status", STATUS_OPTIONS, values, placeholder="(none)"),
        action=f"/admin/users/{user_id}/update",
        sess=sess,
        errors=errors,
        cancel_href=f"/admin/users/{user_id}",
    )


def grant_subscription_form(sess, user: Dict[str, Any], values=None, errors=None) -> Card:
    return FormCard(
        "Grant subscription",
        SelectField("Subscription type", "subscription_type", [(t, humanize_tier(t)) for t in PAID_TIERS], values, required=True),
        TextAreaField("Reason", "grant_reason", values, rows=3),
        TextField("Duration (days)", "duration_days", values, type="number", min="0"),
        P("Leave at 0 to use the tier's normal period.", cls="text-xs text-gray-500"),
        CheckboxField("Lifetime", "is_lifetime", values),
        action=f"/admin/users/{user['id']}/grant-subscription",
        sess=sess,
        errors=errors,
        cancel_href=f"/admin/users/{user['id']}",
        subtitle=f"For {user.get('email')}",
    )


# =============================================================================
# Promotions
# =============================================================================


def promotions_index(rows: List[Dict[str, Any]]) -> Div:
    columns = [
        ("Name", lambda p: link_cell(p.get("name"), f"/admin/promotions/{p['id']}")),
        ("Type", lambda p: p.get("type") or ""),
        ("Active", lambda p: badge_cell("active", "green") if p.get("active") else badge_cell("inactive")),
        ("Starts", lambda p: format_date_simple(p.get("start_date"))),
        ("Ends", lambda p: format_date_simple(p.get("end_date"))),
        ("Benefit days", lambda p: p.get("benefit_days") or 0),
        ("Home page", lambda p: _yes_no(p.get("display_on_home"))),
    ]
    return Div(
        AdminNav(),
        _index_header("Promotions", "/admin/promotions/new"),
        DataTable(columns, rows, empty_message="No promotions yet."),
    )


def promotion_form_values(promotion: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(promotion)
    values["start_date"] = (promotion.get("start_date") or "")[:10]
    values["end_date"] = (promotion.get("end_date") or "")[:10]
    return values


def promotion_form(sess, action: str, title: str, values=None, errors=None) -> Card:
    return FormCard(
        title,
        TextField("Name", "name", values, required=True),
        TextField("Type", "type", values, required=True, placeholder="e.g. launch, holiday"),
        CheckboxField("Active", "active", values),
        TextField("Start date", "start_date", values, type="date", required=True),
        TextField("End date", "end_date", values, type="date", required=True),
        TextField("Benefit days", "benefit_days", values, type="number", min="0"),
        CheckboxField("Show on home page", "display_on_home", values),
        TextAreaField("Description", "description", values),
        TextField("Banner image URL", "banner", values),
        action=action,
        sess=sess,
        errors=errors,
        cancel_href="/admin/promotions",
    )


def promotion_detail(promotion: Dict[str, Any], sess, active_now: bool) -> Div:
    base = f"/admin/promotions/{promotion['id']}"
    return Div(
        DetailList(
            [
                ("Name", promotion.get("name")),
                ("Type", promotion.get("type")),
                ("Enabled", _yes_no(promotion.get("active"))),
                ("Running now", badge_cell("yes", "green") if active_now else "No"),
                ("Starts", format_date_simple(promotion.get("start_date"))),
                ("Ends", format_date_simple(promotion.get("end_date"))),
                ("Benefit days", promotion.get("benefit_days")),
                ("Home page", _yes_no(promotion.get("display_on_home"))),
                ("Description", promotion.get("description")),
                ("Banner", promotion.get("banner")),
            ],
            title=promotion.get("name"),
        ),
        Div(
            A("Edit", href=f"{base}/edit", cls=ButtonT.secondary),
            DeleteButton(f"{base}/delete", sess),
            A("Back", href="/admin/promotions", cls=ButtonT.ghost),
            cls="flex gap-2 justify-center",
        ),
    )


# =============================================================================
# Payments and inventory overviews
# =============================================================================


def payments_index(result, params: ListParams) -> Div:
    columns = [
        ("Date", lambda p: format_date_simple(p.get("created_at"))),
        ("User", lambda p: link_cell(p.get("user_email"), f"/admin/users/{p.get('user_id')}")),
        ("Description", lambda p: p.get("description") or ""),
        ("Type", lambda p: p.get("payment_type") or ""),
        ("Amount", lambda p: format_cents(p.get("amount"), p.get("currency") or "usd")),
        ("Status", lambda p: p.get("status") or ""),
        ("Stripe ID", lambda p: Code(truncate(p.get("stripe_id"), 24))),
    ]
    return Div(
        AdminNav(),
        _index_header("Payment history"),
        DataTable(columns, result.rows, empty_message="No payments yet."),
        Pagination(params, result.total, "/admin/payments-history"),
    )


def _owner_email(row: Dict[str, Any]) -> str:
    return (row.get("owner") or {}).get("email", "—")


def _ref(row: Dict[str, Any], attr: str, key: str) -> str:
    return str((row.get(attr) or {}).get(key) or "—")


def all_guns(result, params: ListParams) -> Div:
    columns = [
        ("Name", lambda g: g.get("name") or ""),
        ("Owner", lambda g: link_cell(_owner_email(g), f"/admin/users/{g.get('owner_id')}")),
        ("Manufacturer", lambda g: _ref(g, "manufacturer", "name")),
        ("Caliber", lambda g: _ref(g, "caliber", "caliber")),
        ("Type", lambda g: _ref(g, "weapon_type", "type")),
        ("Paid", lambda g: format_cents(g.get("paid"))),
        ("Added", lambda g: format_date_simple(g.get("created_at"))),
    ]
    return Div(
        AdminNav(),
        _index_header("All guns"),
        SearchForm(params, "/admin/guns"),
        DataTable(columns, result.rows, empty_message="No guns recorded."),
        Pagination(params, result.total, "/admin/guns"),
    )


def all_ammo(result, params: ListParams) -> Div:
    columns = [
        ("Name", lambda a: a.get("name") or ""),
        ("Owner", lambda a: link_cell(_owner_email(a), f"/admin/users/{a.get('owner_id')}")),
        ("Brand", lambda a: _ref(a, "brand", "name")),
        ("Caliber", lambda a: _ref(a, "caliber", "caliber")),
        ("Rounds", lambda a: number_cell(a.get("count"))),
        ("Paid", lambda a: format_cents(a.get("paid"))),
        ("Added", lambda a: format_date_simple(a.get("created_at"))),
    ]
    return Div(
        AdminNav(),
        _index_header("All munitions"),
        SearchForm(params, "/admin/munitions"),
        DataTable(columns, result.rows, empty_message="No ammunition recorded."),
        Pagination(params, result.total, "/admin/munitions"),
    )


# =============================================================================
# Stripe security
# =============================================================================


def ip_check_result(ip: str, allowed: bool) -> Div:
    if not ip:
        return Div(id="ip-check-result")
    tone = AlertT.success if allowed else AlertT.warning
    verdict = "is a Stripe IP" if allowed else "is not a Stripe IP"
    return Div(Alert(P(Code(ip), f" {verdict}"), cls=tone), id="ip-check-result")


def stripe_security(status, sess, ip: str = "", allowed: Optional[bool] = None) -> Div:
    """status: IPFilterStatus from the Stripe IP filter."""
    failed = ", ".join(status.failed_sources) if status.failed_sources else "None"
    return Div(
        AdminNav(),
        DetailList(
            [
                ("Filter enabled", badge_cell("enabled", "green") if status.enabled else badge_cell("disabled")),
                ("Last update", format_date_relative(status.last_update) if status.last_update else "Never"),
                ("IP ranges loaded", format_number(status.num_ranges)),
                ("Failed sources", failed),
            ],
            title="Stripe webhook IP filter",
        ),
        Div(PostButton("Refresh IP ranges", "/admin/stripe-security/refresh", sess), cls="flex justify-center mb-8"),
        Card(
            H3("Check an IP address", cls="text-lg font-bold mb-2"),
            Form(
                Input(type="text", name="ip", value=ip, placeholder="203.0.113.7", cls="uk-input w-64"),
                Button("Check", type="submit", cls=ButtonT.secondary),
                method="get",
                action="/admin/ip-check",
                cls="flex gap-2 items-center mb-4",
            ),
            ip_check_result(ip, bool(allowed)),
            cls=CARD_BASE,
        ),
    )
