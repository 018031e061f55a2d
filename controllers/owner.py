"""
Owner controllers: dashboard, guns, ammunition and profile.

Every handler here runs behind the login guard, so `user` is the active
session user.
"""

import logging
from typing import Any, Dict

from fasthtml.common import *

from auth import auth_service
from auth.session import clear_auth_session
from constants import FREE_TIER_AMMO_LIMIT, GUN_SORT_FIELDS
from controllers.helpers import error_page, query_dict, redirect, render
from services import inventory
from services.errors import DatabaseError, NotFoundError, ValidationError
from services.users import expire_subscription_if_ended, has_active_subscription, soft_delete_user
from utils.pagination import ListParams
from validators import AmmoForm, AmmoValidator, GunForm, GunValidator, ProfileForm, validate_email
from views import owner as views

logger = logging.getLogger(__name__)

AMMO_SORT_FIELDS = ("name", "created_at", "acquired")


def _not_found(sess, user, e: NotFoundError):
    return error_page(404, sess, user, message=str(e))


# =============================================================================
# Dashboard and arsenal
# =============================================================================


def dashboard_controller(req, sess, user: Dict[str, Any]):
    try:
        user = expire_subscription_if_ended(user)
    except DatabaseError as e:
        logger.error(f"❌ Failed to check subscription expiry for user id={user['id']}: {e}")
    params = ListParams.from_query(query_dict(req), GUN_SORT_FIELDS)
    guns = inventory.list_owner_guns(user["id"], params, user)
    ammo = inventory.list_owner_ammo(user["id"], ListParams(), user)
    totals = inventory.owner_totals(user["id"])
    return render(
        "Dashboard",
        views.owner_dashboard(user, totals, guns, ammo, params),
        sess=sess,
        user=user,
        wide=True,
    )


def arsenal_controller(req, sess, user: Dict[str, Any]):
    params = ListParams.from_query(query_dict(req), GUN_SORT_FIELDS)
    guns = inventory.list_owner_guns(user["id"], params, user)
    return render(
        "Arsenal",
        views.guns_section(guns, params, "/owner/guns/arsenal"),
        sess=sess,
        user=user,
        wide=True,
    )


# =============================================================================
# Guns
# =============================================================================


def _gun_limit_redirect(sess, user):
    count = inventory.count_guns(user["id"])
    if inventory.gun_limit_reached(user, count):
        return redirect("/pricing", sess, inventory.gun_limit_message(count), "warning")
    return None


def gun_new(sess, user):
    blocked = _gun_limit_redirect(sess, user)
    if blocked:
        return blocked
    return render("Add gun", views.gun_form(sess, "/owner/guns", "Add a gun"), sess=sess, user=user)


def gun_create(form: GunForm, sess, user):
    blocked = _gun_limit_redirect(sess, user)
    if blocked:
        return blocked
    payload, errors = GunValidator.clean(form)
    if not errors:
        try:
            gun = inventory.create_gun(user["id"], payload)
        except ValidationError as e:
            errors = e.messages
    if errors:
        return render(
            "Add gun",
            views.gun_form(sess, "/owner/guns", "Add a gun", form.__dict__, errors),
            sess=sess,
            user=user,
            status_code=400,
        )
    return redirect(f"/owner/guns/{gun['id']}", sess, "Gun added to your arsenal")


def gun_show(gun_id: int, sess, user):
    try:
        gun = inventory.get_owned_gun(user["id"], gun_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return render(gun.get("name") or "Gun", views.gun_detail(gun, sess), sess=sess, user=user)


def gun_edit(gun_id: int, sess, user):
    try:
        gun = inventory.get_owned_gun(user["id"], gun_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    action = f"/owner/guns/{gun_id}/update"
    return render(
        "Edit gun",
        views.gun_form(sess, action, "Edit gun", views.gun_form_values(gun), cancel_href=f"/owner/guns/{gun_id}"),
        sess=sess,
        user=user,
    )


def gun_update(gun_id: int, form: GunForm, sess, user):
    payload, errors = GunValidator.clean(form)
    if not errors:
        try:
            inventory.update_gun(user["id"], gun_id, payload)
        except NotFoundError as e:
            return _not_found(sess, user, e)
        except ValidationError as e:
            errors = e.messages
    if errors:
        action = f"/owner/guns/{gun_id}/update"
        return render(
            "Edit gun",
            views.gun_form(sess, action, "Edit gun", form.__dict__, errors, cancel_href=f"/owner/guns/{gun_id}"),
            sess=sess,
            user=user,
            status_code=400,
        )
    return redirect(f"/owner/guns/{gun_id}", sess, "Gun updated")


def gun_delete(gun_id: int, sess, user):
    try:
        inventory.delete_gun(user["id"], gun_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect("/owner/guns/arsenal", sess, "Gun removed from your arsenal")


# =============================================================================
# Ammunition
# =============================================================================


def _ammo_limit_redirect(sess, user):
    count = inventory.count_ammo(user["id"])
    if inventory.ammo_limit_reached(user, count):
        return redirect("/pricing", sess, inventory.ammo_limit_message(count), "warning")
    return None


def ammo_index(req, sess, user):
    params = ListParams.from_query(query_dict(req), AMMO_SORT_FIELDS)
    ammo = inventory.list_owner_ammo(user["id"], params, user)
    return render("Munitions", views.ammo_section(ammo, params), sess=sess, user=user, wide=True)


def ammo_search(q: str, sess, user):
    term = (q or "").strip()
    rows = inventory.search_owner_ammo(user["id"], term)
    if not has_active_subscription(user):
        rows = rows[:FREE_TIER_AMMO_LIMIT]
    return render("Search munitions", views.ammo_search_results(rows, term), sess=sess, user=user, wide=True)


def ammo_new(sess, user):
    blocked = _ammo_limit_redirect(sess, user)
    if blocked:
        return blocked
    return render(
        "Add ammunition",
        views.ammo_form(sess, "/owner/munitions", "Add ammunition"),
        sess=sess,
        user=user,
    )


def ammo_create(form: AmmoForm, sess, user):
    blocked = _ammo_limit_redirect(sess, user)
    if blocked:
        return blocked
    payload, errors = AmmoValidator.clean(form)
    if not errors:
        try:
            ammo = inventory.create_ammo(user["id"], payload)
        except ValidationError as e:
            errors = e.messages
    if errors:
        return render(
            "Add ammunition",
            views.ammo_form(sess, "/owner/munitions", "Add ammunition", form.__dict__, errors),
            sess=sess,
            user=user,
            status_code=400,
        )
    return redirect(f"/owner/munitions/{ammo['id']}", sess, "Ammunition added to your depot")


def ammo_show(ammo_id: int, sess, user):
    try:
        ammo = inventory.get_owned_ammo(user["id"], ammo_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return render(ammo.get("name") or "Ammunition", views.ammo_detail(ammo, sess), sess=sess, user=user)


def ammo_edit(ammo_id: int, sess, user):
    try:
        ammo = inventory.get_owned_ammo(user["id"], ammo_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    action = f"/owner/munitions/{ammo_id}/update"
    return render(
        "Edit ammunition",
        views.ammo_form(sess, action, "Edit ammunition", views.ammo_form_values(ammo), cancel_href=f"/owner/munitions/{ammo_id}"),
        sess=sess,
        user=user,
    )


def ammo_update(ammo_id: int, form: AmmoForm, sess, user):
    payload, errors = AmmoValidator.clean(form)
    if not errors:
        try:
            inventory.update_ammo(user["id"], ammo_id, payload)
        except NotFoundError as e:
            return _not_found(sess, user, e)
        except ValidationError as e:
            errors = e.messages
    if errors:
        action = f"/owner/munitions/{ammo_id}/update"
        return render(
            "Edit ammunition",
            views.ammo_form(sess, action, "Edit ammunition", form.__dict__, errors, cancel_href=f"/owner/munitions/{ammo_id}"),
            sess=sess,
            user=user,
            status_code=400,
        )
    return redirect(f"/owner/munitions/{ammo_id}", sess, "Ammunition updated")


def ammo_delete(ammo_id: int, sess, user):
    try:
        inventory.delete_ammo(user["id"], ammo_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect("/owner/munitions", sess, "Ammunition removed from your depot")


# =============================================================================
# Profile
# =============================================================================


def profile_show(sess, user):
    return render("Profile", views.profile_page(user), sess=sess, user=user)


def profile_edit(sess, user):
    return render("Edit profile", views.profile_edit_form(sess, {"email": user.get("email")}), sess=sess, user=user)


def profile_update(form: ProfileForm, sess, user):
    errors = validate_email(form.email)
    if not errors:
        try:
            auth_service.request_email_change(user, form.email)
        except ValidationError as e:
            errors = e.messages
    if errors:
        return render(
            "Edit profile",
            views.profile_edit_form(sess, form.__dict__, errors),
            sess=sess,
            user=user,
            status_code=400,
        )
    return redirect("/owner/profile", sess, "Please check your new email address to verify the change", "info")


def subscription_show(sess, user):
    return render(
        "Subscription",
        views.subscription_page(user, has_active_subscription(user), sess),
        sess=sess,
        user=user,
    )


def delete_confirm(sess, user):
    return render("Delete account", views.delete_account_confirm(sess), sess=sess, user=user)


def delete_account(sess, user):
    soft_delete_user(user["id"])
    clear_auth_session(sess)
    logger.info(f"User id={user['id']} deleted their account")
    return redirect("/", sess, "Your account has been deleted.")
