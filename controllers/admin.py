"""
Admin controllers. The guard has already checked the admin role before any
of these run.
"""

import logging
from typing import Any, Dict, Mapping

from fasthtml.common import *

from constants import USER_SORT_FIELDS
from controllers.helpers import error_page, query_dict, redirect, render
from services import inventory, promotions
from services import reference_data as refs
from services import users
from services.errors import NotFoundError, ValidationError
from services.payments import list_all_payments
from services.stripe_ipfilter import ip_filter
from utils.pagination import ListParams, calculate_growth_rate
from validators import (
    AdminUserForm,
    AdminUserValidator,
    GrantSubscriptionForm,
    GrantSubscriptionValidator,
    PromotionForm,
    PromotionValidator,
)
from views import admin as views

logger = logging.getLogger(__name__)


def _not_found(sess, user, e: NotFoundError):
    return error_page(404, sess, user, message=str(e))


# =============================================================================
# Dashboard
# =============================================================================


def dashboard_stats() -> Dict[str, Any]:
    last_month, this_month = users.month_bounds()
    new_users = users.count_new_users(this_month)
    new_users_previous = users.count_new_users(last_month, this_month)
    new_subscribers = users.count_new_subscribers(this_month)
    new_subscribers_previous = users.count_new_subscribers(last_month, this_month)
    return {
        "total_users": users.count_users(),
        "subscribers": users.count_active_subscribers(),
        "new_users": new_users,
        "new_users_previous": new_users_previous,
        "user_growth": calculate_growth_rate(new_users, new_users_previous),
        "new_subscribers": new_subscribers,
        "new_subscribers_previous": new_subscribers_previous,
        "subscriber_growth": calculate_growth_rate(new_subscribers, new_subscribers_previous),
    }


def dashboard_controller(req, sess, user):
    params = ListParams.from_query(query_dict(req), USER_SORT_FIELDS)
    recent = users.list_users(params, include_deleted=False)
    return render(
        "Admin dashboard",
        views.admin_dashboard(dashboard_stats(), recent, params),
        sess=sess,
        user=user,
        wide=True,
    )


# =============================================================================
# Reference tables
# =============================================================================


def reference_index(slug: str, sess, user):
    resource = refs.get_resource(slug)
    return render(resource.plural_label, views.reference_index(resource, refs.list_rows(resource)), sess=sess, user=user, wide=True)


def reference_new(slug: str, sess, user):
    resource = refs.get_resource(slug)
    form = views.reference_form(resource, sess, f"/admin/{slug}", f"New {resource.label.lower()}")
    return render(f"New {resource.label.lower()}", form, sess=sess, user=user)


def reference_create(slug: str, form: Mapping[str, Any], sess, user):
    resource = refs.get_resource(slug)
    payload, errors = refs.clean_form(resource, form)
    if not errors:
        try:
            refs.create(resource, payload)
        except ValidationError as e:
            errors = e.messages
    if errors:
        view = views.reference_form(resource, sess, f"/admin/{slug}", f"New {resource.label.lower()}", dict(form), errors)
        return render(f"New {resource.label.lower()}", view, sess=sess, user=user, status_code=400)
    return redirect(f"/admin/{slug}", sess, f"{resource.label} created successfully")


def reference_show(slug: str, row_id: int, sess, user):
    resource = refs.get_resource(slug)
    try:
        row = refs.get(resource, row_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return render(resource.label, views.reference_detail(resource, row, sess), sess=sess, user=user)


def reference_edit(slug: str, row_id: int, sess, user):
    resource = refs.get_resource(slug)
    try:
        row = refs.get(resource, row_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    view = views.reference_form(resource, sess, f"/admin/{slug}/{row_id}/update", f"Edit {resource.label.lower()}", row)
    return render(f"Edit {resource.label.lower()}", view, sess=sess, user=user)


def reference_update(slug: str, row_id: int, form: Mapping[str, Any], sess, user):
    resource = refs.get_resource(slug)
    payload, errors = refs.clean_form(resource, form)
    if not errors:
        try:
            refs.update(resource, row_id, payload)
        except NotFoundError as e:
            return _not_found(sess, user, e)
        except ValidationError as e:
            errors = e.messages
    if errors:
        view = views.reference_form(
            resource, sess, f"/admin/{slug}/{row_id}/update", f"Edit {resource.label.lower()}", dict(form), errors
        )
        return render(f"Edit {resource.label.lower()}", view, sess=sess, user=user, status_code=400)
    return redirect(f"/admin/{slug}/{row_id}", sess, f"{resource.label} updated successfully")


def reference_delete(slug: str, row_id: int, sess, user):
    resource = refs.get_resource(slug)
    try:
        refs.delete(resource, row_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect(f"/admin/{slug}", sess, f"{resource.label} deleted successfully")


# =============================================================================
# Users
# =============================================================================


def users_index(req, sess, user):
    params = ListParams.from_query(query_dict(req), USER_SORT_FIELDS)
    result = users.list_users(params)
    return render("Users", views.users_index(result, params), sess=sess, user=user, wide=True)


def _load_user(user_id: int) -> Dict[str, Any]:
    target = users.get_user(user_id, include_deleted=True)
    if target is None:
        raise NotFoundError("User not found")
    return target


def user_show(user_id: int, sess, user):
    try:
        target = _load_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    granted_by = users.get_user(target.get("granted_by_id"), include_deleted=True) if target.get("granted_by_id") else None
    return render(target["email"], views.user_detail(target, sess, granted_by), sess=sess, user=user)


def user_edit(user_id: int, sess, user):
    try:
        target = _load_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return render("Edit user", views.user_edit_form(sess, user_id, target), sess=sess, user=user)


def user_update(user_id: int, form: AdminUserForm, sess, user):
    try:
        target = _load_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    payload, errors = AdminUserValidator.clean(form)
    if not errors and payload["email"] != target["email"]:
        other = users.get_user_by_email(payload["email"], include_deleted=True)
        if other is not None and other["id"] != user_id:
            errors.append("Email already registered")
    if errors:
        return render("Edit user", views.user_edit_form(sess, user_id, form.__dict__, errors), sess=sess, user=user, status_code=400)
    users.update_user(user_id, payload)
    logger.info(f"Admin id={user['id']} updated user id={user_id}")
    return redirect(f"/admin/users/{user_id}", sess, "User updated successfully")


def user_delete(user_id: int, sess, user):
    if user_id == user["id"]:
        return redirect(f"/admin/users/{user_id}", sess, "You cannot delete your own account from the admin area", "error")
    try:
        users.soft_delete_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect("/admin/users", sess, "User deleted successfully")


def user_restore(user_id: int, sess, user):
    try:
        users.restore_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    except ValidationError as e:
        return redirect(f"/admin/users/{user_id}", sess, str(e), "error")
    return redirect(f"/admin/users/{user_id}", sess, "User restored successfully")


def grant_form(user_id: int, sess, user):
    try:
        target = _load_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return render("Grant subscription", views.grant_subscription_form(sess, target), sess=sess, user=user)


def grant_submit(user_id: int, form: GrantSubscriptionForm, sess, user):
    try:
        target = _load_user(user_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    payload, errors = GrantSubscriptionValidator.clean(form)
    if errors:
        view = views.grant_subscription_form(sess, target, form.__dict__, errors)
        return render("Grant subscription", view, sess=sess, user=user, status_code=400)
    users.grant_subscription(
        user_id,
        user["id"],
        payload["tier"],
        payload["reason"],
        duration_days=payload["duration_days"],
        is_lifetime=payload["is_lifetime"],
    )
    return redirect(f"/admin/users/{user_id}", sess, "Subscription granted successfully")


# =============================================================================
# Promotions
# =============================================================================


def promotions_index(sess, user):
    return render("Promotions", views.promotions_index(promotions.list_promotions()), sess=sess, user=user, wide=True)


def promotion_new(sess, user):
    return render("New promotion", views.promotion_form(sess, "/admin/promotions", "New promotion"), sess=sess, user=user)


def promotion_create(form: PromotionForm, sess, user):
    payload, errors = PromotionValidator.clean(form)
    if errors:
        view = views.promotion_form(sess, "/admin/promotions", "New promotion", form.__dict__, errors)
        return render("New promotion", view, sess=sess, user=user, status_code=400)
    promotions.create_promotion(payload)
    return redirect("/admin/promotions", sess, "Promotion created successfully")


def promotion_show(promotion_id: int, sess, user):
    try:
        promotion = promotions.get_promotion(promotion_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    view = views.promotion_detail(promotion, sess, promotions.is_active_now(promotion))
    return render(promotion.get("name") or "Promotion", view, sess=sess, user=user)


def promotion_edit(promotion_id: int, sess, user):
    try:
        promotion = promotions.get_promotion(promotion_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    view = views.promotion_form(
        sess, f"/admin/promotions/{promotion_id}/update", "Edit promotion", views.promotion_form_values(promotion)
    )
    return render("Edit promotion", view, sess=sess, user=user)


def promotion_update(promotion_id: int, form: PromotionForm, sess, user):
    payload, errors = PromotionValidator.clean(form)
    if errors:
        view = views.promotion_form(sess, f"/admin/promotions/{promotion_id}/update", "Edit promotion", form.__dict__, errors)
        return render("Edit promotion", view, sess=sess, user=user, status_code=400)
    try:
        promotions.update_promotion(promotion_id, payload)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect(f"/admin/promotions/{promotion_id}", sess, "Promotion updated successfully")


def promotion_delete(promotion_id: int, sess, user):
    try:
        promotions.delete_promotion(promotion_id)
    except NotFoundError as e:
        return _not_found(sess, user, e)
    return redirect("/admin/promotions", sess, "Promotion deleted successfully")


# =============================================================================
# Payments and inventory overviews
# =============================================================================


def payments_controller(req, sess, user):
    params = ListParams.from_query(query_dict(req), ("created_at",))
    return render("Payments", views.payments_index(list_all_payments(params), params), sess=sess, user=user, wide=True)


def guns_controller(req, sess, user):
    params = ListParams.from_query(query_dict(req), ("created_at",))
    return render("All guns", views.all_guns(inventory.list_all_guns(params), params), sess=sess, user=user, wide=True)


def munitions_controller(req, sess, user):
    params = ListParams.from_query(query_dict(req), ("created_at",))
    return render("All munitions", views.all_ammo(inventory.list_all_ammo(params), params), sess=sess, user=user, wide=True)


# =============================================================================
# Stripe security
# =============================================================================


def security_controller(sess, user, ip: str = ""):
    ip = (ip or "").strip()
    allowed = ip_filter.is_stripe_ip(ip) if ip else None
    return render("Stripe security", views.stripe_security(ip_filter.status(), sess, ip, allowed), sess=sess, user=user)


def security_refresh_controller(sess):
    if ip_filter.refresh():
        return redirect("/admin/stripe-security", sess, "IP ranges refreshed successfully")
    return redirect("/admin/stripe-security", sess, "Failed to refresh IP ranges from every source", "error")
