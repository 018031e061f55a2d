"""
Main entry point for The Virtual Armory web app.

Routes are declared here; the work happens in controllers/*.
"""

import logging
import os

from dotenv import load_dotenv
from fasthtml.common import *
from monsterui.all import *
from starlette.middleware import Middleware

from auth.guard import beforeware
from controllers import admin as admin_controller
from controllers import auth as account_controller
from controllers import home as public_controller
from controllers import owner as owner_controller
from controllers import payment as payment_controller
from components import ERROR_PAGES
from controllers.helpers import error_page
from db import init_supabase, setup_logging
from services.config import get_app_config
from services.reference_data import REFERENCE_RESOURCES
from services.stripe_ipfilter import StripeIPMiddleware, ip_filter
from validators import (
    AdminUserForm,
    AmmoForm,
    ContactForm,
    EmailForm,
    GrantSubscriptionForm,
    GunForm,
    LoginForm,
    ProfileForm,
    PromotionForm,
    RegisterForm,
    ResetPasswordForm,
)

# Get logger instance
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


# --- Error pages ---
def not_found_handler(req, exc):
    return error_page(404, req.scope.get("session"), req.scope.get("auth"))


def server_error_handler(req, exc):
    logger.error(f"❌ Unhandled error on {req.url.path}: {exc}")
    return error_page(500, req.scope.get("session"), req.scope.get("auth"))


# --- App Initialization ---
hdrs = Theme.red.headers()

app, rt = fast_app(
    hdrs=hdrs,
    title="The Virtual Armory",
    before=beforeware,
    middleware=[Middleware(StripeIPMiddleware)],
    exception_handlers={404: not_found_handler, 500: server_error_handler},
    secret_key=get_app_config().session_secret or None,
    meta=[
        {"charset": "UTF-8"},
        {"name": "viewport", "content": "width=device-width, initial-scale=1.0"},
        {"name": "description", "content": "Track your firearms and ammunition in one place."},
    ],
)

# robots.txt and sitemap.xml are generated routes, not files
STATIC_ROUTE = "/{fname:path}.{ext:static}"
app.routes[:] = [r for r in app.routes if getattr(r, "path", "") != STATIC_ROUTE]


# Initialize application components
def init_app():
    """Initialize application components.

    Sets up logging, the Supabase client and the Stripe IP ranges. Tests run
    with TESTING set and inject their own client, so the network calls are
    skipped there.
    """
    setup_logging()

    try:
        client = init_supabase()
        if client is not None:
            logger.info("Supabase integration enabled successfully")
        else:
            logger.warning("Running without Supabase integration")
    except Exception as e:
        logger.error(f"Unexpected error during Supabase initialization: {str(e)}")

    if os.getenv("TESTING"):
        return
    ip_filter.refresh()
    ip_filter.start_background_refresh()


init_app()


# =============================================================================
# Public pages
# =============================================================================


@rt("/", methods=["GET"])
def index(sess, auth):
    return public_controller.home_controller(sess, auth)


@rt("/about", methods=["GET"])
def about(sess, auth):
    return public_controller.about_controller(sess, auth)


@rt("/contact", methods=["GET"])
def contact_page(sess, auth):
    return public_controller.contact_page(sess, auth)


@rt("/contact", methods=["POST"])
def contact_submit(form: ContactForm, sess, auth):
    return public_controller.contact_controller(form, sess, auth)


@rt("/pricing", methods=["GET"])
def pricing(sess, auth):
    return public_controller.pricing_controller(sess, auth)


@rt("/health", methods=["GET"])
def health():
    return public_controller.health_controller()


@rt("/robots.txt", methods=["GET"])
def robots():
    return public_controller.robots_controller()


@rt("/sitemap.xml", methods=["GET"])
def sitemap():
    return public_controller.sitemap_controller()


@rt("/api/calibers/search", methods=["GET"])
def calibers_search(q: str = ""):
    return public_controller.caliber_search_controller(q)


@rt("/error/{code:int}", methods=["GET"])
def error_preview(code: int, sess, auth):
    return error_page(code if code in ERROR_PAGES else 404, sess, auth)


# =============================================================================
# Accounts
# =============================================================================


@rt("/register", methods=["GET"])
def register_page(sess, auth):
    return account_controller.register_page(sess, auth)


@rt("/register", methods=["POST"])
def register_submit(form: RegisterForm, sess):
    return account_controller.register_controller(form, sess)


@rt("/verification-sent", methods=["GET"])
def verification_sent(sess):
    return account_controller.verification_sent_page(sess)


@rt("/resend-verification", methods=["POST"])
def resend_verification(form: EmailForm, sess):
    return account_controller.resend_verification_controller(form, sess)


@rt("/verify", methods=["GET"])
def verify(sess, token: str = ""):
    return account_controller.verify_email_controller(token, sess)


@rt("/verify-email", methods=["GET"])
def verify_email(sess, token: str = ""):
    return account_controller.verify_email_controller(token, sess)


@rt("/login", methods=["GET"])
def login_page(sess, auth):
    return account_controller.login_page(sess, auth)


@rt("/login", methods=["POST"])
def login_submit(form: LoginForm, sess):
    return account_controller.login_controller(form, sess)


@rt("/logout", methods=["GET", "POST"])
def logout(sess):
    return account_controller.logout_controller(sess)


@rt("/forgot-password", methods=["GET"])
def forgot_password(sess):
    return account_controller.forgot_password_page(sess)


@rt("/reset-password/new", methods=["GET"])
def reset_password_new(sess):
    return account_controller.forgot_password_page(sess)


@rt("/forgot-password", methods=["POST"])
def forgot_password_submit(form: EmailForm, sess):
    return account_controller.forgot_password_controller(form, sess)


@rt("/reset-password/new", methods=["POST"])
def reset_password_request(form: EmailForm, sess):
    return account_controller.forgot_password_controller(form, sess)


@rt("/reset-password", methods=["GET"])
def reset_password_page(sess, token: str = ""):
    return account_controller.reset_password_page(token, sess)


@rt("/reset-password", methods=["POST"])
def reset_password_submit(form: ResetPasswordForm, sess):
    return account_controller.reset_password_controller(form, sess)


# =============================================================================
# Owner: dashboard and guns
# =============================================================================


@rt("/owner", methods=["GET"])
def owner_dashboard(req, sess, auth):
    return owner_controller.dashboard_controller(req, sess, auth)


@rt("/owner/guns/arsenal", methods=["GET"])
def arsenal(req, sess, auth):
    return owner_controller.arsenal_controller(req, sess, auth)


@rt("/owner/guns/new", methods=["GET"])
def gun_new(sess, auth):
    return owner_controller.gun_new(sess, auth)


@rt("/owner/guns", methods=["POST"])
def gun_create(form: GunForm, sess, auth):
    return owner_controller.gun_create(form, sess, auth)


@rt("/owner/guns/{gun_id:int}", methods=["GET"])
def gun_show(gun_id: int, sess, auth):
    return owner_controller.gun_show(gun_id, sess, auth)


@rt("/owner/guns/{gun_id:int}/edit", methods=["GET"])
def gun_edit(gun_id: int, sess, auth):
    return owner_controller.gun_edit(gun_id, sess, auth)


@rt("/owner/guns/{gun_id:int}/update", methods=["POST"])
def gun_update(gun_id: int, form: GunForm, sess, auth):
    return owner_controller.gun_update(gun_id, form, sess, auth)


@rt("/owner/guns/{gun_id:int}/delete", methods=["POST"])
def gun_delete(gun_id: int, sess, auth):
    return owner_controller.gun_delete(gun_id, sess, auth)


# =============================================================================
# Owner: munitions
# =============================================================================


@rt("/owner/munitions", methods=["GET"])
def ammo_index(req, sess, auth):
    return owner_controller.ammo_index(req, sess, auth)


@rt("/owner/munitions/search", methods=["GET"])
def ammo_search(sess, auth, q: str = "", search: str = ""):
    return owner_controller.ammo_search(q or search, sess, auth)


@rt("/owner/munitions/new", methods=["GET"])
def ammo_new(sess, auth):
    return owner_controller.ammo_new(sess, auth)


@rt("/owner/munitions", methods=["POST"])
def ammo_create(form: AmmoForm, sess, auth):
    return owner_controller.ammo_create(form, sess, auth)


@rt("/owner/munitions/{ammo_id:int}", methods=["GET"])
def ammo_show(ammo_id: int, sess, auth):
    return owner_controller.ammo_show(ammo_id, sess, auth)


@rt("/owner/munitions/{ammo_id:int}/edit", methods=["GET"])
def ammo_edit(ammo_id: int, sess, auth):
    return owner_controller.ammo_edit(ammo_id, sess, auth)


@rt("/owner/munitions/{ammo_id:int}/update", methods=["POST"])
def ammo_update(ammo_id: int, form: AmmoForm, sess, auth):
    return owner_controller.ammo_update(ammo_id, form, sess, auth)


@rt("/owner/munitions/{ammo_id:int}/delete", methods=["POST"])
def ammo_delete(ammo_id: int, sess, auth):
    return owner_controller.ammo_delete(ammo_id, sess, auth)


# =============================================================================
# Owner: profile
# =============================================================================


@rt("/owner/profile", methods=["GET"])
def profile(sess, auth):
    return owner_controller.profile_show(sess, auth)


@rt("/owner/profile/edit", methods=["GET"])
def profile_edit(sess, auth):
    return owner_controller.profile_edit(sess, auth)


@rt("/owner/profile/update", methods=["POST"])
def profile_update(form: ProfileForm, sess, auth):
    return owner_controller.profile_update(form, sess, auth)


@rt("/owner/profile/subscription", methods=["GET"])
def profile_subscription(sess, auth):
    return owner_controller.subscription_show(sess, auth)


@rt("/owner/profile/delete", methods=["GET"])
def profile_delete_confirm(sess, auth):
    return owner_controller.delete_confirm(sess, auth)


@rt("/owner/profile/delete", methods=["POST"])
def profile_delete(sess, auth):
    return owner_controller.delete_account(sess, auth)


@rt("/owner/payment-history", methods=["GET"])
def payment_history(sess, auth):
    return payment_controller.history_controller(sess, auth)


# =============================================================================
# Payments
# =============================================================================


@rt("/checkout", methods=["POST"])
def checkout(sess, auth, tier: str = ""):
    return payment_controller.checkout_controller(tier, sess, auth)


@rt("/payment/success", methods=["GET"])
def payment_success(sess, auth, session_id: str = ""):
    return payment_controller.success_controller(session_id, sess, auth)


@rt("/payment/cancel", methods=["GET"])
def payment_cancel(sess):
    return payment_controller.cancel_payment_controller(sess)


@rt("/subscription/cancel/confirm", methods=["GET"])
def subscription_cancel_confirm(sess, auth):
    return payment_controller.cancel_confirm_controller(sess, auth)


@rt("/subscription/cancel", methods=["POST"])
def subscription_cancel(sess, auth):
    return payment_controller.cancel_subscription_controller(sess, auth)


@rt("/webhook", methods=["POST"])
async def stripe_webhook(req):
    return await payment_controller.webhook_controller(req)


# =============================================================================
# Admin
# =============================================================================


@rt("/admin", methods=["GET"])
def admin_root():
    return RedirectResponse("/admin/dashboard", status_code=303)


@rt("/admin/dashboard", methods=["GET"])
def admin_dashboard(req, sess, auth):
    return admin_controller.dashboard_controller(req, sess, auth)


@rt("/admin/users", methods=["GET"])
def admin_users(req, sess, auth):
    return admin_controller.users_index(req, sess, auth)


@rt("/admin/users/{user_id:int}", methods=["GET"])
def admin_user_show(user_id: int, sess, auth):
    return admin_controller.user_show(user_id, sess, auth)


@rt("/admin/users/{user_id:int}/edit", methods=["GET"])
def admin_user_edit(user_id: int, sess, auth):
    return admin_controller.user_edit(user_id, sess, auth)


@rt("/admin/users/{user_id:int}/update", methods=["POST"])
def admin_user_update(user_id: int, form: AdminUserForm, sess, auth):
    return admin_controller.user_update(user_id, form, sess, auth)


@rt("/admin/users/{user_id:int}/delete", methods=["POST"])
def admin_user_delete(user_id: int, sess, auth):
    return admin_controller.user_delete(user_id, sess, auth)


@rt("/admin/users/{user_id:int}/restore", methods=["POST"])
def admin_user_restore(user_id: int, sess, auth):
    return admin_controller.user_restore(user_id, sess, auth)


@rt("/admin/users/{user_id:int}/grant-subscription", methods=["GET"])
def admin_grant_form(user_id: int, sess, auth):
    return admin_controller.grant_form(user_id, sess, auth)


@rt("/admin/users/{user_id:int}/grant-subscription", methods=["POST"])
def admin_grant_submit(user_id: int, form: GrantSubscriptionForm, sess, auth):
    return admin_controller.grant_submit(user_id, form, sess, auth)


@rt("/admin/promotions", methods=["GET"])
def admin_promotions(sess, auth):
    return admin_controller.promotions_index(sess, auth)


@rt("/admin/promotions/new", methods=["GET"])
def admin_promotion_new(sess, auth):
    return admin_controller.promotion_new(sess, auth)


@rt("/admin/promotions", methods=["POST"])
def admin_promotion_create(form: PromotionForm, sess, auth):
    return admin_controller.promotion_create(form, sess, auth)


@rt("/admin/promotions/{promotion_id:int}", methods=["GET"])
def admin_promotion_show(promotion_id: int, sess, auth):
    return admin_controller.promotion_show(promotion_id, sess, auth)


@rt("/admin/promotions/{promotion_id:int}/edit", methods=["GET"])
def admin_promotion_edit(promotion_id: int, sess, auth):
    return admin_controller.promotion_edit(promotion_id, sess, auth)


@rt("/admin/promotions/{promotion_id:int}/update", methods=["POST"])
def admin_promotion_update(promotion_id: int, form: PromotionForm, sess, auth):
    return admin_controller.promotion_update(promotion_id, form, sess, auth)


@rt("/admin/promotions/{promotion_id:int}/delete", methods=["POST"])
def admin_promotion_delete(promotion_id: int, sess, auth):
    return admin_controller.promotion_delete(promotion_id, sess, auth)


@rt("/admin/payments-history", methods=["GET"])
def admin_payments(req, sess, auth):
    return admin_controller.payments_controller(req, sess, auth)


@rt("/admin/guns", methods=["GET"])
def admin_guns(req, sess, auth):
    return admin_controller.guns_controller(req, sess, auth)


@rt("/admin/munitions", methods=["GET"])
def admin_munitions(req, sess, auth):
    return admin_controller.munitions_controller(req, sess, auth)


@rt("/admin/stripe-security", methods=["GET"])
def admin_stripe_security(sess, auth):
    return admin_controller.security_controller(sess, auth)


@rt("/admin/stripe-security/refresh", methods=["POST"])
def admin_stripe_refresh(sess):
    return admin_controller.security_refresh_controller(sess)


@rt("/admin/ip-check", methods=["GET"])
def admin_ip_check(sess, auth, ip: str = ""):
    return admin_controller.security_controller(sess, auth, ip)


def register_reference_routes(slug: str):
    """Index/new/create/show/edit/update/delete routes for one lookup table."""
    base = f"/admin/{slug}"

    @rt(base, methods=["GET"], name=f"{slug}_index")
    def reference_index(sess, auth):
        return admin_controller.reference_index(slug, sess, auth)

    @rt(f"{base}/new", methods=["GET"], name=f"{slug}_new")
    def reference_new(sess, auth):
        return admin_controller.reference_new(slug, sess, auth)

    @rt(base, methods=["POST"], name=f"{slug}_create")
    async def reference_create(req, sess, auth):
        form = await req.form()
        return admin_controller.reference_create(slug, form, sess, auth)

    @rt(f"{base}/{{row_id:int}}", methods=["GET"], name=f"{slug}_show")
    def reference_show(row_id: int, sess, auth):
        return admin_controller.reference_show(slug, row_id, sess, auth)

    @rt(f"{base}/{{row_id:int}}/edit", methods=["GET"], name=f"{slug}_edit")
    def reference_edit(row_id: int, sess, auth):
        return admin_controller.reference_edit(slug, row_id, sess, auth)

    @rt(f"{base}/{{row_id:int}}/update", methods=["POST"], name=f"{slug}_update")
    async def reference_update(row_id: int, req, sess, auth):
        form = await req.form()
        return admin_controller.reference_update(slug, row_id, form, sess, auth)

    @rt(f"{base}/{{row_id:int}}/delete", methods=["POST"], name=f"{slug}_delete")
    def reference_delete(row_id: int, sess, auth):
        return admin_controller.reference_delete(slug, row_id, sess, auth)


for _slug in REFERENCE_RESOURCES:
    register_reference_routes(_slug)


serve()
