"""
Account controllers: register, login/logout, email verification and
password recovery.

Routes live in main.py; these functions take the parsed form and the
session and return FT content or a redirect.
"""

import logging

from fasthtml.common import *

from auth import auth_service
from auth.session import clear_auth_session, login_user
from controllers.helpers import error_page, redirect, render
from services.errors import AuthenticationError, TokenError, ValidationError
from validators import AccountValidator, EmailForm, LoginForm, RegisterForm, ResetPasswordForm, validate_email
from views.auth import forgot_password_form, login_form, register_form, reset_password_form, verification_sent

logger = logging.getLogger(__name__)

RESTORED_MESSAGE = "Your previous account has been restored with all your data. Please log in."
RESEND_MESSAGE = "If that account exists and still needs verifying, a new link is on its way."
RESET_SENT_MESSAGE = "If an account exists for that email, a password reset link has been sent."


# =============================================================================
# Registration
# =============================================================================


def register_page(sess, user=None):
    if user:
        return redirect("/owner")
    return render("Sign up", register_form(sess), sess=sess)


def register_controller(form: RegisterForm, sess):
    errors = AccountValidator.validate_registration(form)
    if errors:
        return render("Sign up", register_form(sess, form.__dict__, errors), sess=sess, status_code=400)
    try:
        user, restored = auth_service.register_user(form.email.lower(), form.password)
    except ValidationError as e:
        return render("Sign up", register_form(sess, form.__dict__, e.messages), sess=sess, status_code=400)

    if restored:
        return redirect("/login", sess, RESTORED_MESSAGE)
    logger.info(f"✅ Registered user id={user['id']}")
    return redirect("/verification-sent")


def verification_sent_page(sess):
    return render("Check your inbox", verification_sent(sess), sess=sess)


def resend_verification_controller(form: EmailForm, sess):
    if not validate_email(form.email):
        auth_service.resend_verification(form.email.lower())
    return redirect("/verification-sent", sess, RESEND_MESSAGE, "info")


def verify_email_controller(token: str, sess):
    try:
        auth_service.verify_email(token or "")
    except TokenError as e:
        return error_page(400, sess, title="Verification failed", message=str(e))
    return redirect("/login", sess, "Your email has been verified. You can now log in.")


# =============================================================================
# Login / logout
# =============================================================================


def login_page(sess, user=None):
    if user:
        return redirect("/owner")
    return render("Log in", login_form(sess), sess=sess)


def login_controller(form: LoginForm, sess):
    try:
        user = auth_service.authenticate(form.email.lower(), form.password)
    except AuthenticationError as e:
        return render(
            "Log in",
            login_form(sess, {"email": form.email}, [str(e)]),
            sess=sess,
            status_code=401,
        )
    login_user(sess, user)
    return redirect("/owner", sess, "Enjoy adding to your armory!")


def logout_controller(sess):
    clear_auth_session(sess)
    return redirect("/", sess, "Come back soon!")


# =============================================================================
# Password recovery
# =============================================================================


def forgot_password_page(sess):
    return render("Reset password", forgot_password_form(sess), sess=sess)


def forgot_password_controller(form: EmailForm, sess):
    errors = validate_email(form.email)
    if errors:
        return render("Reset password", forgot_password_form(sess, form.__dict__, errors), sess=sess, status_code=400)
    auth_service.request_password_reset(form.email.lower())
    return redirect("/login", sess, RESET_SENT_MESSAGE, "info")


def reset_password_page(token: str, sess):
    try:
        auth_service.get_recovery_user(token or "")
    except TokenError as e:
        return error_page(400, sess, title="Password reset failed", message=str(e))
    return render("Choose a new password", reset_password_form(sess, token), sess=sess)


def reset_password_controller(form: ResetPasswordForm, sess):
    errors = AccountValidator.validate_reset(form)
    if not errors:
        try:
            auth_service.reset_password(form.token, form.password)
        except TokenError as e:
            errors = [str(e)]
    if errors:
        return render(
            "Choose a new password",
            reset_password_form(sess, form.token, errors),
            sess=sess,
            status_code=400,
        )
    return redirect("/login", sess, "Your password has been updated. Please log in.")
