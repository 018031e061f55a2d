"""
Account pages: login, registration, verification and password recovery.
"""

from fasthtml.common import *
from monsterui.all import *

from components import CsrfInput, FormCard, TextField


def login_form(sess, values=None, errors=None):
    return Div(
        FormCard(
            "Log in to your armory",
            TextField("Email", "email", values, type="email", required=True),
            TextField("Password", "password", type="password", required=True),
            action="/login",
            sess=sess,
            submit_label="Log in",
            errors=errors,
        ),
        Div(
            A("Forgot your password?", href="/forgot-password", cls="text-sm text-red-700 hover:underline"),
            Span(" · ", cls="text-gray-400"),
            A("Create an account", href="/register", cls="text-sm text-red-700 hover:underline"),
            cls="text-center",
        ),
    )


def register_form(sess, values=None, errors=None):
    return FormCard(
        "Create your account",
        TextField("Email", "email", values, type="email", required=True),
        TextField("Password", "password", type="password", required=True),
        TextField("Confirm password", "password_confirm", type="password", required=True),
        P(
            "At least 8 characters with an uppercase letter, a lowercase letter, a digit and a special character.",
            cls="text-xs text-gray-500",
        ),
        action="/register",
        sess=sess,
        submit_label="Sign up",
        errors=errors,
        subtitle="Free accounts track 2 guns and 4 ammunition items.",
    )


def verification_sent(sess):
    return Card(
        H2("Check your inbox", cls="text-2xl font-bold mb-2"),
        P("We sent a verification link to your email address. It expires in one hour."),
        P("Didn't get it? Request a new one:", cls="mt-4 text-sm text-gray-600"),
        Form(
            CsrfInput(sess),
            Input(type="email", name="email", placeholder="you@example.com", required=True, cls="uk-input"),
            Button("Resend verification email", type="submit", cls=ButtonT.secondary),
            method="post",
            action="/resend-verification",
            cls="flex gap-2 mt-2",
        ),
        cls="max-w-lg mx-auto my-12 p-8",
    )


def forgot_password_form(sess, values=None, errors=None):
    return FormCard(
        "Reset your password",
        TextField("Email", "email", values, type="email", required=True),
        action="/reset-password/new",
        sess=sess,
        submit_label="Send reset link",
        errors=errors,
        subtitle="Enter the email you signed up with and we'll send you a reset link.",
    )


def reset_password_form(sess, token: str, errors=None):
    return FormCard(
        "Choose a new password",
        Input(type="hidden", name="token", value=token),
        TextField("New password", "password", type="password", required=True),
        TextField("Confirm password", "password_confirm", type="password", required=True),
        action="/reset-password",
        sess=sess,
        submit_label="Update password",
        errors=errors,
    )
