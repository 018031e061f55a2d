"""
Transactional email through the Mailjet v3.1 send API.
"""

import logging
from html import escape
from typing import Optional

import requests

from constants import MAILJET_SEND_URL
from services.config import get_app_config, get_mail_config
from services.errors import EmailError, EmailNotConfiguredError

logger = logging.getLogger(__name__)


def send_email(
    to_email: str,
    subject: str,
    text_part: str,
    html_part: str,
    reply_to: Optional[str] = None,
) -> None:
    """Send one message via Mailjet.

    Raises:
        EmailNotConfiguredError: credentials or sender are missing.
        EmailError: Mailjet rejected the message or could not be reached.
    """
    config = get_mail_config()
    if not config.configured:
        raise EmailNotConfiguredError("Email service is not configured")

    message = {
        "From": {"Email": config.sender_email, "Name": config.sender_name},
        "To": [{"Email": to_email}],
        "Subject": subject,
        "TextPart": text_part,
        "HTMLPart": html_part,
    }
    if reply_to:
        message["ReplyTo"] = {"Email": reply_to}

    try:
        response = requests.post(
            MAILJET_SEND_URL,
            auth=(config.api_key, config.secret_key),
            json={"Messages": [message]},
            timeout=10,
        )
    except requests.RequestException as e:
        logger.error(f"Mailjet request failed: {e}")
        raise EmailError("Failed to send email") from e

    if response.status_code >= 300:
        logger.error(f"Mailjet returned HTTP {response.status_code}: {response.text[:200]}")
        raise EmailError(f"Failed to send email (HTTP {response.status_code})")
    logger.info(f"Sent '{subject}' email")


def _base_url() -> str:
    base_url = get_app_config().app_base_url
    if not base_url:
        raise EmailNotConfiguredError("APP_BASE_URL is not set")
    return base_url


def send_verification_email(email: str, token: str) -> None:
    link = f"{_base_url()}/verify-email?token={token}"
    send_email(
        email,
        "Verify your Virtual Armory account",
        f"Please verify your account by clicking this link: {link}",
        f"""
            <h3>Welcome to Virtual Armory!</h3>
            <p>Please verify your account by clicking the link below:</p>
            <p><a href="{link}">Verify Account</a></p>
            <p>If you did not create this account, please ignore this email.</p>
        """,
    )


def send_email_change_verification(email: str, token: str) -> None:
    link = f"{_base_url()}/verify-email?token={token}"
    send_email(
        email,
        "Verify your new email address for Virtual Armory",
        f"Please verify your new email address by clicking this link: {link}",
        f"""
            <h3>Confirm your new email address</h3>
            <p>Please verify your new email address by clicking the link below:</p>
            <p><a href="{link}">Verify New Email Address</a></p>
            <p>If you did not request this change, please ignore this email.</p>
        """,
    )


def send_password_reset_email(email: str, token: str) -> None:
    link = f"{_base_url()}/reset-password?token={token}"
    send_email(
        email,
        "Reset your Virtual Armory password",
        f"Reset your password by clicking this link: {link}",
        f"""
            <h3>Password reset</h3>
            <p>Click the link below to choose a new password. It expires in one hour.</p>
            <p><a href="{link}">Reset Password</a></p>
            <p>If you did not request a reset, please ignore this email.</p>
        """,
    )


def send_contact_email(name: str, email: str, subject: str, message: str) -> None:
    admin_email = get_mail_config().admin_email
    if not admin_email:
        raise EmailNotConfiguredError("ADMIN_EMAIL is not set")
    send_email(
        admin_email,
        f"Contact Form: {subject}",
        f"Name: {name}\nEmail: {email}\nSubject: {subject}\nMessage: {message}",
        f"""
            <h3>New contact form submission</h3>
            <p><strong>Name:</strong> {escape(name)}</p>
            <p><strong>Email:</strong> {escape(email)}</p>
            <p><strong>Subject:</strong> {escape(subject)}</p>
            <p><strong>Message:</strong></p>
            <p>{escape(message)}</p>
        """,
        reply_to=email,
    )
