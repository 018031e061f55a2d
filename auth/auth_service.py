"""
Account authentication service.
Handles registration, login with lockout, email verification, email change
and password recovery. Emails are sent through services.email_service; a
failed send is logged and never undoes the account change.
"""

import logging
import secrets
from typing import Any, Dict, Optional, Tuple

from auth.passwords import hash_password, needs_rehash, verify_password
from constants import TOKEN_BYTES, TOKEN_LIFETIME
from services import email_service, promotions, users
from services.errors import (
    AccountLockedError,
    AuthenticationError,
    EmailError,
    EmailNotVerifiedError,
    TokenError,
    ValidationError,
)
from utils.dates import parse_datetime, utcnow

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_LOCKED = "Account locked due to too many failed attempts. Try again later."
EMAIL_NOT_VERIFIED = "Please verify your email before logging in"


def issue_token() -> Tuple[str, str]:
    """A fresh URL-safe token and its expiry timestamp."""
    now = utcnow()
    return secrets.token_urlsafe(TOKEN_BYTES), (now + TOKEN_LIFETIME).isoformat()


def _token_expired(expiry: Any) -> bool:
    expires_at = parse_datetime(expiry)
    return expires_at is None or utcnow() > expires_at


def _send(send_fn, email: str, token: str) -> bool:
    try:
        send_fn(email, token)
        return True
    except EmailError as e:
        logger.error(f"❌ Could not send {send_fn.__name__} to user: {e}")
        return False


# =============================================================================
# Registration
# =============================================================================


def register_user(email: str, password: str) -> Tuple[Dict[str, Any], bool]:
    """
    Create an account, or restore a soft-deleted one with the same email.

    Returns:
        (user, restored): restored is True when a deleted account came back.

    Raises:
        ValidationError: the email belongs to an active account.
    """
    existing = users.get_user_by_email(email, include_deleted=True)
    password_hash = hash_password(password)

    if existing is not None and existing.get("deleted_at") is None:
        raise ValidationError("Email already registered")

    if existing is not None:
        user = users.restore_user(
            existing["id"],
            {"password_hash": password_hash, "login_attempts": 0},
        )
        logger.info(f"✅ Restored deleted account id={existing['id']} on registration")
        return user, True

    token, expiry = issue_token()
    extra: Dict[str, Any] = {
        "verification_token": token,
        "verification_token_expiry": expiry,
        "verification_sent_at": utcnow().isoformat(),
    }
    promotion = promotions.get_best_active_promotion()
    if promotion is not None:
        extra.update(promotions.promotion_subscription_fields(promotion))
        logger.info(f"Applying promotion id={promotion['id']} to new account")

    user = users.create_user(email, password_hash, **extra)
    _send(email_service.send_verification_email, user["email"], token)
    return user, False


# =============================================================================
# Login
# =============================================================================


def authenticate(email: str, password: str) -> Dict[str, Any]:
    """
    Check credentials and return the user.

    Raises:
        AccountLockedError: too many recent failures.
        AuthenticationError: unknown email or wrong password.
        EmailNotVerifiedError: credentials are right but the email is unverified.
    """
    user = users.get_user_by_email(email)
    if user is None:
        logger.warning("Login attempt for unknown email")
        raise AuthenticationError(INVALID_CREDENTIALS)

    if users.is_locked(user):
        logger.warning(f"Login attempt on locked account id={user['id']}")
        raise AccountLockedError(ACCOUNT_LOCKED)

    if not verify_password(user.get("password_hash"), password):
        users.record_failed_login(user)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not user.get("verified"):
        raise EmailNotVerifiedError(EMAIL_NOT_VERIFIED)

    changes = {}
    if needs_rehash(user["password_hash"]):
        changes["password_hash"] = hash_password(password)
    user = users.record_successful_login(user)
    if changes:
        user = users.update_user(user["id"], changes)
    logger.info(f"✅ User id={user['id']} logged in")
    return user


# =============================================================================
# Email verification
# =============================================================================


def verify_email(token: str) -> Dict[str, Any]:
    """Mark the account verified; a pending email change becomes the email."""
    user = users.get_user_by_token("verification_token", token)
    if user is None:
        raise TokenError("Invalid verification token")
    if _token_expired(user.get("verification_token_expiry")):
        raise TokenError("Verification token has expired")

    changes: Dict[str, Any] = {
        "verified": True,
        "verification_token": None,
        "verification_token_expiry": None,
    }
    if user.get("pending_email"):
        changes["email"] = user["pending_email"]
        changes["pending_email"] = None
    logger.info(f"✅ Verified email for user id={user['id']}")
    return users.update_user(user["id"], changes)


def resend_verification(email: str) -> None:
    """Reissue the verification token. Silent when there is nothing to do."""
    user = users.get_user_by_email(email)
    if user is None or user.get("verified"):
        return
    token, expiry = issue_token()
    users.update_user(
        user["id"],
        {
            "verification_token": token,
            "verification_token_expiry": expiry,
            "verification_sent_at": utcnow().isoformat(),
        },
    )
    _send(email_service.send_verification_email, user["email"], token)


def request_email_change(user: Dict[str, Any], new_email: str) -> Dict[str, Any]:
    """
    Store new_email as pending and mail a verification link to it.

    Raises:
        ValidationError: unchanged email, or another account uses it.
    """
    new_email = users.normalize_email(new_email)
    if new_email == user.get("email"):
        raise ValidationError("New email is the same as the current email")
    other = users.get_user_by_email(new_email, include_deleted=True)
    if other is not None and other["id"] != user["id"]:
        raise ValidationError("Email already registered")

    token, expiry = issue_token()
    updated = users.update_user(
        user["id"],
        {
            "pending_email": new_email,
            "verification_token": token,
            "verification_token_expiry": expiry,
            "verification_sent_at": utcnow().isoformat(),
        },
    )
    _send(email_service.send_email_change_verification, new_email, token)
    return updated


# =============================================================================
# Password recovery
# =============================================================================


def request_password_reset(email: str) -> None:
    """Issue a recovery token. Callers answer the same way whether or not the email exists."""
    user = users.get_user_by_email(email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return
    token, expiry = issue_token()
    users.update_user(
        user["id"],
        {
            "recovery_token": token,
            "recovery_token_expiry": expiry,
            "recovery_sent_at": utcnow().isoformat(),
        },
    )
    _send(email_service.send_password_reset_email, user["email"], token)


def get_recovery_user(token: str) -> Dict[str, Any]:
    user = users.get_user_by_token("recovery_token", token)
    if user is None:
        raise TokenError("Invalid recovery token")
    if _token_expired(user.get("recovery_token_expiry")):
        raise TokenError("Recovery token has expired")
    return user


def reset_password(token: str, password: str) -> Dict[str, Any]:
    user = get_recovery_user(token)
    logger.info(f"Password reset for user id={user['id']}")
    return users.update_user(
        user["id"],
        {
            "password_hash": hash_password(password),
            "recovery_token": None,
            "recovery_token_expiry": None,
            "login_attempts": 0,
        },
    )


def load_session_user(user_id: Optional[int]) -> Optional[Dict[str, Any]]:
    """The active user behind a session, or None when it no longer exists."""
    if user_id is None:
        return None
    return users.get_user(user_id)
