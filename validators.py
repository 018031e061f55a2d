"""
Validation module for submitted forms.

Each form is a dataclass that FastHTML fills from the request body (all
fields are strings). A matching validator turns it into a list of error
messages and, when clean, a payload ready for the database layer.
"""

import logging
import re
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from constants import (
    LIFETIME_TIERS,
    MAX_NAME_LENGTH,
    PAID_TIERS,
    ROLE_ADMIN,
    ROLE_USER,
    TIER_FREE,
    TIER_PROMOTION,
)
from utils.dates import parse_date, utcnow
from utils.formatting import parse_money_to_cents

# Get logger instance
logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
SPECIAL_CHAR_RE = re.compile(r"""[!@#$%^&*()_+=\[\]{};':"\\|,.<>/?~-]""")


class _StrippedForm:
    """Mixin: strip surrounding whitespace from every string field."""

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str) and f.name not in ("password", "password_confirm"):
                setattr(self, f.name, value.strip())


def _checked(value: str) -> bool:
    return str(value).lower() in ("on", "true", "1", "yes")


def _parse_int(
    raw: str,
    label: str,
    errors: List[str],
    required: bool = False,
    minimum: Optional[int] = None,
) -> Optional[int]:
    if raw in ("", None):
        if required:
            errors.append(f"{label} is required")
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        errors.append(f"Invalid {label.lower()} value")
        return None
    if minimum is not None and value < minimum:
        errors.append(f"{label} cannot be negative")
        return None
    return value


def _parse_acquired(raw: str, errors: List[str]) -> Optional[date]:
    if not raw:
        return None
    acquired = parse_date(raw)
    if acquired is None:
        errors.append("Invalid acquired date")
    elif acquired > utcnow().date():
        errors.append("acquired date cannot be in the future")
        return None
    return acquired


# =============================================================================
# ACCOUNT FORMS
# =============================================================================


def validate_email(email: str) -> List[str]:
    if not EMAIL_RE.match(email or ""):
        return ["invalid email format"]
    return []


def validate_password(password: str) -> List[str]:
    """
    Check password strength. Stops at the first failing rule.

    Returns:
        List[str]: Zero or one error message.
    """
    password = password or ""
    if len(password) < 8:
        return ["password must be at least 8 characters long"]
    if not re.search(r"[A-Z]", password):
        return ["password must contain at least one uppercase letter"]
    if not re.search(r"[a-z]", password):
        return ["password must contain at least one lowercase letter"]
    if not re.search(r"[0-9]", password):
        return ["password must contain at least one digit"]
    if not SPECIAL_CHAR_RE.search(password):
        return ["password must contain at least one special character"]
    return []


@dataclass
class LoginForm(_StrippedForm):
    email: str = ""
    password: str = ""


@dataclass
class RegisterForm(_StrippedForm):
    email: str = ""
    password: str = ""
    password_confirm: str = ""


@dataclass
class EmailForm(_StrippedForm):
    """Single email field: forgot-password and resend-verification."""

    email: str = ""


@dataclass
class ResetPasswordForm(_StrippedForm):
    token: str = ""
    password: str = ""
    password_confirm: str = ""


@dataclass
class ProfileForm(_StrippedForm):
    email: str = ""


@dataclass
class ContactForm(_StrippedForm):
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""


class AccountValidator:
    """Validators for login, registration and password forms."""

    @classmethod
    def validate_registration(cls, form: RegisterForm) -> List[str]:
        errors = validate_email(form.email) + validate_password(form.password)
        if form.password_confirm and form.password != form.password_confirm:
            errors.append("passwords do not match")
        return errors

    @classmethod
    def validate_reset(cls, form: ResetPasswordForm) -> List[str]:
        errors = []
        if not form.token:
            errors.append("Invalid recovery token")
        errors += validate_password(form.password)
        if form.password_confirm and form.password != form.password_confirm:
            errors.append("passwords do not match")
        return errors

    @classmethod
    def validate_contact(cls, form: ContactForm) -> List[str]:
        errors = []
        for name in ("name", "subject", "message"):
            if not getattr(form, name):
                errors.append(f"{name.capitalize()} is required")
        errors += validate_email(form.email)
        return errors


# =============================================================================
# INVENTORY FORMS
# =============================================================================


@dataclass
class GunForm(_StrippedForm):
    name: str = ""
    serial_number: str = ""
    purpose: str = ""
    finish: str = ""
    acquired: str = ""
    weapon_type_id: str = ""
    caliber_id: str = ""
    manufacturer_id: str = ""
    paid: str = ""


@dataclass
class AmmoForm(_StrippedForm):
    name: str = ""
    acquired: str = ""
    brand_id: str = ""
    bullet_style_id: str = ""
    grain_id: str = ""
    caliber_id: str = ""
    casing_id: str = ""
    paid: str = ""
    count: str = ""
    expended: str = ""


def _validate_name(name: str, label: str, errors: List[str]) -> None:
    if not name:
        errors.append(f"{label} name is required")
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(f"{label} name exceeds maximum length of {MAX_NAME_LENGTH} characters")


def _parse_paid(raw: str, label: str, errors: List[str]) -> int:
    cents = parse_money_to_cents(raw)
    if cents is None:
        errors.append("Invalid price value")
        return 0
    if cents < 0:
        errors.append(f"{label} price cannot be negative")
        return 0
    return cents


class GunValidator:
    @classmethod
    def clean(cls, form: GunForm) -> Tuple[Dict[str, Any], List[str]]:
        """
        Validate a gun form.

        Returns:
            (payload, errors): payload holds typed column values; it is only
            meaningful when errors is empty. Reference ids are checked for
            existence by the inventory service.
        """
        errors: List[str] = []
        _validate_name(form.name, "gun", errors)
        acquired = _parse_acquired(form.acquired, errors)
        payload = {
            "name": form.name,
            "serial_number": form.serial_number,
            "purpose": form.purpose,
            "finish": form.finish,
            "acquired": acquired.isoformat() if acquired else None,
            "weapon_type_id": _parse_int(form.weapon_type_id, "Weapon type", errors, required=True),
            "caliber_id": _parse_int(form.caliber_id, "Caliber", errors, required=True),
            "manufacturer_id": _parse_int(
                form.manufacturer_id, "Manufacturer", errors, required=True
            ),
            "paid": _parse_paid(form.paid, "gun", errors),
        }
        return payload, errors


class AmmoValidator:
    @classmethod
    def clean(cls, form: AmmoForm) -> Tuple[Dict[str, Any], List[str]]:
        errors: List[str] = []
        _validate_name(form.name, "ammo", errors)
        acquired = _parse_acquired(form.acquired, errors)
        count = _parse_int(form.count, "Count", errors, minimum=0)
        expended = _parse_int(form.expended, "Expended", errors, minimum=0)
        count = count or 0
        expended = expended or 0
        if expended > count:
            errors.append("expended count cannot be greater than total count")
        payload = {
            "name": form.name,
            "acquired": acquired.isoformat() if acquired else None,
            "brand_id": _parse_int(form.brand_id, "Brand", errors, required=True),
            "bullet_style_id": _parse_int(form.bullet_style_id, "Bullet style", errors),
            "grain_id": _parse_int(form.grain_id, "Grain", errors),
            "caliber_id": _parse_int(form.caliber_id, "Caliber", errors, required=True),
            "casing_id": _parse_int(form.casing_id, "Casing", errors),
            "paid": _parse_paid(form.paid, "ammo", errors),
            "count": count,
            "expended": expended,
        }
        return payload, errors


# =============================================================================
# ADMIN FORMS
# =============================================================================


@dataclass
class PromotionForm(_StrippedForm):
    name: str = ""
    type: str = ""
    active: str = ""
    start_date: str = ""
    end_date: str = ""
    benefit_days: str = ""
    display_on_home: str = ""
    description: str = ""
    banner: str = ""


class PromotionValidator:
    @classmethod
    def clean(cls, form: PromotionForm) -> Tuple[Dict[str, Any], List[str]]:
        errors: List[str] = []
        if not form.name:
            errors.append("Name is required")
        if not form.type:
            errors.append("Type is required")
        start = parse_date(form.start_date)
        end = parse_date(form.end_date)
        if start is None:
            errors.append("Start date is required")
        if end is None:
            errors.append("End date is required")
        if start and end and end < start:
            errors.append("End date cannot be before start date")
        benefit_days = _parse_int(form.benefit_days, "Benefit days", errors, minimum=0)
        payload = {
            "name": form.name,
            "type": form.type,
            "active": _checked(form.active),
            "start_date": start.isoformat() if start else None,
            "end_date": end.isoformat() if end else None,
            "benefit_days": benefit_days or 0,
            "display_on_home": _checked(form.display_on_home),
            "description": form.description,
            "banner": form.banner,
        }
        return payload, errors


@dataclass
class GrantSubscriptionForm(_StrippedForm):
    subscription_type: str = ""
    grant_reason: str = ""
    duration_days: str = ""
    is_lifetime: str = ""


class GrantSubscriptionValidator:
    @classmethod
    def clean(cls, form: GrantSubscriptionForm) -> Tuple[Dict[str, Any], List[str]]:
        errors: List[str] = []
        if form.subscription_type not in PAID_TIERS:
            errors.append("Invalid subscription type")
        if not form.grant_reason:
            errors.append("Grant reason is required")
        days = _parse_int(form.duration_days, "Duration days", errors, minimum=0)
        is_lifetime = _checked(form.is_lifetime) or form.subscription_type in LIFETIME_TIERS
        return {
            "tier": form.subscription_type,
            "reason": form.grant_reason,
            "duration_days": days or 0,
            "is_lifetime": is_lifetime,
        }, errors


@dataclass
class AdminUserForm(_StrippedForm):
    email: str = ""
    role: str = ""
    verified: str = ""
    subscription_tier: str = ""
    subscription_status: str = ""


class AdminUserValidator:
    VALID_TIERS = (TIER_FREE, TIER_PROMOTION) + PAID_TIERS

    @classmethod
    def clean(cls, form: AdminUserForm) -> Tuple[Dict[str, Any], List[str]]:
        errors = validate_email(form.email)
        role = form.role or ROLE_USER
        if role not in (ROLE_USER, ROLE_ADMIN):
            errors.append("Invalid role")
        tier = form.subscription_tier or TIER_FREE
        if tier not in cls.VALID_TIERS:
            errors.append("Invalid subscription tier")
        return {
            "email": form.email.lower(),
            "role": role,
            "verified": _checked(form.verified),
            "subscription_tier": tier,
            "subscription_status": form.subscription_status,
        }, errors
