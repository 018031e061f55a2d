from datetime import timedelta

import pytest

from utils.dates import utcnow
from validators import (
    AccountValidator,
    AdminUserForm,
    AdminUserValidator,
    AmmoForm,
    AmmoValidator,
    ContactForm,
    GrantSubscriptionForm,
    GrantSubscriptionValidator,
    GunForm,
    GunValidator,
    PromotionForm,
    PromotionValidator,
    RegisterForm,
    ResetPasswordForm,
    validate_email,
    validate_password,
)


@pytest.mark.parametrize(
    "password,message",
    [
        ("Ab1!", "password must be at least 8 characters long"),
        ("abcdefg1!", "password must contain at least one uppercase letter"),
        ("ABCDEFG1!", "password must contain at least one lowercase letter"),
        ("Abcdefgh!", "password must contain at least one digit"),
        ("Abcdefgh1", "password must contain at least one special character"),
    ],
)
def test_password_rules_stop_at_first_failure(password, message):
    assert validate_password(password) == [message]


def test_strong_password_passes():
    assert validate_password("Str0ng!Pass") == []


@pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@sub.example.org"])
def test_valid_emails(email):
    assert validate_email(email) == []


@pytest.mark.parametrize("email", ["", "plain", "a@b", "a@b.c", "a b@c.com"])
def test_invalid_emails(email):
    assert validate_email(email) == ["invalid email format"]


def test_registration_reports_mismatched_passwords():
    form = RegisterForm(email="a@b.co", password="Str0ng!Pass", password_confirm="Other!Pass1")
    assert AccountValidator.validate_registration(form) == ["passwords do not match"]


def test_form_fields_are_stripped_but_passwords_kept():
    form = RegisterForm(email="  a@b.co ", password=" Str0ng!Pass ", password_confirm=" Str0ng!Pass ")
    assert form.email == "a@b.co"
    assert form.password == " Str0ng!Pass "


def test_reset_requires_token():
    form = ResetPasswordForm(token="", password="Str0ng!Pass", password_confirm="Str0ng!Pass")
    assert AccountValidator.validate_reset(form) == ["Invalid recovery token"]


def test_contact_requires_every_field():
    errors = AccountValidator.validate_contact(ContactForm(email="bad"))
    assert errors == ["Name is required", "Subject is required", "Message is required", "invalid email format"]


# --- Guns ---
def _gun_form(**overrides):
    values = dict(name="Model 19", manufacturer_id="1", caliber_id="2", weapon_type_id="3", paid="549.99")
    values.update(overrides)
    return GunForm(**values)


def test_gun_clean_builds_payload():
    payload, errors = GunValidator.clean(_gun_form(acquired="2020-05-01"))
    assert errors == []
    assert payload["name"] == "Model 19"
    assert payload["manufacturer_id"] == 1
    assert payload["paid"] == 54999
    assert payload["acquired"] == "2020-05-01"


def test_gun_name_required_and_capped():
    _, errors = GunValidator.clean(_gun_form(name=""))
    assert "gun name is required" in errors
    _, errors = GunValidator.clean(_gun_form(name="x" * 101))
    assert "gun name exceeds maximum length of 100 characters" in errors


def test_gun_rejects_future_acquired_date():
    tomorrow = (utcnow() + timedelta(days=2)).date().isoformat()
    _, errors = GunValidator.clean(_gun_form(acquired=tomorrow))
    assert "acquired date cannot be in the future" in errors


def test_gun_rejects_negative_price():
    _, errors = GunValidator.clean(_gun_form(paid="-5"))
    assert "gun price cannot be negative" in errors


# --- Ammo ---
def _ammo_form(**overrides):
    values = dict(name="Range box", brand_id="1", caliber_id="1", count="50", expended="10", paid="19.99")
    values.update(overrides)
    return AmmoForm(**values)


def test_ammo_clean_builds_payload():
    payload, errors = AmmoValidator.clean(_ammo_form())
    assert errors == []
    assert payload["count"] == 50
    assert payload["expended"] == 10
    assert payload["bullet_style_id"] is None


def test_ammo_expended_cannot_exceed_count():
    _, errors = AmmoValidator.clean(_ammo_form(count="5", expended="6"))
    assert "expended count cannot be greater than total count" in errors


def test_ammo_requires_brand_and_caliber():
    _, errors = AmmoValidator.clean(_ammo_form(brand_id="", caliber_id=""))
    assert "Brand is required" in errors
    assert "Caliber is required" in errors


# --- Admin forms ---
def test_promotion_end_before_start():
    form = PromotionForm(name="Launch", type="launch", start_date="2025-02-01", end_date="2025-01-01")
    _, errors = PromotionValidator.clean(form)
    assert errors == ["End date cannot be before start date"]


def test_promotion_checkboxes():
    form = PromotionForm(
        name="Launch", type="launch", start_date="2025-01-01", end_date="2025-02-01",
        active="on", display_on_home="", benefit_days="30",
    )
    payload, errors = PromotionValidator.clean(form)
    assert errors == []
    assert payload["active"] is True
    assert payload["display_on_home"] is False
    assert payload["benefit_days"] == 30


def test_grant_lifetime_tier_implies_lifetime():
    form = GrantSubscriptionForm(subscription_type="lifetime", grant_reason="Beta tester")
    payload, errors = GrantSubscriptionValidator.clean(form)
    assert errors == []
    assert payload["is_lifetime"] is True


def test_grant_rejects_unknown_tier():
    _, errors = GrantSubscriptionValidator.clean(GrantSubscriptionForm(subscription_type="gold", grant_reason="x"))
    assert "Invalid subscription type" in errors


def test_admin_user_form_defaults():
    payload, errors = AdminUserValidator.clean(AdminUserForm(email="New@Example.com"))
    assert errors == []
    assert payload["email"] == "new@example.com"
    assert payload["role"] == "user"
    assert payload["subscription_tier"] == "free"
