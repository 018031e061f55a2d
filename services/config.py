# services/config.py
import os
from dataclasses import dataclass, field
from typing import Tuple


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class AppConfig:
    """General application settings."""

    app_base_url: str = field(
        default_factory=lambda: os.getenv("APP_BASE_URL", "http://localhost:5001").rstrip("/")
    )
    session_secret: str = field(default_factory=lambda: os.getenv("SESSION_SECRET", ""))
    admin_emails: Tuple[str, ...] = field(
        default_factory=lambda: _split_csv(os.getenv("ADMIN_EMAILS", ""))
    )
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))


@dataclass(frozen=True)
class StripeConfig:
    """Configuration for Stripe checkout, webhooks and the IP filter."""

    secret_key: str = field(default_factory=lambda: os.getenv("STRIPE_SECRET_KEY", ""))
    webhook_secret: str = field(
        default_factory=lambda: os.getenv("STRIPE_WEBHOOK_SECRET", "")
    )
    price_monthly: str = field(default_factory=lambda: os.getenv("STRIPE_PRICE_MONTHLY", ""))
    price_yearly: str = field(default_factory=lambda: os.getenv("STRIPE_PRICE_YEARLY", ""))
    price_lifetime: str = field(
        default_factory=lambda: os.getenv("STRIPE_PRICE_LIFETIME", "")
    )
    price_premium_lifetime: str = field(
        default_factory=lambda: os.getenv("STRIPE_PRICE_PREMIUM_LIFETIME", "")
    )
    ip_filter_enabled: bool = field(
        default_factory=lambda: os.getenv("STRIPE_IP_FILTER_ENABLED", "") == "true"
    )
    override_secret: str = field(
        default_factory=lambda: os.getenv("STRIPE_OVERRIDE_SECRET", "")
    )

    def product_for_tier(self, tier: str) -> str:
        return {
            "monthly": self.price_monthly,
            "yearly": self.price_yearly,
            "lifetime": self.price_lifetime,
            "premium_lifetime": self.price_premium_lifetime,
        }.get(tier, "")


@dataclass(frozen=True)
class MailConfig:
    """Mailjet credentials and sender identity."""

    api_key: str = field(default_factory=lambda: os.getenv("MAILJET_API_KEY", ""))
    secret_key: str = field(default_factory=lambda: os.getenv("MAILJET_SECRET_KEY", ""))
    sender_email: str = field(
        default_factory=lambda: os.getenv("MAILJET_SENDER_EMAIL", "")
    )
    sender_name: str = field(
        default_factory=lambda: os.getenv("MAILJET_SENDER_NAME", "The Virtual Armory")
    )
    admin_email: str = field(default_factory=lambda: os.getenv("ADMIN_EMAIL", ""))

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.secret_key and self.sender_email)


# Built on each call so tests can change the environment with monkeypatch.
def get_app_config() -> AppConfig:
    return AppConfig()


def get_stripe_config() -> StripeConfig:
    return StripeConfig()


def get_mail_config() -> MailConfig:
    return MailConfig()
