"""
errors.py
---------
Custom exception hierarchy for the armory services.
"""

from typing import Iterable, List, Union


class ArmoryError(Exception):
    """Base exception for application errors."""


class ValidationError(ArmoryError):
    """Raised when submitted data fails validation."""

    def __init__(self, messages: Union[str, Iterable[str]]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))


class NotFoundError(ArmoryError):
    """Raised when a requested record does not exist (or is not visible)."""


class AuthenticationError(ArmoryError):
    """Raised when credentials are rejected."""


class AccountLockedError(AuthenticationError):
    """Raised when too many failed logins have locked the account."""


class EmailNotVerifiedError(AuthenticationError):
    """Raised when an unverified account tries to log in."""


class TokenError(ArmoryError):
    """Raised for unknown or expired verification/recovery tokens."""


class DatabaseError(ArmoryError):
    """Raised when the Supabase client fails or is not configured."""


class PaymentError(ArmoryError):
    """Raised when a Stripe operation fails."""


class EmailError(ArmoryError):
    """Raised when Mailjet rejects a message."""


class EmailNotConfiguredError(EmailError):
    """Raised when Mailjet credentials or the base URL are missing."""
