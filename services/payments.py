"""
Payment records written by the Stripe webhook and shown in payment history.
"""

import logging
from typing import Any, Dict, List

import db
from constants import PAYMENTS_TABLE, USERS_TABLE
from utils.pagination import ListParams

logger = logging.getLogger(__name__)


def create_payment(
    user_id: int,
    amount: int,
    currency: str,
    payment_type: str,
    status: str,
    description: str,
    stripe_id: str,
) -> Dict[str, Any]:
    """Record a payment. Amount is in cents."""
    row = db.insert_row(
        PAYMENTS_TABLE,
        {
            "user_id": user_id,
            "amount": amount,
            "currency": currency or "usd",
            "payment_type": payment_type,
            "status": status,
            "description": description,
            "stripe_id": stripe_id,
        },
    )
    logger.info(f"Recorded {payment_type} payment of {amount} cents for user id={user_id}")
    return row


def payment_exists(stripe_id: str) -> bool:
    """Stripe retries webhooks; a stripe_id is only recorded once."""
    return bool(stripe_id) and db.find_row(PAYMENTS_TABLE, stripe_id=stripe_id) is not None


def list_user_payments(user_id: int) -> List[Dict[str, Any]]:
    return db.select_rows(
        PAYMENTS_TABLE, filters={"user_id": user_id}, order=(("created_at", True),)
    ).rows


def list_all_payments(params: ListParams) -> db.QueryResult:
    result = db.select_rows(
        PAYMENTS_TABLE,
        order=(("created_at", True),),
        limit=params.per_page,
        offset=params.offset,
    )
    user_ids = sorted({p["user_id"] for p in result.rows if p.get("user_id") is not None})
    emails = {}
    if user_ids:
        users = db.select_rows(USERS_TABLE, filters={"id__in": user_ids}, include_deleted=True).rows
        emails = {u["id"]: u.get("email") for u in users}
    for payment in result.rows:
        payment["user_email"] = emails.get(payment.get("user_id"), "")
    return result
