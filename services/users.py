"""
User persistence plus the subscription and lockout rules that apply to a
user row. Rows are plain dicts as returned by Supabase.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import db
from constants import (
    AMMO_TABLE,
    GUNS_TABLE,
    LIFETIME_TIERS,
    LOCKOUT_DURATION,
    MAX_LOGIN_ATTEMPTS,
    ROLE_ADMIN,
    ROLE_USER,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_PENDING_CANCELLATION,
    TIER_FREE,
    TIER_LIFETIME,
    TIER_MONTHLY,
    TIER_PREMIUM_LIFETIME,
    TIER_YEARLY,
    USER_SORT_FIELDS,
    USERS_TABLE,
)
from services.config import get_app_config
from services.errors import NotFoundError, ValidationError
from utils.dates import add_months, parse_datetime, start_of_month, utcnow
from utils.pagination import ListParams

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# =============================================================================
# Lookups
# =============================================================================


def get_user(user_id: Optional[int], include_deleted: bool = False) -> Optional[Dict[str, Any]]:
    if user_id is None:
        return None
    return db.get_row(USERS_TABLE, int(user_id), include_deleted=include_deleted)


def get_user_by_email(email: str, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
    return db.find_row(USERS_TABLE, include_deleted=include_deleted, email=normalize_email(email))


def get_user_by_stripe_customer(customer_id: str) -> Optional[Dict[str, Any]]:
    if not customer_id:
        return None
    return db.find_row(USERS_TABLE, stripe_customer_id=customer_id)


def get_user_by_token(column: str, token: str) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    return db.find_row(USERS_TABLE, **{column: token})


def create_user(email: str, password_hash: str, **extra: Any) -> Dict[str, Any]:
    payload = {
        "email": normalize_email(email),
        "password_hash": password_hash,
        "verified": False,
        "role": ROLE_USER,
        "login_attempts": 0,
        "subscription_tier": TIER_FREE,
        "subscription_status": "",
        "is_admin_granted": False,
        "is_lifetime": False,
        **extra,
    }
    user = db.insert_row(USERS_TABLE, payload)
    logger.info(f"Created user id={user.get('id')}")
    return user


def update_user(user_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    user = db.update_row(USERS_TABLE, user_id, changes)
    if user is None:
        raise NotFoundError("User not found")
    return user


# =============================================================================
# Roles
# =============================================================================


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    if not user:
        return False
    if user.get("role") == ROLE_ADMIN:
        return True
    return normalize_email(user.get("email")) in get_app_config().admin_emails


def promote_admin(email: str) -> Dict[str, Any]:
    user = get_user_by_email(email)
    if user is None:
        raise NotFoundError(f"No user with email {email}")
    return update_user(user["id"], {"role": ROLE_ADMIN})


# =============================================================================
# Login lockout
# =============================================================================


def is_locked(user: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """Locked while attempts >= MAX_LOGIN_ATTEMPTS and the last attempt is recent."""
    if (user.get("login_attempts") or 0) < MAX_LOGIN_ATTEMPTS:
        return False
    last = parse_datetime(user.get("last_login_attempt"))
    if last is None:
        return False
    return (now or utcnow()) < last + LOCKOUT_DURATION


def record_failed_login(user: Dict[str, Any]) -> Dict[str, Any]:
    attempts = (user.get("login_attempts") or 0) + 1
    if attempts >= MAX_LOGIN_ATTEMPTS:
        logger.warning(f"User id={user['id']} locked after {attempts} failed logins")
    return update_user(
        user["id"],
        {"login_attempts": attempts, "last_login_attempt": utcnow().isoformat()},
    )


def record_successful_login(user: Dict[str, Any]) -> Dict[str, Any]:
    stamp = utcnow().isoformat()
    return update_user(
        user["id"],
        {"login_attempts": 0, "last_login_attempt": stamp, "last_login": stamp},
    )


# =============================================================================
# Subscriptions
# =============================================================================


def has_active_subscription(user: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> bool:
    """
    Whether the user currently enjoys paid features.

    - free: never
    - lifetime / premium_lifetime (or an admin lifetime grant): always
    - otherwise: status active (or pending cancellation) and the end date
      missing or still in the future
    """
    if not user:
        return False
    tier = user.get("subscription_tier") or TIER_FREE
    if tier == TIER_FREE:
        return False
    if tier in LIFETIME_TIERS or user.get("is_lifetime"):
        return True
    if user.get("subscription_status") not in (STATUS_ACTIVE, STATUS_PENDING_CANCELLATION):
        return False
    end = parse_datetime(user.get("subscription_end_date"))
    return end is None or end > (now or utcnow())


def expire_subscription_if_ended(user: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Drop a lapsed subscription back to the free tier.

    Paid and promotion subscriptions whose end date has passed become
    status expired, tier free, no end date. Free, lifetime and already
    expired users are returned untouched.
    """
    tier = user.get("subscription_tier") or TIER_FREE
    if tier == TIER_FREE or tier in LIFETIME_TIERS or user.get("is_lifetime"):
        return user
    if user.get("subscription_status") == STATUS_EXPIRED:
        return user
    end = parse_datetime(user.get("subscription_end_date"))
    if end is None or end > (now or utcnow()):
        return user

    updated = update_user(
        user["id"],
        {
            "subscription_status": STATUS_EXPIRED,
            "subscription_tier": TIER_FREE,
            "subscription_end_date": None,
        },
    )
    logger.info(f"Expired {tier} subscription for user id={user['id']}")
    return updated


def can_subscribe_to_tier(current_tier: Optional[str], target_tier: str) -> bool:
    """Upgrade matrix: a tier can only move to a strictly better one."""
    current = current_tier or TIER_FREE
    if current == TIER_FREE:
        return True
    if current == TIER_MONTHLY:
        return target_tier != TIER_MONTHLY
    if current == TIER_YEARLY:
        return target_tier not in (TIER_MONTHLY, TIER_YEARLY)
    if current == TIER_LIFETIME:
        return target_tier == TIER_PREMIUM_LIFETIME
    if current == TIER_PREMIUM_LIFETIME:
        return False
    return True


def grant_end_date(
    tier: str, duration_days: int, is_lifetime: bool, now: Optional[datetime] = None
) -> Optional[datetime]:
    """End date for an admin grant. None means it never expires."""
    now = now or utcnow()
    if is_lifetime or tier in LIFETIME_TIERS:
        return None
    if duration_days > 0:
        return now + timedelta(days=duration_days)
    if tier == TIER_YEARLY:
        return add_months(now, 12)
    return add_months(now, 1)


def grant_subscription(
    user_id: int,
    admin_id: Optional[int],
    tier: str,
    reason: str,
    duration_days: int = 0,
    is_lifetime: bool = False,
) -> Dict[str, Any]:
    end = grant_end_date(tier, duration_days, is_lifetime)
    changes = {
        "subscription_tier": tier,
        "subscription_status": STATUS_ACTIVE,
        "subscription_end_date": end.isoformat() if end else None,
        "is_admin_granted": True,
        "granted_by_id": admin_id,
        "grant_reason": reason,
        "is_lifetime": is_lifetime or tier in LIFETIME_TIERS,
    }
    user = update_user(user_id, changes)
    logger.info(f"Admin id={admin_id} granted {tier} to user id={user_id}")
    return user


# =============================================================================
# Account lifecycle
# =============================================================================


def soft_delete_user(user_id: int) -> None:
    """Soft-delete the user together with their guns and ammunition."""
    stamp = db.now_iso()
    if not db.soft_delete_row(USERS_TABLE, user_id, stamp=stamp):
        raise NotFoundError("User not found")
    guns = db.soft_delete_where(GUNS_TABLE, {"owner_id": user_id}, stamp=stamp)
    ammo = db.soft_delete_where(AMMO_TABLE, {"owner_id": user_id}, stamp=stamp)
    logger.info(f"Soft-deleted user id={user_id} ({guns} guns, {ammo} ammo)")


def restore_user(user_id: int, changes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Bring back a soft-deleted user with their guns and ammunition."""
    user = get_user(user_id, include_deleted=True)
    if user is None:
        raise NotFoundError("User not found")
    if user.get("deleted_at") is None:
        raise ValidationError("User is not deleted")
    deleted_at = user["deleted_at"]
    restored = db.restore_row(USERS_TABLE, user_id, changes)
    # Inventory removed together with the account shares its deletion stamp
    for table in (GUNS_TABLE, AMMO_TABLE):
        rows = db.select_rows(
            table,
            filters={"owner_id": user_id, "deleted_at": deleted_at},
            include_deleted=True,
        ).rows
        for row in rows:
            db.restore_row(table, row["id"])
    logger.info(f"Restored user id={user_id}")
    return restored


# =============================================================================
# Admin listings and statistics
# =============================================================================


def list_users(params: ListParams, include_deleted: bool = True) -> db.QueryResult:
    sort_by = params.sort_by if params.sort_by in USER_SORT_FIELDS else "created_at"
    return db.select_rows(
        USERS_TABLE,
        order=((sort_by, params.descending),),
        limit=params.per_page,
        offset=params.offset,
        search=("email", params.search),
        include_deleted=include_deleted,
    )


def count_users() -> int:
    return db.count_rows(USERS_TABLE)


def _subscriber_filters() -> Dict[str, Any]:
    return {
        "subscription_status": STATUS_ACTIVE,
        "is_admin_granted": False,
        "subscription_tier__neq": TIER_FREE,
    }


def count_active_subscribers() -> int:
    """Paying subscribers only; admin grants are excluded."""
    return db.count_rows(USERS_TABLE, _subscriber_filters())


def count_new_users(since: datetime, until: Optional[datetime] = None) -> int:
    filters: Dict[str, Any] = {"created_at__gte": since.isoformat()}
    if until is not None:
        filters["created_at__lt"] = until.isoformat()
    return db.count_rows(USERS_TABLE, filters)


def count_new_subscribers(since: datetime, until: Optional[datetime] = None) -> int:
    filters = {**_subscriber_filters(), "updated_at__gte": since.isoformat()}
    if until is not None:
        filters["updated_at__lt"] = until.isoformat()
    return db.count_rows(USERS_TABLE, filters)


def month_bounds(now: Optional[datetime] = None):
    """(start of last month, start of this month)."""
    this_month = start_of_month(now)
    return add_months(this_month, -1), this_month
