"""
Promotions: time-boxed offers that grant free subscription days to new
registrations and can be advertised on the home page.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import db
from constants import PROMOTIONS_TABLE, STATUS_ACTIVE, TIER_PROMOTION
from services.errors import NotFoundError
from utils.dates import parse_datetime, utcnow

logger = logging.getLogger(__name__)


def is_active_now(promotion: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    if not promotion.get("active"):
        return False
    now = now or utcnow()
    start = parse_datetime(promotion.get("start_date"))
    end = parse_datetime(promotion.get("end_date"))
    if start is None or end is None:
        return False
    # end_date is a calendar day; the promotion runs through its last day
    if len(str(promotion.get("end_date"))) <= 10:
        end = end + timedelta(days=1)
    return start <= now < end


def list_promotions() -> List[Dict[str, Any]]:
    return db.select_rows(PROMOTIONS_TABLE, order=(("start_date", True),)).rows


def list_active_promotions(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    rows = db.select_rows(PROMOTIONS_TABLE, filters={"active": True}).rows
    return [p for p in rows if is_active_now(p, now)]


def home_page_promotions(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    return [p for p in list_active_promotions(now) if p.get("display_on_home")]


def get_best_active_promotion(now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """
    The active promotion with the most benefit days.

    Ties go to the promotion ending first.
    """
    candidates = list_active_promotions(now)
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda p: (-(p.get("benefit_days") or 0), parse_datetime(p.get("end_date"))),
    )


def promotion_subscription_fields(
    promotion: Dict[str, Any], now: Optional[datetime] = None
) -> Dict[str, Any]:
    """User columns to set when a promotion is applied to a new account."""
    now = now or utcnow()
    end = now + timedelta(days=promotion.get("benefit_days") or 0)
    return {
        "subscription_tier": TIER_PROMOTION,
        "subscription_status": STATUS_ACTIVE,
        "subscription_end_date": end.isoformat(),
        "promotion_id": promotion["id"],
    }


def get_promotion(promotion_id: int) -> Dict[str, Any]:
    row = db.get_row(PROMOTIONS_TABLE, promotion_id)
    if row is None:
        raise NotFoundError("Promotion not found")
    return row


def create_promotion(payload: Dict[str, Any]) -> Dict[str, Any]:
    row = db.insert_row(PROMOTIONS_TABLE, payload)
    logger.info(f"Created promotion id={row.get('id')} ({row.get('name')})")
    return row


def update_promotion(promotion_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    row = db.update_row(PROMOTIONS_TABLE, promotion_id, payload)
    if row is None:
        raise NotFoundError("Promotion not found")
    return row


def delete_promotion(promotion_id: int) -> None:
    if not db.soft_delete_row(PROMOTIONS_TABLE, promotion_id):
        raise NotFoundError("Promotion not found")
    logger.info(f"Soft-deleted promotion id={promotion_id}")
