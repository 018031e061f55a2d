"""
inventory.py
------------
Owner inventory: guns and ammunition.

Every owner-facing read goes through an owner check, so one user can never
see or change another user's rows (they get NotFoundError, same as a miss).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import db
from constants import (
    AMMO_TABLE,
    FREE_TIER_AMMO_LIMIT,
    FREE_TIER_GUN_LIMIT,
    GUNS_TABLE,
    USERS_TABLE,
)
from services import reference_data as refs
from services.errors import NotFoundError, ValidationError
from services.users import has_active_subscription
from utils.pagination import ListParams

logger = logging.getLogger(__name__)

# reference column -> (attribute name on the enriched row, resource)
GUN_REFERENCES = {
    "manufacturer_id": ("manufacturer", refs.MANUFACTURERS),
    "caliber_id": ("caliber", refs.CALIBERS),
    "weapon_type_id": ("weapon_type", refs.WEAPON_TYPES),
}
AMMO_REFERENCES = {
    "brand_id": ("brand", refs.BRANDS),
    "bullet_style_id": ("bullet_style", refs.BULLET_STYLES),
    "grain_id": ("grain", refs.GRAINS),
    "caliber_id": ("caliber", refs.CALIBERS),
    "casing_id": ("casing", refs.CASINGS),
}
REQUIRED_AMMO_REFERENCES = ("brand_id", "caliber_id")


@dataclass
class InventoryTotals:
    gun_count: int = 0
    guns_paid: int = 0
    ammo_items: int = 0
    ammo_rounds: int = 0
    ammo_expended: int = 0
    ammo_paid: int = 0

    @property
    def ammo_remaining(self) -> int:
        return self.ammo_rounds - self.ammo_expended


@dataclass
class Listing:
    """A sorted page of enriched rows plus the owner's full count."""

    rows: List[Dict[str, Any]]
    total: int
    limited: bool = False


# =============================================================================
# Reference checks and enrichment
# =============================================================================


def _reference_errors(payload: Dict[str, Any], references, required=()) -> List[str]:
    errors = []
    for column, (attr, resource) in references.items():
        value = payload.get(column)
        if value is None and column not in required:
            continue
        if not refs.exists(resource, value):
            errors.append(f"invalid {attr.replace('_', ' ')} ID")
    return errors


def _enrich(rows: List[Dict[str, Any]], references) -> List[Dict[str, Any]]:
    for column, (attr, resource) in references.items():
        found = refs.lookup(resource, (r.get(column) for r in rows))
        for row in rows:
            row[attr] = found.get(row.get(column))
    return rows


def enrich_guns(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return _enrich(rows, GUN_REFERENCES)


def enrich_ammo(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return _enrich(rows, AMMO_REFERENCES)


def _sort_value(row: Dict[str, Any], sort_by: str):
    if sort_by in ("manufacturer", "caliber", "weapon_type"):
        ref = row.get(sort_by) or {}
        resource = GUN_REFERENCES[f"{sort_by}_id"][1]
        return str(ref.get(resource.key_field) or "").lower()
    value = row.get(sort_by)
    if isinstance(value, str):
        return value.lower()
    return value or ""


def _sort_rows(rows: List[Dict[str, Any]], params: ListParams) -> List[Dict[str, Any]]:
    return sorted(rows, key=lambda r: _sort_value(r, params.sort_by), reverse=params.descending)


# =============================================================================
# Free tier
# =============================================================================


def gun_limit_reached(user: Dict[str, Any], current_count: int) -> bool:
    return not has_active_subscription(user) and current_count >= FREE_TIER_GUN_LIMIT


def ammo_limit_reached(user: Dict[str, Any], current_count: int) -> bool:
    return not has_active_subscription(user) and current_count >= FREE_TIER_AMMO_LIMIT


def gun_limit_message(count: int) -> str:
    return (
        f"Free tier only allows {FREE_TIER_GUN_LIMIT} guns. "
        f"You have {count} in your arsenal. Subscribe to see more."
    )


def ammo_limit_message(count: int) -> str:
    return (
        f"Free tier only allows {FREE_TIER_AMMO_LIMIT} ammunition items. "
        f"You have {count} in your depot. Subscribe to see more."
    )


# =============================================================================
# Guns
# =============================================================================


def count_guns(owner_id: int) -> int:
    return db.count_rows(GUNS_TABLE, {"owner_id": owner_id})


def list_owner_guns(owner_id: int, params: ListParams, user: Optional[Dict[str, Any]] = None) -> Listing:
    """
    The owner's guns, searched, sorted and paginated.

    Sorting by a reference column (manufacturer, caliber, weapon type) needs the
    joined names, so sorting and paging happen after enrichment. When a free-tier
    user is given, only the first FREE_TIER_GUN_LIMIT guns are visible.
    """
    rows = db.select_rows(
        GUNS_TABLE, filters={"owner_id": owner_id}, search=("name", params.search)
    ).rows
    total = len(rows)
    rows = _sort_rows(enrich_guns(rows), params)
    limited = user is not None and not has_active_subscription(user)
    if limited:
        rows = rows[:FREE_TIER_GUN_LIMIT]
    return Listing(rows=rows[params.offset : params.offset + params.per_page], total=total, limited=limited)


def get_owned_gun(owner_id: int, gun_id: int) -> Dict[str, Any]:
    gun = db.get_row(GUNS_TABLE, gun_id)
    if gun is None or gun.get("owner_id") != owner_id:
        raise NotFoundError("Gun not found")
    return enrich_guns([gun])[0]


def create_gun(owner_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    errors = _reference_errors(payload, GUN_REFERENCES, required=tuple(GUN_REFERENCES))
    if errors:
        raise ValidationError(errors)
    gun = db.insert_row(GUNS_TABLE, {**payload, "owner_id": owner_id})
    logger.info(f"User id={owner_id} added gun id={gun.get('id')}")
    return gun


def update_gun(owner_id: int, gun_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    get_owned_gun(owner_id, gun_id)
    errors = _reference_errors(payload, GUN_REFERENCES, required=tuple(GUN_REFERENCES))
    if errors:
        raise ValidationError(errors)
    return db.update_row(GUNS_TABLE, gun_id, payload)


def delete_gun(owner_id: int, gun_id: int) -> None:
    get_owned_gun(owner_id, gun_id)
    db.soft_delete_row(GUNS_TABLE, gun_id)
    logger.info(f"User id={owner_id} deleted gun id={gun_id}")


# =============================================================================
# Ammunition
# =============================================================================


def count_ammo(owner_id: int) -> int:
    return db.count_rows(AMMO_TABLE, {"owner_id": owner_id})


def list_owner_ammo(owner_id: int, params: ListParams, user: Optional[Dict[str, Any]] = None) -> Listing:
    rows = db.select_rows(
        AMMO_TABLE, filters={"owner_id": owner_id}, search=("name", params.search)
    ).rows
    total = len(rows)
    sort_by = params.sort_by if params.sort_by in ("name", "created_at", "acquired") else "created_at"
    rows = sorted(
        enrich_ammo(rows), key=lambda r: _sort_value(r, sort_by), reverse=params.descending
    )
    limited = user is not None and not has_active_subscription(user)
    if limited:
        rows = rows[:FREE_TIER_AMMO_LIMIT]
    return Listing(rows=rows[params.offset : params.offset + params.per_page], total=total, limited=limited)


def search_owner_ammo(owner_id: int, term: str) -> List[Dict[str, Any]]:
    rows = db.select_rows(
        AMMO_TABLE,
        filters={"owner_id": owner_id},
        search=("name", term),
        order=(("name", False),),
    ).rows
    return enrich_ammo(rows)


def get_owned_ammo(owner_id: int, ammo_id: int) -> Dict[str, Any]:
    ammo = db.get_row(AMMO_TABLE, ammo_id)
    if ammo is None or ammo.get("owner_id") != owner_id:
        raise NotFoundError("Ammunition not found")
    return enrich_ammo([ammo])[0]


def create_ammo(owner_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    errors = _reference_errors(payload, AMMO_REFERENCES, required=REQUIRED_AMMO_REFERENCES)
    if errors:
        raise ValidationError(errors)
    ammo = db.insert_row(AMMO_TABLE, {**payload, "owner_id": owner_id})
    logger.info(f"User id={owner_id} added ammo id={ammo.get('id')}")
    return ammo


def update_ammo(owner_id: int, ammo_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    get_owned_ammo(owner_id, ammo_id)
    errors = _reference_errors(payload, AMMO_REFERENCES, required=REQUIRED_AMMO_REFERENCES)
    if errors:
        raise ValidationError(errors)
    return db.update_row(AMMO_TABLE, ammo_id, payload)


def delete_ammo(owner_id: int, ammo_id: int) -> None:
    get_owned_ammo(owner_id, ammo_id)
    db.soft_delete_row(AMMO_TABLE, ammo_id)
    logger.info(f"User id={owner_id} deleted ammo id={ammo_id}")


# =============================================================================
# Totals and admin listings
# =============================================================================


def owner_totals(owner_id: int) -> InventoryTotals:
    guns = db.select_rows(GUNS_TABLE, filters={"owner_id": owner_id}).rows
    ammo = db.select_rows(AMMO_TABLE, filters={"owner_id": owner_id}).rows
    return InventoryTotals(
        gun_count=len(guns),
        guns_paid=sum(g.get("paid") or 0 for g in guns),
        ammo_items=len(ammo),
        ammo_rounds=sum(a.get("count") or 0 for a in ammo),
        ammo_expended=sum(a.get("expended") or 0 for a in ammo),
        ammo_paid=sum(a.get("paid") or 0 for a in ammo),
    )


def _attach_owners(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    owner_ids = sorted({r.get("owner_id") for r in rows if r.get("owner_id") is not None})
    owners = {}
    if owner_ids:
        found = db.select_rows(USERS_TABLE, filters={"id__in": owner_ids}, include_deleted=True).rows
        owners = {u["id"]: u for u in found}
    for row in rows:
        row["owner"] = owners.get(row.get("owner_id"))
    return rows


def list_all_guns(params: ListParams) -> db.QueryResult:
    result = db.select_rows(
        GUNS_TABLE,
        order=(("created_at", True),),
        limit=params.per_page,
        offset=params.offset,
        search=("name", params.search),
    )
    result.rows = _attach_owners(enrich_guns(result.rows))
    return result


def list_all_ammo(params: ListParams) -> db.QueryResult:
    result = db.select_rows(
        AMMO_TABLE,
        order=(("created_at", True),),
        limit=params.per_page,
        offset=params.offset,
        search=("name", params.search),
    )
    result.rows = _attach_owners(enrich_ammo(result.rows))
    return result
