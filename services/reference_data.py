"""
reference_data.py
-----------------
Admin-managed lookup tables (manufacturers, calibers, weapon types, brands,
bullet styles, grains, casings).

Every table is described by a ReferenceResource so the admin controllers,
views and routes can be generic. Rows are soft-deleted; grains, casings and
bullet styles are restored (not duplicated) when re-created with the same key.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import db
from constants import (
    BRANDS_TABLE,
    BULLET_STYLES_TABLE,
    CALIBERS_TABLE,
    CASINGS_TABLE,
    GRAINS_TABLE,
    MANUFACTURERS_TABLE,
    MAX_NAME_LENGTH,
    WEAPON_TYPES_TABLE,
)
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = "text"  # "text" or "int"
    required: bool = False


@dataclass(frozen=True)
class ReferenceResource:
    slug: str
    label: str
    key_field: str
    fields: Tuple[FieldSpec, ...]
    order: Tuple[Tuple[str, bool], ...]
    restore_on_create: bool = False
    # Fields copied onto a restored row from the new submission
    restore_fields: Tuple[str, ...] = ()

    @property
    def table(self) -> str:
        return self.slug

    @property
    def plural_label(self) -> str:
        return self.slug.replace("_", " ").title()

    def display_name(self, row: Mapping[str, Any]) -> str:
        value = row.get(self.key_field)
        if self.key_field == "weight":
            return f"{value} gr"
        return str(value or "")

    def field(self, name: str) -> FieldSpec:
        for field_def in self.fields:
            if field_def.name == name:
                return field_def
        raise KeyError(name)


_POPULARITY = FieldSpec("popularity", "Popularity", kind="int")
_NICKNAME = FieldSpec("nickname", "Nickname")

MANUFACTURERS = ReferenceResource(
    slug=MANUFACTURERS_TABLE,
    label="Manufacturer",
    key_field="name",
    fields=(
        FieldSpec("name", "Manufacturer name", required=True),
        _NICKNAME,
        FieldSpec("country", "Country", required=True),
        _POPULARITY,
    ),
    order=(("name", False),),
)

CALIBERS = ReferenceResource(
    slug=CALIBERS_TABLE,
    label="Caliber",
    key_field="caliber",
    fields=(FieldSpec("caliber", "Caliber", required=True), _NICKNAME, _POPULARITY),
    order=(("caliber", False),),
)

WEAPON_TYPES = ReferenceResource(
    slug=WEAPON_TYPES_TABLE,
    label="Weapon type",
    key_field="type",
    fields=(FieldSpec("type", "Weapon type", required=True), _NICKNAME, _POPULARITY),
    order=(("type", False),),
)

BRANDS = ReferenceResource(
    slug=BRANDS_TABLE,
    label="Brand",
    key_field="name",
    fields=(FieldSpec("name", "Brand name", required=True), _NICKNAME, _POPULARITY),
    order=(("name", False),),
)

BULLET_STYLES = ReferenceResource(
    slug=BULLET_STYLES_TABLE,
    label="Bullet style",
    key_field="type",
    fields=(
        FieldSpec("type", "Bullet style type", required=True),
        _NICKNAME,
        _POPULARITY,
    ),
    order=(("popularity", True), ("type", False)),
    restore_on_create=True,
    restore_fields=("nickname", "popularity"),
)

GRAINS = ReferenceResource(
    slug=GRAINS_TABLE,
    label="Grain",
    key_field="weight",
    fields=(FieldSpec("weight", "Grain weight", kind="int", required=True), _POPULARITY),
    order=(("popularity", True), ("weight", False)),
    restore_on_create=True,
    restore_fields=("popularity",),
)

CASINGS = ReferenceResource(
    slug=CASINGS_TABLE,
    label="Casing",
    key_field="type",
    fields=(FieldSpec("type", "Casing type", required=True), _POPULARITY),
    order=(("popularity", True), ("type", False)),
    restore_on_create=True,
    restore_fields=("popularity",),
)

REFERENCE_RESOURCES: Dict[str, ReferenceResource] = {
    r.slug: r
    for r in (MANUFACTURERS, CALIBERS, WEAPON_TYPES, BRANDS, BULLET_STYLES, GRAINS, CASINGS)
}


def get_resource(slug: str) -> ReferenceResource:
    try:
        return REFERENCE_RESOURCES[slug]
    except KeyError:
        raise NotFoundError(f"Unknown reference table: {slug}") from None


# --- Validation ---
def clean_form(resource: ReferenceResource, form: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Turn submitted form values into a typed payload plus error messages."""
    payload: Dict[str, Any] = {}
    errors: List[str] = []
    for field_def in resource.fields:
        raw = str(form.get(field_def.name) or "").strip()
        if not raw:
            if field_def.required:
                errors.append(f"{field_def.label} is required")
            payload[field_def.name] = 0 if field_def.kind == "int" else ""
            continue
        if field_def.kind == "int":
            try:
                value = int(raw)
            except ValueError:
                errors.append(f"Invalid {field_def.name} value")
                continue
            if value < 0:
                errors.append(f"Invalid {field_def.name} value")
                continue
            payload[field_def.name] = value
        else:
            if len(raw) > MAX_NAME_LENGTH:
                errors.append(
                    f"{field_def.label} exceeds maximum length of {MAX_NAME_LENGTH} characters"
                )
                continue
            payload[field_def.name] = raw
    return payload, errors


# --- Queries ---
def list_rows(resource: ReferenceResource, include_deleted: bool = False) -> List[Dict[str, Any]]:
    return db.select_rows(
        resource.table, order=resource.order, include_deleted=include_deleted
    ).rows


def get(resource: ReferenceResource, row_id: int) -> Dict[str, Any]:
    row = db.get_row(resource.table, row_id)
    if row is None:
        raise NotFoundError(f"{resource.label} not found")
    return row


def exists(resource: ReferenceResource, row_id: Optional[int]) -> bool:
    if row_id is None:
        return False
    return db.get_row(resource.table, row_id) is not None


def lookup(resource: ReferenceResource, ids) -> Dict[int, Dict[str, Any]]:
    """Map id -> row for the given ids (deleted rows included, for display)."""
    wanted = sorted({i for i in ids if i is not None})
    if not wanted:
        return {}
    rows = db.select_rows(
        resource.table, filters={"id__in": wanted}, include_deleted=True
    ).rows
    return {row["id"]: row for row in rows}


# --- Mutations ---
def create(resource: ReferenceResource, payload: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """
    Create a row.

    Returns:
        (row, restored): restored is True when a soft-deleted row with the
        same key was brought back instead of inserting.

    Raises:
        ValidationError: an active row already uses the key.
    """
    key_value = payload[resource.key_field]
    existing = db.find_row(resource.table, include_deleted=True, **{resource.key_field: key_value})

    if existing is not None and existing.get("deleted_at") is None:
        raise ValidationError(
            f"{resource.label} with this {resource.key_field} already exists"
        )

    if existing is not None and resource.restore_on_create:
        changes = {name: payload[name] for name in resource.restore_fields if name in payload}
        row = db.restore_row(resource.table, existing["id"], changes)
        logger.info(
            f"Restored soft-deleted {resource.label.lower()} id={existing['id']} ({key_value})"
        )
        return row, True

    if existing is not None:
        raise ValidationError(
            f"{resource.label} with this {resource.key_field} already exists"
        )

    row = db.insert_row(resource.table, payload)
    logger.info(f"Created {resource.label.lower()} id={row.get('id')} ({key_value})")
    return row, False


def update(resource: ReferenceResource, row_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    get(resource, row_id)
    key_value = payload[resource.key_field]
    clash = db.find_row(resource.table, **{resource.key_field: key_value})
    if clash is not None and clash["id"] != row_id:
        raise ValidationError(
            f"{resource.label} with this {resource.key_field} already exists"
        )
    row = db.update_row(resource.table, row_id, payload)
    if row is None:
        raise NotFoundError(f"{resource.label} not found")
    return row


def delete(resource: ReferenceResource, row_id: int) -> None:
    if not db.soft_delete_row(resource.table, row_id):
        raise NotFoundError(f"{resource.label} not found")
    logger.info(f"Soft-deleted {resource.label.lower()} id={row_id}")


# --- Convenience listings for owner forms ---
def list_manufacturers() -> List[Dict[str, Any]]:
    return list_rows(MANUFACTURERS)


def list_calibers() -> List[Dict[str, Any]]:
    return list_rows(CALIBERS)


def list_weapon_types() -> List[Dict[str, Any]]:
    return list_rows(WEAPON_TYPES)


def list_brands() -> List[Dict[str, Any]]:
    return list_rows(BRANDS)


def list_bullet_styles() -> List[Dict[str, Any]]:
    return list_rows(BULLET_STYLES)


def list_grains() -> List[Dict[str, Any]]:
    return list_rows(GRAINS)


def list_casings() -> List[Dict[str, Any]]:
    return list_rows(CASINGS)


def search_calibers(term: str, limit: int = 20) -> List[Dict[str, Any]]:
    return db.select_rows(
        CALIBERS.table,
        order=(("popularity", True), ("caliber", False)),
        search=("caliber", term),
        limit=limit,
    ).rows
