import pytest

from services import reference_data as refs
from services.errors import NotFoundError, ValidationError


def test_get_resource_unknown_slug():
    assert refs.get_resource("calibers") is refs.CALIBERS
    with pytest.raises(NotFoundError):
        refs.get_resource("lasers")


def test_clean_form_required_and_int_fields():
    payload, errors = refs.clean_form(refs.GRAINS, {"weight": "abc", "popularity": "-1"})
    assert errors == ["Invalid weight value", "Invalid popularity value"]

    payload, errors = refs.clean_form(refs.MANUFACTURERS, {"name": " Ruger ", "country": ""})
    assert errors == ["Country is required"]
    assert payload["name"] == "Ruger"
    assert payload["popularity"] == 0


def test_clean_form_caps_text_length():
    _, errors = refs.clean_form(refs.CALIBERS, {"caliber": "x" * 101})
    assert errors == ["Caliber exceeds maximum length of 100 characters"]


def test_create_rejects_duplicate_key():
    refs.create(refs.CALIBERS, {"caliber": "9mm", "nickname": "", "popularity": 10})
    with pytest.raises(ValidationError) as exc:
        refs.create(refs.CALIBERS, {"caliber": "9mm", "nickname": "", "popularity": 1})
    assert exc.value.messages == ["Caliber with this caliber already exists"]


def test_deleted_manufacturer_is_not_restored():
    row, _ = refs.create(refs.MANUFACTURERS, {"name": "Colt", "country": "USA"})
    refs.delete(refs.MANUFACTURERS, row["id"])
    with pytest.raises(ValidationError):
        refs.create(refs.MANUFACTURERS, {"name": "Colt", "country": "USA"})


def test_grain_recreate_restores_soft_deleted_row():
    row, restored = refs.create(refs.GRAINS, {"weight": 115, "popularity": 5})
    assert restored is False
    refs.delete(refs.GRAINS, row["id"])
    assert refs.list_grains() == []

    again, restored = refs.create(refs.GRAINS, {"weight": 115, "popularity": 9})
    assert restored is True
    assert again["id"] == row["id"]
    assert again["popularity"] == 9
    assert again["deleted_at"] is None


def test_bullet_style_restore_takes_new_nickname_and_popularity():
    row, _ = refs.create(refs.BULLET_STYLES, {"type": "FMJ", "nickname": "Ball", "popularity": 3})
    refs.delete(refs.BULLET_STYLES, row["id"])

    again, restored = refs.create(refs.BULLET_STYLES, {"type": "FMJ", "nickname": "Hardball", "popularity": 40})
    assert restored is True
    assert again["id"] == row["id"]
    assert again["nickname"] == "Hardball"
    assert again["popularity"] == 40
    assert [r["type"] for r in refs.list_bullet_styles()] == ["FMJ"]


def test_casing_recreate_restores_soft_deleted_row():
    row, _ = refs.create(refs.CASINGS, {"type": "Steel", "popularity": 80})
    refs.delete(refs.CASINGS, row["id"])

    again, restored = refs.create(refs.CASINGS, {"type": "Steel", "popularity": 15})
    assert restored is True
    assert again["id"] == row["id"]
    assert again["popularity"] == 15
    assert again["deleted_at"] is None


def test_recreate_of_active_row_is_rejected():
    refs.create(refs.CASINGS, {"type": "Brass", "popularity": 100})
    with pytest.raises(ValidationError) as exc:
        refs.create(refs.CASINGS, {"type": "Brass", "popularity": 1})
    assert exc.value.messages == ["Casing with this type already exists"]


def test_update_checks_key_clash():
    first, _ = refs.create(refs.CASINGS, {"type": "Brass", "popularity": 1})
    second, _ = refs.create(refs.CASINGS, {"type": "Steel", "popularity": 1})
    with pytest.raises(ValidationError):
        refs.update(refs.CASINGS, second["id"], {"type": "Brass", "popularity": 1})
    updated = refs.update(refs.CASINGS, first["id"], {"type": "Brass", "popularity": 7})
    assert updated["popularity"] == 7


def test_delete_missing_row():
    with pytest.raises(NotFoundError):
        refs.delete(refs.BRANDS, 42)


def test_list_order_popularity_then_key():
    refs.create(refs.BULLET_STYLES, {"type": "FMJ", "nickname": "", "popularity": 5})
    refs.create(refs.BULLET_STYLES, {"type": "JHP", "nickname": "", "popularity": 9})
    refs.create(refs.BULLET_STYLES, {"type": "Ballistic Tip", "nickname": "", "popularity": 5})
    assert [r["type"] for r in refs.list_bullet_styles()] == ["JHP", "Ballistic Tip", "FMJ"]


def test_search_calibers_is_case_insensitive():
    refs.create(refs.CALIBERS, {"caliber": "9mm Luger", "nickname": "", "popularity": 1})
    refs.create(refs.CALIBERS, {"caliber": ".45 ACP", "nickname": "", "popularity": 1})
    assert [r["caliber"] for r in refs.search_calibers("LUGER")] == ["9mm Luger"]


def test_display_name_for_grains():
    assert refs.GRAINS.display_name({"weight": 124}) == "124 gr"
    assert refs.CALIBERS.display_name({"caliber": "9mm"}) == "9mm"
