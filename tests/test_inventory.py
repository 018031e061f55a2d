import pytest

from services import inventory
from services.errors import NotFoundError, ValidationError
from tests.conftest import make_user
from utils.pagination import ListParams


@pytest.fixture
def refs_seeded(fake_db):
    fake_db.add("manufacturers", {"name": "Glock", "country": "Austria"})
    fake_db.add("manufacturers", {"name": "Beretta", "country": "Italy"})
    fake_db.add("calibers", {"caliber": "9mm"})
    fake_db.add("weapon_types", {"type": "Pistol"})
    fake_db.add("brands", {"name": "Federal"})
    return fake_db


def gun(name, manufacturer_id=1, paid=0):
    return {
        "name": name,
        "manufacturer_id": manufacturer_id,
        "caliber_id": 1,
        "weapon_type_id": 1,
        "paid": paid,
    }


def ammo(name, count=50, expended=0, paid=0):
    return {"name": name, "brand_id": 1, "caliber_id": 1, "count": count, "expended": expended, "paid": paid}


def test_create_gun_checks_references(refs_seeded):
    owner = make_user()
    with pytest.raises(ValidationError) as exc:
        inventory.create_gun(owner["id"], gun("Ghost", manufacturer_id=99))
    assert exc.value.messages == ["invalid manufacturer ID"]


def test_guns_are_enriched_with_reference_rows(refs_seeded):
    owner = make_user()
    created = inventory.create_gun(owner["id"], gun("G19"))
    fetched = inventory.get_owned_gun(owner["id"], created["id"])
    assert fetched["manufacturer"]["name"] == "Glock"
    assert fetched["caliber"]["caliber"] == "9mm"


def test_other_owner_cannot_read_or_change_gun(refs_seeded):
    owner = make_user()
    intruder = make_user("other@example.com")
    created = inventory.create_gun(owner["id"], gun("G19"))
    with pytest.raises(NotFoundError):
        inventory.get_owned_gun(intruder["id"], created["id"])
    with pytest.raises(NotFoundError):
        inventory.delete_gun(intruder["id"], created["id"])
    assert inventory.count_guns(owner["id"]) == 1


def test_sort_by_manufacturer_name(refs_seeded):
    owner = make_user(subscription_tier="lifetime")
    inventory.create_gun(owner["id"], gun("First", manufacturer_id=1))
    inventory.create_gun(owner["id"], gun("Second", manufacturer_id=2))
    params = ListParams(sort_by="manufacturer", sort_order="asc")
    listing = inventory.list_owner_guns(owner["id"], params, owner)
    assert [g["manufacturer"]["name"] for g in listing.rows] == ["Beretta", "Glock"]
    assert listing.limited is False


def test_free_tier_sees_only_first_guns(refs_seeded):
    owner = make_user()
    for name in ("A", "B", "C"):
        inventory.create_gun(owner["id"], gun(name))
    listing = inventory.list_owner_guns(owner["id"], ListParams(sort_by="name", sort_order="asc"), owner)
    assert listing.limited is True
    assert listing.total == 3
    assert [g["name"] for g in listing.rows] == ["A", "B"]


def test_limit_checks_respect_subscription():
    free = make_user()
    paid = make_user("paid@example.com", subscription_tier="lifetime")
    assert inventory.gun_limit_reached(free, 2)
    assert not inventory.gun_limit_reached(free, 1)
    assert not inventory.gun_limit_reached(paid, 10)
    assert inventory.ammo_limit_reached(free, 4)
    assert not inventory.ammo_limit_reached(free, 3)


def test_limit_messages():
    assert inventory.gun_limit_message(2).startswith("Free tier only allows 2 guns.")
    assert "4 ammunition items" in inventory.ammo_limit_message(5)


def test_ammo_optional_references_may_be_blank(refs_seeded):
    owner = make_user()
    created = inventory.create_ammo(owner["id"], {**ammo("Range box"), "grain_id": None})
    fetched = inventory.get_owned_ammo(owner["id"], created["id"])
    assert fetched["brand"]["name"] == "Federal"
    assert fetched["grain"] is None


def test_ammo_requires_brand(refs_seeded):
    owner = make_user()
    with pytest.raises(ValidationError) as exc:
        inventory.create_ammo(owner["id"], {**ammo("Box"), "brand_id": None})
    assert "invalid brand ID" in exc.value.messages


def test_search_owner_ammo(refs_seeded):
    owner = make_user()
    inventory.create_ammo(owner["id"], ammo("Range box"))
    inventory.create_ammo(owner["id"], ammo("Defense load"))
    found = inventory.search_owner_ammo(owner["id"], "range")
    assert [a["name"] for a in found] == ["Range box"]


def test_owner_totals(refs_seeded):
    owner = make_user()
    inventory.create_gun(owner["id"], gun("G19", paid=50000))
    inventory.create_gun(owner["id"], gun("G17", paid=45000))
    inventory.create_ammo(owner["id"], ammo("Box", count=100, expended=40, paid=2500))
    totals = inventory.owner_totals(owner["id"])
    assert totals.gun_count == 2
    assert totals.guns_paid == 95000
    assert totals.ammo_rounds == 100
    assert totals.ammo_remaining == 60
    assert totals.ammo_paid == 2500


def test_deleted_gun_leaves_listing(refs_seeded):
    owner = make_user()
    created = inventory.create_gun(owner["id"], gun("G19"))
    inventory.delete_gun(owner["id"], created["id"])
    assert inventory.count_guns(owner["id"]) == 0
    with pytest.raises(NotFoundError):
        inventory.get_owned_gun(owner["id"], created["id"])


def test_list_all_guns_attaches_owner(refs_seeded):
    owner = make_user()
    inventory.create_gun(owner["id"], gun("G19"))
    result = inventory.list_all_guns(ListParams())
    assert result.total == 1
    assert result.rows[0]["owner"]["email"] == owner["email"]
