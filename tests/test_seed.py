from services import reference_data as refs
from services import seed


def test_seed_all_fills_every_reference_table(fake_db):
    counts = seed.seed_all()
    assert set(counts) == set(refs.REFERENCE_RESOURCES)
    for table, rows in seed.SEED_DATA.items():
        assert counts[table] == len(rows)
        assert len(fake_db.rows(table)) == len(rows)


def test_seed_is_idempotent(fake_db):
    seed.seed_all()
    again = seed.seed_all()
    assert all(count == 0 for count in again.values())


def test_populated_table_is_left_alone(fake_db):
    fake_db.add("calibers", {"caliber": "6.5 Creedmoor", "deleted_at": "2025-01-01T00:00:00+00:00"})
    counts = seed.seed_all()
    assert counts["calibers"] == 0
    assert len(fake_db.rows("calibers")) == 1


def test_seed_rows_have_unique_keys():
    for slug, rows in seed.SEED_DATA.items():
        key = refs.REFERENCE_RESOURCES[slug].key_field
        values = [row[key] for row in rows]
        assert len(values) == len(set(values)), slug
