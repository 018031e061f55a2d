"""
Default reference data.

seed_all() fills every reference table that is still empty and leaves
populated tables untouched, so it is safe to run repeatedly.
"""

import logging
from typing import Dict, List

import db
from services import reference_data as refs

logger = logging.getLogger(__name__)

MANUFACTURERS: List[Dict] = [
    {"name": "Other", "nickname": "Other", "country": "Unknown", "popularity": 999},
    {"name": "Glock", "nickname": "Glock", "country": "Austria", "popularity": 100},
    {"name": "Smith & Wesson", "nickname": "S&W", "country": "USA", "popularity": 95},
    {"name": "Sturm, Ruger & Co.", "nickname": "Ruger", "country": "USA", "popularity": 94},
    {"name": "SIG Sauer", "nickname": "SIG", "country": "USA", "popularity": 92},
    {"name": "Springfield Armory", "nickname": "Springfield", "country": "USA", "popularity": 88},
    {"name": "Colt's Manufacturing Company", "nickname": "Colt", "country": "USA", "popularity": 85},
    {"name": "Beretta", "nickname": "Beretta", "country": "Italy", "popularity": 84},
    {"name": "Heckler & Koch", "nickname": "H&K", "country": "Germany", "popularity": 80},
    {"name": "Remington Arms", "nickname": "Remington", "country": "USA", "popularity": 82},
    {"name": "Mossberg", "nickname": "Mossberg", "country": "USA", "popularity": 78},
    {"name": "Winchester Repeating Arms", "nickname": "Winchester", "country": "USA", "popularity": 76},
    {"name": "Savage Arms", "nickname": "Savage", "country": "USA", "popularity": 70},
    {"name": "Taurus", "nickname": "Taurus", "country": "Brazil", "popularity": 72},
    {"name": "CZ (Česká zbrojovka)", "nickname": "CZ", "country": "Czech Republic", "popularity": 74},
    {"name": "FN Herstal", "nickname": "FN", "country": "Belgium", "popularity": 68},
    {"name": "Henry Repeating Arms", "nickname": "Henry", "country": "USA", "popularity": 66},
    {"name": "Kimber", "nickname": "Kimber", "country": "USA", "popularity": 60},
    {"name": "Daniel Defense", "nickname": "DD", "country": "USA", "popularity": 58},
    {"name": "Walther", "nickname": "Walther", "country": "Germany", "popularity": 62},
]

CALIBERS: List[Dict] = [
    {"caliber": "Other", "nickname": "Other", "popularity": 999},
    {"caliber": "9mm Luger", "nickname": "9mm", "popularity": 100},
    {"caliber": ".45 ACP", "nickname": ".45", "popularity": 90},
    {"caliber": ".40 S&W", "nickname": ".40", "popularity": 80},
    {"caliber": ".380 ACP", "nickname": ".380", "popularity": 78},
    {"caliber": ".38 Special", "nickname": ".38 Spl", "popularity": 75},
    {"caliber": ".357 Magnum", "nickname": ".357", "popularity": 74},
    {"caliber": "10mm Auto", "nickname": "10mm", "popularity": 65},
    {"caliber": ".22 LR", "nickname": ".22", "popularity": 98},
    {"caliber": ".223 Remington", "nickname": ".223", "popularity": 95},
    {"caliber": "5.56x45mm NATO", "nickname": "5.56", "popularity": 96},
    {"caliber": ".308 Winchester", "nickname": ".308", "popularity": 88},
    {"caliber": "7.62x39mm", "nickname": "7.62x39", "popularity": 85},
    {"caliber": ".30-06 Springfield", "nickname": ".30-06", "popularity": 80},
    {"caliber": "6.5 Creedmoor", "nickname": "6.5 CM", "popularity": 82},
    {"caliber": ".300 Blackout", "nickname": "300 BLK", "popularity": 76},
    {"caliber": "12 Gauge", "nickname": "12ga", "popularity": 94},
    {"caliber": "20 Gauge", "nickname": "20ga", "popularity": 70},
    {"caliber": ".410 Bore", "nickname": ".410", "popularity": 55},
]

WEAPON_TYPES: List[Dict] = [
    {"type": "Other", "nickname": "Other", "popularity": 999},
    {"type": "Pistol", "nickname": "Handgun", "popularity": 100},
    {"type": "Revolver", "nickname": "Wheel Gun", "popularity": 85},
    {"type": "Rifle", "nickname": "Long Gun", "popularity": 95},
    {"type": "Carbine", "nickname": "Carbine", "popularity": 70},
    {"type": "Shotgun", "nickname": "Scattergun", "popularity": 90},
    {"type": "Pistol Caliber Carbine", "nickname": "PCC", "popularity": 60},
    {"type": "Submachine Gun", "nickname": "SMG", "popularity": 30},
]

BRANDS: List[Dict] = [
    {"name": "Other/Unknown", "nickname": "Other", "popularity": 999},
    {"name": "Federal Premium Ammunition", "nickname": "Federal", "popularity": 100},
    {"name": "Remington Arms Company", "nickname": "Remington", "popularity": 98},
    {"name": "Winchester Ammunition", "nickname": "Winchester", "popularity": 97},
    {"name": "Hornady Manufacturing", "nickname": "Hornady", "popularity": 96},
    {"name": "CCI (Cascade Cartridge, Inc.)", "nickname": "CCI", "popularity": 95},
    {"name": "American Eagle (by Federal/Vista Outdoor)", "nickname": "American Eagle", "popularity": 92},
    {"name": "Speer", "nickname": "Speer", "popularity": 90},
    {"name": "Blazer (by CCI/Vista Outdoor)", "nickname": "Blazer", "popularity": 88},
    {"name": "PMC Ammunition (Precision Made Cartridges)", "nickname": "PMC", "popularity": 85},
    {"name": "Fiocchi Ammunition", "nickname": "Fiocchi", "popularity": 80},
    {"name": "Sellier & Bellot", "nickname": "S&B", "popularity": 78},
    {"name": "SIG Sauer Ammunition", "nickname": "SIG Ammo", "popularity": 76},
    {"name": "Sierra Bullets", "nickname": "Sierra", "popularity": 75},
    {"name": "Prvi Partizan", "nickname": "PPU", "popularity": 72},
    {"name": "Nosler", "nickname": "Nosler", "popularity": 70},
    {"name": "Norma Precision", "nickname": "Norma", "popularity": 68},
    {"name": "Lapua", "nickname": "Lapua", "popularity": 66},
    {"name": "Barnes Bullets", "nickname": "Barnes", "popularity": 65},
    {"name": "Magtech Ammunition", "nickname": "Magtech", "popularity": 60},
    {"name": "Aguila Ammunition", "nickname": "Aguila", "popularity": 55},
    {"name": "TulaAmmo", "nickname": "Tula", "popularity": 50},
    {"name": "Wolf Performance Ammunition", "nickname": "Wolf", "popularity": 48},
    {"name": "Barnaul Ammunition", "nickname": "Barnaul", "popularity": 45},
    {"name": "Black Hills Ammunition", "nickname": "Black Hills", "popularity": 42},
    {"name": "Underwood Ammo", "nickname": "Underwood", "popularity": 40},
    {"name": "Buffalo Bore Ammunition", "nickname": "Buffalo Bore", "popularity": 38},
    {"name": "Cor-Bon", "nickname": "Cor-Bon", "popularity": 35},
    {"name": "HSM Ammunition", "nickname": "HSM", "popularity": 30},
]

BULLET_STYLES: List[Dict] = [
    {"type": "Other", "nickname": "Other", "popularity": 999},
    {"type": "Full Metal Jacket", "nickname": "FMJ", "popularity": 100},
    {"type": "Jacketed Hollow Point", "nickname": "JHP", "popularity": 95},
    {"type": "Soft Point", "nickname": "SP", "popularity": 85},
    {"type": "Ballistic Tip", "nickname": "BT", "popularity": 80},
    {"type": "Wadcutter", "nickname": "WC", "popularity": 70},
    {"type": "Semi-Wadcutter", "nickname": "SWC", "popularity": 65},
    {"type": "Hollow Point Boat Tail", "nickname": "HPBT", "popularity": 60},
    {"type": "Boat Tail Hollow Point", "nickname": "BTHP", "popularity": 60},
    {"type": "Full Metal Jacket Boat Tail", "nickname": "FMJBT", "popularity": 55},
    {"type": "Flat Nose", "nickname": "FN", "popularity": 50},
    {"type": "Round Nose", "nickname": "RN", "popularity": 45},
    {"type": "Lead Round Nose", "nickname": "LRN", "popularity": 40},
    {"type": "Frangible", "nickname": "Frangible", "popularity": 35},
    {"type": "Tracer", "nickname": "Tracer", "popularity": 30},
    {"type": "Armor Piercing", "nickname": "AP", "popularity": 25},
    {"type": "Incendiary", "nickname": "Incendiary", "popularity": 20},
    {"type": "Solid Copper", "nickname": "Solid", "popularity": 15},
    {"type": "Plated", "nickname": "Plated", "popularity": 10},
    {"type": "Slug", "nickname": "Slug", "popularity": 5},
]

# Weight 0 stands for "Other"
GRAINS: List[Dict] = [
    {"weight": 0, "popularity": 999},
    {"weight": 115, "popularity": 100},
    {"weight": 124, "popularity": 95},
    {"weight": 147, "popularity": 90},
    {"weight": 180, "popularity": 85},
    {"weight": 165, "popularity": 80},
    {"weight": 230, "popularity": 90},
    {"weight": 185, "popularity": 75},
    {"weight": 55, "popularity": 100},
    {"weight": 62, "popularity": 95},
    {"weight": 77, "popularity": 80},
    {"weight": 123, "popularity": 90},
    {"weight": 150, "popularity": 95},
    {"weight": 168, "popularity": 85},
    {"weight": 175, "popularity": 80},
    {"weight": 40, "popularity": 90},
    {"weight": 36, "popularity": 85},
    {"weight": 158, "popularity": 70},
    {"weight": 240, "popularity": 65},
    {"weight": 75, "popularity": 60},
    {"weight": 90, "popularity": 55},
    {"weight": 140, "popularity": 50},
    {"weight": 300, "popularity": 45},
    {"weight": 110, "popularity": 40},
]

CASINGS: List[Dict] = [
    {"type": "Other", "popularity": 999},
    {"type": "Brass", "popularity": 100},
    {"type": "Steel", "popularity": 80},
    {"type": "Nickel-Plated Brass", "popularity": 70},
    {"type": "Aluminum", "popularity": 50},
    {"type": "Polymer", "popularity": 20},
]

SEED_DATA = {
    refs.MANUFACTURERS.slug: MANUFACTURERS,
    refs.CALIBERS.slug: CALIBERS,
    refs.WEAPON_TYPES.slug: WEAPON_TYPES,
    refs.BRANDS.slug: BRANDS,
    refs.BULLET_STYLES.slug: BULLET_STYLES,
    refs.GRAINS.slug: GRAINS,
    refs.CASINGS.slug: CASINGS,
}


def needs_seeding(table: str) -> bool:
    """A table needs seeding when it has no rows at all (deleted rows count)."""
    return db.select_rows(table, limit=1, include_deleted=True).total == 0


def seed_table(table: str) -> int:
    if not needs_seeding(table):
        logger.info(f"{table} already contains data, skipping seed")
        return 0
    rows = SEED_DATA[table]
    for row in rows:
        db.insert_row(table, dict(row))
    logger.info(f"Seeded {len(rows)} rows into {table}")
    return len(rows)


def seed_all() -> Dict[str, int]:
    """Seed every empty reference table. Returns rows inserted per table."""
    logger.info("Starting database seeding...")
    counts = {table: seed_table(table) for table in SEED_DATA}
    logger.info("Database seeding completed")
    return counts
