"""
Database operations for crawled vehicles.
"""
import json
import sqlite3
import uuid
from typing import Dict, List, Optional, Tuple

from .models import Vehicle
from .utils import now_iso


# Schema definitions
DDL_VEHICLES = """
CREATE TABLE IF NOT EXISTS vehicles (
  id TEXT PRIMARY KEY,
  url TEXT NOT NULL UNIQUE,
  main_image TEXT,
  image_gallery TEXT NOT NULL DEFAULT '',
  price REAL NOT NULL,
  manufacturer TEXT NOT NULL DEFAULT 'Mercedes-Benz',
  model TEXT NOT NULL,
  vehicle_number TEXT NOT NULL,
  vehicle_type TEXT NOT NULL,
  first_registration TEXT NOT NULL,
  model_year INTEGER NOT NULL,
  mileage INTEGER NOT NULL,
  power TEXT NOT NULL,
  fuel_type TEXT NOT NULL,
  transmission TEXT NOT NULL,
  exterior_color TEXT NOT NULL,
  interior_color TEXT NOT NULL,
  upholstery TEXT NOT NULL,
  acceleration TEXT,
  warranty TEXT,
  charging_duration TEXT,
  electric_range TEXT,
  energy TEXT,
  dealer_location TEXT NOT NULL,
  interior TEXT NOT NULL DEFAULT '[]',
  exterior TEXT NOT NULL DEFAULT '[]',
  infotainment TEXT NOT NULL DEFAULT '[]',
  safety_tech TEXT NOT NULL DEFAULT '[]',
  packages TEXT NOT NULL DEFAULT '[]',
  created_at TEXT,
  updated_at TEXT
);
"""

DDL_PRICE_HISTORY = """
CREATE TABLE IF NOT EXISTS price_history (
  vehicle_id TEXT,
  ts TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
  price REAL
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_vehicles_updated_at ON vehicles(updated_at);",
    "CREATE INDEX IF NOT EXISTS idx_price_history_vehicle ON price_history(vehicle_id);"
]

# Columns written from a Vehicle, in table order
VEHICLE_COLUMNS = [
    "url", "main_image", "image_gallery", "price", "manufacturer", "model",
    "vehicle_number", "vehicle_type", "first_registration", "model_year", "mileage",
    "power", "fuel_type", "transmission", "exterior_color", "interior_color",
    "upholstery", "acceleration", "warranty", "charging_duration", "electric_range",
    "energy", "dealer_location", "interior", "exterior", "infotainment",
    "safety_tech", "packages",
]
LIST_COLUMNS = ("interior", "exterior", "infotainment", "safety_tech", "packages")


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_VEHICLES)
    conn.execute(DDL_PRICE_HISTORY)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_dict(cur, row):
    """Convert sqlite3 row to dictionary."""
    return {desc[0]: row[i] for i, desc in enumerate(cur.description)}


def vehicle_to_row(vehicle: Vehicle) -> Dict:
    """Flatten a Vehicle into column values ("|"-joined gallery, JSON feature lists)."""
    data = vehicle.to_dict()
    row = {col: data[col] for col in VEHICLE_COLUMNS}
    row["image_gallery"] = "|".join(vehicle.image_gallery) if vehicle.image_gallery else ""
    for col in LIST_COLUMNS:
        row[col] = json.dumps(data[col], ensure_ascii=False)
    return row


def db_get_vehicle_by_url(conn: sqlite3.Connection, url: str) -> Optional[Dict]:
    """Retrieve existing vehicle by its listing URL."""
    cur = conn.cursor()
    cur.execute("SELECT * FROM vehicles WHERE url = ?", (url,))
    r = cur.fetchone()
    if not r:
        return None
    return row_to_dict(cur, r)


def db_insert_vehicle(conn: sqlite3.Connection, vehicle: Vehicle) -> str:
    """Insert new vehicle into database and return its id."""
    vehicle_id = str(uuid.uuid4())
    row = vehicle_to_row(vehicle)
    columns = ["id"] + VEHICLE_COLUMNS + ["created_at", "updated_at"]
    values = [vehicle_id] + [row[c] for c in VEHICLE_COLUMNS] + [now_iso(), now_iso()]
    placeholders = ",".join("?" for _ in columns)
    conn.execute(
        f"INSERT INTO vehicles ({','.join(columns)}) VALUES ({placeholders})",
        values,
    )
    conn.commit()
    return vehicle_id


def db_update_vehicle(conn: sqlite3.Connection, vehicle: Vehicle):
    """Update existing vehicle (matched by URL) in database."""
    row = vehicle_to_row(vehicle)
    columns = [c for c in VEHICLE_COLUMNS if c != "url"]
    assignments = ", ".join(f"{c}=?" for c in columns)
    conn.execute(
        f"UPDATE vehicles SET {assignments}, updated_at=? WHERE url=?",
        [row[c] for c in columns] + [now_iso(), vehicle.url],
    )
    conn.commit()


def db_insert_price_event(conn: sqlite3.Connection, vehicle_id: str, price: float):
    """Insert price change event into price history."""
    if not price:
        return
    conn.execute("""
    INSERT INTO price_history (vehicle_id, ts, price)
    VALUES (?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'), ?)
    """, (vehicle_id, price))
    conn.commit()


def upsert_with_price_history(conn: sqlite3.Connection, vehicle: Vehicle) -> Tuple[bool, bool]:
    """
    Insert or update a vehicle by URL and track price changes.

    Returns:
        Tuple of (is_new_vehicle, price_changed)
    """
    existing = db_get_vehicle_by_url(conn, vehicle.url)
    if existing is None:
        vehicle_id = db_insert_vehicle(conn, vehicle)
        db_insert_price_event(conn, vehicle_id, vehicle.price)
        return True, bool(vehicle.price)

    old_price = existing.get("price")
    price_changed = bool(vehicle.price) and (old_price is None or float(old_price) != float(vehicle.price))
    db_update_vehicle(conn, vehicle)
    if price_changed:
        db_insert_price_event(conn, existing["id"], vehicle.price)
    return False, price_changed


def db_get_price_history(conn: sqlite3.Connection, vehicle_id: str) -> List[Dict]:
    """Price history of one vehicle, oldest first."""
    cur = conn.cursor()
    cur.execute(
        "SELECT ts, price FROM price_history WHERE vehicle_id = ? ORDER BY ts ASC, rowid ASC",
        (vehicle_id,),
    )
    return [row_to_dict(cur, r) for r in cur.fetchall()]
