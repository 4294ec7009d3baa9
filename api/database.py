"""
Database operations and connection management for the catalog API.
"""
import json
import sqlite3
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from crawler.database import LIST_COLUMNS, db_get_price_history, db_init

from .config import config

logger = logging.getLogger(__name__)

@contextmanager
def get_db_connection():
    """Get a database connection with proper error handling."""
    conn = None
    try:
        if not config.DB_PATH:
            raise ValueError("Database path not configured")

        conn = sqlite3.connect(config.DB_PATH)
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()

def init_schema() -> None:
    """Create tables if they do not exist yet."""
    with get_db_connection() as conn:
        db_init(conn)

def decode_vehicle(row: Dict[str, Any]) -> Dict[str, Any]:
    """Split stored gallery and feature columns back into lists."""
    data = dict(row)
    gallery = data.get("image_gallery") or ""
    data["image_gallery"] = [p for p in gallery.split("|") if p]
    for col in LIST_COLUMNS:
        try:
            data[col] = json.loads(data.get(col) or "[]")
        except ValueError:
            data[col] = []
    return data

def build_where_clause(filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Build WHERE clause and parameters from filters."""
    where_conditions = []
    parameters = []

    # Text search
    search = filters.get('search')
    if search:
        where_conditions.append(
            '(model LIKE ? OR dealer_location LIKE ? OR exterior_color LIKE ? OR fuel_type LIKE ?)'
        )
        search_term = f'%{search}%'
        parameters.extend([search_term] * 4)

    # Fuel type filter
    fuel_type = filters.get('fuel_type')
    if fuel_type:
        where_conditions.append('fuel_type LIKE ?')
        parameters.append(f'%{fuel_type}%')

    # Transmission filter
    transmission = filters.get('transmission')
    if transmission:
        where_conditions.append('transmission LIKE ?')
        parameters.append(f'%{transmission}%')

    # Price cap, ignored unless positive
    max_price = filters.get('max_price')
    if max_price is not None and max_price > 0:
        where_conditions.append('price <= ?')
        parameters.append(max_price)

    where_clause = ' WHERE ' + ' AND '.join(where_conditions) if where_conditions else ''
    return where_clause, parameters

def get_order_clause(sort: str) -> str:
    """Generate ORDER BY clause based on sort parameter."""
    sort_options = {
        "price_asc": "ORDER BY price ASC",
        "price_desc": "ORDER BY price DESC",
        "year_desc": "ORDER BY model_year DESC",
        "year_asc": "ORDER BY model_year ASC",
        "mileage_asc": "ORDER BY mileage ASC",
        "mileage_desc": "ORDER BY mileage DESC",
    }
    return sort_options.get(sort, sort_options["price_asc"])

def get_vehicles_count(filters: Dict[str, Any]) -> int:
    """Get total count of vehicles matching filters."""
    with get_db_connection() as conn:
        where_clause, parameters = build_where_clause(filters)
        sql = f'SELECT COUNT(*) FROM vehicles {where_clause}'
        result = conn.execute(sql, parameters).fetchone()
        return result[0] if result else 0

def get_vehicles(filters: Dict[str, Any], sort: str = 'price_asc',
                 limit: int = 50, offset: int = 0) -> List[Dict]:
    """Get vehicles with filters, sorting, and pagination."""
    with get_db_connection() as conn:
        where_clause, parameters = build_where_clause(filters)
        order_clause = get_order_clause(sort)

        sql = f'SELECT * FROM vehicles {where_clause} {order_clause} LIMIT ? OFFSET ?'
        parameters.extend([limit, offset])

        return [decode_vehicle(row) for row in conn.execute(sql, parameters).fetchall()]

def get_vehicle_by_id(vehicle_id: str) -> Optional[Dict]:
    """Get a single vehicle by ID."""
    with get_db_connection() as conn:
        row = conn.execute('SELECT * FROM vehicles WHERE id = ?', (vehicle_id,)).fetchone()
        return decode_vehicle(row) if row else None

def get_vehicle_by_url(url: str) -> Optional[Dict]:
    """Get a single vehicle by its listing URL."""
    with get_db_connection() as conn:
        row = conn.execute('SELECT * FROM vehicles WHERE url = ?', (url,)).fetchone()
        return decode_vehicle(row) if row else None

def get_price_history(vehicle_id: str) -> List[Dict]:
    """Get price history for a specific vehicle."""
    with get_db_connection() as conn:
        return db_get_price_history(conn, vehicle_id)

def get_crawl_status(recent: int = 5) -> Dict[str, Any]:
    """Total stored vehicles and the most recently crawled ones."""
    with get_db_connection() as conn:
        total = conn.execute('SELECT COUNT(*) FROM vehicles').fetchone()[0]
        rows = conn.execute(
            'SELECT id, model, url, updated_at FROM vehicles ORDER BY updated_at DESC LIMIT ?',
            (recent,)
        ).fetchall()
        return {
            'total_vehicles': total,
            'recent_crawls': [dict(row) for row in rows]
        }
