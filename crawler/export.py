"""
Export utilities for crawled vehicles.
"""
import logging
import sqlite3
from typing import List, Optional

import pandas as pd

from .database import vehicle_to_row
from .models import Vehicle

logger = logging.getLogger(__name__)


def write_frame(df: pd.DataFrame, out_path: str) -> None:
    """Write to Excel for .xlsx paths, CSV otherwise."""
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def export_vehicles(conn: sqlite3.Connection) -> pd.DataFrame:
    """All stored vehicles, most recently updated first."""
    return pd.read_sql_query("SELECT * FROM vehicles ORDER BY updated_at DESC", conn)


def export_price_history(conn: sqlite3.Connection, url: Optional[str] = None) -> pd.DataFrame:
    """Export price history for all vehicles or the one listed at url."""
    q = """
    SELECT v.url, v.model, p.ts, p.price
    FROM price_history p JOIN vehicles v ON v.id = p.vehicle_id
    """
    if url:
        return pd.read_sql_query(q + " WHERE v.url = ? ORDER BY p.ts ASC, p.rowid ASC", conn, params=(url,))
    return pd.read_sql_query(q + " ORDER BY v.url, p.ts ASC, p.rowid ASC", conn)


def save_output_rows(vehicles: List[Vehicle], out_path: str) -> pd.DataFrame:
    """Save crawled vehicles to CSV or Excel file."""
    df = pd.DataFrame([vehicle_to_row(v) for v in vehicles])
    write_frame(df, out_path)
    logger.info(f">>> Saved {len(df)} rows to {out_path}")
    return df
