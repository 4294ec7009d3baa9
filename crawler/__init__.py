"""
Vehicle listing crawler package.
"""
from .models import Vehicle, CrawlResult
from .core import VehicleCrawler, build_vehicle
from .session import BrowserSession
from .scraper import PageExtractor
from .assets import ImageFetcher
from .database import (
    db_connect,
    db_init,
    upsert_with_price_history,
    db_get_vehicle_by_url
)
from .export import (
    export_vehicles,
    export_price_history,
    save_output_rows
)
from .utils import init_logger, now_iso, parse_price, parse_year, parse_mileage

__version__ = "1.0.0"

__all__ = [
    "Vehicle",
    "CrawlResult",
    "VehicleCrawler",
    "build_vehicle",
    "BrowserSession",
    "PageExtractor",
    "ImageFetcher",
    "db_connect",
    "db_init",
    "upsert_with_price_history",
    "db_get_vehicle_by_url",
    "export_vehicles",
    "export_price_history",
    "save_output_rows",
    "init_logger",
    "now_iso",
    "parse_price",
    "parse_year",
    "parse_mileage"
]
