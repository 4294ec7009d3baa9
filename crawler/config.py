"""
Crawler configuration and settings management.
"""
import os
from typing import List


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Crawler configuration."""

    # Target site
    BASE_URL: str = os.getenv("CRAWLER_BASE_URL", "https://gebrauchtwagen.mercedes-benz.de")
    MANUFACTURER: str = "Mercedes-Benz"
    USER_AGENT: str = os.getenv(
        "CRAWLER_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36",
    )

    # Browser
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    LAUNCH_ARGS: List[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--no-first-run",
        "--no-zygote",
        "--single-process",
        "--disable-gpu",
    ]
    NAVIGATION_TIMEOUT_MS: int = int(os.getenv("CRAWLER_NAV_TIMEOUT_MS", "30000"))
    SETTLE_MS: int = int(os.getenv("CRAWLER_SETTLE_MS", "3000"))

    # Images
    IMAGE_TIMEOUT_S: float = float(os.getenv("CRAWLER_IMAGE_TIMEOUT_S", "10"))
    MAX_GALLERY_IMAGES: int = 10
    IMAGE_CONCURRENCY: int = int(os.getenv("CRAWLER_IMAGE_CONCURRENCY", "4"))
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
    UPLOAD_URL_PREFIX: str = "/uploads"

    # Storage
    DB_PATH: str = os.getenv("VEHICLES_DB", "./data/db/vehicles.db")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE_PATH", "crawler.log")


# Global config instance
config = Config()
