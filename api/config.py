"""
API configuration and settings management.
"""
import os

from crawler.config import config as crawler_config


class Config:
    """Application configuration."""

    # Database (shared with the crawler CLI)
    DB_PATH: str = crawler_config.DB_PATH

    # Uploaded images, served under UPLOAD_URL_PREFIX
    UPLOAD_DIR: str = crawler_config.UPLOAD_DIR
    UPLOAD_URL_PREFIX: str = crawler_config.UPLOAD_URL_PREFIX

    # Only listings from this host are accepted for crawling
    LISTING_HOST: str = os.getenv("LISTING_HOST", "gebrauchtwagen.mercedes-benz.de")

    # API settings
    API_TITLE: str = "Vehicle Catalog API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Crawl dealer listings and browse the stored vehicle catalog"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500
    EXPORT_LIMIT: int = 10000

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("API_LOG_FILE", "api.log")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup, creating missing directories."""
        if not cls.DB_PATH:
            raise ValueError("Database path not configured")
        os.makedirs(os.path.dirname(cls.DB_PATH) or ".", exist_ok=True)
        os.makedirs(cls.UPLOAD_DIR, exist_ok=True)


# Global config instance
config = Config()
