"""
Utility functions for logging, text cleanup and field normalization.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional

# Largest value an SQLite INTEGER column holds
SQLITE_MAX_INT = 2 ** 63 - 1


def init_logger(
    name: str = "crawler",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "crawler.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def parse_price(price_text: Optional[str]) -> float:
    """
    Parse a German-formatted price into a non-negative float.

    Everything except digits, comma, dot and minus is stripped. Dots are
    thousands separators and dropped; the last comma is the decimal
    separator. So "35.000,50 €" -> 35000.5 and "12.345 €" -> 12345.0.
    Empty, unparseable or negative input yields 0.
    """
    if not price_text:
        return 0.0

    s = re.sub(r"[^\d,.\-]", "", price_text)
    s = s.rstrip("-")  # "45.990,-"
    s = s.replace(".", "")
    head, sep, tail = s.rpartition(",")
    if sep:
        s = head.replace(",", "") + "." + tail

    try:
        value = float(s)
    except ValueError:
        return 0.0

    if not math.isfinite(value) or value <= 0:
        return 0.0
    return value


def _bounded_int(digits: str) -> Optional[int]:
    """int(digits), or None when it does not fit an SQLite INTEGER."""
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(SQLITE_MAX_INT)):
        return None
    value = int(digits)
    return value if value <= SQLITE_MAX_INT else None


def parse_year(year_text: Optional[str]) -> int:
    """Parse the leading integer of a year string, else the current year."""
    if year_text:
        m = re.match(r"\s*(\d+)", year_text)
        year = _bounded_int(m.group(1)) if m else None
        if year is not None:
            return year
    return datetime.now().year


def parse_mileage(mileage_text: Optional[str]) -> int:
    """Keep only the digits of a mileage string ("45.000 km" -> 45000)."""
    if not mileage_text:
        return 0
    digits = re.sub(r"\D", "", mileage_text)
    if not digits:
        return 0
    return _bounded_int(digits) or 0
