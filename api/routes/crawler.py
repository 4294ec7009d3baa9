"""
API route handlers for crawling listing pages.
"""
import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Request

from crawler.core import VehicleCrawler
from crawler.database import upsert_with_price_history

from ..config import config
from ..database import get_crawl_status, get_db_connection, get_vehicle_by_url
from ..models import CrawlRequest, CrawlResponse, CrawlStatus, VehicleOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/crawler", tags=["crawler"])

def get_crawler(request: Request) -> VehicleCrawler:
    """Dependency returning the crawler created in the app lifespan."""
    return request.app.state.crawler

def is_listing_url(url: str) -> bool:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    return parsed.scheme in ("http", "https") and (
        host == config.LISTING_HOST or host.endswith("." + config.LISTING_HOST)
    )

@router.post("/crawl", response_model=CrawlResponse)
async def crawl_listing(body: CrawlRequest, crawler: VehicleCrawler = Depends(get_crawler)):
    """Crawl one listing page and insert or update it by URL."""
    url = (body.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL is required")
    if not is_listing_url(url):
        raise HTTPException(status_code=400, detail="Invalid listing URL")

    result = await crawler.crawl_vehicle(url)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error)

    try:
        with get_db_connection() as conn:
            is_new, price_changed = upsert_with_price_history(conn, result.vehicle)
        stored = get_vehicle_by_url(url)
    except Exception as e:
        logger.error(f"Error storing crawled vehicle {url}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if price_changed and not is_new:
        logger.info(f"Price changed for {url}: {result.vehicle.price}")

    return CrawlResponse(
        message="Vehicle crawled and saved successfully" if is_new else "Vehicle updated successfully",
        vehicle=VehicleOut(**stored),
        is_new=is_new,
    )

@router.get("/status", response_model=CrawlStatus)
async def crawler_status():
    """Number of stored vehicles and the five most recent crawls."""
    try:
        return CrawlStatus(**get_crawl_status())
    except Exception as e:
        logger.error(f"Crawler status error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
