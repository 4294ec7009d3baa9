"""
Crawl orchestration: session -> page extraction -> images + normalization.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from .assets import ImageFetcher
from .config import config
from .models import CrawlResult, FEATURE_FIELDS, RawExtraction, Vehicle
from .scraper import PageExtractor
from .session import BrowserSession
from .utils import parse_mileage, parse_price, parse_year

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "model", "vehicle_number", "vehicle_type", "first_registration", "power",
    "fuel_type", "transmission", "exterior_color", "interior_color", "upholstery",
    "acceleration", "warranty", "charging_duration", "electric_range", "energy",
    "dealer_location",
)


def build_vehicle(
    url: str,
    raw: RawExtraction,
    image_gallery: List[str],
    main_image: Optional[str],
    manufacturer: Optional[str] = None,
) -> Vehicle:
    """Assemble a fully typed Vehicle; every missing field gets its default."""

    def text(key: str) -> str:
        value = raw.get(key)
        return value if isinstance(value, str) else ""

    def items(key: str) -> List[str]:
        value = raw.get(key)
        if not isinstance(value, list):
            return []
        return [x for x in value if isinstance(x, str) and x]

    vehicle = Vehicle(
        url=url,
        price=parse_price(text("price")),
        model_year=parse_year(text("model_year")),
        mileage=parse_mileage(text("mileage")),
        main_image=main_image or None,
        image_gallery=list(image_gallery),
        manufacturer=manufacturer or config.MANUFACTURER,
    )
    for key in TEXT_FIELDS:
        setattr(vehicle, key, text(key))
    for key in FEATURE_FIELDS:
        setattr(vehicle, key, items(key))
    return vehicle


class VehicleCrawler:
    """
    Crawls listing pages into Vehicle records.

    The browser session is shared by all crawls and only closed by close().
    Concurrent requests for the same URL share one attempt and its result.
    """

    def __init__(
        self,
        session: Optional[BrowserSession] = None,
        extractor: Optional[PageExtractor] = None,
        fetcher: Optional[ImageFetcher] = None,
    ):
        self.session = session or BrowserSession()
        self.extractor = extractor or PageExtractor(self.session)
        self.fetcher = fetcher or ImageFetcher()
        self._inflight: Dict[str, "asyncio.Task[CrawlResult]"] = {}

    async def __aenter__(self) -> "VehicleCrawler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.session.close()

    def in_progress(self, url: str) -> bool:
        return url in self._inflight

    async def crawl_vehicle(self, url: str) -> CrawlResult:
        """Crawl url; never raises for crawl failures, see CrawlResult.error."""
        task = self._inflight.get(url)
        if task is None:
            task = asyncio.ensure_future(self._run(url))
            self._inflight[url] = task
        else:
            logger.info(f"Crawl already in progress for {url}, joining it")
        # A cancelled caller must not cancel the attempt other callers wait on
        return await asyncio.shield(task)

    async def _run(self, url: str) -> CrawlResult:
        try:
            return await self._crawl(url)
        finally:
            self._inflight.pop(url, None)

    async def _crawl(self, url: str) -> CrawlResult:
        logger.info(f">>> Crawling {url}")
        try:
            await self.session.ensure()
            raw = await self.extractor.extract(url)
            image_gallery, main_image = await asyncio.gather(
                self.fetcher.download_images(raw.get("images") or []),
                self.fetcher.download_image(raw.get("main_image") or ""),
            )
            vehicle = build_vehicle(url, raw, image_gallery, main_image)
        except Exception as e:
            logger.error(f"Crawling error for {url}: {e}", exc_info=True)
            return CrawlResult.failed(str(e) or e.__class__.__name__)

        logger.info(
            f">>> Crawled {vehicle.model or '(no model)'} | {vehicle.price} | "
            f"{len(vehicle.image_gallery)} images"
        )
        return CrawlResult.ok(vehicle)
