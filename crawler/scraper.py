"""
Playwright-based extraction of a single vehicle listing page.
"""
import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from .config import config
from .errors import ExtractionError, NavigationError
from .fields import EXTRACT_SCRIPT, build_raw_extraction, script_args
from .models import RawExtraction
from .session import BrowserSession

logger = logging.getLogger(__name__)


async def open_listing(page, url: str, timeout_ms: int) -> None:
    """Navigate and wait for the network to go idle, within timeout_ms."""
    try:
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except PlaywrightTimeout as e:
        raise NavigationError(f"Timed out after {timeout_ms} ms loading {url}") from e
    except PlaywrightError as e:
        raise NavigationError(f"Failed to load {url}: {e}") from e


async def close_page(page) -> None:
    try:
        await page.close()
    except PlaywrightError as e:
        logger.warning(f"Error while closing page: {e}")


class PageExtractor:
    """Reads the raw fields of one listing page through a shared BrowserSession."""

    def __init__(
        self,
        session: BrowserSession,
        navigation_timeout_ms: Optional[int] = None,
        settle_ms: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        self.session = session
        self.navigation_timeout_ms = navigation_timeout_ms or config.NAVIGATION_TIMEOUT_MS
        self.settle_ms = config.SETTLE_MS if settle_ms is None else settle_ms
        self.user_agent = user_agent or config.USER_AGENT

    async def extract(self, url: str) -> RawExtraction:
        """
        Load url in a new tab and return its RawExtraction.

        The tab is closed on every exit path; the browser stays open.
        Missing optional elements give empty values, while navigation and
        evaluation failures raise NavigationError / ExtractionError.
        """
        page = await self.session.new_page(user_agent=self.user_agent)
        try:
            logger.info(f">>> Opening listing: {url}")
            await open_listing(page, url, self.navigation_timeout_ms)
            # Client-side rendering keeps going after network idle
            await page.wait_for_timeout(self.settle_ms)
            try:
                payload = await page.evaluate(EXTRACT_SCRIPT, script_args())
            except PlaywrightError as e:
                raise ExtractionError(f"Extraction failed for {url}: {e}") from e
        finally:
            await close_page(page)

        raw = build_raw_extraction(payload or {}, url)
        logger.debug(
            f"Extracted: model={raw['model']!r} price={raw['price']!r} "
            f"images={len(raw['images'])}"
        )
        return raw
