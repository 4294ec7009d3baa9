"""
Shared headless browser session.
"""
import asyncio
import logging
from typing import List, Optional

from playwright.async_api import async_playwright, Browser, Error as PlaywrightError

from .config import config
from .errors import BrowserLaunchError

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Owns one lazily started Chromium process reused across crawls.

    ensure() is safe to call concurrently: the check for a live browser and
    the launch happen under one lock, so at most one process is started.
    Pages are created per crawl and must be closed by whoever opened them.
    """

    def __init__(self, headless: Optional[bool] = None, launch_args: Optional[List[str]] = None):
        self.headless = config.HEADLESS if headless is None else headless
        self.launch_args = list(config.LAUNCH_ARGS if launch_args is None else launch_args)
        self.launch_count = 0
        self._pw = None
        self._browser: Optional[Browser] = None
        # Created on first use so it binds to the loop that runs the crawls
        self._lock: Optional[asyncio.Lock] = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def ensure(self) -> Browser:
        """Return the live browser, launching it first if needed."""
        async with self._get_lock():
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching")
                await self._shutdown()
            self._browser = await self._launch()
            self.launch_count += 1
            logger.info(f"Browser launched (headless={self.headless})")
            return self._browser

    async def _launch(self) -> Browser:
        self._pw = await async_playwright().start()
        try:
            return await self._pw.chromium.launch(headless=self.headless, args=self.launch_args)
        except PlaywrightError as e:
            await self._pw.stop()
            self._pw = None
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

    async def new_page(self, user_agent: Optional[str] = None):
        """Open a fresh tab in its own context; closing the page closes the context."""
        browser = await self.ensure()
        return await browser.new_page(user_agent=user_agent or config.USER_AGENT)

    async def close(self) -> None:
        """Tear the browser down; the next ensure() starts a new one."""
        async with self._get_lock():
            await self._shutdown()

    async def _shutdown(self) -> None:
        browser, pw = self._browser, self._pw
        self._browser = None
        self._pw = None
        try:
            if browser is not None:
                await browser.close()
                logger.info("Browser closed")
        except PlaywrightError as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            if pw is not None:
                await pw.stop()
