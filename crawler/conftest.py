"""
Test doubles for Playwright objects shared by the crawler tests.
"""
import asyncio

import httpx
import pytest

from crawler.session import BrowserSession


class FakePage:
    def __init__(self, payload=None, goto_error=None, eval_error=None, goto_delay=0.0):
        self.payload = payload if payload is not None else {}
        self.goto_error = goto_error
        self.eval_error = eval_error
        self.goto_delay = goto_delay
        self.visited = []
        self.waits = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append((url, wait_until, timeout))
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def evaluate(self, script, arg=None):
        if self.eval_error is not None:
            raise self.eval_error
        return self.payload

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory):
        self.page_factory = page_factory
        self.pages = []
        self.user_agents = []
        self.connected = True

    def is_connected(self):
        return self.connected

    async def new_page(self, user_agent=None):
        self.user_agents.append(user_agent)
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def close(self):
        self.connected = False


class FakeSession(BrowserSession):
    """BrowserSession whose launch returns a FakeBrowser instead of Chromium."""

    def __init__(self, page_factory=FakePage, launch_delay=0.0, launch_error=None):
        super().__init__(headless=True)
        self.page_factory = page_factory
        self.launch_delay = launch_delay
        self.launch_error = launch_error
        self.browsers = []

    async def _launch(self):
        if self.launch_delay:
            await asyncio.sleep(self.launch_delay)
        if self.launch_error is not None:
            raise self.launch_error
        browser = FakeBrowser(self.page_factory)
        self.browsers.append(browser)
        return browser


@pytest.fixture
def listing_payload():
    """What the extraction script returns for a typical listing page."""
    return {
        "fields": {
            "model": "GLC 300",
            "price": "45.990 €",
            "vehicle_number": "0815-4711",
            "dealer_location": "Hildesheim",
            "main_image": "/media/vehicle/main.jpg",
        },
        "specPairs": [
            ["Kraftstoffart", "Benzin"],
            ["Laufleistung", "12.500 km"],
            ["Modelljahr", "2022"],
            ["Getriebe", "Automatik"],
            ["Sitzheizung", "ja"],
        ],
        "images": [
            "https://img.example.com/vehicle/1.jpg",
            "https://unreachable.example.com/vehicle/2.jpg",
            "/assets/loading-spinner.gif",
        ],
        "features": {
            "interior": ["Ambientebeleuchtung", "Sitzheizung"],
            "safety_tech": ["Totwinkel-Assistent"],
        },
    }


def image_transport(requested=None):
    """
    Serves the URL itself as the image body. Hosts containing 'unreachable'
    refuse the connection; hosts containing 'slow' trickle bytes forever.
    """

    async def trickle():
        while True:
            yield b"x"
            await asyncio.sleep(0.05)

    async def handler(request: httpx.Request) -> httpx.Response:
        if requested is not None:
            requested.append(str(request.url))
        if "unreachable" in request.url.host:
            raise httpx.ConnectError("connection refused", request=request)
        if "slow" in request.url.host:
            return httpx.Response(200, content=trickle())
        if request.url.path.endswith("missing.jpg"):
            return httpx.Response(404)
        return httpx.Response(200, content=str(request.url).encode())

    return httpx.MockTransport(handler)
