"""
End-to-end tests for crawl orchestration with a fake browser and network.
"""
import asyncio
from datetime import datetime

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from crawler.assets import ImageFetcher
from crawler.conftest import FakePage, FakeSession, image_transport
from crawler.core import VehicleCrawler, build_vehicle
from crawler.errors import BrowserLaunchError
from crawler.scraper import PageExtractor

URL = "https://gebrauchtwagen.mercedes-benz.de/fahrzeug/123"


def make_crawler(tmp_path, page_factory, **session_kwargs):
    session = FakeSession(page_factory=page_factory, **session_kwargs)
    return VehicleCrawler(
        session=session,
        extractor=PageExtractor(session, navigation_timeout_ms=5000, settle_ms=0),
        fetcher=ImageFetcher(upload_dir=str(tmp_path / "uploads"), transport=image_transport()),
    )


@pytest.mark.asyncio
async def test_crawl_vehicle_success(tmp_path, listing_payload):
    crawler = make_crawler(tmp_path, lambda: FakePage(payload=listing_payload))

    result = await crawler.crawl_vehicle(URL)

    assert result.success
    assert result.error is None
    vehicle = result.vehicle
    assert vehicle.url == URL
    assert vehicle.model == "GLC 300"
    assert vehicle.fuel_type == "Benzin"
    assert vehicle.transmission == "Automatik"
    assert vehicle.price == 45990.0
    assert vehicle.mileage == 12500
    assert vehicle.model_year == 2022
    assert len(vehicle.image_gallery) == 1
    assert vehicle.image_gallery[0].startswith("/uploads/vehicle_")
    assert vehicle.main_image.startswith("/uploads/vehicle_")
    assert vehicle.interior == ["Ambientebeleuchtung", "Sitzheizung"]
    assert vehicle.packages == []
    assert vehicle.manufacturer == "Mercedes-Benz"
    assert crawler.session.is_open


@pytest.mark.asyncio
async def test_navigation_timeout_fails_and_keeps_session(tmp_path, listing_payload):
    pages = [FakePage(goto_error=PlaywrightTimeout("Timeout 5000ms exceeded.")), FakePage(payload=listing_payload)]
    crawler = make_crawler(tmp_path, lambda: pages.pop(0))

    failed = await crawler.crawl_vehicle(URL)

    assert not failed.success
    assert failed.vehicle is None
    assert failed.error
    assert crawler.session.is_open

    retried = await crawler.crawl_vehicle(URL)
    assert retried.success
    assert crawler.session.launch_count == 1


@pytest.mark.asyncio
async def test_launch_failure_is_reported(tmp_path):
    crawler = make_crawler(tmp_path, FakePage, launch_error=BrowserLaunchError("Failed to launch browser: boom"))

    result = await crawler.crawl_vehicle(URL)

    assert not result.success
    assert result.error == "Failed to launch browser: boom"


@pytest.mark.asyncio
async def test_same_url_in_flight_is_crawled_once(tmp_path, listing_payload):
    crawler = make_crawler(tmp_path, lambda: FakePage(payload=listing_payload, goto_delay=0.05))

    first, second = await asyncio.gather(crawler.crawl_vehicle(URL), crawler.crawl_vehicle(URL))

    assert first is second
    assert len(crawler.session.browsers[0].pages) == 1
    assert not crawler.in_progress(URL)


@pytest.mark.asyncio
async def test_different_urls_crawl_concurrently(tmp_path, listing_payload):
    crawler = make_crawler(tmp_path, lambda: FakePage(payload=listing_payload, goto_delay=0.01))

    results = await asyncio.gather(crawler.crawl_vehicle(URL), crawler.crawl_vehicle(URL + "?v=2"))

    assert all(r.success for r in results)
    assert crawler.session.launch_count == 1
    assert len(crawler.session.browsers[0].pages) == 2


@pytest.mark.asyncio
async def test_close_shuts_session(tmp_path, listing_payload):
    async with make_crawler(tmp_path, lambda: FakePage(payload=listing_payload)) as crawler:
        await crawler.crawl_vehicle(URL)
        assert crawler.session.is_open
    assert not crawler.session.is_open


def test_build_vehicle_defaults():
    vehicle = build_vehicle(URL, {}, [], None)

    assert vehicle.model == ""
    assert vehicle.price == 0.0
    assert vehicle.mileage == 0
    assert vehicle.model_year == datetime.now().year
    assert vehicle.main_image is None
    assert vehicle.image_gallery == []
    assert vehicle.safety_tech == []
    assert vehicle.warranty == ""


def test_build_vehicle_ignores_wrong_types():
    vehicle = build_vehicle(URL, {"model": ["not", "text"], "interior": "not a list"}, ["/uploads/a.jpg"], "")

    assert vehicle.model == ""
    assert vehicle.interior == []
    assert vehicle.image_gallery == ["/uploads/a.jpg"]
    assert vehicle.main_image is None
