"""
Tests for the catalog API with an in-memory crawler double.
"""
import io
from types import SimpleNamespace

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from crawler.models import CrawlResult, Vehicle

from api.config import Config
from api.main import app
from api.routes.crawler import get_crawler, is_listing_url

URL = "https://gebrauchtwagen.mercedes-benz.de/fahrzeug/123"
OTHER_URL = "https://gebrauchtwagen.mercedes-benz.de/fahrzeug/456"


def make_vehicle(url=URL, **overrides):
    data = dict(
        url=url,
        model="GLC 300",
        price=45990.0,
        model_year=2022,
        mileage=12500,
        main_image="/uploads/vehicle_1_a.jpg",
        image_gallery=["/uploads/vehicle_1_b.jpg"],
        fuel_type="Benzin",
        transmission="Automatik",
        dealer_location="Hildesheim",
        interior=["Sitzheizung"],
    )
    data.update(overrides)
    return Vehicle(**data)


class FakeCrawler:
    def __init__(self):
        self.results = []
        self.calls = []
        self.closed = False
        self.session = SimpleNamespace(is_open=False)

    async def crawl_vehicle(self, url):
        self.calls.append(url)
        return self.results.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_crawler():
    return FakeCrawler()


@pytest.fixture
def client(tmp_path, monkeypatch, fake_crawler):
    monkeypatch.setattr(Config, "DB_PATH", str(tmp_path / "db" / "vehicles.db"))
    monkeypatch.setattr(Config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    app.state.crawler = fake_crawler
    app.dependency_overrides[get_crawler] = lambda: fake_crawler
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    del app.state.crawler


def crawl(client, fake_crawler, vehicle):
    fake_crawler.results.append(CrawlResult.ok(vehicle))
    return client.post("/api/crawler/crawl", json={"url": vehicle.url})


@pytest.mark.parametrize("url,expected", [
    (URL, True),
    ("http://gebrauchtwagen.mercedes-benz.de/x", True),
    ("https://www.gebrauchtwagen.mercedes-benz.de/x", True),
    ("https://gebrauchtwagen.mercedes-benz.de.evil.com/x", False),
    ("https://evilgebrauchtwagen.mercedes-benz.de/x", False),
    ("ftp://gebrauchtwagen.mercedes-benz.de/x", False),
    ("not a url", False),
])
def test_is_listing_url(url, expected):
    assert is_listing_url(url) is expected


def test_crawl_requires_url(client, fake_crawler):
    for body in ({}, {"url": ""}, {"url": "   "}):
        r = client.post("/api/crawler/crawl", json=body)
        assert r.status_code == 400
        assert r.json()["detail"] == "URL is required"
    assert fake_crawler.calls == []


def test_crawl_rejects_foreign_host(client, fake_crawler):
    r = client.post("/api/crawler/crawl", json={"url": "https://example.com/car/1"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid listing URL"
    assert fake_crawler.calls == []


def test_crawl_failure_returns_500(client, fake_crawler):
    fake_crawler.results.append(CrawlResult.failed("Timed out after 30000 ms loading " + URL))

    r = client.post("/api/crawler/crawl", json={"url": URL})

    assert r.status_code == 500
    assert r.json()["detail"].startswith("Timed out after 30000 ms")
    assert client.get("/api/vehicles").json()["total"] == 0


def test_crawl_inserts_then_updates(client, fake_crawler):
    r = crawl(client, fake_crawler, make_vehicle())
    assert r.status_code == 200
    first = r.json()
    assert first["is_new"] is True
    assert first["message"] == "Vehicle crawled and saved successfully"
    assert first["vehicle"]["image_gallery"] == ["/uploads/vehicle_1_b.jpg"]
    assert first["vehicle"]["interior"] == ["Sitzheizung"]
    assert first["vehicle"]["manufacturer"] == "Mercedes-Benz"

    r = crawl(client, fake_crawler, make_vehicle(price=43990.0))
    second = r.json()
    assert second["is_new"] is False
    assert second["message"] == "Vehicle updated successfully"
    assert second["vehicle"]["id"] == first["vehicle"]["id"]
    assert second["vehicle"]["price"] == 43990.0

    history = client.get(f"/api/vehicles/{first['vehicle']['id']}/price-history").json()
    assert [p["price"] for p in history] == [45990.0, 43990.0]


def test_list_filter_and_sort(client, fake_crawler):
    crawl(client, fake_crawler, make_vehicle())
    crawl(client, fake_crawler, make_vehicle(
        url=OTHER_URL, model="EQE 350+", price=61990.0, fuel_type="Elektro", model_year=2023, mileage=800,
    ))

    body = client.get("/api/vehicles").json()
    assert body["total"] == 2
    assert [v["model"] for v in body["vehicles"]] == ["GLC 300", "EQE 350+"]

    body = client.get("/api/vehicles", params={"sort": "price_desc"}).json()
    assert [v["model"] for v in body["vehicles"]] == ["EQE 350+", "GLC 300"]

    body = client.get("/api/vehicles", params={"fuel_type": "elektro"}).json()
    assert [v["model"] for v in body["vehicles"]] == ["EQE 350+"]

    body = client.get("/api/vehicles", params={"max_price": 50000}).json()
    assert [v["model"] for v in body["vehicles"]] == ["GLC 300"]

    body = client.get("/api/vehicles", params={"search": "Hildesheim", "limit": 1}).json()
    assert body["total"] == 2
    assert len(body["vehicles"]) == 1


def test_unknown_vehicle_is_404(client):
    assert client.get("/api/vehicles/missing").status_code == 404
    assert client.get("/api/vehicles/missing/price-history").status_code == 404


def test_crawler_status(client, fake_crawler):
    crawl(client, fake_crawler, make_vehicle())
    crawl(client, fake_crawler, make_vehicle(url=OTHER_URL, model="EQE 350+"))

    status = client.get("/api/crawler/status").json()

    assert status["total_vehicles"] == 2
    assert {c["url"] for c in status["recent_crawls"]} == {URL, OTHER_URL}


def test_export_csv(client, fake_crawler):
    crawl(client, fake_crawler, make_vehicle())

    r = client.get("/api/export/csv")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    df = pd.read_csv(io.StringIO(r.text))
    assert list(df["url"]) == [URL]
    assert df["image_gallery"][0] == "/uploads/vehicle_1_b.jpg"


def test_health_reports_idle_browser(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["browser"] == "idle"


def test_shutdown_closes_crawler(tmp_path, monkeypatch, fake_crawler):
    monkeypatch.setattr(Config, "DB_PATH", str(tmp_path / "vehicles.db"))
    monkeypatch.setattr(Config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    app.state.crawler = fake_crawler
    with TestClient(app):
        assert not fake_crawler.closed
    assert fake_crawler.closed
    del app.state.crawler
