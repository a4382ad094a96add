"""HTTP-level tests for the FastAPI routes using an injected service."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cryptodash.app import create_app
from cryptodash.errors import PersistenceError


@pytest.fixture
def client(service):
    with TestClient(create_app(refresh_service=service)) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_get_single_cryptocurrency(client):
    resp = client.get("/cryptocurrencies", params={"symbol": "btc"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["symbol"] == "BTC"
    assert body["blockchain"] == "bitcoin"
    assert body["blockchain_stats"]["blocks"] == 820000
    assert body["latest_data"] is None


def test_get_all_cryptocurrencies(client):
    resp = client.get("/cryptocurrencies", params={"refresh": "true"})

    assert resp.status_code == 200
    assert [a["symbol"] for a in resp.json()] == ["BCH", "BTC", "ETH", "LTC"]


def test_unknown_cryptocurrency_is_404(client):
    resp = client.get("/cryptocurrencies", params={"symbol": "DOGE"})

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Cryptocurrency not found"}


def test_database_failure_is_500(client, service, monkeypatch):
    def broken(force_refresh=False):
        raise PersistenceError("database is gone")

    monkeypatch.setattr(service, "get_all_assets", broken)

    resp = client.get("/cryptocurrencies")

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to fetch data"}


def test_historical_data_requires_symbol(client):
    resp = client.get("/historical-data")

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Symbol parameter is required"}


def test_refresh_then_read_history(client):
    resp = client.post("/refresh-data", params={"blockchain": "bitcoin"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Data refreshed for bitcoin"}

    resp = client.get("/historical-data", params={"symbol": "btc", "range": "7d"})

    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 1
    assert rows[0]["block_count"] == 820000
    assert rows[0]["data_source"] == "blockchair"


def test_refresh_everything(client, seeded_db):
    resp = client.post("/refresh-data")

    assert resp.status_code == 200
    assert resp.json() == {"message": "All data refreshed"}


def test_historical_unknown_symbol_is_empty_list(client):
    resp = client.get("/historical-data", params={"symbol": "DOGE"})

    assert resp.status_code == 200
    assert resp.json() == []


def test_blockchair_diagnostics(client):
    general = client.get("/blockchair-test")
    address = client.get("/blockchair-test", params={"blockchain": "bitcoin", "address": "1A1zP1"})

    assert general.status_code == 200
    assert general.json()["general"]["data"]["blocks"] == 820000
    assert address.json()["data"]["1A1zP1"]["address"]["balance"] == 1000


def test_blockchair_diagnostics_upstream_failure_is_500(client):
    resp = client.get("/blockchair-test", params={"blockchain": "dogecoin"})

    assert resp.status_code == 500


def test_requests_before_startup_are_503(service):
    # Without the context manager the lifespan never runs.
    resp = TestClient(create_app(refresh_service=service)).get("/cryptocurrencies")

    assert resp.status_code == 503


def test_refresh_flag_other_than_true_reads_cache(client, stub_client):
    client.get("/cryptocurrencies", params={"symbol": "BTC"})
    resp = client.get("/cryptocurrencies", params={"symbol": "BTC", "refresh": "abc"})

    assert resp.status_code == 200
    assert stub_client.calls == ["bitcoin"]

    client.get("/cryptocurrencies", params={"symbol": "BTC", "refresh": "true"})
    assert stub_client.calls == ["bitcoin", "bitcoin"]


def test_cryptocurrency_details(client):
    client.post("/refresh-data", params={"blockchain": "bitcoin"})

    resp = client.get("/cryptocurrencies/btc/details")

    assert resp.status_code == 200
    body = resp.json()
    assert body["symbol"] == "BTC"
    assert len(body["historical_data"]) == 1
    assert body["ai_predictions"] == []
    assert body["news_sentiment"] == []


def test_cryptocurrency_details_unknown_is_404(client):
    resp = client.get("/cryptocurrencies/DOGE/details")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Cryptocurrency not found"}
