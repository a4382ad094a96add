"""Tests for the command line entry points and configuration helpers."""
from __future__ import annotations

from cryptodash import config
from cryptodash.db.assets_repo import AssetsRepo
from cryptodash.main_db import main as db_main
from cryptodash.main_refresh import run
from cryptodash.main_seed import main as seed_main
from cryptodash.main_seed import seed_assets


def test_seed_assets_is_idempotent(db):
    assert seed_assets(db) == 4
    assert seed_assets(db) == 4

    with db.session_scope() as s:
        assert [a.symbol for a in AssetsRepo().list_active(s)] == ["BCH", "BTC", "ETH", "LTC"]


def test_seed_main_creates_tables(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'seed.db'}")

    assert seed_main(["--create-tables"]) == 0


def test_db_main_reports_connection(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'check.db'}")

    assert db_main(["--skip-cache"]) == 0
    out = capsys.readouterr().out
    assert "Database: OK" in out
    assert "Alembic revision: none" in out
    assert "Active assets: tables missing" in out


def test_db_main_counts_seeded_assets(seeded_db, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", str(seeded_db.engine.url))

    assert db_main(["--skip-cache"]) == 0
    assert "Active assets: 4" in capsys.readouterr().out


def test_db_main_without_database_url(monkeypatch):
    for name in ("DATABASE_URL", "DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    assert db_main([]) == 2


def test_refresh_run_single_blockchain(service):
    assert run(service, "bitcoin") == 0
    assert run(service, "dogecoin") == 1


def test_refresh_run_everything(service, stub_client):
    assert run(service, None) == 0
    assert sorted(stub_client.calls) == ["bitcoin", "bitcoin-cash", "ethereum", "litecoin"]


def test_database_url_from_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_NAME", "cryptodash")
    monkeypatch.setenv("DB_USER", "dash")
    monkeypatch.setenv("DB_PASSWORD", "pw")
    monkeypatch.delenv("DB_PORT", raising=False)

    assert config.get_database_url() == "postgresql+psycopg2://dash:pw@db:5432/cryptodash"

    monkeypatch.delenv("DB_PASSWORD")
    assert config.get_database_url() is None


def test_defaults_without_environment(monkeypatch):
    for name in ("REDIS_URL", "BLOCKCHAIR_API_KEY", "BLOCKCHAIR_BASE_URL", "BLOCKCHAIR_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REFRESH_CONCURRENCY", "0")

    assert config.get_redis_url() == "redis://localhost:6379/0"
    assert config.get_refresh_concurrency() == 1
    assert config.get_blockchair_config() == {
        "BLOCKCHAIR_API_KEY": None,
        "BLOCKCHAIR_BASE_URL": "https://api.blockchair.com",
        "BLOCKCHAIR_TIMEOUT": 10.0,
    }
