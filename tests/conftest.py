"""Shared fixtures: fake Redis, fake Blockchair client, SQLite-backed DbConn."""
from __future__ import annotations

import fnmatch
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cryptodash.api.blockchair_client import BlockchairApiError
from cryptodash.cache.redis_cache import CacheService
from cryptodash.db.db_conn import DbConn
from cryptodash.main_seed import seed_assets
from cryptodash.schemas import BlockchainStats
from cryptodash.services.data_refresh import DataRefreshService


class FakeRedis:
    """Lightweight stub emulating the subset of redis.Redis the cache uses."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    def ping(self) -> bool:
        self._check()
        return True

    def get(self, key: str) -> Optional[str]:
        self._check()
        return self.store.get(key)

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    def scan_iter(self, match: str = "*"):
        self._check()
        return iter([k for k in list(self.store) if fnmatch.fnmatchcase(k, match)])

    def close(self) -> None:
        self.closed = True


class StubBlockchairClient:
    """Returns canned stats per blockchain, or raises the configured error."""

    def __init__(
        self,
        stats: Optional[Dict[str, Dict[str, Any]]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.stats = stats or {}
        self.errors = errors or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch_stats_payload(self, blockchain: str) -> Dict[str, Any]:
        with self._lock:
            self.calls.append(blockchain)
        if blockchain in self.errors:
            raise self.errors[blockchain]
        if blockchain not in self.stats:
            raise BlockchairApiError(f"no stats for {blockchain}")
        return {"data": dict(self.stats[blockchain]), "context": {"code": 200}}

    def get_stats(self, blockchain: str) -> BlockchainStats:
        return BlockchainStats.model_validate(self.fetch_stats_payload(blockchain)["data"])

    def get_address(self, blockchain: str, address: str) -> Dict[str, Any]:
        return {"data": {address: {"address": {"type": "pubkeyhash", "balance": 1000}}}, "context": {"code": 200}}


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


BITCOIN_STATS = {
    "blocks": 820000,
    "transactions": 950000000,
    "market_price_usd": 65000.12,
    "market_cap_usd": 1280000000000.75,
    "volume_24h": 512345678901.9,
    "hashrate_24h": "123456789012345678",
    "countdowns": [],
}
ETHEREUM_STATS = {
    "blocks": 19000000,
    "transactions": 2100000000,
    "market_price_usd": 3400.5,
    "market_cap_usd": 408000000000.2,
}
LITECOIN_STATS = {
    "blocks": 2600000,
    "transactions": 150000000,
    "market_price_usd": 82.31,
    "hashrate_24h": "900000000000000",
}


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheService:
    return CacheService("redis://fake:6379/0", client_factory=lambda url: fake_redis)


@pytest.fixture
def db(tmp_path) -> DbConn:
    conn = DbConn(f"sqlite:///{tmp_path / 'cryptodash.db'}")
    conn.create_all()
    yield conn
    conn.dispose()


@pytest.fixture
def seeded_db(db: DbConn) -> DbConn:
    seed_assets(db)
    return db


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def stub_client() -> StubBlockchairClient:
    return StubBlockchairClient(
        stats={"bitcoin": BITCOIN_STATS, "ethereum": ETHEREUM_STATS, "litecoin": LITECOIN_STATS}
    )


@pytest.fixture
def service(seeded_db: DbConn, cache: CacheService, stub_client: StubBlockchairClient, clock: FakeClock) -> DataRefreshService:
    return DataRefreshService(db=seeded_db, cache=cache, client=stub_client, max_workers=2, clock=clock)
