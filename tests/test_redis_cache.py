"""Tests for the Redis cache adapter and its tagged JSON codec."""
from __future__ import annotations

import json
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal

from cryptodash.cache.redis_cache import (
    CacheService,
    ai_prediction_key,
    blockchain_stats_key,
    cryptocurrency_key,
    dumps,
    historical_data_key,
    loads,
    news_sentiment_key,
)

from conftest import FakeRedis


def test_set_then_get_round_trips_big_ints_decimals_and_datetimes(cache, fake_redis):
    value = {
        "hash_rate": 123456789012345678,
        "blocks": 820000,
        "price": Decimal("65000.12"),
        "ts": datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
        "nested": [{"negative": -(2**60)}, None, True, 1.5],
        "label": "bitcoin",
    }

    cache.set("k", value, ttl=60)

    assert cache.get("k") == value
    assert fake_redis.ttls["k"] == 60


def test_big_ints_are_tagged_on_the_wire():
    raw = dumps({"hash_rate": 123456789012345678, "small": 42})

    assert json.loads(raw) == {"hash_rate": {"__bigint__": "123456789012345678"}, "small": 42}


def test_numeric_looking_strings_stay_strings():
    # A long all-digit identifier must not be mistaken for an integer.
    decoded = loads(dumps({"tx_id": "1234567890123456789", "short": "15"}))

    assert decoded == {"tx_id": "1234567890123456789", "short": "15"}


def test_get_returns_none_on_miss(cache):
    assert cache.get("missing") is None


def test_get_returns_none_on_undecodable_payload(cache, fake_redis):
    fake_redis.store["broken"] = "{not json"

    assert cache.get("broken") is None


def test_get_returns_none_on_corrupted_decimal_tag(cache, fake_redis):
    fake_redis.store["corrupt"] = '{"__decimal__":"not-a-number"}'
    fake_redis.store["corrupt-int"] = '{"price":{"__bigint__":"12x"}}'

    assert cache.get("corrupt") is None
    assert cache.get("corrupt-int") is None


def test_operations_degrade_when_backend_is_down():
    cache = CacheService("redis://down:6379/0", client_factory=lambda url: FakeRedis(fail=True))

    assert cache.connect() is False
    cache.set("k", {"a": 1})
    assert cache.get("k") is None
    cache.delete("k")
    assert cache.delete_pattern("k*") == 0


def test_failed_connect_is_retried_on_next_call():
    attempts = []
    healthy = FakeRedis()

    def factory(url):
        attempts.append(url)
        return FakeRedis(fail=True) if len(attempts) == 1 else healthy

    cache = CacheService("redis://flaky:6379/0", client_factory=factory)

    assert cache.get("k") is None
    cache.set("k", {"a": 1})

    assert len(attempts) == 2
    assert cache.get("k") == {"a": 1}


def test_concurrent_first_use_connects_once():
    created = []
    client = FakeRedis()

    class SlowPing(FakeRedis):
        def ping(self):
            time.sleep(0.05)
            return True

    def factory(url):
        created.append(url)
        slow = SlowPing()
        slow.store = client.store
        return slow

    cache = CacheService("redis://slow:6379/0", client_factory=factory)
    threads = [threading.Thread(target=cache.get, args=("k",)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(created) == 1


def test_delete_and_delete_pattern(cache, fake_redis):
    cache.set("historical:BTC:24h", [1])
    cache.set("historical:BTC:7d", [2])
    cache.set("historical:ETH:24h", [3])

    cache.delete("historical:ETH:24h")
    removed = cache.delete_pattern("historical:BTC:*")

    assert removed == 2
    assert fake_redis.store == {}


def test_close_releases_client(cache, fake_redis):
    assert cache.connect() is True

    cache.close()

    assert fake_redis.closed is True


def test_key_builders():
    assert blockchain_stats_key("bitcoin") == "blockchain:stats:bitcoin"
    assert cryptocurrency_key("btc") == "cryptocurrency:BTC"
    assert historical_data_key("eth", "7d") == "historical:ETH:7d"
    assert ai_prediction_key(3) == "ai:prediction:3"
    assert news_sentiment_key(3) == "news:sentiment:3"


def test_domain_helpers_use_expected_keys_and_ttls(cache, fake_redis):
    cache.cache_blockchain_stats("bitcoin", {"blocks": 1})
    cache.cache_cryptocurrency("btc", {"symbol": "BTC"}, ttl=300)

    assert fake_redis.ttls == {"blockchain:stats:bitcoin": 300, "cryptocurrency:BTC": 300}
    assert cache.get_cached_blockchain_stats("bitcoin") == {"blocks": 1}
    assert cache.get_cached_cryptocurrency("BTC") == {"symbol": "BTC"}
