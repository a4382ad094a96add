"""Redis-backed cache with a JSON codec that survives Decimal, datetime and big ints.

The cache is advisory: every backend or codec failure is logged and
reported to the caller as a miss (``get``) or a no-op (writes/deletes).

Codec: values are walked before ``json.dumps`` and the types JSON cannot
carry losslessly for a browser consumer are wrapped in single-key tagged
objects::

    {"__bigint__": "123456789012345678"}   # |n| > 2**53 - 1
    {"__decimal__": "65000.12"}
    {"__datetime__": "2026-10-18T12:00:00+00:00"}

Decoding looks at the tags only, never at the shape of a plain string, so
a numeric-looking identifier stays a string.
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

import redis
from pydantic import BaseModel
from redis.exceptions import RedisError

from cryptodash.config import get_redis_url
from cryptodash.errors import CacheError

logger = logging.getLogger(__name__)

MAX_SAFE_INTEGER = 2**53 - 1
BIGINT_TAG = "__bigint__"
DECIMAL_TAG = "__decimal__"
DATETIME_TAG = "__datetime__"

ClientFactory = Callable[[str], Any]


# ----- Key builders -----

def blockchain_stats_key(blockchain: str) -> str:
    return f"blockchain:stats:{blockchain}"


def cryptocurrency_key(symbol: str) -> str:
    return f"cryptocurrency:{symbol.upper()}"


def historical_data_key(symbol: str, time_range: str) -> str:
    return f"historical:{symbol.upper()}:{time_range}"


def ai_prediction_key(asset_id: int) -> str:
    return f"ai:prediction:{asset_id}"


def news_sentiment_key(asset_id: int) -> str:
    return f"news:sentiment:{asset_id}"


# ----- Codec -----

def encode_value(value: Any) -> Any:
    """Convert ``value`` into plain JSON types, tagging the lossy ones."""
    if isinstance(value, BaseModel):
        return encode_value(value.model_dump())
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return {BIGINT_TAG: str(value)}
        return value
    if isinstance(value, Decimal):
        return {DECIMAL_TAG: str(value)}
    if isinstance(value, datetime):
        return {DATETIME_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def _decode_tagged(obj: dict) -> Any:
    if len(obj) == 1:
        if BIGINT_TAG in obj:
            return int(obj[BIGINT_TAG])
        if DECIMAL_TAG in obj:
            return Decimal(obj[DECIMAL_TAG])
        if DATETIME_TAG in obj:
            return datetime.fromisoformat(obj[DATETIME_TAG])
    return obj


def dumps(value: Any) -> str:
    return json.dumps(encode_value(value), separators=(",", ":"))


def loads(raw: str) -> Any:
    return json.loads(raw, object_hook=_decode_tagged)


def _default_client_factory(url: str) -> Any:
    return redis.Redis.from_url(url, decode_responses=True)


class CacheService:
    """Typed get/set/delete over a single long-lived Redis client.

    Usage:
        cache = CacheService("redis://localhost:6379/0")
        cache.connect()          # at startup, optional
        cache.set("k", {"n": 1}, ttl=60)
        cache.get("k")
        cache.close()            # at shutdown
    """

    DEFAULT_TTL = 300  # 5 minutes in seconds

    def __init__(self, url: Optional[str] = None, client_factory: Optional[ClientFactory] = None) -> None:
        self.url = url or get_redis_url()
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._lock = threading.Lock()

    # ----- lifecycle -----

    def connect(self) -> bool:
        """Eagerly establish the connection. Returns False when Redis is unreachable."""
        try:
            self._ensure_client()
            return True
        except CacheError as exc:
            logger.warning("Cache unavailable at startup: %s", exc)
            return False

    def close(self) -> None:
        with self._lock:
            client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except RedisError as exc:
            logger.warning("Cache close error: %s", exc)

    def _ensure_client(self) -> Any:
        client = self._client
        if client is not None:
            return client
        # Concurrent first users block here and reuse the winner's client.
        with self._lock:
            if self._client is None:
                try:
                    candidate = self._client_factory(self.url)
                    candidate.ping()
                except (RedisError, OSError) as exc:
                    raise CacheError(f"Redis connection failed: {exc}") from exc
                self._client = candidate
            return self._client

    # ----- operations -----

    def get(self, key: str) -> Any:
        """Return the decoded value, or None on miss or any failure."""
        try:
            raw = self._ensure_client().get(key)
            if raw is None:
                return None
            return loads(raw)
        except (CacheError, RedisError) as exc:
            logger.error("Cache get error for %s: %s", key, exc)
        except (ValueError, TypeError, ArithmeticError) as exc:
            # ArithmeticError covers decimal.InvalidOperation from a bad __decimal__ tag.
            logger.error("Cache decode error for %s: %s", key, exc)
        return None

    def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL) -> None:
        try:
            payload = dumps(value)
            self._ensure_client().set(key, payload, ex=int(ttl))
        except (CacheError, RedisError) as exc:
            logger.error("Cache set error for %s: %s", key, exc)
        except (ValueError, TypeError) as exc:
            logger.error("Cache encode error for %s: %s", key, exc)

    def delete(self, key: str) -> None:
        try:
            self._ensure_client().delete(key)
        except (CacheError, RedisError) as exc:
            logger.error("Cache delete error for %s: %s", key, exc)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob-style pattern. Returns how many were removed."""
        try:
            client = self._ensure_client()
            keys = list(client.scan_iter(match=pattern))
            if not keys:
                return 0
            return int(client.delete(*keys) or 0)
        except (CacheError, RedisError) as exc:
            logger.error("Cache delete pattern error for %s: %s", pattern, exc)
            return 0

    # ----- domain helpers -----

    def cache_blockchain_stats(self, blockchain: str, data: Any, ttl: int = 300) -> None:
        self.set(blockchain_stats_key(blockchain), data, ttl)

    def get_cached_blockchain_stats(self, blockchain: str) -> Any:
        return self.get(blockchain_stats_key(blockchain))

    def cache_cryptocurrency(self, symbol: str, data: Any, ttl: int = 600) -> None:
        self.set(cryptocurrency_key(symbol), data, ttl)

    def get_cached_cryptocurrency(self, symbol: str) -> Any:
        return self.get(cryptocurrency_key(symbol))
