"""Cache-aside reads and snapshot persistence for tracked assets.

Read path (``get_asset_data``): composite cache -> database -> Blockchair
stats (itself cached per blockchain) -> write composite back to the cache.

Write path (``store_snapshot`` / ``refresh_all``): fetch fresh stats,
normalize them into a ``SnapshotRow`` and append it. Each insert runs in
its own transaction after the fetch; a failed insert drops that fetch
(at-most-once per call).

Cache and upstream failures degrade to missing data. Database failures
(``PersistenceError``) propagate to the caller.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from cryptodash.api.blockchair_client import BlockchairClient
from cryptodash.cache.redis_cache import (
    CacheService,
    ai_prediction_key,
    cryptocurrency_key,
    historical_data_key,
    news_sentiment_key,
)
from cryptodash.config import get_refresh_concurrency
from cryptodash.db.assets_repo import AssetsRepo
from cryptodash.db.db_conn import DbConn
from cryptodash.db.predictions_repo import NewPrediction, PredictionsRepo
from cryptodash.db.sentiment_repo import NewSentiment, SentimentRepo
from cryptodash.db.snapshots_repo import SnapshotRow, SnapshotsRepo
from cryptodash.errors import NotFoundError, UpstreamError, ValidationError
from cryptodash.schemas import (
    AssetComposite,
    AssetOut,
    AssetWithRelations,
    BlockchainStats,
    PredictionOut,
    SentimentOut,
    SnapshotOut,
)

logger = logging.getLogger(__name__)

STATS_TTL = 300  # 5 minutes
COMPOSITE_TTL = 300  # 5 minutes
HISTORICAL_TTL = 600  # 10 minutes
RELATIONS_TTL = 600  # 10 minutes
DATA_SOURCE = "blockchair"

# Row limits for the asset detail view.
SNAPSHOT_LIMIT = 100
PREDICTION_LIMIT = 10
SENTIMENT_LIMIT = 20

DEFAULT_RANGE = "24h"
RANGE_WINDOWS: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").strip().upper()


def resolve_range(range_tag: Optional[str], now: datetime) -> Tuple[str, datetime, datetime]:
    """Map a coarse range tag to ``(normalized_tag, start, end)``. Unknown tags mean 24h."""
    tag = range_tag if range_tag in RANGE_WINDOWS else DEFAULT_RANGE
    return tag, now - RANGE_WINDOWS[tag], now


def _floor(value: Optional[Decimal]) -> Optional[int]:
    if value is None:
        return None
    return math.floor(value)


def normalize_stats(
    asset_id: int,
    stats: BlockchainStats,
    ts: datetime,
    data_source: str = DATA_SOURCE,
) -> SnapshotRow:
    """Turn upstream stats into a snapshot row.

    Price stays a Decimal, market cap / volume / hash rate are floored to
    integers, counters pass through. Missing fields stay missing.
    """
    return SnapshotRow(
        asset_id=asset_id,
        ts=ts,
        data_source=data_source,
        price=stats.market_price_usd,
        market_cap=_floor(stats.market_cap_usd),
        volume_24h=_floor(stats.volume_24h),
        block_count=stats.blocks,
        transaction_count=stats.transactions,
        hash_rate=_floor(stats.hashrate_24h),
    )


class DataRefreshService:
    """Coordinates the cache, the database and the Blockchair client."""

    def __init__(
        self,
        db: DbConn,
        cache: CacheService,
        client: BlockchairClient,
        max_workers: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.client = client
        self.max_workers = max_workers or get_refresh_concurrency()
        self._clock = clock or _utcnow
        self.assets_repo = AssetsRepo()
        self.snapshots_repo = SnapshotsRepo()
        self.predictions_repo = PredictionsRepo()
        self.sentiment_repo = SentimentRepo()

    @classmethod
    def from_env(cls) -> "DataRefreshService":
        return cls(db=DbConn(), cache=CacheService(), client=BlockchairClient())

    def start(self) -> None:
        self.cache.connect()

    def close(self) -> None:
        self.cache.close()
        self.db.dispose()

    # ----- read path -----

    def get_asset_data(self, symbol: str, force_refresh: bool = False) -> AssetComposite:
        """
        Return the asset with its latest snapshot and live stats.

        Raises:
            NotFoundError: When ``symbol`` is not in the catalog.
        """
        symbol = normalize_symbol(symbol)
        if not force_refresh:
            cached = self._from_cache(self.cache.get_cached_cryptocurrency(symbol), AssetComposite)
            if cached is not None:
                return cached

        with self.db.session_scope() as session:
            asset = self.assets_repo.find_by_symbol(session, symbol)
            if asset is None:
                raise NotFoundError(f"Cryptocurrency not found: {symbol}")
            asset_out = AssetOut.model_validate(asset)
            latest = self.snapshots_repo.latest(session, asset.id)
            latest_out = SnapshotOut.model_validate(latest) if latest is not None else None

        stats: Optional[BlockchainStats] = None
        if asset_out.blockchair_id:
            stats = self.get_blockchain_stats(asset_out.blockchair_id, force_refresh)

        composite = AssetComposite(
            **asset_out.model_dump(),
            latest_data=latest_out,
            blockchain_stats=stats,
        )
        self.cache.cache_cryptocurrency(asset_out.symbol, composite.model_dump(), COMPOSITE_TTL)
        return composite

    def get_all_assets(self, force_refresh: bool = False) -> List[AssetComposite]:
        """Composite for every active asset, in symbol order."""
        with self.db.session_scope() as session:
            assets = [AssetOut.model_validate(a) for a in self.assets_repo.list_active(session)]
        if not assets:
            return []

        def build(asset: AssetOut) -> AssetComposite:
            try:
                return self.get_asset_data(asset.symbol, force_refresh)
            except NotFoundError:
                # Removed between the listing and the lookup.
                return AssetComposite(**asset.model_dump())

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="assets") as pool:
            return list(pool.map(build, assets))

    def get_blockchain_stats(self, blockchain: str, force_refresh: bool = False) -> Optional[BlockchainStats]:
        """Cached Blockchair stats; None when the upstream call fails."""
        if not force_refresh:
            cached = self._from_cache(self.cache.get_cached_blockchain_stats(blockchain), BlockchainStats)
            if cached is not None:
                return cached

        try:
            stats = self.client.get_stats(blockchain)
        except UpstreamError as exc:
            logger.error("Error fetching blockchain stats for %s: %s", blockchain, exc)
            return None

        self.cache.cache_blockchain_stats(blockchain, stats.model_dump(), STATS_TTL)
        return stats

    def get_historical_data(self, symbol: Optional[str], range_tag: Optional[str] = DEFAULT_RANGE) -> List[SnapshotOut]:
        """
        Snapshots for ``symbol`` within the trailing window named by ``range_tag``.

        Unknown symbols yield an empty list.

        Raises:
            ValidationError: When ``symbol`` is empty.
        """
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise ValidationError("Symbol parameter is required")

        tag, start, end = resolve_range(range_tag, self._clock())
        key = historical_data_key(symbol, tag)
        cached = self._cached_list(key, SnapshotOut)
        if cached is not None:
            return cached

        with self.db.session_scope() as session:
            asset = self.assets_repo.find_by_symbol(session, symbol)
            if asset is None:
                return []
            rows = self.snapshots_repo.range(session, asset.id, start, end)
            result = [SnapshotOut.model_validate(r) for r in rows]

        self.cache.set(key, [r.model_dump() for r in result], HISTORICAL_TTL)
        return result

    def get_with_relations(self, symbol: str) -> AssetWithRelations:
        """
        Asset detail: the newest 100 snapshots, 10 predictions and 20 news
        sentiment rows, each newest first. Read straight from the database.

        Raises:
            NotFoundError: When ``symbol`` is not in the catalog.
        """
        symbol = normalize_symbol(symbol)
        with self.db.session_scope() as session:
            asset = self.assets_repo.find_by_symbol(session, symbol)
            relations = None
            if asset is not None:
                relations = self.assets_repo.get_with_relations(
                    session, asset.id, SNAPSHOT_LIMIT, PREDICTION_LIMIT, SENTIMENT_LIMIT
                )
            if relations is None:
                raise NotFoundError(f"Cryptocurrency not found: {symbol}")
            return AssetWithRelations(
                **AssetOut.model_validate(relations.asset).model_dump(),
                historical_data=[SnapshotOut.model_validate(s) for s in relations.snapshots],
                ai_predictions=[PredictionOut.model_validate(p) for p in relations.predictions],
                news_sentiment=[SentimentOut.model_validate(n) for n in relations.sentiment],
            )

    def get_predictions(self, symbol: str, limit: int = PREDICTION_LIMIT) -> List[PredictionOut]:
        """Newest predictions for ``symbol``, cached per asset. Unknown symbols yield []."""
        return self._get_cached_relation(
            symbol, ai_prediction_key, PredictionOut,
            lambda session, asset_id: self.predictions_repo.latest(session, asset_id, limit),
        )

    def get_news_sentiment(self, symbol: str, limit: int = SENTIMENT_LIMIT) -> List[SentimentOut]:
        """Newest scored headlines for ``symbol``, cached per asset. Unknown symbols yield []."""
        return self._get_cached_relation(
            symbol, news_sentiment_key, SentimentOut,
            lambda session, asset_id: self.sentiment_repo.latest(session, asset_id, limit),
        )

    def get_raw_upstream(self, blockchain: str, address: Optional[str] = None) -> Dict[str, Any]:
        """Diagnostic passthrough; upstream errors propagate."""
        if address:
            return self.client.get_address(blockchain, address)
        return {"general": self.client.fetch_stats_payload(blockchain)}

    # ----- write path -----

    def store_snapshot(self, blockchain: str) -> Optional[SnapshotRow]:
        """
        Fetch fresh stats for ``blockchain`` and append a snapshot.

        Returns the stored row, or None when the asset or the stats are missing.
        """
        with self.db.session_scope() as session:
            asset = self.assets_repo.find_by_blockchain(session, blockchain)
            asset_out = AssetOut.model_validate(asset) if asset is not None else None
        if asset_out is None:
            logger.error("Cryptocurrency not found for blockchain: %s", blockchain)
            return None
        return self._store_snapshot_for(asset_out, asset_out.blockchair_id or blockchain)

    def refresh_all(self) -> int:
        """Store a snapshot for every active asset with a Blockchair id.

        Runs on a pool of ``max_workers`` threads. A failure for one asset is
        logged and does not stop the others. Returns how many rows were stored.
        """
        with self.db.session_scope() as session:
            assets = [AssetOut.model_validate(a) for a in self.assets_repo.list_active(session)]
        targets = [a for a in assets if a.blockchair_id]
        if not targets:
            return 0

        stored = 0
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="refresh") as pool:
            futures = {pool.submit(self._store_snapshot_for, a, a.blockchair_id): a for a in targets}
            for fut in as_completed(futures):
                asset = futures[fut]
                try:
                    if fut.result() is not None:
                        stored += 1
                except Exception as exc:  # noqa: BLE001 - isolate per-asset failures
                    logger.error("Refresh failed for %s (%s): %s", asset.symbol, asset.blockchair_id, exc)
        logger.info("Refreshed %s/%s assets", stored, len(targets))
        return stored

    def _store_snapshot_for(self, asset: AssetOut, blockchain: str) -> Optional[SnapshotRow]:
        stats = self.get_blockchain_stats(blockchain, force_refresh=True)
        if stats is None:
            logger.error("No stats data for blockchain: %s", blockchain)
            return None

        row = normalize_stats(asset.id, stats, self._clock())
        with self.db.session_scope() as session:
            self.snapshots_repo.insert(session, row)
        logger.info("Stored snapshot for %s at %s", asset.symbol, row.ts.isoformat())

        self.cache.delete(cryptocurrency_key(asset.symbol))
        self.cache.delete_pattern(historical_data_key(asset.symbol, "*"))
        return row

    def store_prediction(self, new_prediction: NewPrediction) -> PredictionOut:
        """Persist a prediction and drop the asset's cached prediction list."""
        with self.db.session_scope() as session:
            stored = PredictionOut.model_validate(self.predictions_repo.store(session, new_prediction))
        self.cache.delete(ai_prediction_key(stored.asset_id))
        return stored

    def store_sentiment(self, new_sentiment: NewSentiment) -> SentimentOut:
        """Persist a scored headline and drop the asset's cached sentiment list."""
        with self.db.session_scope() as session:
            stored = SentimentOut.model_validate(self.sentiment_repo.store(session, new_sentiment))
        self.cache.delete(news_sentiment_key(stored.asset_id))
        return stored

    # ----- helpers -----

    def _get_cached_relation(
        self,
        symbol: str,
        key_for: Callable[[int], str],
        model: Any,
        load: Callable[[Any, int], List[Any]],
    ) -> List[Any]:
        symbol = normalize_symbol(symbol)
        with self.db.session_scope() as session:
            asset = self.assets_repo.find_by_symbol(session, symbol)
            if asset is None:
                return []
            key = key_for(asset.id)
            cached = self._cached_list(key, model)
            if cached is not None:
                return cached
            result = [model.model_validate(row) for row in load(session, asset.id)]

        self.cache.set(key, [r.model_dump() for r in result], RELATIONS_TTL)
        return result

    def _cached_list(self, key: str, model: Any) -> Optional[List[Any]]:
        cached = self.cache.get(key)
        if not isinstance(cached, list):
            return None
        try:
            return [model.model_validate(item) for item in cached]
        except PydanticValidationError as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, exc)
            return None

    @staticmethod
    def _from_cache(cached: Any, model: Any) -> Any:
        if cached is None:
            return None
        try:
            return model.model_validate(cached)
        except PydanticValidationError as exc:
            logger.warning("Ignoring unreadable %s cache entry: %s", model.__name__, exc)
            return None
