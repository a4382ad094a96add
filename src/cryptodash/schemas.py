"""Pydantic models exchanged between the service layer, the cache and the API."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class BlockchainStats(BaseModel):
    """Network statistics for one blockchain as reported by Blockchair.

    Every field is optional: coverage differs per chain (Ethereum has no
    ``hashrate_24h`` and a different fee model, for example). Fields not
    modelled here are kept as extras so the raw shape is not lost.
    """

    model_config = ConfigDict(extra="allow")

    blocks: Optional[int] = None
    transactions: Optional[int] = None
    outputs: Optional[int] = None
    circulation: Optional[Decimal] = None
    blocks_24h: Optional[int] = None
    transactions_24h: Optional[int] = None
    difficulty: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    mempool_transactions: Optional[int] = None
    mempool_size: Optional[int] = None
    best_block_height: Optional[int] = None
    # Reported as a decimal string because it overflows 64-bit integers.
    hashrate_24h: Optional[Decimal] = None
    market_price_usd: Optional[Decimal] = None
    market_price_btc: Optional[Decimal] = None
    market_price_usd_change_24h_percentage: Optional[Decimal] = None
    market_cap_usd: Optional[Decimal] = None
    market_dominance_percentage: Optional[Decimal] = None
    average_transaction_fee_usd_24h: Optional[Decimal] = None
    inflation_usd_24h: Optional[Decimal] = None

    @field_validator(
        "circulation",
        "difficulty",
        "volume_24h",
        "hashrate_24h",
        "market_price_usd",
        "market_price_btc",
        "market_price_usd_change_24h_percentage",
        "market_cap_usd",
        "market_dominance_percentage",
        "average_transaction_fee_usd_24h",
        "inflation_usd_24h",
        mode="before",
    )
    @classmethod
    def _float_via_str(cls, value: Any) -> Any:
        # 65000.12 must become Decimal("65000.12"), not its binary expansion.
        if isinstance(value, float):
            return repr(value)
        return value


class AssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    blockchain: str
    blockchair_id: Optional[str] = None
    coingecko_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class SnapshotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: int
    ts: datetime
    price: Optional[Decimal] = None
    market_cap: Optional[int] = None
    volume_24h: Optional[int] = None
    block_count: Optional[int] = None
    transaction_count: Optional[int] = None
    hash_rate: Optional[int] = None
    data_source: str
    created_at: Optional[datetime] = None


class AssetComposite(AssetOut):
    """Asset enriched with its latest stored snapshot and live network stats."""

    latest_data: Optional[SnapshotOut] = None
    blockchain_stats: Optional[BlockchainStats] = None


class PredictionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: int
    prediction_type: str
    predicted_value: Optional[Decimal] = None
    confidence_score: Optional[Decimal] = None
    reasoning: Optional[str] = None
    valid_until: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SentimentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: int
    headline: str
    url: Optional[str] = None
    sentiment_score: Optional[Decimal] = None
    source: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AssetWithRelations(AssetOut):
    """Asset with its recent snapshots (newest first), predictions and news sentiment."""

    historical_data: List[SnapshotOut] = []
    ai_predictions: List[PredictionOut] = []
    news_sentiment: List[SentimentOut] = []
