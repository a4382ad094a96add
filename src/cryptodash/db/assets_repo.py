from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cryptodash.db.poco.asset import Asset
from cryptodash.db.poco.news_sentiment import NewsSentiment
from cryptodash.db.poco.prediction import AiPrediction
from cryptodash.db.poco.snapshot import Snapshot
from cryptodash.db.predictions_repo import PredictionsRepo
from cryptodash.db.sentiment_repo import SentimentRepo
from cryptodash.db.snapshots_repo import SnapshotsRepo


@dataclass(frozen=True)
class NewAsset:
    symbol: str
    name: str
    blockchain: str
    blockchair_id: Optional[str] = None
    coingecko_id: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class AssetRelations:
    asset: Asset
    snapshots: List[Snapshot]
    predictions: List[AiPrediction]
    sentiment: List[NewsSentiment]


class AssetsRepo:
    """Repository for the catalog of tracked assets."""

    def list_active(self, session: Session) -> List[Asset]:
        stmt = select(Asset).where(Asset.is_active.is_(True)).order_by(Asset.symbol)
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, asset_id: int) -> Optional[Asset]:
        return session.get(Asset, asset_id)

    def find_by_symbol(self, session: Session, symbol: str) -> Optional[Asset]:
        """Case-insensitive exact match on the ticker."""
        stmt = select(Asset).where(func.upper(Asset.symbol) == symbol.strip().upper()).limit(1)
        return session.scalars(stmt).first()

    def find_by_blockchain(self, session: Session, blockchain: str) -> Optional[Asset]:
        stmt = select(Asset).where(Asset.blockchain == blockchain).order_by(Asset.id).limit(1)
        return session.scalars(stmt).first()

    def upsert(self, session: Session, new_asset: NewAsset) -> Asset:
        """Insert or update an asset keyed by its (upper-cased) symbol."""
        symbol = new_asset.symbol.strip().upper()
        if not symbol:
            raise ValueError("Asset symbol must not be empty")

        obj = self.find_by_symbol(session, symbol)
        if obj is None:
            obj = Asset(symbol=symbol)
            session.add(obj)
        obj.name = new_asset.name
        obj.blockchain = new_asset.blockchain
        obj.blockchair_id = new_asset.blockchair_id
        obj.coingecko_id = new_asset.coingecko_id
        obj.is_active = new_asset.is_active
        session.flush()  # ensures PK is populated
        return obj

    def get_with_relations(
        self,
        session: Session,
        asset_id: int,
        snapshot_limit: int = 100,
        prediction_limit: int = 10,
        sentiment_limit: int = 20,
    ) -> Optional[AssetRelations]:
        """The asset with its newest snapshots, predictions and news sentiment, each newest first."""
        asset = self.get_by_id(session, asset_id)
        if asset is None:
            return None
        return AssetRelations(
            asset=asset,
            snapshots=SnapshotsRepo().recent(session, asset_id, snapshot_limit),
            predictions=PredictionsRepo().latest(session, asset_id, prediction_limit),
            sentiment=SentimentRepo().latest(session, asset_id, sentiment_limit),
        )
