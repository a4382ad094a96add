from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptodash.db.poco.news_sentiment import NewsSentiment


@dataclass(frozen=True)
class NewSentiment:
    asset_id: int
    headline: str
    url: Optional[str] = None
    sentiment_score: Optional[Decimal] = None
    source: Optional[str] = None
    published_at: Optional[datetime] = None


class SentimentRepo:
    """Repository for scored news headlines."""

    def store(self, session: Session, new_sentiment: NewSentiment) -> NewsSentiment:
        obj = NewsSentiment(**asdict(new_sentiment))
        session.add(obj)
        session.flush()
        return obj

    def latest(self, session: Session, asset_id: int, limit: int = 10) -> List[NewsSentiment]:
        stmt = (
            select(NewsSentiment)
            .where(NewsSentiment.asset_id == asset_id)
            .order_by(NewsSentiment.created_at.desc(), NewsSentiment.id.desc())
            .limit(limit)
        )
        return list(session.scalars(stmt).all())

    def by_date_range(self, session: Session, asset_id: int, start: datetime, end: datetime) -> List[NewsSentiment]:
        """Headlines published within ``[start, end]``, newest first."""
        stmt = (
            select(NewsSentiment)
            .where(
                NewsSentiment.asset_id == asset_id,
                NewsSentiment.published_at >= start,
                NewsSentiment.published_at <= end,
            )
            .order_by(NewsSentiment.published_at.desc())
        )
        return list(session.scalars(stmt).all())
