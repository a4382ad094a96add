from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func

from cryptodash.db.base import Base, utcnow


class NewsSentiment(Base):
    __tablename__ = "news_sentiment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    headline = Column(Text, nullable=False)
    url = Column(String(500), nullable=True)
    # -1.0 (bearish) .. 1.0 (bullish)
    sentiment_score = Column(Numeric(5, 4), nullable=True)
    source = Column(String(100), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (Index("ix_news_sentiment_asset_published", "asset_id", "published_at"),)
