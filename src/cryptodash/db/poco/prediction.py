from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func

from cryptodash.db.base import Base, utcnow


class AiPrediction(Base):
    __tablename__ = "ai_predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    prediction_type = Column(String(50), nullable=False)  # price | trend | volatility
    predicted_value = Column(Numeric(30, 10), nullable=True)
    confidence_score = Column(Numeric(5, 4), nullable=True)
    reasoning = Column(Text, nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (Index("ix_ai_predictions_asset_created", "asset_id", "created_at"),)
