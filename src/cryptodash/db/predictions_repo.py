from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptodash.db.poco.prediction import AiPrediction


@dataclass(frozen=True)
class NewPrediction:
    asset_id: int
    prediction_type: str
    predicted_value: Optional[Decimal] = None
    confidence_score: Optional[Decimal] = None
    reasoning: Optional[str] = None
    valid_until: Optional[datetime] = None


class PredictionsRepo:
    """Repository for model-generated predictions attached to an asset."""

    def store(self, session: Session, new_prediction: NewPrediction) -> AiPrediction:
        obj = AiPrediction(**asdict(new_prediction))
        session.add(obj)
        session.flush()
        return obj

    def latest(self, session: Session, asset_id: int, limit: int = 5) -> List[AiPrediction]:
        stmt = (
            select(AiPrediction)
            .where(AiPrediction.asset_id == asset_id)
            .order_by(AiPrediction.created_at.desc(), AiPrediction.id.desc())
            .limit(limit)
        )
        return list(session.scalars(stmt).all())

    def by_type(self, session: Session, asset_id: int, prediction_type: str) -> List[AiPrediction]:
        stmt = (
            select(AiPrediction)
            .where(AiPrediction.asset_id == asset_id, AiPrediction.prediction_type == prediction_type)
            .order_by(AiPrediction.created_at.desc(), AiPrediction.id.desc())
        )
        return list(session.scalars(stmt).all())
