from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from cryptodash.errors import ValidationError
from cryptodash.schemas import SnapshotOut
from cryptodash.services.data_refresh import DEFAULT_RANGE, DataRefreshService
from cryptodash.web.deps import get_refresh_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["historical"])


@router.get("/historical-data", response_model=List[SnapshotOut])
def get_historical_data(
    symbol: Optional[str] = None,
    time_range: str = Query(DEFAULT_RANGE, alias="range"),
    service: DataRefreshService = Depends(get_refresh_service),
) -> List[SnapshotOut]:
    """Snapshots within the trailing window (1h, 24h, 7d, 30d), oldest first."""
    try:
        return service.get_historical_data(symbol, time_range)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        logger.exception("Failed to fetch historical data for %s: %s", symbol, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch historical data"
        )
