from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from cryptodash.services.data_refresh import DataRefreshService
from cryptodash.web.deps import get_refresh_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["refresh"])


class RefreshResponse(BaseModel):
    message: str


@router.post("/refresh-data", response_model=RefreshResponse)
def refresh_data(
    blockchain: Optional[str] = None,
    service: DataRefreshService = Depends(get_refresh_service),
) -> RefreshResponse:
    """
    Store a new snapshot for one blockchain, or for the whole catalog.
    """
    try:
        if blockchain:
            service.store_snapshot(blockchain)
            return RefreshResponse(message=f"Data refreshed for {blockchain}")
        service.refresh_all()
        return RefreshResponse(message="All data refreshed")
    except Exception as exc:
        logger.exception("Failed to refresh data: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to refresh data")
