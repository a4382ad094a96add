from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from cryptodash.services.data_refresh import DataRefreshService
from cryptodash.web.deps import get_refresh_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"])


@router.get("/blockchair-test")
def blockchair_test(
    blockchain: str = "bitcoin",
    address: Optional[str] = None,
    service: DataRefreshService = Depends(get_refresh_service),
) -> Dict[str, Any]:
    """Raw Blockchair payload: the address dashboard, or ``{"general": stats}``."""
    try:
        return service.get_raw_upstream(blockchain, address)
    except Exception as exc:
        logger.exception("Blockchair diagnostic call failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")
