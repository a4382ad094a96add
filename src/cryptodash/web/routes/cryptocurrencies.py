from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status

from cryptodash.errors import NotFoundError
from cryptodash.schemas import AssetComposite, AssetWithRelations
from cryptodash.services.data_refresh import DataRefreshService
from cryptodash.web.deps import get_refresh_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cryptocurrencies"])


@router.get("/cryptocurrencies", response_model=Union[AssetComposite, List[AssetComposite]])
def get_cryptocurrencies(
    symbol: Optional[str] = None,
    refresh: Optional[str] = None,
    service: DataRefreshService = Depends(get_refresh_service),
) -> Union[AssetComposite, List[AssetComposite]]:
    """
    One asset composite when ``symbol`` is given, otherwise every active asset.

    ``refresh=true`` bypasses cached reads (results are still written back);
    any other value means false.
    """
    force_refresh = (refresh or "").strip().lower() == "true"
    try:
        if symbol:
            return service.get_asset_data(symbol, force_refresh=force_refresh)
        return service.get_all_assets(force_refresh=force_refresh)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cryptocurrency not found")
    except Exception as exc:
        logger.exception("Failed to fetch cryptocurrencies: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get("/cryptocurrencies/{symbol}/details", response_model=AssetWithRelations)
def get_cryptocurrency_details(
    symbol: str,
    service: DataRefreshService = Depends(get_refresh_service),
) -> AssetWithRelations:
    """Asset with its last 100 snapshots, 10 predictions and 20 news sentiment rows."""
    try:
        return service.get_with_relations(symbol)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cryptocurrency not found")
    except Exception as exc:
        logger.exception("Failed to fetch details for %s: %s", symbol, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")
