"""Shared FastAPI dependencies."""
from __future__ import annotations

from fastapi import HTTPException, Request

from cryptodash.services.data_refresh import DataRefreshService


def get_refresh_service(request: Request) -> DataRefreshService:
    """Return the service built during application startup."""
    service = getattr(request.app.state, "refresh_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return service
