"""Error taxonomy for the data-refresh pipeline.

Cache and upstream failures are degraded to "less data" by the service
layer; persistence failures propagate to the HTTP boundary.
"""
from __future__ import annotations


class DashboardError(RuntimeError):
    """Base class for all errors raised by cryptodash."""


class NotFoundError(DashboardError):
    """Raised when a requested asset is not in the catalog."""


class UpstreamError(DashboardError):
    """Raised when an upstream statistics provider fails."""


class CacheError(DashboardError):
    """Raised by the cache backend; never reaches callers of CacheService."""


class PersistenceError(DashboardError):
    """Raised when a database operation fails."""


class ValidationError(DashboardError):
    """Raised when a request is missing a required parameter."""
