"""Utility helpers for loading project configuration.

This module is the single source of truth for environment-driven
configuration such as the database DSN, the Redis URL and the
Blockchair API credentials.

Usage:
- Call ``load_env_file()`` once at startup to load ``resources/.env``.
- Use ``get_env`` for simple lookups.
- Use the convenience helpers like ``get_blockchair_config`` and
  ``get_database_url`` for normalized access.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_BLOCKCHAIR_BASE_URL = "https://api.blockchair.com"


def load_env_file(env_path: Optional[Path] = None) -> None:
    """
    Load environment variables from an .env file.

    Parameters:
        env_path: Optional path to the .env file. Defaults to resources/.env.
    """
    env_file = Path(env_path) if env_path else Path("resources/.env")
    if env_file.exists():
        load_dotenv(env_file)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable with an optional default."""
    return os.getenv(name, default)


# ----- Blockchair API helpers -----

def get_blockchair_config() -> Dict[str, Any]:
    """Return Blockchair-related configuration gathered from environment.

    Keys:
    - BLOCKCHAIR_API_KEY (optional, unauthenticated access when missing)
    - BLOCKCHAIR_BASE_URL
    - BLOCKCHAIR_TIMEOUT (seconds)
    """
    return {
        "BLOCKCHAIR_API_KEY": get_env("BLOCKCHAIR_API_KEY") or None,
        "BLOCKCHAIR_BASE_URL": get_env("BLOCKCHAIR_BASE_URL", DEFAULT_BLOCKCHAIR_BASE_URL),
        "BLOCKCHAIR_TIMEOUT": float(get_env("BLOCKCHAIR_TIMEOUT", "10") or 10),
    }


# ----- Cache helpers -----

def get_redis_url() -> str:
    return get_env("REDIS_URL") or DEFAULT_REDIS_URL


# ----- Refresh helpers -----

def get_refresh_concurrency() -> int:
    """Size of the worker pool used when refreshing the whole catalog."""
    raw = get_env("REFRESH_CONCURRENCY", "4") or "4"
    return max(1, int(raw))


def get_log_level() -> str:
    return (get_env("LOG_LEVEL", "INFO") or "INFO").upper()


# ----- Database helpers -----

def get_database_url() -> Optional[str]:
    """Return a database URL for PostgreSQL.

    Prefers ``DATABASE_URL`` if present; otherwise constructs a DSN from:
    - DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
    """
    db_url = get_env("DATABASE_URL")
    if db_url:
        return db_url

    host = get_env("DB_HOST")
    port = get_env("DB_PORT") or "5432"
    name = get_env("DB_NAME")
    user = get_env("DB_USER")
    password = get_env("DB_PASSWORD")

    if not (host and name and user and password):
        return None

    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"
