"""Cryptocurrency dashboard backend: Blockchair stats, Redis cache, SQL snapshots."""

__version__ = "0.1.0"
