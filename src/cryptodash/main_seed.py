"""CLI: Seed the asset catalog with the chains Blockchair covers.

Example:
    cryptodash-seed
    cryptodash-seed --create-tables   # local SQLite without Alembic
"""
from __future__ import annotations

import argparse
from typing import List, Optional, Sequence

from cryptodash.config import load_env_file
from cryptodash.db.assets_repo import AssetsRepo, NewAsset
from cryptodash.db.db_conn import DbConn
from cryptodash.logging_config import get_logger

DEFAULT_ASSETS: Sequence[NewAsset] = (
    NewAsset(symbol="BTC", name="Bitcoin", blockchain="bitcoin", blockchair_id="bitcoin", coingecko_id="bitcoin"),
    NewAsset(symbol="ETH", name="Ethereum", blockchain="ethereum", blockchair_id="ethereum", coingecko_id="ethereum"),
    NewAsset(
        symbol="BCH",
        name="Bitcoin Cash",
        blockchain="bitcoin-cash",
        blockchair_id="bitcoin-cash",
        coingecko_id="bitcoin-cash",
    ),
    NewAsset(symbol="LTC", name="Litecoin", blockchain="litecoin", blockchair_id="litecoin", coingecko_id="litecoin"),
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Insert or update the default asset catalog")
    p.add_argument("--create-tables", action="store_true", help="Create tables from the ORM models first")
    p.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    return p.parse_args(argv)


def seed_assets(db: DbConn, assets: Sequence[NewAsset] = DEFAULT_ASSETS) -> int:
    repo = AssetsRepo()
    with db.session_scope() as session:
        for new_asset in assets:
            repo.upsert(session, new_asset)
    return len(assets)


def main(argv: Optional[List[str]] = None) -> int:
    load_env_file()
    args = parse_args(argv)
    logger = get_logger()

    db = DbConn(echo=args.echo)
    if args.create_tables:
        db.create_all()

    try:
        count = seed_assets(db)
    except Exception as exc:
        logger.error("Seeding failed: %s", exc)
        return 1

    logger.info("Seeded %s assets", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
