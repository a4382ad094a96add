"""CLI: Store fresh Blockchair snapshots, for cron or manual runs.

Example:
    cryptodash-refresh                      # every active asset
    cryptodash-refresh --blockchain bitcoin
"""
from __future__ import annotations

import argparse
from typing import List, Optional

from cryptodash.config import load_env_file
from cryptodash.logging_config import get_logger
from cryptodash.services.data_refresh import DataRefreshService


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch Blockchair stats and store snapshots")
    p.add_argument("--blockchain", default=None, help="Refresh a single blockchain, e.g. bitcoin")
    return p.parse_args(argv)


def run(service: DataRefreshService, blockchain: Optional[str]) -> int:
    logger = get_logger()
    if blockchain:
        row = service.store_snapshot(blockchain)
        if row is None:
            logger.error("No snapshot stored for %s", blockchain)
            return 1
        logger.info("Stored snapshot for %s", blockchain)
        return 0

    stored = service.refresh_all()
    logger.info("Stored %s snapshots", stored)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_env_file()
    args = parse_args(argv)

    service = DataRefreshService.from_env()
    service.start()
    try:
        return run(service, args.blockchain)
    except Exception as exc:
        get_logger().error("Refresh failed: %s", exc)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    raise SystemExit(main())
