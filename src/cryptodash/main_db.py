"""CLI: Check the backing services of the dashboard.

Verifies the database (SELECT 1, Alembic revision, catalog size) and,
unless ``--skip-cache`` is given, that Redis answers a PING.

Example:
    cryptodash-db
    cryptodash-db --skip-cache --echo
"""
from __future__ import annotations

import argparse
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cryptodash.cache.redis_cache import CacheService
from cryptodash.config import get_database_url, get_redis_url, load_env_file
from cryptodash.db.assets_repo import AssetsRepo
from cryptodash.db.db_conn import DbConn
from cryptodash.errors import PersistenceError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check database and cache connectivity")
    parser.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    parser.add_argument("--skip-cache", action="store_true", help="Do not try to reach Redis")
    return parser.parse_args(argv)


def check_database(db: DbConn) -> bool:
    ok = db.test_connection()
    print(f"Database: {'OK' if ok else 'FAILED'}")
    if not ok:
        return False

    rev = db.get_alembic_revision()
    print(f"Alembic revision: {rev or 'none (run alembic upgrade head)'}")

    try:
        with db.session_scope() as session:
            active = len(AssetsRepo().list_active(session))
        print(f"Active assets: {active}")
    except PersistenceError:
        print("Active assets: tables missing")
    return True


def check_cache(url: str) -> bool:
    cache = CacheService(url)
    ok = cache.connect()
    cache.close()
    print(f"Redis ({url}): {'OK' if ok else 'UNREACHABLE'}")
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    load_env_file()
    args = parse_args(argv)

    url = get_database_url()
    if not url:
        print("DATABASE_URL not set or incomplete DB_* variables. Check resources/.env.")
        return 2

    try:
        db = DbConn(db_url=url, echo=args.echo)
    except (SQLAlchemyError, ValueError) as exc:
        print(f"Failed to configure engine: {exc}")
        return 2

    try:
        ok = check_database(db)
        if ok and not args.skip_cache:
            ok = check_cache(get_redis_url())
    finally:
        db.dispose()
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
