from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from cryptodash.db.poco.snapshot import Snapshot


@dataclass(frozen=True)
class SnapshotRow:
    asset_id: int
    ts: datetime
    data_source: str
    price: Optional[Decimal] = None
    market_cap: Optional[int] = None
    volume_24h: Optional[int] = None
    block_count: Optional[int] = None
    transaction_count: Optional[int] = None
    hash_rate: Optional[int] = None


def _insert_ignoring_conflicts(session: Session) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(Snapshot.__table__)
    if dialect == "sqlite":
        return sqlite.insert(Snapshot.__table__)
    raise ValueError(f"skip_duplicates is not supported for dialect '{dialect}'")


class SnapshotsRepo:
    """Repository for time-series snapshots. Rows are append-only."""

    def latest(self, session: Session, asset_id: int) -> Optional[Snapshot]:
        stmt = (
            select(Snapshot)
            .where(Snapshot.asset_id == asset_id)
            .order_by(Snapshot.ts.desc(), Snapshot.id.desc())
            .limit(1)
        )
        return session.scalars(stmt).first()

    def recent(self, session: Session, asset_id: int, limit: int = 100) -> List[Snapshot]:
        """The newest ``limit`` snapshots, newest first."""
        stmt = (
            select(Snapshot)
            .where(Snapshot.asset_id == asset_id)
            .order_by(Snapshot.ts.desc(), Snapshot.id.desc())
            .limit(limit)
        )
        return list(session.scalars(stmt).all())

    def range(self, session: Session, asset_id: int, start: datetime, end: datetime) -> List[Snapshot]:
        """Snapshots with ``start <= ts <= end``, oldest first."""
        stmt = (
            select(Snapshot)
            .where(Snapshot.asset_id == asset_id, Snapshot.ts >= start, Snapshot.ts <= end)
            .order_by(Snapshot.ts.asc(), Snapshot.id.asc())
        )
        return list(session.scalars(stmt).all())

    def insert(self, session: Session, row: SnapshotRow) -> Snapshot:
        obj = Snapshot(**asdict(row))
        session.add(obj)
        session.flush()
        return obj

    def bulk_insert(self, session: Session, rows: Iterable[SnapshotRow], skip_duplicates: bool = True) -> int:
        payload: List[Mapping[str, object]] = [asdict(r) for r in rows]
        if not payload:
            return 0

        if skip_duplicates:
            stmt = _insert_ignoring_conflicts(session).values(payload).on_conflict_do_nothing(
                index_elements=["asset_id", "ts", "data_source"]
            )
        else:
            stmt = insert(Snapshot.__table__).values(payload)
        result = session.execute(stmt)
        return max(result.rowcount or 0, 0)
