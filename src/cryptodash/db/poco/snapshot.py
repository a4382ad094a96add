from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from cryptodash.db.base import Base, utcnow


class Snapshot(Base):
    __tablename__ = "snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    # Observation time (UTC).
    ts = Column(DateTime(timezone=True), nullable=False)

    price = Column(Numeric(30, 10), nullable=True)
    market_cap = Column(Numeric(40, 0), nullable=True)
    volume_24h = Column(Numeric(40, 0), nullable=True)
    block_count = Column(BigInteger, nullable=True)
    transaction_count = Column(BigInteger, nullable=True)
    # H/s; network hash rates do not fit in a signed 64-bit integer.
    hash_rate = Column(Numeric(40, 0), nullable=True)
    data_source = Column(String(30), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    asset = relationship("Asset", back_populates="snapshots")

    __table_args__ = (
        UniqueConstraint("asset_id", "ts", "data_source", name="uq_snapshots_asset_ts_source"),
        Index("ix_snapshots_asset_ts", "asset_id", "ts"),
    )
