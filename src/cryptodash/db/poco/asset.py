from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint, func, true
from sqlalchemy.orm import relationship

from cryptodash.db.base import Base, utcnow


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Ticker, stored upper-case, e.g. BTC.
    symbol = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    # Network tag, e.g. bitcoin, bitcoin-cash.
    blockchain = Column(String(50), nullable=False)
    blockchair_id = Column(String(50), nullable=True)
    coingecko_id = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    snapshots = relationship("Snapshot", back_populates="asset", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("symbol", name="uq_assets_symbol"),)
