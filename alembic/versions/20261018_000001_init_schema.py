"""init schema: assets, snapshots, ai_predictions, news_sentiment

Revision ID: 5c1e7a2b9d40
Revises: 
Create Date: 2026-10-18 09:30:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1e7a2b9d40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("blockchain", sa.String(length=50), nullable=False),
        sa.Column("blockchair_id", sa.String(length=50), nullable=True),
        sa.Column("coingecko_id", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("symbol", name="uq_assets_symbol"),
    )

    op.create_table(
        "snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(30, 10), nullable=True),
        sa.Column("market_cap", sa.Numeric(40, 0), nullable=True),
        sa.Column("volume_24h", sa.Numeric(40, 0), nullable=True),
        sa.Column("block_count", sa.BigInteger(), nullable=True),
        sa.Column("transaction_count", sa.BigInteger(), nullable=True),
        sa.Column("hash_rate", sa.Numeric(40, 0), nullable=True),
        sa.Column("data_source", sa.String(length=30), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("asset_id", "ts", "data_source", name="uq_snapshots_asset_ts_source"),
    )
    op.create_index("ix_snapshots_asset_ts", "snapshots", ["asset_id", "ts"], unique=False)

    op.create_table(
        "ai_predictions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("prediction_type", sa.String(length=50), nullable=False),
        sa.Column("predicted_value", sa.Numeric(30, 10), nullable=True),
        sa.Column("confidence_score", sa.Numeric(5, 4), nullable=True),
        sa.Column("reasoning", sa.Text(), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ai_predictions_asset_created", "ai_predictions", ["asset_id", "created_at"])

    op.create_table(
        "news_sentiment",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("headline", sa.Text(), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=True),
        sa.Column("sentiment_score", sa.Numeric(5, 4), nullable=True),
        sa.Column("source", sa.String(length=100), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_news_sentiment_asset_published", "news_sentiment", ["asset_id", "published_at"])


def downgrade() -> None:
    op.drop_index("ix_news_sentiment_asset_published", table_name="news_sentiment")
    op.drop_table("news_sentiment")
    op.drop_index("ix_ai_predictions_asset_created", table_name="ai_predictions")
    op.drop_table("ai_predictions")
    op.drop_index("ix_snapshots_asset_ts", table_name="snapshots")
    op.drop_table("snapshots")
    op.drop_table("assets")
