"""create stock data tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_DATED_TABLES: dict[str, tuple[str, ...]] = {
    "stocks": ("open", "high", "low", "close", "band_dow", "band_up", "trend_q", "fq", "qv1"),
    "stock_assets": ("tts", "vcsh", "tb_tts_nganh"),
    "stock_eps": ("eps", "eps_nganh"),
    "stock_metrics": ("roa", "roe", "tb_roa_nganh", "tb_roe_nganh"),
    "stock_pe": ("pe", "pe_nganh"),
}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _symbol_reference() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "symbol",
            sa.String(length=20),
            sa.ForeignKey("stock_info.symbol", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "stock_info",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("symbol", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("symbol"),
    )
    op.create_index("ix_stock_info_name", "stock_info", ["name"], unique=False)

    for table_name, numeric_columns in _DATED_TABLES.items():
        op.create_table(
            table_name,
            *_symbol_reference(),
            sa.Column("date", sa.Date(), nullable=False),
            *[sa.Column(column, sa.Double(), nullable=True) for column in numeric_columns],
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("symbol", "date", name=f"uq_{table_name}_symbol_date"),
        )
        op.create_index(f"ix_{table_name}_date", table_name, ["date"], unique=False)

    op.create_table(
        "stock_daily",
        *_symbol_reference(),
        sa.Column("close_price", sa.Double(), nullable=False),
        *[
            sa.Column(column, sa.Double(), nullable=True)
            for column in ("return_value", "kldd", "von_hoa", "pe", "roa", "roe", "eps")
        ],
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("symbol", name="uq_stock_daily_symbol"),
    )


def downgrade() -> None:
    op.drop_table("stock_daily")
    for table_name in reversed(list(_DATED_TABLES)):
        op.drop_index(f"ix_{table_name}_date", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("ix_stock_info_name", table_name="stock_info")
    op.drop_table("stock_info")
