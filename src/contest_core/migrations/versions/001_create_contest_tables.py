"""Create contests, contestants, picks and tickers.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contests",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "contestants",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("username", sa.Text, nullable=True),
        sa.Column("full_name", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
    )

    op.create_table(
        "picks",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("contest_id", sa.Text, sa.ForeignKey("contests.id"), nullable=False),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("ticker", sa.Text, nullable=False),
        sa.Column("quantity", sa.Numeric, nullable=False),
        sa.Column("buy_price", sa.Numeric, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("contest_id", "user_id", name="uq_picks_contest_user"),
    )
    op.create_index("ix_picks_ticker", "picks", ["ticker"])

    op.create_table(
        "tickers",
        sa.Column("ticker", sa.Text, primary_key=True),
        sa.Column("price", sa.Numeric, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("tickers")
    op.drop_index("ix_picks_ticker", table_name="picks")
    op.drop_table("picks")
    op.drop_table("contestants")
    op.drop_table("contests")
