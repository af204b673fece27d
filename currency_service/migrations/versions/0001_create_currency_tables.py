"""Initial schema for the currency service."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_currency_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "currency_rate",
        sa.Column("base_ccy", sa.String(length=3), nullable=False),
        sa.Column("quote_ccy", sa.String(length=3), nullable=False),
        sa.Column("as_of_date", sa.Date(), nullable=False),
        sa.Column("rate", sa.Numeric(20, 10), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("base_ccy", "quote_ccy"),
    )
    op.create_index("idx_currency_rate_lookup", "currency_rate", ["base_ccy", "quote_ccy", "as_of_date"])
    op.create_index("idx_currency_rate_fetched_at", "currency_rate", ["fetched_at"])

    op.create_table(
        "request_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("status", sa.Integer(), nullable=True),
        sa.Column("date_as_of", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_request_log_created_at", "request_log", ["created_at"])
    op.create_index("idx_request_log_path_created_at", "request_log", ["path", "created_at"])

    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key_hash", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_api_keys_key_hash", "api_keys", ["key_hash"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_api_keys_key_hash", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_index("idx_request_log_path_created_at", table_name="request_log")
    op.drop_index("idx_request_log_created_at", table_name="request_log")
    op.drop_table("request_log")
    op.drop_index("idx_currency_rate_fetched_at", table_name="currency_rate")
    op.drop_index("idx_currency_rate_lookup", table_name="currency_rate")
    op.drop_table("currency_rate")
