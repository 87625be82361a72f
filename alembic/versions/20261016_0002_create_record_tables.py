"""create traffic_reports and player_records tables

Revision ID: 20261016_0002
Revises: 20261016_0001
Create Date: 2026-10-16 10:05:00

Natural-key constraints use NULLS NOT DISTINCT and require PostgreSQL 15+.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261016_0002"
down_revision = "20261016_0001"
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "traffic_reports",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("upload_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("foreign_brand_id", sa.BigInteger(), nullable=False),
        sa.Column("foreign_partner_id", sa.BigInteger(), nullable=False),
        sa.Column("foreign_campaign_id", sa.BigInteger(), nullable=False),
        sa.Column("foreign_landing_id", sa.BigInteger(), nullable=False),
        sa.Column("traffic_source", sa.String(length=100), nullable=False),
        sa.Column("device_type", sa.String(length=50), nullable=False),
        sa.Column("user_agent_family", sa.String(length=255), nullable=False),
        sa.Column("os_family", sa.String(length=100), nullable=False),
        sa.Column("country", sa.String(length=10), nullable=False),
        sa.Column("all_clicks", sa.BigInteger(), nullable=False),
        sa.Column("unique_clicks", sa.BigInteger(), nullable=False),
        sa.Column("registrations_count", sa.BigInteger(), nullable=False),
        sa.Column("ftd_count", sa.BigInteger(), nullable=False),
        sa.Column("deposits_count", sa.BigInteger(), nullable=False),
        sa.Column("cr", sa.Numeric(12, 4), nullable=False),
        sa.Column("cftd", sa.Numeric(12, 4), nullable=False),
        sa.Column("cd", sa.Numeric(12, 4), nullable=False),
        sa.Column("rftd", sa.Numeric(12, 4), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["upload_id"], ["import_jobs.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "date",
            "foreign_brand_id",
            "foreign_partner_id",
            "foreign_campaign_id",
            "foreign_landing_id",
            "traffic_source",
            "device_type",
            "user_agent_family",
            "os_family",
            "country",
            name="uq_traffic_reports_natural_key",
            postgresql_nulls_not_distinct=True,
        ),
        sa.CheckConstraint(
            "all_clicks >= 0 AND unique_clicks >= 0 AND registrations_count >= 0 "
            "AND ftd_count >= 0 AND deposits_count >= 0",
            name="ck_traffic_reports_non_negative_counts",
        ),
        sa.CheckConstraint(
            "cr >= 0 AND cftd >= 0 AND cd >= 0 AND rftd >= 0",
            name="ck_traffic_reports_non_negative_rates",
        ),
    )
    op.create_index("ix_traffic_reports_upload_id", "traffic_reports", ["upload_id"], unique=False)
    op.create_index("ix_traffic_reports_date", "traffic_reports", ["date"], unique=False)
    op.create_index(
        "ix_traffic_reports_date_partner",
        "traffic_reports",
        ["date", "foreign_partner_id"],
        unique=False,
    )
    op.create_index(
        "ix_traffic_reports_date_campaign",
        "traffic_reports",
        ["date", "foreign_campaign_id"],
        unique=False,
    )
    op.create_index("ix_traffic_reports_country", "traffic_reports", ["country"], unique=False)

    op.create_table(
        "player_records",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("upload_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=True),
        sa.Column("original_player_id", sa.BigInteger(), nullable=True),
        sa.Column("sign_up_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_deposit_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("partner_id", sa.BigInteger(), nullable=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("partner_tags", sa.String(length=500), nullable=False),
        sa.Column("campaign_id", sa.BigInteger(), nullable=True),
        sa.Column("campaign_name", sa.String(length=255), nullable=False),
        sa.Column("promo_id", sa.BigInteger(), nullable=True),
        sa.Column("promo_code", sa.String(length=100), nullable=False),
        sa.Column("player_country", sa.String(length=10), nullable=False),
        sa.Column("tag_clickid", sa.String(length=255), nullable=False),
        sa.Column("tag_os", sa.String(length=100), nullable=False),
        sa.Column("tag_source", sa.String(length=100), nullable=False),
        sa.Column("tag_sub2", sa.String(length=100), nullable=False),
        sa.Column("tag_web_id", sa.String(length=100), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("prequalified", sa.Boolean(), nullable=False),
        sa.Column("duplicate", sa.Boolean(), nullable=False),
        sa.Column("self_excluded", sa.Boolean(), nullable=False),
        sa.Column("disabled", sa.Boolean(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False),
        sa.Column("ftd_count", sa.BigInteger(), nullable=True),
        sa.Column("ftd_sum", sa.Numeric(15, 2), nullable=True),
        sa.Column("deposits_count", sa.BigInteger(), nullable=True),
        sa.Column("deposits_sum", sa.Numeric(15, 2), nullable=True),
        sa.Column("cashouts_count", sa.BigInteger(), nullable=True),
        sa.Column("cashouts_sum", sa.Numeric(15, 2), nullable=True),
        sa.Column("casino_bets_count", sa.BigInteger(), nullable=True),
        sa.Column("casino_real_ngr", sa.Numeric(15, 2), nullable=True),
        sa.Column("fixed_per_player", sa.Numeric(15, 2), nullable=True),
        sa.Column("casino_bets_sum", sa.Numeric(15, 2), nullable=True),
        sa.Column("casino_wins_sum", sa.Numeric(15, 2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["upload_id"], ["import_jobs.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "player_id",
            "original_player_id",
            "partner_id",
            "campaign_id",
            "date",
            name="uq_player_records_natural_key",
            postgresql_nulls_not_distinct=True,
        ),
        sa.CheckConstraint(
            "coalesce(ftd_count, 0) >= 0 AND coalesce(deposits_count, 0) >= 0 "
            "AND coalesce(cashouts_count, 0) >= 0 AND coalesce(casino_bets_count, 0) >= 0",
            name="ck_player_records_non_negative_counts",
        ),
    )
    op.create_index("ix_player_records_upload_id", "player_records", ["upload_id"], unique=False)
    op.create_index("ix_player_records_date", "player_records", ["date"], unique=False)
    op.create_index("ix_player_records_player_id", "player_records", ["player_id"], unique=False)
    op.create_index(
        "ix_player_records_partner_campaign",
        "player_records",
        ["partner_id", "campaign_id"],
        unique=False,
    )
    op.create_index("ix_player_records_country", "player_records", ["player_country"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_player_records_country", table_name="player_records")
    op.drop_index("ix_player_records_partner_campaign", table_name="player_records")
    op.drop_index("ix_player_records_player_id", table_name="player_records")
    op.drop_index("ix_player_records_date", table_name="player_records")
    op.drop_index("ix_player_records_upload_id", table_name="player_records")
    op.drop_table("player_records")

    op.drop_index("ix_traffic_reports_country", table_name="traffic_reports")
    op.drop_index("ix_traffic_reports_date_campaign", table_name="traffic_reports")
    op.drop_index("ix_traffic_reports_date_partner", table_name="traffic_reports")
    op.drop_index("ix_traffic_reports_date", table_name="traffic_reports")
    op.drop_index("ix_traffic_reports_upload_id", table_name="traffic_reports")
    op.drop_table("traffic_reports")
