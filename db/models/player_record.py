"""
db/models/player_record.py

Per-player activity rows loaded from players data exports.

The partner e-mail column of the export is never stored.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin

PLAYER_RECORD_NATURAL_KEY = "uq_player_records_natural_key"


class PlayerRecord(Base, UploadedRecordMixin):
    __tablename__ = "player_records"

    player_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    original_player_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    sign_up_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    first_deposit_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    partner_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    partner_tags: Mapped[str] = mapped_column(String(500), nullable=False)
    campaign_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    campaign_name: Mapped[str] = mapped_column(String(255), nullable=False)
    promo_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    promo_code: Mapped[str] = mapped_column(String(100), nullable=False)
    player_country: Mapped[str] = mapped_column(String(10), nullable=False)
    tag_clickid: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    tag_os: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    tag_source: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    tag_sub2: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    tag_web_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    prequalified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duplicate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    self_excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    ftd_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    ftd_sum: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    deposits_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    deposits_sum: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    cashouts_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    cashouts_sum: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    casino_bets_count: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    casino_real_ngr: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    fixed_per_player: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    casino_bets_sum: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)
    casino_wins_sum: Mapped[float | None] = mapped_column(Numeric(15, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "player_id",
            "original_player_id",
            "partner_id",
            "campaign_id",
            "date",
            name=PLAYER_RECORD_NATURAL_KEY,
            postgresql_nulls_not_distinct=True,
        ),
        CheckConstraint(
            "coalesce(ftd_count, 0) >= 0 AND coalesce(deposits_count, 0) >= 0 "
            "AND coalesce(cashouts_count, 0) >= 0 AND coalesce(casino_bets_count, 0) >= 0",
            name="ck_player_records_non_negative_counts",
        ),
        Index("ix_player_records_upload_id", "upload_id"),
        Index("ix_player_records_date", "date"),
        Index("ix_player_records_player_id", "player_id"),
        Index("ix_player_records_partner_campaign", "partner_id", "campaign_id"),
        Index("ix_player_records_country", "player_country"),
    )
