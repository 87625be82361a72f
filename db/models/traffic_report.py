"""
db/models/traffic_report.py

Daily traffic/conversion aggregates loaded from traffic report exports.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UploadedRecordMixin

TRAFFIC_REPORT_NATURAL_KEY = "uq_traffic_reports_natural_key"


class TrafficReport(Base, UploadedRecordMixin):
    __tablename__ = "traffic_reports"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    foreign_brand_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    foreign_partner_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    foreign_campaign_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    foreign_landing_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    traffic_source: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    device_type: Mapped[str] = mapped_column(String(50), nullable=False)
    user_agent_family: Mapped[str] = mapped_column(String(255), nullable=False)
    os_family: Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str] = mapped_column(String(10), nullable=False)

    all_clicks: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    unique_clicks: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    registrations_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ftd_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    deposits_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cr: Mapped[float] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    cftd: Mapped[float] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    cd: Mapped[float] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    rftd: Mapped[float] = mapped_column(Numeric(12, 4), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
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
            name=TRAFFIC_REPORT_NATURAL_KEY,
            postgresql_nulls_not_distinct=True,
        ),
        CheckConstraint(
            "all_clicks >= 0 AND unique_clicks >= 0 AND registrations_count >= 0 "
            "AND ftd_count >= 0 AND deposits_count >= 0",
            name="ck_traffic_reports_non_negative_counts",
        ),
        CheckConstraint(
            "cr >= 0 AND cftd >= 0 AND cd >= 0 AND rftd >= 0",
            name="ck_traffic_reports_non_negative_rates",
        ),
        Index("ix_traffic_reports_upload_id", "upload_id"),
        Index("ix_traffic_reports_date", "date"),
        Index("ix_traffic_reports_date_partner", "date", "foreign_partner_id"),
        Index("ix_traffic_reports_date_campaign", "date", "foreign_campaign_id"),
        Index("ix_traffic_reports_country", "country"),
    )
