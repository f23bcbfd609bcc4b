from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from advanced_alchemy.types import DateTimeUTC
from advanced_alchemy.extensions.litestar import base


class VisitLog(base.BigIntBase):
    """One reported page view.

    Append-only: rows are inserted by the ingestion pipeline and removed only
    by the retention sweep. The primary key doubles as the insertion sequence.
    """

    __tablename__ = "visit_logs"

    # Set by the store at write time, never taken from the client
    timestamp: Mapped[datetime] = mapped_column(
        DateTimeUTC(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Client address in its three stored forms
    masked_address: Mapped[str] = mapped_column(Text, nullable=False)
    pseudonym: Mapped[str] = mapped_column(String(64), nullable=False)
    # Only present when the client sent a consent cookie
    raw_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    consented: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Geographic information (absent when the lookup failed or timed out)
    geo_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    geo_region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    geo_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Client supplied, stored verbatim and never parsed
    request_path: Mapped[str] = mapped_column(Text, nullable=False, default="/")
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_visit_logs_timestamp", "timestamp", postgresql_using="brin"),
        Index("ix_visit_logs_pseudonym_timestamp", "pseudonym", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<VisitLog(id={self.id}, address={self.masked_address}, path={self.request_path}, timestamp={self.timestamp})>"
