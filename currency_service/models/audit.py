"""Request audit log model."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import BigInteger, Date, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from currency_service.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestLog(Base):
    __tablename__ = "request_log"
    __table_args__ = (
        Index("idx_request_log_created_at", "created_at"),
        Index("idx_request_log_path_created_at", "path", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    path: Mapped[str] = mapped_column(String(512))
    status: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date_as_of: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


__all__ = ["RequestLog"]
