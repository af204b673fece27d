"""Current FX rate per currency pair."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from currency_service.db.base import Base


class CurrencyRate(Base):
    __tablename__ = "currency_rate"
    __table_args__ = (
        Index("idx_currency_rate_lookup", "base_ccy", "quote_ccy", "as_of_date"),
        Index("idx_currency_rate_fetched_at", "fetched_at"),
    )

    # One row per pair: a newer fetch replaces as_of_date, rate and fetched_at.
    base_ccy: Mapped[str] = mapped_column(String(3), primary_key=True)
    quote_ccy: Mapped[str] = mapped_column(String(3), primary_key=True)
    as_of_date: Mapped[date] = mapped_column(Date)
    rate: Mapped[Decimal] = mapped_column(Numeric(20, 10, asdecimal=True))
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


__all__ = ["CurrencyRate"]
