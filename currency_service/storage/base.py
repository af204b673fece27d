"""Storage contract for the freshest known rate per currency pair."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Protocol, Sequence

from currency_service.domain import BusinessDate, CurrencyCode, RateQuote


class StorageError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


class RateStorage(Protocol):
    """Operations the ingest pipeline and the converter rely on."""

    async def upsert_rates(
        self,
        base: CurrencyCode,
        as_of: BusinessDate,
        rates: Mapping[CurrencyCode, Decimal],
    ) -> None:
        """Write every ``(base, quote)`` rate in one transaction, replacing existing rows."""
        ...

    async def get_latest(
        self,
        base: CurrencyCode,
        quotes: Sequence[CurrencyCode] = (),
    ) -> list[RateQuote]:
        """Return at most one current row per quote; all quotes when ``quotes`` is empty."""
        ...


__all__ = ["RateStorage", "StorageError"]
