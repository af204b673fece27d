"""Relational implementation of the rate storage contract."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Sequence

from sqlalchemy import Select, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from currency_service.domain import (
    BusinessDate,
    CurrencyCode,
    InvalidCurrency,
    InvalidRate,
    RateQuote,
    parse_rate,
)
from currency_service.models import CurrencyRate

from .base import StorageError

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _normalize_code(value: CurrencyCode | str | None) -> str:
    if value is None:
        return ""
    return str(value).strip().upper()


class SQLRateStorage:
    """Keeps one row per ``(base, quote)``; every write overwrites the previous one."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def upsert_rates(
        self,
        base: CurrencyCode,
        as_of: BusinessDate,
        rates: Mapping[CurrencyCode, Decimal],
    ) -> None:
        base_code = _normalize_code(base)
        if not base_code:
            raise StorageError("base currency is empty")
        if as_of.is_zero():
            raise StorageError("as_of_date is empty")

        fetched_at = datetime.now(timezone.utc)
        records: list[dict[str, Any]] = []
        for quote, rate in rates.items():
            quote_code = _normalize_code(quote)
            if not quote_code or quote_code == base_code:
                continue
            records.append(
                {
                    "base_ccy": base_code,
                    "quote_ccy": quote_code,
                    "as_of_date": as_of.to_date(),
                    "rate": rate,
                    "fetched_at": fetched_at,
                }
            )
        if not records:
            logger.info("No rates to store for %s @%s", base_code, as_of)
            return

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(self._upsert_statement(session, records))
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"upsert {len(records)} rates for {base_code} @{as_of}: {exc}") from exc
        logger.info("Stored %d rates for %s @%s", len(records), base_code, as_of)

    async def get_latest(
        self,
        base: CurrencyCode,
        quotes: Sequence[CurrencyCode] = (),
    ) -> list[RateQuote]:
        base_code = _normalize_code(base)
        if not base_code:
            raise StorageError("base currency is empty")

        stmt: Select = select(CurrencyRate).where(
            CurrencyRate.base_ccy == base_code,
            CurrencyRate.quote_ccy != base_code,
        )
        if quotes:
            wanted = {_normalize_code(q) for q in quotes} - {"", base_code}
            if not wanted:
                return []
            stmt = stmt.where(CurrencyRate.quote_ccy.in_(sorted(wanted)))
        stmt = stmt.order_by(
            CurrencyRate.quote_ccy,
            CurrencyRate.as_of_date.desc(),
            CurrencyRate.fetched_at.desc(),
        )

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"query latest rates for {base_code}: {exc}") from exc

        latest: list[RateQuote] = []
        seen: set[str] = set()
        for row in rows:
            quote_code = row.quote_ccy.strip()
            if quote_code in seen:
                continue
            seen.add(quote_code)
            latest.append(_to_rate_quote(row))
        return latest

    @staticmethod
    def _upsert_statement(session: AsyncSession, records: list[dict[str, Any]]):
        dialect = session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise StorageError(f"unsupported database dialect {dialect!r}")
        stmt = insert(CurrencyRate).values(records)
        return stmt.on_conflict_do_update(
            index_elements=[CurrencyRate.base_ccy, CurrencyRate.quote_ccy],
            set_={
                "as_of_date": stmt.excluded.as_of_date,
                "rate": stmt.excluded.rate,
                "fetched_at": stmt.excluded.fetched_at,
            },
        )


def _to_rate_quote(row: CurrencyRate) -> RateQuote:
    try:
        base = CurrencyCode.parse(row.base_ccy)
        quote = CurrencyCode.parse(row.quote_ccy)
        rate = parse_rate(row.rate)
    except (InvalidCurrency, InvalidRate) as exc:
        raise StorageError(f"bad currency_rate row {row.base_ccy}/{row.quote_ccy}: {exc}") from exc
    return RateQuote(
        base=base,
        quote=quote,
        rate=rate,
        as_of_date=BusinessDate(row.as_of_date),
        fetched_at=row.fetched_at,
    )


__all__ = ["SQLRateStorage"]
