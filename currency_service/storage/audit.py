"""Persistence for the request audit log."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from currency_service.domain import BusinessDate
from currency_service.models import RequestLog

from .base import StorageError


class RequestLogStorage:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, path: str, status: int | None, date_as_of: BusinessDate | None) -> None:
        path = path.strip() or "unknown"
        as_of = date_as_of.to_date() if date_as_of is not None else None
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(RequestLog(path=path, status=status, date_as_of=as_of))
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"insert request_log: {exc}") from exc


__all__ = ["RequestLogStorage"]
