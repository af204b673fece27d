"""API key lookups and inserts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from currency_service.models import ApiKey

from .base import StorageError


class APIKeyStorage:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_status_by_hash(self, key_hash: str) -> tuple[bool, bool]:
        """Return ``(exists, is_active)`` for a hashed key."""

        key_hash = key_hash.strip()
        if not key_hash:
            return False, False
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(ApiKey.is_active).where(ApiKey.key_hash == key_hash))
                is_active = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"select api_keys: {exc}") from exc
        if is_active is None:
            return False, False
        return True, bool(is_active)

    async def insert(self, key_hash: str, label: str | None = None, is_active: bool = True) -> ApiKey:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    record = ApiKey(key_hash=key_hash, label=label, is_active=is_active)
                    session.add(record)
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"insert api_keys: {exc}") from exc
        return record


__all__ = ["APIKeyStorage"]
