"""Request audit logging."""

from __future__ import annotations

from typing import Protocol

from currency_service.domain import BusinessDate


class AuditLogStorage(Protocol):
    async def insert(self, path: str, status: int | None, date_as_of: BusinessDate | None) -> None:
        ...


class AuditLogger:
    """Records one row per API request: path, status and the as-of date served."""

    def __init__(self, storage: AuditLogStorage) -> None:
        self._storage = storage

    async def log_request(
        self,
        path: str,
        status: int | None,
        as_of: BusinessDate | None = None,
    ) -> None:
        normalized = path.strip().strip("/") or "unknown"
        if as_of is not None and as_of.is_zero():
            as_of = None
        await self._storage.insert(normalized, status, as_of)


__all__ = ["AuditLogStorage", "AuditLogger"]
