"""Authentication helpers for API routes."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Header, HTTPException, status

from currency_service.services import APIKeyValidator
from currency_service.storage import StorageError

logger = logging.getLogger(__name__)


def require_api_key(validator: APIKeyValidator | None) -> Callable[..., Awaitable[None]]:
    """Build a dependency checking ``X-API-Key``; ``None`` disables the check."""

    async def _require(x_api_key: str | None = Header(default=None)) -> None:
        if validator is None:
            return
        key = (x_api_key or "").strip()
        if not key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing X-API-Key")
        try:
            exists, active = await validator.validate(key)
        except StorageError:
            logger.exception("API key lookup failed")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error")
        if not exists:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")
        if not active:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="api key is expired")

    return _require


__all__ = ["require_api_key"]
