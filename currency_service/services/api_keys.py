"""API key hashing and validation."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Protocol


class APIKeyRepository(Protocol):
    async def get_status_by_hash(self, key_hash: str) -> tuple[bool, bool]:
        ...


def hash_api_key(raw_key: str, encoding_key: str) -> str:
    """Return the hex HMAC-SHA256 digest stored for ``raw_key``."""

    mac = hmac.new(encoding_key.strip().encode("utf-8"), raw_key.strip().encode("utf-8"), hashlib.sha256)
    return mac.hexdigest()


def generate_api_key() -> str:
    return secrets.token_urlsafe(32)


class APIKeyValidator:
    def __init__(self, repository: APIKeyRepository, encoding_key: str) -> None:
        self._repository = repository
        self._encoding_key = encoding_key.strip()

    async def validate(self, raw_key: str | None) -> tuple[bool, bool]:
        """Return ``(exists, is_active)`` for a raw key taken from a request."""

        raw_key = (raw_key or "").strip()
        if not raw_key:
            return False, False
        return await self._repository.get_status_by_hash(hash_api_key(raw_key, self._encoding_key))


__all__ = ["APIKeyRepository", "APIKeyValidator", "generate_api_key", "hash_api_key"]
