"""Storage contract and its SQLAlchemy implementations."""

from .api_keys import APIKeyStorage
from .audit import RequestLogStorage
from .base import RateStorage, StorageError
from .rates import SQLRateStorage

__all__ = [
    "APIKeyStorage",
    "RateStorage",
    "RequestLogStorage",
    "SQLRateStorage",
    "StorageError",
]
