"""Business services built on top of storage."""

from .api_keys import APIKeyValidator, generate_api_key, hash_api_key
from .audit import AuditLogger
from .converter import (
    ConversionError,
    DivisionByZero,
    RateConverter,
    RateNotAvailable,
    SameCurrency,
    UnsupportedCurrency,
)

__all__ = [
    "APIKeyValidator",
    "AuditLogger",
    "ConversionError",
    "DivisionByZero",
    "RateConverter",
    "RateNotAvailable",
    "SameCurrency",
    "UnsupportedCurrency",
    "generate_api_key",
    "hash_api_key",
]
