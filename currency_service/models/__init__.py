"""Database model exports."""

from .api_key import ApiKey
from .audit import RequestLog
from .rates import CurrencyRate

__all__ = [
    "ApiKey",
    "CurrencyRate",
    "RequestLog",
]
