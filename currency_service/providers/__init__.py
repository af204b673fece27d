"""External rate providers."""

from .currency_freaks import MAX_BODY_BYTES, CurrencyFreaksClient, FetchError

__all__ = ["CurrencyFreaksClient", "FetchError", "MAX_BODY_BYTES"]
