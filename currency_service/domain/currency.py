"""Supported currency codes."""

from __future__ import annotations

from enum import Enum


class InvalidCurrency(ValueError):
    """Raised when a currency code is empty or outside the supported set."""


class CurrencyCode(str, Enum):
    RUB = "RUB"
    USD = "USD"
    EUR = "EUR"
    JPY = "JPY"

    @classmethod
    def parse(cls, raw: object) -> "CurrencyCode":
        """Trim, upper-case and validate ``raw`` against the supported set."""

        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise InvalidCurrency(f"currency must be a string, got {type(raw).__name__}")
        normalized = raw.strip().upper()
        if not normalized:
            raise InvalidCurrency("currency code is empty")
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidCurrency(f"unsupported currency {raw!r}") from exc

    @classmethod
    def supported(cls) -> tuple["CurrencyCode", ...]:
        return tuple(cls)

    def __str__(self) -> str:
        return self.value


__all__ = ["CurrencyCode", "InvalidCurrency"]
