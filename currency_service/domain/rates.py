"""Rate value types shared by storage, ingest and conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .currency import CurrencyCode
from .dates import BusinessDate


class InvalidRate(ValueError):
    """Raised when a rate string is not a finite decimal number."""


def parse_rate(raw: object) -> Decimal:
    """Parse a provider or database rate into an exact, finite ``Decimal``."""

    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip() if raw is not None else ""
        if not text:
            raise InvalidRate("rate is empty")
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidRate(f"invalid rate {raw!r}") from exc
    if not value.is_finite():
        raise InvalidRate(f"rate {raw!r} is not finite")
    return value


@dataclass(frozen=True)
class RateQuote:
    """The stored, most recent observation for one currency pair."""

    base: CurrencyCode
    quote: CurrencyCode
    rate: Decimal
    as_of_date: BusinessDate
    fetched_at: datetime


@dataclass(frozen=True)
class PairRate:
    """A conversion result computed on demand from pivot-denominated quotes."""

    base: CurrencyCode
    quote: CurrencyCode
    rate: Decimal
    as_of_date: BusinessDate | None = None


@dataclass
class RawRatesResponse:
    """Provider payload exactly as returned: all values are untyped strings."""

    date: str
    base: str
    rates: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "RawRatesResponse":
        if not isinstance(payload, dict):
            raise ValueError("rates payload must be a JSON object")
        missing = [key for key in ("date", "base", "rates") if key not in payload]
        if missing:
            raise ValueError(f"rates payload missing {', '.join(missing)}")
        rates = payload["rates"]
        if not isinstance(rates, dict):
            raise ValueError("rates payload field 'rates' must be an object")
        return cls(
            date=str(payload["date"] or ""),
            base=str(payload["base"] or ""),
            rates={str(code): str(value) for code, value in rates.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "base": self.base, "rates": dict(self.rates)}


__all__ = ["InvalidRate", "PairRate", "RateQuote", "RawRatesResponse", "parse_rate"]
