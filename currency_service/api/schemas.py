"""Pydantic schemas for API payloads."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from currency_service.domain import CurrencyCode, PairRate

DISPLAY_PLACES = 2


class PairRateResponse(BaseModel):
    base: CurrencyCode
    quote: CurrencyCode
    rate: str = Field(..., description="Decimal string rounded for display")
    date: str | None = Field(default=None, description="As-of date, YYYY-MM-DD")

    @classmethod
    def from_pair(cls, pair: PairRate, places: int = DISPLAY_PLACES) -> "PairRateResponse":
        rounded = pair.rate.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
        as_of = pair.as_of_date.to_json() if pair.as_of_date is not None else None
        return cls(base=pair.base, quote=pair.quote, rate=str(rounded), date=as_of)


class HistoricalRatesResponse(BaseModel):
    date: str
    base: str
    rates: dict[str, str]


class ErrorDetail(BaseModel):
    code: str
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    pivot: CurrencyCode
    symbols: list[CurrencyCode]


__all__ = [
    "DISPLAY_PLACES",
    "ErrorDetail",
    "HealthResponse",
    "HistoricalRatesResponse",
    "PairRateResponse",
]
