"""FX rate ingest job: fetch pivot-denominated rates and store them."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Protocol, Sequence

from opentelemetry import trace

from currency_service.domain import (
    BusinessDate,
    CurrencyCode,
    InvalidCurrency,
    InvalidDate,
    InvalidRate,
    RawRatesResponse,
    parse_rate,
)
from currency_service.providers import FetchError
from currency_service.storage import RateStorage, StorageError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0


class PipelineError(RuntimeError):
    """Raised when a fetch-and-save cycle fails; nothing from it was stored."""


class LatestRatesClient(Protocol):
    async def fetch_latest(
        self,
        base: CurrencyCode,
        symbols: Sequence[CurrencyCode],
    ) -> RawRatesResponse:
        ...


def normalize_rates(
    response: RawRatesResponse,
) -> tuple[CurrencyCode, BusinessDate, dict[CurrencyCode, Decimal]]:
    """Validate every field of a provider response; one bad entry rejects it all."""

    try:
        base = CurrencyCode.parse(response.base)
    except InvalidCurrency as exc:
        raise PipelineError(f"invalid base {response.base!r}: {exc}") from exc

    try:
        as_of = BusinessDate.parse(response.date)
    except InvalidDate as exc:
        raise PipelineError(f"invalid date {response.date!r}: {exc}") from exc
    if as_of.is_zero():
        raise PipelineError("response date is empty")

    rates: dict[CurrencyCode, Decimal] = {}
    for quote_raw, rate_raw in response.rates.items():
        try:
            quote = CurrencyCode.parse(quote_raw)
        except InvalidCurrency as exc:
            raise PipelineError(f"invalid quote {quote_raw!r}: {exc}") from exc
        try:
            rates[quote] = parse_rate(rate_raw)
        except InvalidRate as exc:
            raise PipelineError(f"invalid rate {base}/{quote}={rate_raw!r}: {exc}") from exc
    return base, as_of, rates


class RatesIngestor:
    """Runs fetch -> validate -> upsert under one outer deadline."""

    def __init__(
        self,
        client: LatestRatesClient,
        storage: RateStorage,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._storage = storage
        self._timeout = timeout

    async def fetch_and_save(
        self,
        base: CurrencyCode,
        symbols: Sequence[CurrencyCode],
    ) -> RawRatesResponse:
        with tracer.start_as_current_span(
            "rates.fetch_and_save",
            attributes={"currency.base": str(base), "currency.symbols": ",".join(str(s) for s in symbols)},
        ) as span:
            try:
                response = await asyncio.wait_for(self._fetch_and_save(base, symbols), timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                raise PipelineError(f"fetch and save timed out after {self._timeout:g}s") from exc
            span.set_attribute("rates.count", len(response.rates))
            return response

    async def _fetch_and_save(
        self,
        base: CurrencyCode,
        symbols: Sequence[CurrencyCode],
    ) -> RawRatesResponse:
        try:
            response = await self._client.fetch_latest(base, symbols)
        except FetchError as exc:
            raise PipelineError(f"latest rates: {exc}") from exc

        response_base, as_of, rates = normalize_rates(response)
        if response_base != CurrencyCode.parse(base):
            raise PipelineError(f"provider answered with base {response_base}, requested {base}")

        try:
            await self._storage.upsert_rates(response_base, as_of, rates)
        except StorageError as exc:
            raise PipelineError(f"save rates: {exc}") from exc

        logger.info("Rates updated (base=%s date=%s, %d quotes)", response_base, as_of, len(rates))
        return response


__all__ = ["PipelineError", "RatesIngestor", "normalize_rates"]
