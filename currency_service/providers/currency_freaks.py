"""CurrencyFreaks client used to fetch pivot-denominated rates."""

from __future__ import annotations

import json
import logging
from typing import Sequence

import httpx
from opentelemetry import trace

from currency_service.config import get_settings
from currency_service.domain import BusinessDate, CurrencyCode, RawRatesResponse

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MAX_BODY_BYTES = 32 << 10
_ERROR_BODY_PREVIEW = 512


class FetchError(RuntimeError):
    """Raised when the provider cannot be reached or returns an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CurrencyFreaksClient:
    """Thin async client over the CurrencyFreaks ``/rates`` endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if api_key is None or base_url is None or timeout is None:
            settings = get_settings()
            api_key = settings.currency_api_key if api_key is None else api_key
            base_url = base_url or settings.currency_api_base_url
            timeout = timeout or settings.provider_timeout_seconds
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": "currency-service/0.1"},
        )

    async def fetch_latest(
        self,
        base: CurrencyCode,
        symbols: Sequence[CurrencyCode],
    ) -> RawRatesResponse:
        """Return the latest ``base``-denominated rates for ``symbols``."""

        return await self._get_rates("/rates/latest", self._params(base, symbols))

    async def fetch_historical(
        self,
        day: BusinessDate,
        base: CurrencyCode,
        symbols: Sequence[CurrencyCode],
    ) -> RawRatesResponse:
        """Return ``base``-denominated rates for ``symbols`` as of ``day``."""

        if day.is_zero():
            raise FetchError("date is empty")
        params = self._params(base, symbols)
        params["date"] = day.format()
        return await self._get_rates("/rates/historical", params)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _params(self, base: CurrencyCode, symbols: Sequence[CurrencyCode]) -> dict[str, str]:
        params = {"apikey": self._api_key}
        base_code = str(base).strip().upper() if base else ""
        if base_code:
            params["base"] = base_code
        if symbols:
            params["symbols"] = ",".join(str(symbol) for symbol in symbols)
        return params

    async def _get_rates(self, endpoint: str, params: dict[str, str]) -> RawRatesResponse:
        with tracer.start_as_current_span(
            "currencyfreaks.request",
            attributes={"currencyfreaks.endpoint": endpoint, "currency.base": params.get("base", "")},
        ) as span:
            rates = await self._request(endpoint, params)
            span.set_attribute("rates.count", len(rates.rates))
            return rates

    async def _request(self, endpoint: str, params: dict[str, str]) -> RawRatesResponse:
        url = f"{self._base_url}{endpoint}"
        try:
            async with self._client.stream("GET", url, params=params, timeout=self._timeout) as response:
                body, truncated = await _read_limited(response)
        except httpx.HTTPError as exc:
            raise FetchError(f"currencyfreaks {endpoint} request failed: {exc}") from exc

        text = body.decode("utf-8", errors="replace")
        if not 200 <= response.status_code < 300:
            preview = text[:_ERROR_BODY_PREVIEW]
            raise FetchError(
                f"currencyfreaks http {response.status_code}: {preview}",
                status_code=response.status_code,
                body=preview,
            )
        if truncated:
            raise FetchError(
                f"currencyfreaks {endpoint} response exceeds {MAX_BODY_BYTES} bytes",
                status_code=response.status_code,
            )

        try:
            payload = json.loads(text)
            rates = RawRatesResponse.from_payload(payload)
        except ValueError as exc:
            raise FetchError(f"unmarshal {endpoint} response: {exc}", status_code=response.status_code) from exc
        logger.debug("Fetched %d rates from %s (base=%s date=%s)", len(rates.rates), endpoint, rates.base, rates.date)
        return rates


async def _read_limited(response: httpx.Response) -> tuple[bytes, bool]:
    """Read at most ``MAX_BODY_BYTES``; report whether more was available."""

    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        remaining = MAX_BODY_BYTES - len(buffer)
        if len(chunk) > remaining:
            buffer.extend(chunk[:remaining])
            return bytes(buffer), True
        buffer.extend(chunk)
    return bytes(buffer), False


__all__ = ["CurrencyFreaksClient", "FetchError", "MAX_BODY_BYTES"]
