"""Rate lookup endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request, status

from currency_service.api.schemas import ErrorDetail, HistoricalRatesResponse, PairRateResponse
from currency_service.domain import BusinessDate, CurrencyCode, InvalidCurrency, InvalidDate
from currency_service.providers import CurrencyFreaksClient, FetchError
from currency_service.services import AuditLogger, ConversionError, RateConverter
from currency_service.storage import StorageError

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    "unsupported_currency": status.HTTP_400_BAD_REQUEST,
    "same_currency": status.HTTP_400_BAD_REQUEST,
    "rate_not_available": status.HTTP_404_NOT_FOUND,
    "division_by_zero": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=ErrorDetail(code=code, message=message).model_dump())


def get_rates_router(
    converter: RateConverter,
    client: CurrencyFreaksClient,
    audit: AuditLogger,
) -> APIRouter:
    router = APIRouter(prefix="/api/v1", tags=["rates"])

    async def _audit(request: Request, status_code: int, as_of: BusinessDate | None = None) -> None:
        # Audit failures are logged only; the response stands.
        try:
            await audit.log_request(request.url.path, status_code, as_of)
        except StorageError:
            logger.exception("Audit write failed (path=%s status=%s)", request.url.path, status_code)

    @router.get("/rate", response_model=PairRateResponse, response_model_exclude_none=True)
    async def get_rate(
        request: Request,
        base: str = Query(default="", description="Base currency code"),
        quote: str = Query(default="", description="Quote currency code"),
    ) -> PairRateResponse:
        try:
            base_ccy = CurrencyCode.parse(base)
            quote_ccy = CurrencyCode.parse(quote)
        except InvalidCurrency as exc:
            await _audit(request, status.HTTP_400_BAD_REQUEST)
            raise _error(status.HTTP_400_BAD_REQUEST, "invalid_currency", str(exc)) from exc

        try:
            pair = await converter.get_pair_rate(base_ccy, quote_ccy)
        except ConversionError as exc:
            status_code = _STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
            await _audit(request, status_code)
            raise _error(status_code, exc.code, exc.message) from exc
        except StorageError as exc:
            logger.exception("Rate lookup %s/%s failed", base_ccy, quote_ccy)
            await _audit(request, status.HTTP_503_SERVICE_UNAVAILABLE)
            raise _error(status.HTTP_503_SERVICE_UNAVAILABLE, "storage_unavailable", "rate storage unavailable") from exc

        await _audit(request, status.HTTP_200_OK, pair.as_of_date)
        return PairRateResponse.from_pair(pair)

    @router.get("/rate/historical", response_model=HistoricalRatesResponse)
    async def get_historical_rates(
        request: Request,
        date: str = Query(default="", description="Business date, YYYY-MM-DD"),
        base: str = Query(default="", description="Base currency code"),
    ) -> HistoricalRatesResponse:
        if not date.strip():
            await _audit(request, status.HTTP_400_BAD_REQUEST)
            raise _error(status.HTTP_400_BAD_REQUEST, "invalid_date", "date parameter is required")
        try:
            day = BusinessDate.parse_day(date)
        except InvalidDate as exc:
            await _audit(request, status.HTTP_400_BAD_REQUEST)
            raise _error(status.HTTP_400_BAD_REQUEST, "invalid_date", f"invalid date {date!r}, expected YYYY-MM-DD") from exc

        try:
            base_ccy = CurrencyCode.parse(base)
        except InvalidCurrency as exc:
            await _audit(request, status.HTTP_400_BAD_REQUEST, day)
            raise _error(status.HTTP_400_BAD_REQUEST, "invalid_currency", str(exc)) from exc
        if base_ccy not in converter.supported:
            await _audit(request, status.HTTP_400_BAD_REQUEST, day)
            raise _error(status.HTTP_400_BAD_REQUEST, "unsupported_currency", f"unsupported currency {base_ccy}")

        symbols = [code for code in CurrencyCode if code in converter.supported and code != base_ccy]
        try:
            response = await client.fetch_historical(day, base_ccy, symbols)
        except FetchError as exc:
            logger.warning("Historical rates %s for %s failed: %s", base_ccy, day, exc)
            await _audit(request, status.HTTP_502_BAD_GATEWAY, day)
            raise _error(status.HTTP_502_BAD_GATEWAY, "provider_error", str(exc)) from exc

        try:
            served = BusinessDate.parse(response.date)
        except InvalidDate:
            served = day
        await _audit(request, status.HTTP_200_OK, served)
        return HistoricalRatesResponse(**response.to_dict())

    return router


__all__ = ["get_rates_router"]
