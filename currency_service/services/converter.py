"""Pair-rate conversion through a single pivot currency.

Only ``(pivot, X)`` quotes are stored. Every other pair is derived on demand:

* ``pivot -> X`` is the stored rate,
* ``X -> pivot`` is its inverse,
* ``A -> B`` is ``rate(pivot, B) / rate(pivot, A)``.

Arithmetic stays in ``Decimal`` at full precision; rounding for display is
left to the HTTP layer. Nothing is cached, each call reads through to storage.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable

from opentelemetry import trace

from currency_service.domain import CurrencyCode, InvalidCurrency, PairRate, RateQuote
from currency_service.storage import RateStorage

tracer = trace.get_tracer(__name__)

_ONE = Decimal(1)


class ConversionError(Exception):
    """Business-rule failure while deriving a pair rate."""

    code = "conversion_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnsupportedCurrency(ConversionError):
    code = "unsupported_currency"


class SameCurrency(ConversionError):
    code = "same_currency"


class RateNotAvailable(ConversionError):
    code = "rate_not_available"


class DivisionByZero(ConversionError):
    code = "division_by_zero"


class RateConverter:
    def __init__(
        self,
        storage: RateStorage,
        *,
        pivot: CurrencyCode = CurrencyCode.RUB,
        supported: Iterable[CurrencyCode] | None = None,
    ) -> None:
        self._storage = storage
        self._pivot = pivot
        self._supported = frozenset(supported) if supported is not None else frozenset(CurrencyCode)
        self._supported |= {pivot}

    @property
    def pivot(self) -> CurrencyCode:
        return self._pivot

    @property
    def supported(self) -> frozenset[CurrencyCode]:
        return self._supported

    async def get_pair_rate(self, base: CurrencyCode | str, quote: CurrencyCode | str) -> PairRate:
        with tracer.start_as_current_span(
            "rates.convert",
            attributes={"currency.base": str(base), "currency.quote": str(quote)},
        ) as span:
            pair = await self._pair_rate(base, quote)
            span.set_attribute("currency.as_of", pair.as_of_date.format() if pair.as_of_date else "null")
            return pair

    async def _pair_rate(self, base: CurrencyCode | str, quote: CurrencyCode | str) -> PairRate:
        base_ccy = self._check_supported(base)
        quote_ccy = self._check_supported(quote)
        if base_ccy == quote_ccy:
            raise SameCurrency("base and quote must be different")

        if base_ccy == self._pivot:
            row = await self._latest_pivot_to(quote_ccy)
            return PairRate(base=base_ccy, quote=quote_ccy, rate=row.rate, as_of_date=row.as_of_date)

        if quote_ccy == self._pivot:
            row = await self._latest_pivot_to(base_ccy)
            if row.rate.is_zero():
                raise DivisionByZero(f"rate {self._pivot}/{base_ccy} is zero, cannot invert")
            inverse = _checked_divide(_ONE, row.rate, f"1/{self._pivot}/{base_ccy}")
            return PairRate(base=base_ccy, quote=quote_ccy, rate=inverse, as_of_date=row.as_of_date)

        base_row = await self._latest_pivot_to(base_ccy)
        quote_row = await self._latest_pivot_to(quote_ccy)
        if base_row.rate.is_zero():
            raise DivisionByZero(f"rate {self._pivot}/{base_ccy} is zero, cannot divide")
        cross = _checked_divide(quote_row.rate, base_row.rate, f"{base_ccy}/{quote_ccy}")
        return PairRate(base=base_ccy, quote=quote_ccy, rate=cross, as_of_date=base_row.as_of_date)

    def _check_supported(self, raw: CurrencyCode | str) -> CurrencyCode:
        try:
            code = CurrencyCode.parse(raw)
        except InvalidCurrency as exc:
            raise UnsupportedCurrency(f"{exc}; allowed: {self._allowed_list()}") from exc
        if code not in self._supported:
            raise UnsupportedCurrency(f"unsupported currency {code}; allowed: {self._allowed_list()}")
        return code

    def _allowed_list(self) -> str:
        return ",".join(code.value for code in CurrencyCode if code in self._supported)

    async def _latest_pivot_to(self, quote: CurrencyCode) -> RateQuote:
        rows = await self._storage.get_latest(self._pivot, [quote])
        for row in rows:
            if row.quote == quote:
                return row
        raise RateNotAvailable(f"latest rate {self._pivot}/{quote} not found")


def _checked_divide(numerator: Decimal, denominator: Decimal, label: str) -> Decimal:
    try:
        result = numerator / denominator
    except (InvalidOperation, ZeroDivisionError) as exc:
        raise DivisionByZero(f"rate {label} cannot be computed: {exc}") from exc
    if not result.is_finite():
        raise ConversionError(f"rate {label} is not finite")
    return result


__all__ = [
    "ConversionError",
    "DivisionByZero",
    "RateConverter",
    "RateNotAvailable",
    "SameCurrency",
    "UnsupportedCurrency",
]
