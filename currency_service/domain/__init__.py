"""Value types for currencies, dates and rates."""

from .currency import CurrencyCode, InvalidCurrency
from .dates import BusinessDate, InvalidDate
from .rates import InvalidRate, PairRate, RateQuote, RawRatesResponse, parse_rate

__all__ = [
    "BusinessDate",
    "CurrencyCode",
    "InvalidCurrency",
    "InvalidDate",
    "InvalidRate",
    "PairRate",
    "RateQuote",
    "RawRatesResponse",
    "parse_rate",
]
