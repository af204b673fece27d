import asyncio
import inspect
import pathlib
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Sequence

import pytest
from sqlalchemy.pool import NullPool

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from currency_service.db.session import Database  # noqa: E402
from currency_service.domain import (  # noqa: E402
    BusinessDate,
    CurrencyCode,
    RateQuote,
    RawRatesResponse,
)
from currency_service.providers import FetchError  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            testargs = {arg: pyfuncitem.funcargs[arg] for arg in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**testargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def database(tmp_path: pathlib.Path) -> Database:
    """File-backed SQLite database; tables are created by the test itself."""

    return Database(url=f"sqlite+aiosqlite:///{tmp_path / 'rates.db'}", poolclass=NullPool)


class MemoryRateStorage:
    """In-memory rate storage recording every call."""

    def __init__(self, rows: dict[CurrencyCode, Decimal] | None = None, as_of: date = date(2024, 12, 26)):
        self.calls: list[tuple[str, tuple]] = []
        self.saved: list[tuple[CurrencyCode, BusinessDate, dict]] = []
        self._rows = dict(rows or {})
        self._as_of = BusinessDate(as_of)

    async def upsert_rates(self, base, as_of, rates) -> None:
        self.calls.append(("upsert_rates", (base, as_of)))
        self.saved.append((base, as_of, dict(rates)))

    async def get_latest(self, base, quotes: Sequence[CurrencyCode] = ()) -> list[RateQuote]:
        self.calls.append(("get_latest", (base, tuple(quotes))))
        wanted = set(quotes) or set(self._rows)
        return [
            RateQuote(
                base=base,
                quote=quote,
                rate=rate,
                as_of_date=self._as_of,
                fetched_at=datetime(2024, 12, 26, 12, 43, tzinfo=timezone.utc),
            )
            for quote, rate in sorted(self._rows.items())
            if quote in wanted
        ]


class StubRatesClient:
    """Provider stand-in returning canned responses."""

    def __init__(self, response: RawRatesResponse | None = None, error: Exception | None = None, delay: float = 0.0):
        self.response = response or RawRatesResponse(
            date="2024-12-26 12:43:00+00",
            base="RUB",
            rates={"USD": "0.0105", "EUR": "0.0095"},
        )
        self.error = error
        self.delay = delay
        self.calls: list[tuple] = []
        self.closed = False

    async def fetch_latest(self, base, symbols) -> RawRatesResponse:
        self.calls.append(("latest", base, list(symbols)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    async def fetch_historical(self, day, base, symbols) -> RawRatesResponse:
        self.calls.append(("historical", day, base, list(symbols)))
        if self.error is not None:
            raise self.error
        if day.is_zero():
            raise FetchError("date is empty")
        return RawRatesResponse(date=day.format(), base=str(base), rates={str(s): "1.5" for s in symbols})

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def memory_storage() -> MemoryRateStorage:
    return MemoryRateStorage(
        {CurrencyCode.USD: Decimal("0.0105"), CurrencyCode.EUR: Decimal("0.0095")}
    )
