from datetime import date
from decimal import Decimal

import pytest

from conftest import MemoryRateStorage, StubRatesClient
from currency_service.db.init import init_database
from currency_service.domain import BusinessDate, CurrencyCode, RawRatesResponse
from currency_service.ingest import PipelineError, RatesIngestor, normalize_rates
from currency_service.providers import FetchError
from currency_service.storage import SQLRateStorage, StorageError

SYMBOLS = [CurrencyCode.EUR, CurrencyCode.USD, CurrencyCode.JPY]


def test_normalize_rates_parses_every_field():
    base, as_of, rates = normalize_rates(
        RawRatesResponse(date="2024-12-26 12:43:00+00", base="rub", rates={"usd": "0.0105", "EUR": "0.0095"})
    )
    assert base is CurrencyCode.RUB
    assert as_of == BusinessDate(date(2024, 12, 26))
    assert rates == {CurrencyCode.USD: Decimal("0.0105"), CurrencyCode.EUR: Decimal("0.0095")}


@pytest.mark.parametrize(
    "response",
    [
        RawRatesResponse(date="2024-12-26", base="XXX", rates={"USD": "0.0105"}),
        RawRatesResponse(date="", base="RUB", rates={"USD": "0.0105"}),
        RawRatesResponse(date="26/12/2024", base="RUB", rates={"USD": "0.0105"}),
        RawRatesResponse(date="2024-12-26", base="RUB", rates={"USD": "0.0105", "GBP": "0.0083"}),
        RawRatesResponse(date="2024-12-26", base="RUB", rates={"USD": "0.0105", "EUR": "n/a"}),
    ],
)
def test_normalize_rates_rejects_any_invalid_entry(response):
    with pytest.raises(PipelineError):
        normalize_rates(response)


@pytest.mark.asyncio
async def test_fetch_and_save_stores_pivot_rates(database):
    await init_database(database)
    storage = SQLRateStorage(database.session_factory)
    client = StubRatesClient()
    ingestor = RatesIngestor(client, storage)

    response = await ingestor.fetch_and_save(CurrencyCode.RUB, SYMBOLS)

    assert response.base == "RUB"
    assert client.calls == [("latest", CurrencyCode.RUB, SYMBOLS)]
    latest = await storage.get_latest(CurrencyCode.RUB)
    assert {q.quote: q.rate for q in latest} == {
        CurrencyCode.EUR: Decimal("0.0095"),
        CurrencyCode.USD: Decimal("0.0105"),
    }
    assert all(q.as_of_date == BusinessDate(date(2024, 12, 26)) for q in latest)


@pytest.mark.asyncio
async def test_one_bad_rate_writes_nothing():
    storage = MemoryRateStorage()
    client = StubRatesClient(
        RawRatesResponse(date="2024-12-26", base="RUB", rates={"USD": "0.0105", "EUR": "oops"})
    )

    with pytest.raises(PipelineError):
        await RatesIngestor(client, storage).fetch_and_save(CurrencyCode.RUB, SYMBOLS)
    assert storage.saved == []


@pytest.mark.asyncio
async def test_base_mismatch_is_rejected():
    storage = MemoryRateStorage()
    client = StubRatesClient(RawRatesResponse(date="2024-12-26", base="USD", rates={"EUR": "0.9"}))

    with pytest.raises(PipelineError, match="base"):
        await RatesIngestor(client, storage).fetch_and_save(CurrencyCode.RUB, SYMBOLS)
    assert storage.saved == []


@pytest.mark.asyncio
async def test_fetch_error_is_wrapped():
    client = StubRatesClient(error=FetchError("currencyfreaks http 500: boom", status_code=500))

    with pytest.raises(PipelineError, match="latest rates"):
        await RatesIngestor(client, MemoryRateStorage()).fetch_and_save(CurrencyCode.RUB, SYMBOLS)


@pytest.mark.asyncio
async def test_storage_error_is_wrapped():
    class BrokenStorage(MemoryRateStorage):
        async def upsert_rates(self, base, as_of, rates) -> None:
            raise StorageError("database is down")

    with pytest.raises(PipelineError, match="save rates"):
        await RatesIngestor(StubRatesClient(), BrokenStorage()).fetch_and_save(CurrencyCode.RUB, SYMBOLS)


@pytest.mark.asyncio
async def test_cycle_is_bounded_by_timeout():
    storage = MemoryRateStorage()
    ingestor = RatesIngestor(StubRatesClient(delay=1.0), storage, timeout=0.05)

    with pytest.raises(PipelineError, match="timed out"):
        await ingestor.fetch_and_save(CurrencyCode.RUB, SYMBOLS)
    assert storage.saved == []
