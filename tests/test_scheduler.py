import asyncio
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import MemoryRateStorage, StubRatesClient
from currency_service.domain import CurrencyCode
from currency_service.ingest import RatesIngestor
from currency_service.providers import FetchError
from currency_service.scheduler import RateRefreshScheduler, next_run_after

MOSCOW = ZoneInfo("Europe/Moscow")
SYMBOLS = [CurrencyCode.EUR, CurrencyCode.USD, CurrencyCode.JPY]


def test_next_run_is_later_the_same_day():
    now = datetime(2024, 12, 26, 6, 0, tzinfo=timezone.utc)  # 09:00 Moscow
    assert next_run_after(now, time(12, 0), MOSCOW) == datetime(2024, 12, 26, 12, 0, tzinfo=MOSCOW)


def test_next_run_rolls_over_after_the_slot():
    now = datetime(2024, 12, 26, 9, 0, tzinfo=timezone.utc)  # exactly 12:00 Moscow
    next_run = next_run_after(now, time(12, 0), MOSCOW)
    assert next_run == datetime(2024, 12, 27, 12, 0, tzinfo=MOSCOW)
    assert next_run.astimezone(timezone.utc) == datetime(2024, 12, 27, 9, 0, tzinfo=timezone.utc)


def _scheduler(client: StubRatesClient, storage: MemoryRateStorage, **kwargs) -> RateRefreshScheduler:
    ingestor = RatesIngestor(client, storage, timeout=1.0)
    return RateRefreshScheduler(ingestor, CurrencyCode.RUB, SYMBOLS, timezone_name="Europe/Moscow", **kwargs)


@pytest.mark.asyncio
async def test_run_once_logs_failure_and_returns_none(caplog):
    storage = MemoryRateStorage()
    scheduler = _scheduler(StubRatesClient(error=FetchError("boom")), storage)

    assert await scheduler.run_once() is None
    assert storage.saved == []
    assert "Rate refresh for RUB failed" in caplog.text


@pytest.mark.asyncio
async def test_run_once_stores_rates():
    storage = MemoryRateStorage()
    response = await _scheduler(StubRatesClient(), storage).run_once()

    assert response is not None and response.base == "RUB"
    assert len(storage.saved) == 1


@pytest.mark.asyncio
async def test_due_slot_triggers_refresh_and_stop_ends_loop():
    storage = MemoryRateStorage()
    # The clock always sits one millisecond before the slot, so every wait expires at once.
    just_before = datetime(2024, 12, 26, 8, 59, 59, 999000, tzinfo=timezone.utc)
    scheduler = _scheduler(StubRatesClient(), storage, clock=lambda: just_before)

    scheduler.start()
    assert scheduler.running
    with pytest.raises(RuntimeError):
        scheduler.start()
    for _ in range(100):
        if storage.saved:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop(grace=1.0)

    assert storage.saved
    assert not scheduler.running


@pytest.mark.asyncio
async def test_stop_without_start_is_a_no_op():
    scheduler = _scheduler(StubRatesClient(), MemoryRateStorage())
    await scheduler.stop()
    assert not scheduler.running


class _RefusingStorage(MemoryRateStorage):
    async def upsert_rates(self, base, as_of, rates) -> None:
        self.calls.append(("upsert_rates", (base, as_of)))
        raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 1)")


@pytest.mark.asyncio
async def test_unexpected_error_does_not_stop_the_loop(caplog):
    storage = _RefusingStorage()
    just_before = datetime(2024, 12, 26, 8, 59, 59, 999000, tzinfo=timezone.utc)
    scheduler = _scheduler(StubRatesClient(), storage, clock=lambda: just_before)

    scheduler.start()
    for _ in range(200):
        if len(storage.calls) >= 2:
            break
        await asyncio.sleep(0.01)

    assert len(storage.calls) >= 2
    assert scheduler.running
    await scheduler.stop(grace=1.0)
    assert "Unexpected error during rate refresh for RUB" in caplog.text


@pytest.mark.asyncio
async def test_refresh_swallows_unexpected_errors():
    scheduler = _scheduler(StubRatesClient(), _RefusingStorage())

    assert await scheduler.refresh() is None
