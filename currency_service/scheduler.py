"""Daily rate refresh running alongside the HTTP server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from opentelemetry import metrics

from currency_service.domain import CurrencyCode, RawRatesResponse
from currency_service.ingest import PipelineError, RatesIngestor

logger = logging.getLogger(__name__)
meter = metrics.get_meter(__name__)
refresh_counter = meter.create_counter(
    "currency_service.rate_refreshes",
    description="Rate refresh cycles by outcome",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_run_after(now: datetime, at: time, tz: ZoneInfo) -> datetime:
    """Return the next wall-clock ``at`` in ``tz`` strictly after ``now``."""

    local_now = now.astimezone(tz)
    candidate = datetime.combine(local_now.date(), at.replace(tzinfo=None), tzinfo=tz)
    if candidate <= local_now:
        candidate = datetime.combine(local_now.date() + timedelta(days=1), at.replace(tzinfo=None), tzinfo=tz)
    return candidate


class RateRefreshScheduler:
    """Calls ``fetch_and_save`` once a day; a failed cycle waits for the next slot."""

    def __init__(
        self,
        ingestor: RatesIngestor,
        pivot: CurrencyCode,
        symbols: Sequence[CurrencyCode],
        *,
        at: time = time(12, 0),
        timezone_name: str = "UTC",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ingestor = ingestor
        self._pivot = pivot
        self._symbols = list(symbols)
        self._at = at
        self._tz = ZoneInfo(timezone_name)
        self._clock = clock
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> RawRatesResponse | None:
        try:
            response = await self._ingestor.fetch_and_save(self._pivot, self._symbols)
        except PipelineError:
            logger.exception("Rate refresh for %s failed", self._pivot)
            refresh_counter.add(1, {"outcome": "failed"})
            return None
        logger.info("Rates refreshed: base=%s date=%s", response.base, response.date)
        refresh_counter.add(1, {"outcome": "ok"})
        return response

    async def refresh(self) -> RawRatesResponse | None:
        """Run one cycle; no failure escapes, so the daily loop keeps its schedule."""

        try:
            return await self.run_once()
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error during rate refresh for %s", self._pivot)
            refresh_counter.add(1, {"outcome": "error"})
            return None

    async def run(self) -> None:
        while not self._stop.is_set():
            now = self._clock()
            next_run = next_run_after(now, self._at, self._tz)
            delay = max((next_run - now).total_seconds(), 0.0)
            logger.info("Next rate refresh at %s", next_run.isoformat())
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                await self.refresh()

    def start(self) -> asyncio.Task[None]:
        if self.running:
            raise RuntimeError("scheduler already running")
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="rate-refresh")
        return self._task

    async def stop(self, grace: float = 5.0) -> None:
        """Signal the loop to stop; an in-flight refresh gets ``grace`` seconds to finish."""

        self._stop.set()
        task, self._task = self._task, None
        if task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=grace)
        except asyncio.TimeoutError:
            logger.warning("Rate refresh still running after %.1fs; cancelling", grace)
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


__all__ = ["RateRefreshScheduler", "next_run_after"]
