from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from quotealert.alerts.engine import AlertEngine
from quotealert.alerts.formatting import format_alert_line
from quotealert.utils.types import AlertDecision, Sample

log = structlog.get_logger("scheduler")


class TickScheduler:
    """
    Fixed-interval driver: fetch -> engine.evaluate -> sleep, until stopped.

    Inputs:
      - engine:  AlertEngine for one asset
      - source:  something with async .fetch_price(symbol) -> Decimal | None
    A failing tick is logged and the loop carries on; only the stop event
    ends it. Ticks never overlap.
    """
    def __init__(
        self,
        engine: AlertEngine,
        source,
        interval_s: float,
        fetch_timeout_s: Optional[float] = None,
    ):
        self.engine = engine
        self.source = source
        self.interval_s = float(interval_s)
        self.fetch_timeout_s = fetch_timeout_s
        self.ticks = 0
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._log = log.bind(symbol=engine.asset.key)

    # ---------------------------- public API ---------------------------- #

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self.run(self._stop), name=f"scheduler-{self.engine.asset.key}")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self, stop: asyncio.Event) -> None:
        self._log.info("scheduler_started", interval_s=self.interval_s)
        while not stop.is_set():
            try:
                await self.tick_once()
            except Exception as e:
                self._log.error("tick_failed", err=str(e), exc_info=True)
            self.ticks += 1
            if await self._wait(stop):
                break
        self._log.info("scheduler_stopped", ticks=self.ticks)

    async def tick_once(self) -> AlertDecision:
        sample = await self._fetch()
        if sample is None:
            self._log.warning("price_unavailable")
        decision = await self.engine.evaluate(sample)
        if sample is not None:
            self._log.debug("tick_done", summary=format_alert_line(decision, self.engine.asset, sample))
        return decision

    # --------------------------- internals ------------------------------ #

    async def _fetch(self) -> Sample:
        symbol = self.engine.asset.key
        if self.fetch_timeout_s is None:
            return await self.source.fetch_price(symbol)
        try:
            return await asyncio.wait_for(self.source.fetch_price(symbol), timeout=self.fetch_timeout_s)
        except asyncio.TimeoutError:
            self._log.warning("price_fetch_timeout", timeout_s=self.fetch_timeout_s)
            return None

    async def _wait(self, stop: asyncio.Event) -> bool:
        """Sleep for interval_s; returns True as soon as `stop` is set."""
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.interval_s)
            return True
        except asyncio.TimeoutError:
            return False
