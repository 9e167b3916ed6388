from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from quotealert.utils.types import Action

ALERT_ACTIONS: tuple[Action, ...] = ("buy", "sell")


class CooldownLedger:
    """
    Last-fired timestamps per (asset key, action).

    Timestamps come from whatever clock the caller reads; the engine passes
    `now` explicitly so the ledger never consults wall time on its own.
    In-memory only: a fresh instance has no cooldowns.
    """
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.monotonic
        self._store: dict[tuple[str, Action], float] = {}  # (key, action) -> last_fired_at
        self._locks: dict[str, asyncio.Lock] = {}

    def is_suppressed(
        self,
        key: str,
        action: Action,
        now: float,
        cooldown_enabled: bool,
        cooldown_seconds: float,
    ) -> bool:
        if not cooldown_enabled:
            return False
        last = self._store.get((key, action))
        if last is None:
            return False
        return (now - last) < cooldown_seconds

    def record(self, key: str, action: Action, now: float) -> None:
        self._store[(key, action)] = now

    def reset_asset(self, key: str) -> None:
        """Drop buy and sell entries for `key` (no-op if none were recorded)."""
        for action in ALERT_ACTIONS:
            self._store.pop((key, action), None)

    def last_fired(self, key: str, action: Action) -> Optional[float]:
        return self._store.get((key, action))

    def guard(self, key: str) -> asyncio.Lock:
        """
        Per-key lock. Engines sharing one ledger hold it across
        check -> dispatch -> record so two ticks for the same key cannot
        both pass the suppression check.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._store)
