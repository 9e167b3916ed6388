from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

import structlog

from quotealert.alerts.classifier import classify
from quotealert.alerts.cooldown import CooldownLedger
from quotealert.utils.types import AlertDecision, Sample, TrackedAsset

log = structlog.get_logger("alert_engine")


@dataclass(slots=True)
class EngineConfig:
    cooldown_enabled: bool = True
    cooldown_seconds: float = 3600.0
    # gate sends on dispatcher.configured; when False the send is always attempted
    require_configured_dispatcher: bool = False


class AlertEngine:
    """
    Threshold alert state machine for one tracked asset.

    Per sample:
      1) absent sample       -> no-op
      2) classify price      -> none | buy | sell
      3) none                -> clear both cooldowns for the asset
      4) buy/sell in cooldown-> suppressed
      5) render message      -> empty subject means nothing to send
      6) dispatch, then record the cooldown from the attempt time

    Collaborators (duck-typed):
      - renderer:   .render(action, symbol, price, buy, sell) -> (subject, body)
      - dispatcher: async .send(subject, body) -> bool, attribute .configured
      - ledger:     CooldownLedger, may be shared between engines
    """
    def __init__(
        self,
        asset: TrackedAsset,
        renderer,
        dispatcher,
        ledger: Optional[CooldownLedger] = None,
        cfg: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.asset = asset
        self.renderer = renderer
        self.dispatcher = dispatcher
        self.ledger = ledger if ledger is not None else CooldownLedger()
        self.cfg = cfg or EngineConfig()
        self._clock = clock or self.ledger.clock
        self._log = log.bind(symbol=asset.key)

    async def evaluate(self, sample: Sample) -> AlertDecision:
        if sample is None:
            return AlertDecision(action="none", should_notify=False, suppressed_reason="no_sample")

        key = self.asset.key
        action = classify(sample, self.asset.buy_threshold, self.asset.sell_threshold)

        async with self.ledger.guard(key):
            now = self._clock()

            if action == "none":
                self.ledger.reset_asset(key)
                self._log.info("price_neutral", price=str(sample))
                return AlertDecision(action="none", should_notify=False, suppressed_reason="neutral")

            if self.ledger.is_suppressed(
                key, action, now, self.cfg.cooldown_enabled, self.cfg.cooldown_seconds
            ):
                last = self.ledger.last_fired(key, action)
                self._log.info(
                    "alert_suppressed_cooldown",
                    action=action,
                    price=str(sample),
                    since_last_s=round(now - last, 3) if last is not None else None,
                )
                return AlertDecision(action=action, should_notify=False, suppressed_reason="cooldown")

            subject, body = self.renderer.render(
                action, key, sample, self.asset.buy_threshold, self.asset.sell_threshold
            )
            if not subject:
                self._log.warning("alert_message_empty", action=action, price=str(sample))
                return AlertDecision(action=action, should_notify=False, suppressed_reason="empty_message")

            if self.cfg.require_configured_dispatcher and not getattr(self.dispatcher, "configured", True):
                self._log.warning("alert_dispatch_skipped_unconfigured", action=action, price=str(sample))
                return AlertDecision(
                    action=action, should_notify=False, suppressed_reason="dispatcher_unconfigured"
                )

            self._log.warning(
                "alert_triggered",
                action=action,
                price=str(sample),
                target=str(self._target(action)),
            )
            delivered = await self._dispatch(action, subject, body)
            # cooldown starts at the attempt, delivered or not
            self.ledger.record(key, action, now)
            return AlertDecision(action=action, should_notify=True, delivered=delivered)

    async def _dispatch(self, action: str, subject: str, body: str) -> bool:
        try:
            ok = bool(await self.dispatcher.send(subject, body))
        except Exception as e:
            self._log.error("alert_dispatch_error", action=action, err=str(e), exc_info=True)
            return False
        if not ok:
            self._log.warning("alert_dispatch_failed", action=action)
        return ok

    def _target(self, action: str) -> Decimal:
        return self.asset.sell_threshold if action == "sell" else self.asset.buy_threshold
