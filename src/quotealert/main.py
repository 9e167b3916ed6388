# src/quotealert/main.py
from __future__ import annotations

import argparse
import asyncio
import math
import signal
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

import structlog
from dotenv import find_dotenv, load_dotenv

from quotealert.alerts.cooldown import CooldownLedger
from quotealert.alerts.engine import AlertEngine, EngineConfig
from quotealert.alerts.formatting import EmailMessageRenderer
from quotealert.notify import email as email_notify
from quotealert.notify.email import SmtpEmailDispatcher
from quotealert.quotes import brapi
from quotealert.quotes.brapi import BrapiClient
from quotealert.scheduler import TickScheduler
from quotealert.settings import ConfigError, MonitoringSettings, monitoring_from_env
from quotealert.utils.log import setup_logging
from quotealert.utils.types import TrackedAsset

log = structlog.get_logger()


# ---------------------------
# CLI
# ---------------------------

def _price(text: str) -> Decimal:
    try:
        v = Decimal(text.replace(",", "."))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid price: {text!r}") from None
    if not v.is_finite():
        raise argparse.ArgumentTypeError(f"invalid price: {text!r}")
    return v


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quote-alert",
        description="Watch one ticker and email when it leaves the [buy, sell] band.",
    )
    p.add_argument("ticker", help="asset ticker, e.g. PETR4")
    p.add_argument("sell_price", type=_price, help="alert to sell above this price")
    p.add_argument("buy_price", type=_price, help="alert to buy below this price")
    p.add_argument("--interval", type=float, default=None, help="seconds between checks (QUOTE_CHECK_INTERVAL_S)")
    p.add_argument("--cooldown-minutes", type=float, default=None, help="per-action cooldown (ALERT_COOLDOWN_MINUTES)")
    p.add_argument("--no-cooldown", action="store_true", help="notify on every qualifying check")
    p.add_argument("--text", action="store_true", help="send plain-text emails instead of HTML")
    p.add_argument("--currency", default="R$ ", help="price prefix in alert emails (default 'R$ ')")
    p.add_argument("--env-file", default=None, help="path to a .env file")
    return p


def apply_overrides(settings: MonitoringSettings, args: argparse.Namespace) -> MonitoringSettings:
    if args.interval is not None:
        if not math.isfinite(args.interval) or args.interval <= 0:
            raise ConfigError("--interval must be a finite number greater than 0")
        settings.check_interval_s = args.interval
    if args.cooldown_minutes is not None:
        if not math.isfinite(args.cooldown_minutes) or args.cooldown_minutes < 0:
            raise ConfigError("--cooldown-minutes must be a finite number, at least 0")
        settings.cooldown_minutes = args.cooldown_minutes
    if args.no_cooldown:
        settings.cooldown_enabled = False
    return settings


# ---------------------------
# Wiring
# ---------------------------

def build_scheduler(
    asset: TrackedAsset,
    settings: MonitoringSettings,
    source,
    dispatcher,
    html: bool = True,
    currency: str = "R$ ",
) -> TickScheduler:
    engine = AlertEngine(
        asset=asset,
        renderer=EmailMessageRenderer(html=html, currency=currency),
        dispatcher=dispatcher,
        ledger=CooldownLedger(),
        cfg=EngineConfig(
            cooldown_enabled=settings.cooldown_enabled,
            cooldown_seconds=settings.cooldown_seconds,
            require_configured_dispatcher=settings.require_configured_dispatcher,
        ),
    )
    return TickScheduler(
        engine,
        source,
        interval_s=settings.check_interval_s,
        fetch_timeout_s=settings.fetch_timeout_s,
    )


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # e.g. Windows event loops; KeyboardInterrupt still ends asyncio.run
            pass


async def run(args: argparse.Namespace) -> None:
    settings = apply_overrides(monitoring_from_env(), args)
    asset = TrackedAsset(
        key=args.ticker.strip().upper(),
        buy_threshold=args.buy_price,
        sell_threshold=args.sell_price,
    )
    if asset.buy_threshold >= asset.sell_threshold:
        log.warning(
            "thresholds_inverted",
            buy=str(asset.buy_threshold),
            sell=str(asset.sell_threshold),
            note="neutral zone is empty or a single price; sell takes precedence",
        )

    log.info(
        "monitor_starting",
        symbol=asset.key,
        sell_price=str(asset.sell_threshold),
        buy_price=str(asset.buy_threshold),
        interval_s=settings.check_interval_s,
        cooldown_enabled=settings.cooldown_enabled,
        cooldown_minutes=settings.cooldown_minutes,
    )

    html = not args.text
    client = BrapiClient(brapi.config_from_env())
    dispatcher = SmtpEmailDispatcher(email_notify.config_from_env(), html=html)
    scheduler = build_scheduler(asset, settings, client, dispatcher, html=html, currency=args.currency)

    stop = asyncio.Event()
    _install_signal_handlers(stop)

    await client.start()
    try:
        await scheduler.run(stop)
    finally:
        await client.stop()
        log.info("monitor_stopped", symbol=asset.key, ticks=scheduler.ticks)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # search upward from the working directory, not from this module
    load_dotenv(args.env_file or find_dotenv(usecwd=True))
    setup_logging()

    try:
        asyncio.run(run(args))
    except ConfigError as e:
        log.error("config_error", err=str(e))
        return 2
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
