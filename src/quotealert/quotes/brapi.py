from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import aiohttp
import structlog

from quotealert.settings import env_float, env_str

log = structlog.get_logger("brapi")

# tickers brapi.dev serves without an API token
FREE_TIER_SYMBOLS = frozenset({"PETR4", "MGLU3", "VALE3", "ITUB4"})


@dataclass(slots=True)
class BrapiConfig:
    base_url: str = "https://brapi.dev"
    token: Optional[str] = None
    timeout_s: float = 8.0
    user_agent: str = "quote-alert"


def config_from_env() -> BrapiConfig:
    return BrapiConfig(
        base_url=env_str("BRAPI_BASE_URL", "https://brapi.dev"),
        token=env_str("BRAPI_TOKEN"),
        timeout_s=env_float("BRAPI_TIMEOUT_S", 8.0, min_value=0.0, strict_min=True),
    )


class BrapiClient:
    """
    Latest-quote client for brapi.dev.

    fetch_price() never raises for remote problems: missing token, HTTP
    errors, empty results and network failures all come back as None.
    """
    def __init__(self, cfg: BrapiConfig, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.cfg.user_agent},
            )
            self._owns_session = True

    async def stop(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    def requires_token(self, symbol: str) -> bool:
        return symbol.upper() not in FREE_TIER_SYMBOLS

    async def fetch_price(self, symbol: str) -> Optional[Decimal]:
        if not self.cfg.token and self.requires_token(symbol):
            log.warning("quote_token_required", symbol=symbol, free_symbols=sorted(FREE_TIER_SYMBOLS))
            return None

        if self._session is None:
            await self.start()
        assert self._session is not None

        url = f"{self.cfg.base_url.rstrip('/')}/api/quote/{symbol}"
        params = {"range": "1d", "interval": "1d"}
        if self.cfg.token:
            params["token"] = self.cfg.token

        try:
            async with self._session.get(url, params=params) as resp:
                if resp.status != 200:
                    detail = await _maybe_text(resp)
                    self._log_bad_status(symbol, resp.status, detail)
                    return None
                try:
                    raw = await resp.text()
                except UnicodeDecodeError as e:
                    log.warning("quote_decode_error", symbol=symbol, err=str(e))
                    return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("quote_network_error", symbol=symbol, err=str(e) or type(e).__name__)
            return None

        price = parse_quote_price(raw)
        if price is None:
            log.warning("quote_missing_price", symbol=symbol, snippet=raw[:200])
            return None
        log.info("quote_fetched", symbol=symbol, price=str(price))
        return price

    @staticmethod
    def _log_bad_status(symbol: str, status: int, detail: str) -> None:
        if status in (401, 403):
            log.warning("quote_unauthorized", symbol=symbol, status=status, body=detail[:200])
        elif status == 404:
            log.warning("quote_unknown_symbol", symbol=symbol, status=status)
        else:
            log.warning("quote_fetch_failed", symbol=symbol, status=status, body=detail[:200])


def parse_quote_price(raw: str) -> Optional[Decimal]:
    """
    Extract results[0].regularMarketPrice from a brapi quote payload.
    Numbers are parsed as Decimal. Returns None on anything unexpected.
    """
    try:
        data = json.loads(raw, parse_float=Decimal, parse_int=Decimal)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    results = data.get("results")
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    price = first.get("regularMarketPrice")
    if not isinstance(price, Decimal):
        return None
    return price


async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return await resp.text()
    except Exception:
        return "<no body>"
