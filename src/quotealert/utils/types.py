from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Optional

# ---- monitoring primitives ----

Action = Literal["none", "buy", "sell"]

# None means the price source had nothing for this tick
Sample = Optional[Decimal]

SuppressedReason = Literal[
    "no_sample",
    "neutral",
    "cooldown",
    "empty_message",
    "dispatcher_unconfigured",
]


@dataclass(slots=True, frozen=True)
class TrackedAsset:
    """
    One monitored instrument. buy/sell thresholds are exclusive bounds:
    price < buy_threshold -> buy, price > sell_threshold -> sell.
    """
    key: str
    buy_threshold: Decimal
    sell_threshold: Decimal


# ---- alerting domain ----

@dataclass(slots=True)
class AlertDecision:
    action: Action
    should_notify: bool
    suppressed_reason: Optional[SuppressedReason] = None
    delivered: Optional[bool] = None  # dispatcher result, set only when a send was attempted
