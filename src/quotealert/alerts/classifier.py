from __future__ import annotations

from decimal import Decimal

from quotealert.utils.types import Action


def classify(price: Decimal, buy_threshold: Decimal, sell_threshold: Decimal) -> Action:
    """
    Map a price onto an action.

      price >  sell_threshold -> "sell"
      price <  buy_threshold  -> "buy"
      otherwise               -> "none"   (closed interval [buy, sell])

    Sell is checked first, so inverted thresholds (buy > sell) classify
    every price above sell as "sell" rather than "buy".
    """
    if price > sell_threshold:
        return "sell"
    if price < buy_threshold:
        return "buy"
    return "none"
