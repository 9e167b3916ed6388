from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from html import escape

from quotealert.utils.types import Action, AlertDecision, TrackedAsset


def _fmt_money(v: Decimal, currency: str) -> str:
    return f"{currency}{v:,.2f}"  # e.g. R$ 1,234.50


@dataclass(slots=True, frozen=True)
class _AlertCopy:
    label: str           # "Sell" | "Buy"
    direction: str       # "above" | "below"
    action_line: str
    accent: str          # hex colour for the HTML header stripe


_COPY: dict[str, _AlertCopy] = {
    "sell": _AlertCopy(
        label="Sell",
        direction="above",
        action_line="Consider locking in profits or rebalancing your position.",
        accent="#dc2626",
    ),
    "buy": _AlertCopy(
        label="Buy",
        direction="below",
        action_line="Consider opening or adding to your position.",
        accent="#16a34a",
    ),
}


class EmailMessageRenderer:
    """
    Builds (subject, body) for a buy/sell alert.

    html=True  -> body is a small self-contained HTML document
    html=False -> plain text body

    Returns ("", "") for action "none"; the engine treats an empty subject
    as "nothing to send".
    """
    def __init__(self, html: bool = True, currency: str = "R$ "):
        self.html = html
        self.currency = currency

    def render(
        self,
        action: Action,
        symbol: str,
        current_price: Decimal,
        buy_threshold: Decimal,
        sell_threshold: Decimal,
    ) -> tuple[str, str]:
        copy = _COPY.get(action)
        if copy is None:
            return "", ""

        if action == "sell":
            target = sell_threshold
            difference = current_price - sell_threshold
            subject = f"{symbol} hit your sell target at {_fmt_money(current_price, self.currency)}"
        else:
            target = buy_threshold
            difference = buy_threshold - current_price
            subject = f"{symbol} entered your buy zone at {_fmt_money(current_price, self.currency)}"

        if self.html:
            body = self._html_body(copy, symbol, current_price, target, difference)
        else:
            body = self._text_body(copy, symbol, current_price, target, difference)
        return subject, body

    def _money(self, v: Decimal) -> str:
        return _fmt_money(v, self.currency)

    def _text_body(self, copy: _AlertCopy, symbol: str, price: Decimal, target: Decimal, diff: Decimal) -> str:
        m = self._money
        return (
            f"{copy.label.upper()} signal for {symbol}\n"
            f"\n"
            f"The price has just moved {copy.direction} your {copy.label.lower()} threshold "
            f"and may need your review.\n"
            f"{copy.action_line}\n"
            f"\n"
            f"Ticker: {symbol}\n"
            f"Current price: {m(price)}\n"
            f"{copy.label} target: {m(target)}\n"
            f"Difference: {m(diff)} {copy.direction} target\n"
        )

    def _html_body(self, copy: _AlertCopy, symbol: str, price: Decimal, target: Decimal, diff: Decimal) -> str:
        sym = escape(symbol)
        cur = escape(self.currency)
        price_s = f"{cur}{price:,.2f}"
        target_s = f"{cur}{target:,.2f}"
        diff_s = f"{cur}{diff:,.2f}"
        label_lower = copy.label.lower()
        return f"""<html>
<head>
  <meta charset="UTF-8" />
  <title>{copy.label} alert for {sym}</title>
</head>
<body style="margin:0;padding:0;">
  <div style="display:none;max-height:0;overflow:hidden;">
    Price alert for {sym}: now at {price_s}, {copy.direction} your {label_lower} target of {target_s}.
  </div>
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0">
    <tr>
      <td align="center" style="padding:24px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0"
               style="max-width:600px;background-color:#ffffff;border-radius:12px;overflow:hidden;
                      font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Helvetica,Arial,sans-serif;">
          <tr>
            <td style="padding:20px 24px 16px 24px;background-color:#0b1f33;color:#ffffff;
                       border-top:4px solid {copy.accent};">
              <div style="font-size:13px;letter-spacing:0.16em;text-transform:uppercase;opacity:0.8;">Quote Alert</div>
              <div style="font-size:24px;font-weight:700;margin-top:8px;">{copy.label.upper()} signal for {sym}</div>
            </td>
          </tr>
          <tr>
            <td style="padding:20px 24px 8px 24px;">
              <p style="margin:0 0 12px 0;font-size:15px;color:#0f172a;">
                The price has just moved {copy.direction} your {label_lower} threshold and may need your review.
              </p>
              <p style="margin:0 0 16px 0;font-size:14px;color:#0f172a;">{copy.action_line}</p>
            </td>
          </tr>
          <tr>
            <td style="padding:0 24px 16px 24px;">
              <div style="margin-bottom:6px;"><strong>Ticker:</strong> {sym}</div>
              <div style="margin-bottom:6px;"><strong>Current price:</strong> {price_s}</div>
              <div style="margin-bottom:6px;"><strong>{copy.label} target:</strong> {target_s}</div>
              <div><strong>Difference:</strong> {diff_s} {copy.direction} target</div>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def format_alert_line(decision: AlertDecision, asset: TrackedAsset, price: Decimal) -> str:
    """One-line console summary, e.g. `[PETR4 SELL] 38.20 > 37.00 (sent)`."""
    if decision.action == "sell":
        rel, ref = ">", asset.sell_threshold
    elif decision.action == "buy":
        rel, ref = "<", asset.buy_threshold
    else:
        return (
            f"[{asset.key} NEUTRAL] {price:.2f} within "
            f"[{asset.buy_threshold:.2f}, {asset.sell_threshold:.2f}]"
        )

    if decision.should_notify:
        status = "sent" if decision.delivered else "send failed"
    else:
        status = f"suppressed: {decision.suppressed_reason}"
    return f"[{asset.key} {decision.action.upper()}] {price:.2f} {rel} {ref:.2f} ({status})"
