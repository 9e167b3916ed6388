from decimal import Decimal as D

from quotealert.alerts.formatting import EmailMessageRenderer, format_alert_line
from quotealert.utils.types import AlertDecision, TrackedAsset

ASSET = TrackedAsset(key="PETR4", buy_threshold=D("10.00"), sell_threshold=D("12.00"))


def test_sell_subject_and_html_body():
    subject, body = EmailMessageRenderer().render("sell", "PETR4", D("12.50"), D("10.00"), D("12.00"))
    assert subject == "PETR4 hit your sell target at R$ 12.50"
    assert body.startswith("<html>")
    assert "SELL signal for PETR4" in body
    assert "R$ 0.50 above target" in body
    assert "#dc2626" in body


def test_buy_subject_and_text_body():
    subject, body = EmailMessageRenderer(html=False).render("buy", "PETR4", D("9.25"), D("10.00"), D("12.00"))
    assert subject == "PETR4 entered your buy zone at R$ 9.25"
    assert "<html>" not in body
    assert "Buy target: R$ 10.00" in body
    assert "Difference: R$ 0.75 below target" in body


def test_custom_currency_and_thousands_separator():
    subject, _ = EmailMessageRenderer(currency="US$").render(
        "sell", "BRK", D("1234.5"), D("10"), D("1000")
    )
    assert subject == "BRK hit your sell target at US$1,234.50"


def test_none_action_renders_empty():
    assert EmailMessageRenderer().render("none", "PETR4", D("11"), D("10"), D("12")) == ("", "")


def test_html_escapes_symbol():
    _, body = EmailMessageRenderer().render("sell", "<b>X</b>", D("13"), D("10"), D("12"))
    assert "<b>X</b>" not in body
    assert "&lt;b&gt;X&lt;/b&gt;" in body


def test_format_alert_line_variants():
    sent = AlertDecision(action="sell", should_notify=True, delivered=True)
    assert format_alert_line(sent, ASSET, D("12.5")) == "[PETR4 SELL] 12.50 > 12.00 (sent)"

    failed = AlertDecision(action="buy", should_notify=True, delivered=False)
    assert format_alert_line(failed, ASSET, D("9")) == "[PETR4 BUY] 9.00 < 10.00 (send failed)"

    cooled = AlertDecision(action="buy", should_notify=False, suppressed_reason="cooldown")
    assert "(suppressed: cooldown)" in format_alert_line(cooled, ASSET, D("9"))

    neutral = AlertDecision(action="none", should_notify=False, suppressed_reason="neutral")
    assert format_alert_line(neutral, ASSET, D("11")) == "[PETR4 NEUTRAL] 11.00 within [10.00, 12.00]"
