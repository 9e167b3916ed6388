from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import structlog

from quotealert.settings import env_bool, env_float, env_int, env_str

log = structlog.get_logger("email")


@dataclass(slots=True)
class EmailSettings:
    smtp_server: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    sender_email: Optional[str] = None
    recipient_email: Optional[str] = None
    use_tls: bool = True
    timeout_s: float = 15.0

    def missing(self) -> list[str]:
        out = []
        if not self.smtp_server:
            out.append("SMTP_SERVER")
        if not self.sender_email:
            out.append("EMAIL_SENDER")
        if not self.recipient_email:
            out.append("EMAIL_RECIPIENT")
        return out


def config_from_env() -> EmailSettings:
    """Never raises for missing transport settings; see EmailSettings.missing()."""
    return EmailSettings(
        smtp_server=env_str("SMTP_SERVER"),
        smtp_port=env_int("SMTP_PORT", 587),
        smtp_user=env_str("SMTP_USER"),
        smtp_pass=env_str("SMTP_PASS"),
        sender_email=env_str("EMAIL_SENDER"),
        recipient_email=env_str("EMAIL_RECIPIENT"),
        use_tls=env_bool("SMTP_USE_TLS", True),
        timeout_s=env_float("SMTP_TIMEOUT_S", 15.0, min_value=0.0, strict_min=True),
    )


class SmtpEmailDispatcher:
    """
    Sends one alert email per call. smtplib runs in a worker thread so the
    event loop keeps ticking; the socket timeout plus an outer wait_for bound
    the call.

    If the settings are incomplete, send() logs a warning and returns False
    without touching the network (log-only mode).
    """
    def __init__(self, settings: EmailSettings, html: bool = True):
        self.settings = settings
        self.html = html
        self._missing = settings.missing()
        if self._missing:
            log.warning("email_disabled_missing_settings", missing=self._missing)

    @property
    def configured(self) -> bool:
        return not self._missing

    async def send(self, subject: str, body: str) -> bool:
        if not self.configured:
            log.warning("email_not_sent_unconfigured", subject=subject, missing=self._missing)
            return False

        msg = self.build_message(subject, body)
        # outer bound is a little above the socket timeout so smtplib reports first
        outer_timeout = self.settings.timeout_s * 2 + 1.0
        try:
            await asyncio.wait_for(asyncio.to_thread(self._send_blocking, msg), timeout=outer_timeout)
        except asyncio.TimeoutError:
            log.error("email_send_timeout", to=self.settings.recipient_email, timeout_s=outer_timeout)
            return False
        except (smtplib.SMTPException, OSError) as e:
            log.error("email_send_failed", to=self.settings.recipient_email, err=str(e))
            return False
        log.info("email_sent", to=self.settings.recipient_email, subject=subject)
        return True

    def build_message(self, subject: str, body: str) -> EmailMessage:
        s = self.settings
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = s.sender_email
        msg["To"] = s.recipient_email
        if self.html:
            msg.set_content(body, subtype="html")
        else:
            msg.set_content(body)
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_server, s.smtp_port, timeout=s.timeout_s) as smtp:
            if s.use_tls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_pass or "")
            smtp.send_message(msg)
