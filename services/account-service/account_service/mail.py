"""SMTP transport for outbound account email."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from .config import Settings
from .domain.errors import ServerError

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Deliver messages through an SMTP relay, one connection per message."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        starttls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_from,
            username=settings.smtp_user,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
        )

    def send(self, message: EmailMessage) -> None:
        """Send ``message``, filling in ``From`` when the caller left it empty.

        Connection and protocol failures are raised as ``ServerError``.
        """
        if not message["From"]:
            message["From"] = self._sender
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
                if self._starttls:
                    conn.starttls()
                if self._username:
                    conn.login(self._username, self._password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("smtp delivery to %s failed: %s", message["To"], exc)
            raise ServerError("failed to send email") from exc
        logger.info("sent %r to %s", message["Subject"], message["To"])
