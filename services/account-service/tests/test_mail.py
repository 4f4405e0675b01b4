from __future__ import annotations

import smtplib
from email.message import EmailMessage

import pytest

from account_service import mail as mail_module
from account_service.domain.errors import ServerError
from account_service.mail import SmtpMailer


class RecordingSMTP:
    """Stand-in for ``smtplib.SMTP`` that records the conversation."""

    instances: list["RecordingSMTP"] = []

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.address = (host, port)
        self.calls: list[str] = []
        self.sent: list[EmailMessage] = []
        RecordingSMTP.instances.append(self)

    def __enter__(self) -> "RecordingSMTP":
        return self

    def __exit__(self, *exc_info) -> None:
        self.calls.append("quit")

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, username: str, password: str) -> None:
        self.calls.append(f"login:{username}")

    def send_message(self, message: EmailMessage) -> None:
        self.sent.append(message)


def _message() -> EmailMessage:
    message = EmailMessage()
    message["To"] = "user@example.com"
    message["Subject"] = "Verification email"
    message.set_content("hello")
    return message


@pytest.fixture
def mailer() -> SmtpMailer:
    return SmtpMailer(host="smtp.test", port=2525, sender="noreply@example.com", username="bot", password="secret")


def test_send_fills_sender_and_uses_tls(mailer, monkeypatch):
    RecordingSMTP.instances.clear()
    monkeypatch.setattr(mail_module.smtplib, "SMTP", RecordingSMTP)

    mailer.send(_message())

    (conn,) = RecordingSMTP.instances
    assert conn.address == ("smtp.test", 2525)
    assert conn.calls == ["starttls", "login:bot", "quit"]
    assert conn.sent[0]["From"] == "noreply@example.com"


def test_connection_failure_is_a_server_error(mailer, monkeypatch):
    def _refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(mail_module.smtplib, "SMTP", _refuse)

    with pytest.raises(ServerError):
        mailer.send(_message())


def test_protocol_failure_is_a_server_error(mailer, monkeypatch):
    class RejectingSMTP(RecordingSMTP):
        def send_message(self, message: EmailMessage) -> None:
            raise smtplib.SMTPRecipientsRefused({"user@example.com": (550, b"no such user")})

    monkeypatch.setattr(mail_module.smtplib, "SMTP", RejectingSMTP)

    with pytest.raises(ServerError):
        mailer.send(_message())
