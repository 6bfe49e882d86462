import smtplib

import pytest

from pennywise.services import mailer
from pennywise.services.exceptions import EmailDeliveryError, EmailNotConfiguredError
from pennywise.services.mailer import EmailMessage, SmtpEmailTransport, html_to_text


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.logged_in = None
        self.messages = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.messages.append(msg)


class RefusingSMTP(RecordingSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({"user@example.com": (550, b"no such user")})


def _message():
    return EmailMessage(
        from_addr="",
        to="user@example.com",
        subject="Card payment reminder",
        html="<p>Visa payment is due tomorrow.</p>",
    )


def test_html_to_text_strips_markup():
    assert html_to_text("<h1>Hi</h1><p>Line one</p><p>Line two<br>three</p>") == (
        "HiLine one\n\nLine two\nthree"
    )


def test_transport_requires_host():
    with pytest.raises(EmailNotConfiguredError):
        SmtpEmailTransport(host="")


def test_send_builds_multipart_message(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(mailer.smtplib, "SMTP", RecordingSMTP)
    transport = SmtpEmailTransport(
        host="smtp.example.com",
        user="mailer",
        password="pw",
        from_addr="Pennywise <noreply@example.com>",
        timeout=5,
    )

    transport.send(_message())

    server = RecordingSMTP.instances[0]
    assert (server.host, server.port, server.timeout) == ("smtp.example.com", 587, 5)
    assert server.logged_in == ("mailer", "pw")
    msg = server.messages[0]
    assert msg["From"] == "Pennywise <noreply@example.com>"
    assert msg["To"] == "user@example.com"
    assert msg.get_content_subtype() == "alternative"
    assert [part.get_content_type() for part in msg.get_payload()] == ["text/plain", "text/html"]


def test_smtp_errors_become_delivery_errors(monkeypatch):
    monkeypatch.setattr(mailer.smtplib, "SMTP", RefusingSMTP)
    transport = SmtpEmailTransport(host="smtp.example.com")

    with pytest.raises(EmailDeliveryError) as exc_info:
        transport.send(_message())

    assert exc_info.value.reason == "transport-failed"
