"""Email delivery over SMTP."""
import logging
import re
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from pennywise.config import Settings
from pennywise.services.exceptions import EmailDeliveryError, EmailNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    from_addr: str
    to: str
    subject: str
    html: str
    text: str | None = None


def html_to_text(html: str) -> str:
    """Crude plain-text fallback for messages sent without an explicit text part."""
    plain_text = html.replace("<br>", "\n").replace("</p>", "\n\n")
    return re.sub(r"<[^>]+>", "", plain_text).strip()


class EmailTransport:
    """Single-recipient email contract; raises on any delivery failure."""

    from_addr: str = ""

    def send(self, message: EmailMessage) -> None:
        raise NotImplementedError


class SmtpEmailTransport(EmailTransport):
    """Sends multipart/alternative mail through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        user: str = "",
        password: str = "",
        from_addr: str = "",
        timeout: float = 10,
    ):
        if not host:
            raise EmailNotConfiguredError("SMTP_HOST is not configured")
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr
        self.timeout = timeout

    def build_message(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = message.from_addr or self.from_addr
        msg["To"] = message.to

        msg.attach(MIMEText(message.text or html_to_text(message.html), "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    def send(self, message: EmailMessage) -> None:
        msg = self.build_message(message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Failed to send email to {message.to}: {e}") from e


def get_email_transport(settings: Settings) -> EmailTransport | None:
    """SMTP transport, or None when email is not configured."""
    if not settings.email_enabled:
        logger.info("SMTP_HOST not configured; email notifications will be skipped.")
        return None

    return SmtpEmailTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        from_addr=settings.smtp_from_email,
        timeout=settings.smtp_timeout_seconds,
    )
