"""Helpers shared by the per-locale template sets."""
import math
from urllib.parse import urljoin

from pennywise.services.templates.types import EmailContent, NotificationContent, PushContent

PREFERENCES_PATH = "/settings/notifications"
LOGO_PATH = "/icons/icon-192.png"


def round_percent(value: float) -> int:
    """Round half up, so 0.805 * 100 reads as 81% rather than banker's 80%."""
    return int(math.floor(value + 0.5))


def format_amount(amount: float, symbol: str = "$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def resolve_url(base_url: str, path: str) -> str:
    if not base_url:
        return path
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    return urljoin(base_url, path)


def build_notification(
    subject: str,
    summary: str,
    url: str,
    facts: list[str],
    cta_text: str,
    base_url: str,
) -> NotificationContent:
    """Assemble the push, email and summary parts from one subject/summary pair."""
    return NotificationContent(
        summary=summary,
        push=PushContent(title=subject, body=summary),
        email=EmailContent(
            subject=subject,
            template_name="email",
            context={
                "heading": subject,
                "intro": summary,
                "facts": facts,
                "cta_text": cta_text,
                "cta_url": url,
                "preferences_url": resolve_url(base_url, PREFERENCES_PATH),
                "logo_url": resolve_url(base_url, LOGO_PATH),
            },
        ),
        url=url,
    )
