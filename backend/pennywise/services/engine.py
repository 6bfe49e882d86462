"""Notification engine: render, dedup and deliver reminders over push and email."""
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable

from jinja2 import TemplateError
from sqlalchemy.orm import Session

from pennywise.models.notification import NotificationLog
from pennywise.services.abtest import assign_variant
from pennywise.services.dedup import DedupStore, SqlDedupStore
from pennywise.services.exceptions import (
    EmailNotConfiguredError,
    NoRecipientError,
    TemplateRenderError,
    TransportFailedError,
    UnsupportedTemplateError,
)
from pennywise.services.locale import LocaleResolver
from pennywise.services.mailer import EmailMessage, EmailTransport
from pennywise.services.push import MulticastResult, PushTransport
from pennywise.services.recipients import RecipientResolver
from pennywise.services.templates import (
    BudgetTemplate,
    DueTemplate,
    NotificationContent,
    NotificationTemplates,
    ReminderTemplate,
    UtilizationTemplate,
    get_templates,
    resolve_locale_tag,
)
from pennywise.services.templates.common import resolve_url
from pennywise.services.templates.renderer import render_email_template
from pennywise.services.tracking import CLICK_REDIRECT_PATH, OPEN_PIXEL_PATH, append_tracking_params

logger = logging.getLogger(__name__)

TEST_PUSH_TITLE = "Pennywise"
TEST_PUSH_BODY = "Test push notification from Pennywise."
TEST_EMAIL_SUBJECT = "Pennywise test email"


@dataclass(frozen=True)
class ReminderEvent:
    """Instruction to notify one user about one condition occurrence."""

    user_id: str
    type: str
    event_key: str
    template: ReminderTemplate
    card_id: str | None = None
    budget_id: str | None = None


@dataclass(frozen=True)
class NotificationLogRecord:
    user_id: str
    type: str
    message: str
    channel: str
    event_key: str
    locale: str
    card_id: str | None = None
    budget_id: str | None = None
    ab_variant: str | None = None
    id: str | None = None
    open_url: str | None = None
    click_url: str | None = None


def log_notification_record(db: Session, record: NotificationLogRecord, commit: bool = True) -> str:
    """Persist an audit log entry and return its id.

    With commit=False the row is only flushed so the caller can commit it
    together with other writes.
    """
    entry = NotificationLog(
        id=record.id or str(uuid.uuid4()),
        user_id=record.user_id,
        type=record.type,
        message=record.message,
        channel=record.channel,
        event_key=record.event_key,
        locale=resolve_locale_tag(record.locale),
        card_id=record.card_id,
        budget_id=record.budget_id,
        ab_variant=record.ab_variant,
        tracking_open_url=record.open_url,
        tracking_click_url=record.click_url,
        read=0,
    )
    db.add(entry)
    if commit:
        db.commit()
    else:
        db.flush()
    return entry.id


class NotificationEngine:
    """Delivers reminder events, at most once per channel per dedup window.

    One engine serves one scheduler invocation or request: its token, email and
    locale caches are never invalidated and die with the instance.
    """

    def __init__(
        self,
        db: Session,
        push_transport: PushTransport | None,
        email_transport: EmailTransport | None,
        notification_window: timedelta = timedelta(hours=24),
        base_url: str = "",
        dedup_store: DedupStore | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        open_pixel_url: str = "",
        click_redirect_url: str = "",
    ):
        self.db = db
        self.push_transport = push_transport
        self.email_transport = email_transport
        self.notification_window = notification_window
        self.base_url = base_url
        self.open_pixel_url = open_pixel_url or resolve_url(base_url, OPEN_PIXEL_PATH)
        self.click_redirect_url = click_redirect_url or resolve_url(base_url, CLICK_REDIRECT_PATH)
        self.dedup = dedup_store or SqlDedupStore(db, notification_window, clock=clock)
        self.recipients = RecipientResolver(db)
        self.locales = LocaleResolver(db)

    def resolve_locale(self, user_id: str) -> str:
        return self.locales.resolve(user_id)

    def log(self, record: NotificationLogRecord) -> str:
        return log_notification_record(self.db, record)

    def record_delivery(self, record: NotificationLogRecord) -> str:
        """Write the audit entry and the dedup marker in one transaction."""
        try:
            log_id = log_notification_record(self.db, record, commit=False)
            self.dedup.mark_sent(record.user_id, record.event_key, record.channel, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return log_id

    def deliver_reminder(self, event: ReminderEvent) -> None:
        """Render the event and deliver it on push, then on email.

        Missing recipients and transport failures only skip the affected channel.
        An unknown template variant raises UnsupportedTemplateError.
        """
        locale = self.resolve_locale(event.user_id)
        content = self.render_content(get_templates(locale), event.template)
        variant = assign_variant(event.user_id, event.event_key)

        self._deliver_push(event, content, locale, variant)
        self._deliver_email(event, content, locale, variant)

    def render_content(
        self,
        templates: NotificationTemplates,
        template: ReminderTemplate,
    ) -> NotificationContent:
        if isinstance(template, DueTemplate):
            return templates.due_reminder(replace(template.data, base_url=self.base_url))
        if isinstance(template, UtilizationTemplate):
            return templates.utilization_alert(replace(template.data, base_url=self.base_url))
        if isinstance(template, BudgetTemplate):
            return templates.budget_alert(replace(template.data, base_url=self.base_url))
        raise UnsupportedTemplateError(f"Unsupported template kind: {template!r}")

    def _deliver_push(
        self,
        event: ReminderEvent,
        content: NotificationContent,
        locale: str,
        variant: str,
    ) -> None:
        if self.push_transport is None:
            return
        if self.dedup.was_recently_sent(event.user_id, event.event_key, "push"):
            logger.debug(f"Push already sent for {event.event_key} (user {event.user_id})")
            return

        tokens = self.recipients.get_device_tokens(event.user_id)
        if not tokens:
            logger.debug(f"No device tokens for user {event.user_id}; skipping push")
            return

        try:
            result = self.push_transport.send_multicast(
                tokens,
                title=content.push.title,
                body=content.push.body,
                data=self.compose_data_payload(event, locale, content.url, variant),
            )
        except Exception as e:
            logger.error(
                f"Failed to send push notification for user {event.user_id}, "
                f"event {event.event_key}: {e}"
            )
            return

        logger.info(
            f"Push {event.event_key} to user {event.user_id}: "
            f"{result.success_count} sent, {result.failure_count} failed"
        )
        self.record_delivery(NotificationLogRecord(
            user_id=event.user_id,
            type=event.type,
            message=content.summary,
            channel="push",
            event_key=event.event_key,
            locale=locale,
            card_id=event.card_id,
            budget_id=event.budget_id,
            ab_variant=variant,
        ))

    def _deliver_email(
        self,
        event: ReminderEvent,
        content: NotificationContent,
        locale: str,
        variant: str,
    ) -> None:
        if self.email_transport is None:
            return
        if self.dedup.was_recently_sent(event.user_id, event.event_key, "email"):
            logger.debug(f"Email already sent for {event.event_key} (user {event.user_id})")
            return

        email = self.recipients.get_email(event.user_id)
        if not email:
            logger.debug(f"No email on file for user {event.user_id}; skipping email")
            return

        # The log id is fixed before sending so the tracking links can reference it.
        log_id = str(uuid.uuid4())
        tracking = {
            "nid": log_id,
            "uid": event.user_id,
            "variant": variant,
            "event": event.event_key,
            "channel": "email",
        }
        open_url = append_tracking_params(self.open_pixel_url, tracking)
        click_url = append_tracking_params(self.click_redirect_url, {**tracking, "url": content.url})

        context = {
            **content.email.context,
            "cta_url": content.email.context.get("cta_url") or content.url,
            "open_url": open_url,
            "click_url": click_url,
        }
        try:
            html = render_email_template(
                locale,
                context,
                template_name=content.email.template_name,
                variant=variant,
            )
        except TemplateError as e:
            logger.error(
                f"Failed to render email template {content.email.template_name} "
                f"({locale}, variant {variant}) for user {event.user_id}: {e}"
            )
            return

        try:
            self.email_transport.send(EmailMessage(
                from_addr=self.email_transport.from_addr,
                to=email,
                subject=content.email.subject,
                html=html,
                text=content.summary,
            ))
        except Exception as e:
            logger.error(
                f"Failed to send email notification for user {event.user_id}, "
                f"event {event.event_key}: {e}"
            )
            return

        self.record_delivery(NotificationLogRecord(
            user_id=event.user_id,
            type=event.type,
            message=content.summary,
            channel="email",
            event_key=event.event_key,
            locale=locale,
            card_id=event.card_id,
            budget_id=event.budget_id,
            ab_variant=variant,
            id=log_id,
            open_url=open_url,
            click_url=click_url,
        ))

    def compose_data_payload(
        self,
        event: ReminderEvent,
        locale: str,
        url: str,
        variant: str,
    ) -> dict[str, str]:
        """FCM data payload; every value must be a string."""
        data = {
            "type": event.type,
            "eventKey": event.event_key,
            "locale": resolve_locale_tag(locale),
            "url": url,
            "variant": variant,
        }
        if event.card_id:
            data["cardId"] = event.card_id
        if event.budget_id:
            data["budgetId"] = event.budget_id
        return data

    # On-demand test sends: same transports and audit log, no producers, no dedup.

    def send_test_push(self, user_id: str) -> MulticastResult:
        if self.push_transport is None:
            raise NoRecipientError("Push notifications are not configured")

        tokens = self.recipients.get_device_tokens(user_id)
        if not tokens:
            raise NoRecipientError("No device tokens for this user")

        try:
            result = self.push_transport.send_multicast(
                tokens,
                title=TEST_PUSH_TITLE,
                body=TEST_PUSH_BODY,
                data={"type": "test-push"},
            )
        except Exception as e:
            logger.error(f"Failed to send test push for user {user_id}: {e}")
            raise TransportFailedError("Unable to send test push") from e

        if result.success_count == 0:
            raise TransportFailedError("No device accepted the test push")

        self.log(NotificationLogRecord(
            user_id=user_id,
            type="test-push",
            message="Test push notification dispatched.",
            channel="push",
            event_key="test-push",
            locale=self.resolve_locale(user_id),
        ))
        return result

    def send_test_email(self, user_id: str) -> str:
        """Send a test email to the user's address; returns the address used."""
        if self.email_transport is None:
            raise EmailNotConfiguredError("Email delivery is not configured")

        email = self.recipients.get_email(user_id)
        if not email:
            raise NoRecipientError("No email address available for this user")

        locale = self.resolve_locale(user_id)
        try:
            html = render_email_template(locale, {
                "heading": TEST_EMAIL_SUBJECT,
                "intro": "This is a test email from your notification settings.",
                "facts": [],
                "cta_url": resolve_url(self.base_url, "/"),
                "preferences_url": resolve_url(self.base_url, "/settings/notifications"),
            })
        except TemplateError as e:
            logger.error(f"Failed to render test email template ({locale}) for user {user_id}: {e}")
            raise TemplateRenderError("Unable to render the test email") from e
        try:
            self.email_transport.send(EmailMessage(
                from_addr=self.email_transport.from_addr,
                to=email,
                subject=TEST_EMAIL_SUBJECT,
                html=html,
                text=f"This is a test email from Pennywise. Open {resolve_url(self.base_url, '/')}",
            ))
        except Exception as e:
            logger.error(f"Failed to send test email for user {user_id}: {e}")
            raise TransportFailedError("Unable to send test email") from e

        self.log(NotificationLogRecord(
            user_id=user_id,
            type="test-email",
            message="Test email notification dispatched.",
            channel="email",
            event_key="test-email",
            locale=locale,
        ))
        return email
