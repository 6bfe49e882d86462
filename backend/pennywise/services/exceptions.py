"""Notification error taxonomy.

Operational failures (no recipient, transport errors) carry a ``reason`` code that
the API layer forwards to callers of the on-demand test-send endpoints.
"""


class NotificationError(Exception):
    """Base class for notification failures."""

    reason = "notification-error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason


class NoRecipientError(NotificationError):
    """The user has no device token / email address for the channel."""

    reason = "no-recipient"


class EmailNotConfiguredError(NotificationError):
    """No email provider is configured; email is disabled, never retried."""

    reason = "email-disabled"


class TransportFailedError(NotificationError):
    """A push or email transport call failed as a whole."""

    reason = "transport-failed"


class EmailDeliveryError(TransportFailedError):
    """The SMTP server rejected or could not receive the message."""


class TemplateRenderError(NotificationError):
    """An email template is missing or failed to render; a deployment fault."""

    reason = "template-failed"


class UnsupportedTemplateError(TypeError):
    """A reminder carried a template variant nothing knows how to render."""
