"""Push delivery through Firebase Cloud Messaging."""
import logging
from dataclasses import dataclass
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, messaging

from pennywise.config import Settings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "pennywise"


@dataclass(frozen=True)
class MulticastResult:
    success_count: int
    failure_count: int


class PushTransport:
    """Multicast push contract.

    Per-token failures are reported in the counts; only a failure of the whole
    call raises.
    """

    def send_multicast(
        self,
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> MulticastResult:
        raise NotImplementedError


class FirebasePushTransport(PushTransport):
    """Sends to every token of a user with one FCM multicast call."""

    def __init__(self, app: firebase_admin.App):
        self.app = app

    def send_multicast(
        self,
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> MulticastResult:
        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data=data or {},
        )
        response = messaging.send_each_for_multicast(message, app=self.app)

        if response.failure_count:
            failed = [tokens[idx] for idx, resp in enumerate(response.responses) if not resp.success]
            logger.info(f"Multicast partially failed for {len(failed)} of {len(tokens)} tokens")

        return MulticastResult(
            success_count=response.success_count,
            failure_count=response.failure_count,
        )


def initialize_firebase(settings: Settings) -> firebase_admin.App | None:
    """Initialize (or reuse) the named Firebase app from a service-account file."""
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    cred_path = Path(settings.firebase_credentials_path)
    if not cred_path.exists():
        logger.error(f"Firebase credentials not found at {cred_path}")
        return None

    cred = credentials.Certificate(str(cred_path))
    return firebase_admin.initialize_app(
        cred,
        options={"httpTimeout": settings.firebase_http_timeout_seconds},
        name=FIREBASE_APP_NAME,
    )


def get_push_transport(settings: Settings) -> PushTransport | None:
    """Firebase transport, or None when push is not configured."""
    if not settings.push_enabled:
        logger.info("Firebase credentials not configured; push notifications will be skipped.")
        return None

    app = initialize_firebase(settings)
    if app is None:
        return None
    return FirebasePushTransport(app)
