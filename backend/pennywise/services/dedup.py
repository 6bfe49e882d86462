"""Per (user, event, channel) "recently sent" markers.

The check and the mark are separate operations: two overlapping sweeps can both
see "not sent" for the same key and both dispatch. Delivery is therefore
at-least-once under concurrent invocation; the scheduler is expected to run a
single sweep at a time.
"""
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from pennywise.models.notification import NotificationKey

CHANNELS = ("push", "email")

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_for_key(value: str) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", value)


def dedup_key(user_id: str, event_key: str, channel: str) -> str:
    return sanitize_for_key(f"{user_id}:{channel}:{event_key}")


class DedupStore(ABC):
    """Time-windowed record of delivered notifications."""

    @abstractmethod
    def was_recently_sent(self, user_id: str, event_key: str, channel: str) -> bool:
        ...

    @abstractmethod
    def mark_sent(self, user_id: str, event_key: str, channel: str, commit: bool = True) -> None:
        """Record a delivery; with commit=False the caller owns the transaction."""
        ...


class SqlDedupStore(DedupStore):
    """Dedup markers in the ``notif_keys`` table.

    Records are never deleted; freshness is decided at read time against the window.
    """

    def __init__(
        self,
        db: Session,
        window: timedelta,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.window = window
        self.clock = clock

    def was_recently_sent(self, user_id: str, event_key: str, channel: str) -> bool:
        record = self.db.get(NotificationKey, dedup_key(user_id, event_key, channel))
        if record is None or not record.sent_at:
            return False

        try:
            sent_at = datetime.fromisoformat(record.sent_at)
        except ValueError:
            return False
        return sent_at >= self.clock() - self.window

    def mark_sent(self, user_id: str, event_key: str, channel: str, commit: bool = True) -> None:
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel}")

        key = dedup_key(user_id, event_key, channel)
        sent_at = self.clock().isoformat()
        record = self.db.get(NotificationKey, key)
        if record is None:
            record = NotificationKey(
                id=key,
                user_id=user_id,
                event_key=event_key,
                channel=channel,
                sent_at=sent_at,
            )
            self.db.add(record)
        else:
            record.user_id = user_id
            record.event_key = event_key
            record.sent_at = sent_at
        if commit:
            self.db.commit()
        else:
            self.db.flush()
