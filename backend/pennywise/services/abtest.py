"""Deterministic A/B bucket assignment for notification content."""
import hashlib


def assign_variant(user_id: str, event_key: str, channel: str = "email") -> str:
    """Return "A" or "B"; stable for the same user, event and channel."""
    key = f"{user_id}:{event_key}:{channel}"
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return "A" if digest[0] % 2 == 0 else "B"
