"""SQLAlchemy models package."""
from pennywise.models.user import User
from pennywise.models.card import Card
from pennywise.models.transaction import Transaction
from pennywise.models.budget import Budget
from pennywise.models.device_token import DeviceToken
from pennywise.models.notification import NotificationKey, NotificationLog

__all__ = [
    "User",
    "Card",
    "Transaction",
    "Budget",
    "DeviceToken",
    "NotificationLog",
    "NotificationKey",
]
