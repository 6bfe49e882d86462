"""Delivery target lookup: push device tokens and the account email."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pennywise.models.device_token import DeviceToken
from pennywise.models.user import User

logger = logging.getLogger(__name__)


class RecipientResolver:
    """Resolves and caches a user's push tokens and email for one sweep."""

    def __init__(self, db: Session):
        self.db = db
        self._token_cache: dict[str, list[str]] = {}
        self._email_cache: dict[str, str | None] = {}

    def get_device_tokens(self, user_id: str) -> list[str]:
        if user_id in self._token_cache:
            return self._token_cache[user_id]

        rows = self.db.query(DeviceToken.token).filter(DeviceToken.user_id == user_id).all()
        tokens = [token for (token,) in rows if isinstance(token, str) and token]

        self._token_cache[user_id] = tokens
        return tokens

    def get_email(self, user_id: str) -> str | None:
        """Verified account email, or None. Lookup errors count as "no email"."""
        if user_id in self._email_cache:
            return self._email_cache[user_id]

        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.debug(f"Email lookup failed for user {user_id}: {e}")
            user = None

        email = None
        if user is not None and user.email and user.email_verified:
            email = user.email.strip() or None

        self._email_cache[user_id] = email
        return email
