"""User locale lookup."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pennywise.models.user import User
from pennywise.services.templates import DEFAULT_LOCALE

logger = logging.getLogger(__name__)


class LocaleResolver:
    """Reads the user's preferred locale, caching results for the resolver's lifetime."""

    def __init__(self, db: Session, default: str = DEFAULT_LOCALE):
        self.db = db
        self.default = default
        self._cache: dict[str, str] = {}

    def resolve(self, user_id: str) -> str:
        """Never raises: unknown users and lookup errors resolve to the default."""
        if user_id in self._cache:
            return self._cache[user_id]

        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.debug(f"Locale lookup failed for user {user_id}: {e}")
            user = None

        raw = user.locale if user is not None else None
        locale = raw.strip() if isinstance(raw, str) and raw.strip() else self.default

        self._cache[user_id] = locale
        return locale
