from sqlalchemy.exc import OperationalError

from pennywise.models.user import User
from pennywise.services.locale import LocaleResolver


class UnavailableSession:
    def __init__(self):
        self.rollbacks = 0

    def get(self, model, ident):
        raise OperationalError("SELECT users", {}, Exception("database is locked"))

    def rollback(self):
        self.rollbacks += 1


def test_user_locale_is_trimmed(db):
    db.add(User(id="u1", locale=" zh-TW "))
    db.commit()

    assert LocaleResolver(db).resolve("u1") == "zh-TW"


def test_blank_or_missing_locale_uses_default(db):
    db.add(User(id="u1", locale="   "))
    db.commit()

    resolver = LocaleResolver(db, default="en")
    assert resolver.resolve("u1") == "en"
    assert resolver.resolve("ghost") == "en"


def test_lookup_errors_resolve_to_default():
    session = UnavailableSession()
    resolver = LocaleResolver(session)

    assert resolver.resolve("u1") == "en"
    assert session.rollbacks == 1

    assert resolver.resolve("u1") == "en"
    assert session.rollbacks == 1
