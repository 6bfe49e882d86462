import os
import sys
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pennywise import models  # noqa: E402,F401
from pennywise.database import Base  # noqa: E402
from pennywise.services.exceptions import EmailDeliveryError  # noqa: E402
from pennywise.services.mailer import EmailTransport  # noqa: E402
from pennywise.services.push import MulticastResult, PushTransport  # noqa: E402


class FakePushTransport(PushTransport):
    def __init__(self, fail: bool = False, failure_count: int = 0):
        self.fail = fail
        self.failure_count = failure_count
        self.calls = []

    def send_multicast(self, tokens, title, body, data=None):
        self.calls.append({"tokens": list(tokens), "title": title, "body": body, "data": data})
        if self.fail:
            raise RuntimeError("fcm unavailable")
        return MulticastResult(
            success_count=len(tokens) - self.failure_count,
            failure_count=self.failure_count,
        )


class FakeEmailTransport(EmailTransport):
    from_addr = "Pennywise <notifications@example.com>"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, message):
        if self.fail:
            raise EmailDeliveryError("smtp unavailable")
        self.sent.append(message)


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def push_transport():
    return FakePushTransport()


@pytest.fixture
def email_transport():
    return FakeEmailTransport()


@pytest.fixture
def clock():
    return MutableClock(datetime(2026, 3, 16, 9, 0, 0))
