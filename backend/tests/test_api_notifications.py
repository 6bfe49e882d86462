from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jinja2 import TemplateNotFound

from conftest import FakeEmailTransport, FakePushTransport
from pennywise.api import deps, devices, notifications, tracking, users
from pennywise.config import Settings, get_settings
from pennywise.models.device_token import DeviceToken
from pennywise.models.notification import NotificationLog
from pennywise.models.user import User
from pennywise.security import create_access_token
from pennywise.services import engine as engine_module
from pennywise.services.engine import NotificationEngine
from pennywise.services.tracking import TRANSPARENT_GIF

BASE_URL = "https://app.example.com"


def _build_test_client(session_factory, push_transport=None, email_transport=None):
    app = FastAPI()
    app.include_router(notifications.router, prefix="/api")
    app.include_router(devices.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(tracking.router, prefix="/api")

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_engine():
        db = session_factory()
        try:
            yield NotificationEngine(
                db,
                push_transport=push_transport,
                email_transport=email_transport,
                notification_window=timedelta(hours=24),
                base_url=BASE_URL,
            )
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[notifications.get_notification_engine] = override_get_engine
    app.dependency_overrides[get_settings] = lambda: Settings(app_base_url=BASE_URL)
    return TestClient(app)


def _create_user(session_factory, user_id="u1", email="user@example.com"):
    db = session_factory()
    try:
        db.add(User(id=user_id, email=email, locale="en"))
        db.commit()
    finally:
        db.close()
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


def test_requests_without_token_are_rejected(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())

    response = client.post("/api/notifications/test/push")

    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "not-authenticated"


def test_token_for_unknown_user_is_rejected(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = {"Authorization": f"Bearer {create_access_token({'sub': 'ghost'})}"}

    response = client.get("/api/notifications", headers=headers)

    assert response.status_code == 401


def test_test_push_without_devices_reports_no_recipient(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)

    response = client.post("/api/notifications/test/push", headers=headers)

    assert response.status_code == 412
    assert response.json()["detail"]["reason"] == "no-recipient"


def test_registered_device_receives_test_push(session_factory):
    push = FakePushTransport()
    client = _build_test_client(session_factory, push, FakeEmailTransport())
    headers = _create_user(session_factory)

    register = client.post(
        "/api/devices/tokens",
        json={"token": "  tok-1  ", "platform": "web"},
        headers=headers,
    )
    assert register.status_code == 201
    assert register.json() == {"token": "tok-1", "platform": "web"}

    again = client.post("/api/devices/tokens", json={"token": "tok-1"}, headers=headers)
    assert again.status_code == 201

    response = client.post("/api/notifications/test/push", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"success_count": 1, "failure_count": 0}
    assert push.calls[0]["tokens"] == ["tok-1"]


def test_blank_device_token_is_rejected(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)

    response = client.post("/api/devices/tokens", json={"token": "   "}, headers=headers)

    assert response.status_code == 422


def test_test_email_when_email_disabled(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), None)
    headers = _create_user(session_factory)

    response = client.post("/api/notifications/test/email", headers=headers)

    assert response.status_code == 412
    assert response.json()["detail"]["reason"] == "email-disabled"


def test_test_email_transport_failure(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport(fail=True))
    headers = _create_user(session_factory)

    response = client.post("/api/notifications/test/email", headers=headers)

    assert response.status_code == 502
    assert response.json()["detail"]["reason"] == "transport-failed"


def test_test_email_success(session_factory):
    email = FakeEmailTransport()
    client = _build_test_client(session_factory, FakePushTransport(), email)
    headers = _create_user(session_factory)

    response = client.post("/api/notifications/test/email", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"delivered": True, "email": "user@example.com"}
    assert email.sent[0].to == "user@example.com"


def test_list_and_mark_notifications_read(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)

    db = session_factory()
    try:
        db.add(NotificationLog(
            id="n1",
            user_id="u1",
            type="due-reminder",
            channel="push",
            event_key="card:c1:due:3",
            locale="en",
            card_id="c1",
            message="Visa payment is due in 3 days.",
            read=0,
        ))
        db.commit()
    finally:
        db.close()

    listed = client.get("/api/notifications", headers=headers)
    assert listed.status_code == 200
    body = listed.json()
    assert len(body) == 1
    assert body[0]["id"] == "n1"
    assert body[0]["read"] is False
    assert body[0]["card_id"] == "c1"

    marked = client.post("/api/notifications/n1/read", headers=headers)
    assert marked.status_code == 200

    unread = client.get("/api/notifications", params={"unread_only": True}, headers=headers)
    assert unread.json() == []

    missing = client.post("/api/notifications/nope/read", headers=headers)
    assert missing.status_code == 404


def test_other_users_notifications_are_hidden(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    _create_user(session_factory, user_id="u1", email="one@example.com")
    headers = _create_user(session_factory, user_id="u2", email="two@example.com")

    db = session_factory()
    try:
        db.add(NotificationLog(
            id="n1",
            user_id="u1",
            type="budget-80",
            channel="email",
            event_key="budget:b1:usage:80",
            locale="en",
            message="Dining is at 80% of its budget.",
        ))
        db.commit()
    finally:
        db.close()

    assert client.get("/api/notifications", headers=headers).json() == []
    assert client.post("/api/notifications/n1/read", headers=headers).status_code == 404


def test_set_locale_normalizes_tag(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)

    response = client.put("/api/users/me/locale", json={"locale": "zh-hant-tw"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"locale": "zh-TW"}

    db = session_factory()
    try:
        assert db.get(User, "u1").locale == "zh-TW"
    finally:
        db.close()


def test_long_device_tokens_get_fixed_length_ids(session_factory):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)
    long_token = "x" * 4000

    first = client.post("/api/devices/tokens", json={"token": long_token}, headers=headers)
    second = client.post("/api/devices/tokens", json={"token": long_token, "platform": "ios"}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 201
    db = session_factory()
    try:
        rows = db.query(DeviceToken).all()
        assert len(rows) == 1
        assert rows[0].id == DeviceToken.make_id("u1", long_token)
        assert len(rows[0].id) == 64
        assert rows[0].platform == "ios"
    finally:
        db.close()


def test_test_email_template_failure_is_a_structured_error(session_factory, monkeypatch):
    client = _build_test_client(session_factory, FakePushTransport(), FakeEmailTransport())
    headers = _create_user(session_factory)

    def broken_render(*args, **kwargs):
        raise TemplateNotFound("email.html")

    monkeypatch.setattr(engine_module, "render_email_template", broken_render)

    response = client.post("/api/notifications/test/email", headers=headers)

    assert response.status_code == 500
    assert response.json()["detail"]["reason"] == "template-failed"


def _add_log(session_factory, log_id="n1"):
    db = session_factory()
    try:
        db.add(NotificationLog(
            id=log_id,
            user_id="u1",
            type="due-reminder",
            channel="email",
            event_key="card:c1:due:3",
            locale="en",
            message="Visa payment is due in 3 days.",
        ))
        db.commit()
    finally:
        db.close()


def _get_log(session_factory, log_id="n1"):
    db = session_factory()
    try:
        return db.get(NotificationLog, log_id)
    finally:
        db.close()


def test_open_pixel_serves_gif_and_records_first_open(session_factory):
    client = _build_test_client(session_factory)
    _create_user(session_factory)
    _add_log(session_factory)

    response = client.get("/api/track/open", params={"nid": "n1", "uid": "u1", "variant": "A"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/gif"
    assert "no-store" in response.headers["cache-control"]
    assert response.content == TRANSPARENT_GIF
    first_open = _get_log(session_factory).opened_at
    assert first_open is not None

    client.get("/api/track/open", params={"nid": "n1"})
    assert _get_log(session_factory).opened_at == first_open


def test_open_pixel_ignores_unknown_or_missing_ids(session_factory):
    client = _build_test_client(session_factory)

    assert client.get("/api/track/open", params={"nid": "nope"}).status_code == 200
    assert client.get("/api/track/open").content == TRANSPARENT_GIF


def test_click_redirects_to_app_page_and_records_click(session_factory):
    client = _build_test_client(session_factory)
    _create_user(session_factory)
    _add_log(session_factory)

    response = client.get(
        "/api/track/click",
        params={"nid": "n1", "url": "https://app.example.com/cards"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://app.example.com/cards"
    assert _get_log(session_factory).clicked_at is not None


@pytest.mark.parametrize(
    "params, expected",
    [
        ({}, BASE_URL),
        ({"url": "https://evil.example.org/phish"}, BASE_URL),
        ({"url": "javascript:alert(1)"}, BASE_URL),
        ({"target": "aHR0cHM6Ly9hcHAuZXhhbXBsZS5jb20vYnVkZ2V0cw"}, "https://app.example.com/budgets"),
        ({"url": "https%3A%2F%2Fapp.example.com%2Fcards"}, "https://app.example.com/cards"),
    ],
)
def test_click_target_resolution(session_factory, params, expected):
    client = _build_test_client(session_factory)

    response = client.get("/api/track/click", params=params, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == expected
