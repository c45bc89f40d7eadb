"""Проверяет подписанную cookie сотрудника и вход по staff_key."""

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings
from app.core.staff_session import STAFF_SESSION_COOKIE, create_staff_session_cookie, read_staff_session
from app.main import app


def test_signed_cookie_round_trip() -> None:
    cookie = create_staff_session_cookie(42)

    assert read_staff_session(cookie) == 42


def test_tampered_cookie_is_rejected() -> None:
    cookie = create_staff_session_cookie(42)
    payload, signature = cookie.rsplit(".", 1)

    assert read_staff_session(f"{payload}x.{signature}") is None
    assert read_staff_session("garbage") is None
    assert read_staff_session(None) is None


def test_login_with_staff_key_sets_cookie() -> None:
    client = TestClient(app)

    response = client.post("/staff/login", data={"profile_id": "5", "staff_key": "test_staff"})

    assert response.status_code == 200
    assert f"{STAFF_SESSION_COOKIE}=" in response.headers.get("set-cookie", "")


def test_login_with_wrong_key_is_forbidden() -> None:
    client = TestClient(app)

    response = client.post("/staff/login", data={"profile_id": "5", "staff_key": "nope"})

    assert response.status_code == 403
    assert "set-cookie" not in response.headers


def test_default_secret_is_not_a_staff_key() -> None:
    client = TestClient(app)

    response = client.post("/staff/login", data={"profile_id": "1", "staff_key": "change_me"})

    assert response.status_code == 403
    assert "set-cookie" not in response.headers


def test_settings_require_staff_key(monkeypatch) -> None:
    monkeypatch.delenv("STAFF_KEY", raising=False)

    with pytest.raises(PydanticValidationError):
        Settings(database_url="sqlite+aiosqlite://", _env_file=None)
