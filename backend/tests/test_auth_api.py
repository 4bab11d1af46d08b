from __future__ import annotations

import asyncio
import os
from datetime import timedelta

from tests._helpers.auth import API, bearer, login_user, register_user
from vidtube.config import settings
from vidtube.exceptions import StorageError
from vidtube.models.user import User
from vidtube.services import session_service, user_service
from vidtube.services.auth_service import AuthService
from vidtube.services.session_store import SessionStore
from vidtube.services.user_store import UserStore


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_register_returns_sanitized_user(client) -> None:
    r = register_user(client, username="Alice", with_cover=True)
    assert r.status_code == 201, r.text

    body = r.json()
    assert body["username"] == "alice"
    assert body["email"] == "alice@example.com"
    assert body["avatar"].startswith("http://testserver/media/")
    assert body["cover_image"].startswith("http://testserver/media/")
    assert "password_hash" not in body
    assert "refresh_token" not in body


def test_register_stores_hash_not_plaintext(client, db) -> None:
    register_user(client, password="plain-secret")
    user = db.query(User).filter(User.username == "alice").one()
    assert user.password_hash != "plain-secret"
    assert user.refresh_token is None


def test_register_duplicate_username_or_email(client) -> None:
    assert register_user(client).status_code == 201

    r = register_user(client, username="ALICE", email="other@example.com")
    assert r.status_code == 409
    r = register_user(client, username="other", email="alice@example.com")
    assert r.status_code == 409


def test_register_requires_avatar(client) -> None:
    r = client.post(
        f"{API}/register",
        data={
            "full_name": "Alice",
            "email": "alice@example.com",
            "username": "alice",
            "password": "pw",
        },
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "ValidationFailure"


def test_register_requires_all_fields(client) -> None:
    r = register_user(client, full_name="   ")
    assert r.status_code == 400


def test_login_sets_cookies_and_returns_pair(client) -> None:
    register_user(client)
    r = client.post(f"{API}/login", json={"email": "alice@example.com", "password": "alice-password"})
    assert r.status_code == 200, r.text

    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "alice"
    assert "refresh_token" not in body["user"]
    assert r.cookies.get("access_token") == body["access_token"]
    assert r.cookies.get("refresh_token") == body["refresh_token"]


def test_login_wrong_password_is_401(client) -> None:
    register_user(client)
    r = client.post(f"{API}/login", json={"username": "alice", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AuthFailure"
    assert r.headers["www-authenticate"] == "Bearer"


def test_login_unknown_user_is_401(client) -> None:
    r = client.post(f"{API}/login", json={"username": "ghost", "password": "nope"})
    assert r.status_code == 401


def test_login_without_identifier_is_400(client) -> None:
    r = client.post(f"{API}/login", json={"password": "nope"})
    assert r.status_code == 400


def test_refresh_rotates_and_rejects_replay(client) -> None:
    register_user(client)
    first = login_user(client)

    r = client.post(f"{API}/refresh-token", json={"refresh_token": first["refresh_token"]})
    assert r.status_code == 200, r.text
    second = r.json()
    assert second["refresh_token"] != first["refresh_token"]

    r = client.post(f"{API}/refresh-token", json={"refresh_token": first["refresh_token"]})
    assert r.status_code == 401

    r = client.post(f"{API}/refresh-token", json={"refresh_token": second["refresh_token"]})
    assert r.status_code == 200


def test_refresh_reads_cookie(client) -> None:
    register_user(client)
    login_user(client)

    r = client.post(f"{API}/refresh-token")
    assert r.status_code == 200, r.text
    assert r.cookies.get("refresh_token") == r.json()["refresh_token"]


def test_refresh_without_token_is_401(client) -> None:
    r = client.post(f"{API}/refresh-token")
    assert r.status_code == 401


def test_logout_revokes_refresh_token(client) -> None:
    register_user(client)
    tokens = login_user(client)

    r = client.post(f"{API}/logout", headers=bearer(tokens["access_token"]))
    assert r.status_code == 200
    client.cookies.clear()

    r = client.post(f"{API}/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 401


def test_logout_requires_access_token(client) -> None:
    r = client.post(f"{API}/logout")
    assert r.status_code == 401


def test_current_user_via_header_and_cookie(client) -> None:
    register_user(client)
    tokens = login_user(client)

    r = client.get(f"{API}/current-user")
    assert r.status_code == 200
    assert r.json()["username"] == "alice"

    client.cookies.clear()
    r = client.get(f"{API}/current-user", headers=bearer(tokens["access_token"]))
    assert r.status_code == 200


def test_expired_access_token_is_401(client, db) -> None:
    register_user(client)
    user = db.query(User).filter(User.username == "alice").one()
    expired = AuthService.create_access_token(
        {"sub": str(user.id)}, expires_delta=timedelta(seconds=-1)
    )

    r = client.get(f"{API}/current-user", headers=bearer(expired))
    assert r.status_code == 401


def test_refresh_token_is_not_an_access_token(client) -> None:
    register_user(client)
    tokens = login_user(client)
    client.cookies.clear()

    r = client.get(f"{API}/current-user", headers=bearer(tokens["refresh_token"]))
    assert r.status_code == 401


def test_change_password(client) -> None:
    register_user(client)
    tokens = login_user(client)

    r = client.post(
        f"{API}/change-password",
        headers=bearer(tokens["access_token"]),
        json={"old_password": "wrong", "new_password": "next-password"},
    )
    assert r.status_code == 400

    r = client.post(
        f"{API}/change-password",
        headers=bearer(tokens["access_token"]),
        json={"old_password": "alice-password", "new_password": "next-password"},
    )
    assert r.status_code == 200

    r = client.post(f"{API}/login", json={"username": "alice", "password": "alice-password"})
    assert r.status_code == 401
    login_user(client, password="next-password")


def test_password_hashing_runs_off_the_event_loop(client, monkeypatch) -> None:
    calls = []

    def recording(fn):
        def wrapper(*args):
            calls.append((fn.__name__, _on_event_loop()))
            return fn(*args)

        return wrapper

    monkeypatch.setattr(user_service, "hash_password", recording(user_service.hash_password))
    monkeypatch.setattr(
        session_service, "verify_password", recording(session_service.verify_password)
    )
    monkeypatch.setattr(
        session_service, "hash_password", recording(session_service.hash_password)
    )

    register_user(client)
    tokens = login_user(client)
    client.cookies.clear()
    r = client.post(
        f"{API}/change-password",
        headers=bearer(tokens["access_token"]),
        json={"old_password": "alice-password", "new_password": "next-password"},
    )
    assert r.status_code == 200, r.text

    assert [name for name, _ in calls] == [
        "hash_password",
        "verify_password",
        "verify_password",
        "hash_password",
    ]
    assert not any(on_loop for _, on_loop in calls)


def test_register_race_on_unique_field_is_conflict(client, db, monkeypatch) -> None:
    assert register_user(client).status_code == 201
    stored_files = set(os.listdir(settings.media_dir))
    monkeypatch.setattr(UserStore, "find_by_identifier", lambda self, **kwargs: None)

    r = register_user(client, email="other@example.com", with_cover=True)

    assert r.status_code == 409, r.text
    assert r.json()["error"]["code"] == "ConflictError"
    assert db.query(User).count() == 1
    assert set(os.listdir(settings.media_dir)) == stored_files


def test_login_storage_failure_is_503_without_tokens(client, db, monkeypatch) -> None:
    register_user(client)

    def failing_write(self, user_id, token):
        raise StorageError()

    monkeypatch.setattr(SessionStore, "write", failing_write)

    r = client.post(f"{API}/login", json={"username": "alice", "password": "alice-password"})

    assert r.status_code == 503
    error = r.json()["error"]
    assert error["code"] == "StorageError"
    assert error["details"]["retryable"] is True
    assert "access_token" not in r.json()
    assert "set-cookie" not in r.headers
    assert db.query(User).one().refresh_token is None
