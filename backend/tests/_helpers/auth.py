from __future__ import annotations

from fastapi.testclient import TestClient

API = "/api/v1/users"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def register_user(
    client: TestClient,
    *,
    username: str = "alice",
    password: str = "alice-password",
    email: str | None = None,
    full_name: str = "Alice Example",
    with_cover: bool = False,
):
    files = {"avatar": ("avatar.png", PNG_BYTES, "image/png")}
    if with_cover:
        files["cover_image"] = ("cover.png", PNG_BYTES, "image/png")
    return client.post(
        f"{API}/register",
        data={
            "full_name": full_name,
            "email": email or f"{username.lower()}@example.com",
            "username": username,
            "password": password,
        },
        files=files,
    )


def login_user(
    client: TestClient, *, username: str = "alice", password: str = "alice-password"
) -> dict:
    r = client.post(f"{API}/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def bearer(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
