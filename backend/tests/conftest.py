from __future__ import annotations

import os
import shutil
import tempfile

# Settings are read at import time, so the environment is prepared first.
_ROOT = tempfile.mkdtemp(prefix="vidtube_test_")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["COOKIE_SECURE"] = "0"
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["CLOUDINARY_API_KEY"] = ""
os.environ["CLOUDINARY_API_SECRET"] = ""
os.environ["MEDIA_DIR"] = os.path.join(_ROOT, "media")
os.environ["MEDIA_BASE_URL"] = "http://testserver/media"
os.environ["UPLOAD_TMP_DIR"] = os.path.join(_ROOT, "temp")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import vidtube.models  # noqa: E402,F401
from vidtube.database import Base, SessionLocal, engine  # noqa: E402
from vidtube.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def pytest_sessionfinish(session, exitstatus) -> None:
    shutil.rmtree(_ROOT, ignore_errors=True)
