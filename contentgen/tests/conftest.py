import os
import tempfile
from uuid import uuid4

# 1. Point settings at throwaway resources before the app is imported
_TMP = tempfile.mkdtemp(prefix="contentgen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["STORAGE_DIR"] = os.path.join(_TMP, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["MOCK_S3"] = "true"
os.environ["VIDEO_POLL_INTERVAL_SECONDS"] = "0"
os.environ["VIDEO_POLL_MAX_ATTEMPTS"] = "3"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

# Import main AFTER the environment is in place
from contentgen.main import app  # noqa: E402
from contentgen.db import SessionLocal  # noqa: E402
from contentgen.services.dispatcher import GenerationDispatcher, get_dispatcher  # noqa: E402
from contentgen.services.storage import ArtifactStorage  # noqa: E402
from contentgen.tests.fakes import PASSWORD, FakeHttp, FakeImageProvider, FakeResponse, FakeVideoProvider  # noqa: E402


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides = {}


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """Register and log in a fresh user; returns (user_id, auth headers)."""

    def _make():
        email = f"user_{uuid4().hex[:8]}@example.com"
        username = f"user_{uuid4().hex[:8]}"
        r = client.post("/auth/register",
                        json={"username": username, "email": email, "password": PASSWORD})
        assert r.status_code == 201, r.text
        user_id = r.json()["userId"]
        r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert r.status_code == 200, r.text
        token = r.json()["token"]
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def fake_dispatcher():
    """Install a dispatcher with fake providers and real local storage."""

    def _install(image=None, video=None, image_bytes=b"\x89PNG fake"):
        dispatcher = GenerationDispatcher(
            image or FakeImageProvider(),
            video or FakeVideoProvider(),
            ArtifactStorage(http=FakeHttp(
                get=[FakeResponse(content=image_bytes) for _ in range(10)])),
        )
        app.dependency_overrides[get_dispatcher] = lambda: dispatcher
        return dispatcher

    yield _install
    app.dependency_overrides.pop(get_dispatcher, None)
