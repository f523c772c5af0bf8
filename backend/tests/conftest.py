import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
PROJECT_ROOT = ROOT_DIR.parent
for path in (PROJECT_ROOT, ROOT_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Must be in place before shared.config is first imported
TEST_ROOT = Path(tempfile.mkdtemp(prefix="slideloop-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_ROOT / 'app.db'}"
os.environ["MEDIA_ROOT"] = str(TEST_ROOT / "media")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from app import app  # noqa: E402
from database import Base, create_database_engine, get_db, init_database  # noqa: E402
from services.auth import session_store  # noqa: E402
from services.storage.service import ObjectStorage  # noqa: E402
from shared.utils import ensure_directory  # noqa: E402


@pytest.fixture(scope="session")
def engine():
    """SQLite engine for tests, separate from the app's default one."""
    test_engine = create_database_engine(f"sqlite:///{TEST_ROOT / 'tests.db'}")
    yield test_engine
    test_engine.dispose()
    shutil.rmtree(TEST_ROOT, ignore_errors=True)


@pytest.fixture(scope="session")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def test_environment(engine, session_factory: sessionmaker) -> Generator:
    """Fresh tables, empty bucket, no sessions and a test DB override per test."""
    Base.metadata.drop_all(bind=engine)
    init_database(bind=engine)

    bucket_path = ObjectStorage().bucket_path
    shutil.rmtree(bucket_path, ignore_errors=True)
    ensure_directory(str(bucket_path))
    session_store.clear()

    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def sign_up(client: TestClient) -> Callable[..., dict]:
    """Create an account and return ``{"headers", "user_id", "token"}``."""

    def _sign_up(email: str = "owner@example.com", password: str = "secret123") -> dict:
        response = client.post("/api/v1/auth/signup", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "token": body["access_token"],
            "user_id": body["user"]["id"],
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
        }

    return _sign_up


@pytest.fixture
def owner(sign_up) -> dict:
    return sign_up("owner@example.com")


@pytest.fixture
def stranger(sign_up) -> dict:
    return sign_up("stranger@example.com")


@pytest.fixture
def make_presentation(client: TestClient) -> Callable[..., dict]:
    def _make(headers: dict, title: str = "Sales floor", **fields) -> dict:
        response = client.post("/api/v1/presentations", json={"title": title, **fields}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def add_item(client: TestClient) -> Callable[..., dict]:
    def _add(headers: dict, presentation_id: str, item_type: str = "image", **fields) -> dict:
        response = client.post(
            f"/api/v1/presentations/{presentation_id}/items",
            json={"type": item_type, **fields},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add
