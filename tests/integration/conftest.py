"""
Integration test fixtures. Overrides get_db, the media store and the score scheduler
so API tests run against the in-memory DB from the root conftest.
"""
import pytest

from portal.services.media_service import LocalMediaStore, MediaStoreError


class RecordingMediaStore(LocalMediaStore):
    """Local store that remembers deletions and can be told to fail."""

    def __init__(self, directory):
        super().__init__(directory, url_prefix="/uploads/media")
        self.destroyed: list[str] = []
        self.destroyed_types: dict[str, str] = {}
        self.fail_uploads = False
        self.fail_destroys = False

    async def upload(self, data, filename, content_type=None):
        if self.fail_uploads:
            raise MediaStoreError("media host unavailable")
        return await super().upload(data, filename, content_type)

    async def destroy(self, public_id, resource_type="image"):
        if self.fail_destroys:
            raise MediaStoreError("media host unavailable")
        self.destroyed.append(public_id)
        self.destroyed_types[public_id] = resource_type
        await super().destroy(public_id, resource_type)


@pytest.fixture
def override_get_db(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def media_store(tmp_path):
    return RecordingMediaStore(tmp_path / "media")


@pytest.fixture
def score_scheduler(session_factory):
    from portal.services.score_scheduler import ScoreScheduler
    return ScoreScheduler(session_factory)


@pytest.fixture
def api_client(override_get_db, media_store, score_scheduler):
    """FastAPI TestClient with in-memory DB, recording media store and a timer-less scheduler."""
    from fastapi.testclient import TestClient
    from portal.api import app
    from portal.config import get_db
    from portal.services.media_service import get_media_store
    from portal.services.score_scheduler import get_score_scheduler

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: media_store
    app.dependency_overrides[get_score_scheduler] = lambda: score_scheduler
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(api_client):
    """Sign in as someone else, dropping whatever cookie the client held."""

    def _login(username: str, password: str = "pass123", login_type: str = "student"):
        api_client.cookies.clear()
        return api_client.post("/login", json={"username": username, "password": password, "login_type": login_type})

    return _login


@pytest.fixture
def admin(make_user):
    from portal.models.models import Role
    return make_user("admin", role=Role.ADMIN, semester=None)


@pytest.fixture
def admin_client(api_client, login_as, admin):
    response = login_as("admin", login_type="admin")
    assert response.status_code == 200
    return api_client


@pytest.fixture
def student(make_user):
    return make_user("alice", semester=3)


@pytest.fixture
def student_client(api_client, login_as, student):
    response = login_as("alice@example.com")
    assert response.status_code == 200
    return api_client
