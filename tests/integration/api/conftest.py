import pytest
from fastapi.testclient import TestClient

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.deps import Settings, get_settings
from src.api.main import app


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.db_path = str(s.data_dir / "community.db")
    s.blobs_dir = s.data_dir / "blobs"
    return s


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    # Entering the client runs the lifespan, which migrates the temp database
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def members(client, settings, admin, alice, bob):
    repo = SQLiteUserRepo(settings.db_path)
    for user in (admin, alice, bob):
        repo.save(user)
    return admin, alice, bob


@pytest.fixture
def auth(settings):
    tokens = JWTAuthAdapter(settings.secret_key)

    def _headers(user):
        token = tokens.create_token(user.id, ttl_minutes=30)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def create_blog(client, auth):
    def _create(user, title="Hello", body="World", **extra):
        res = client.post(
            "/api/v1/blogs", json={"title": title, "body": body, **extra}, headers=auth(user)
        )
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return _create


@pytest.fixture
def approve(client, auth, members):
    admin = members[0]

    def _approve(path):
        res = client.patch(f"{path}/review", json={"status": "APPROVED"}, headers=auth(admin))
        assert res.status_code == 200, res.text
        return res.json()["data"]

    return _approve
