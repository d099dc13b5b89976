import pytest
from fastapi.testclient import TestClient

from auth import AuthGate
from config import Settings
from database import JSONFileStorage, RecordStore
from main import create_app

# Cheap hashing keeps the suite fast
HASH_ROUNDS = 1000


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        secret_key="test-secret",
        password_hash_rounds=HASH_ROUNDS,
        api_rate_limit_max_requests=1000,
        auth_rate_limit_max_requests=1000,
    )


@pytest.fixture
def store(settings):
    s = RecordStore(JSONFileStorage(settings.data_dir))
    s.load()
    return s


@pytest.fixture
def auth(settings):
    return AuthGate(settings.secret_key, hash_rounds=HASH_ROUNDS)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def register(client, username="nova", email="nova@x.com", password="secret1"):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
