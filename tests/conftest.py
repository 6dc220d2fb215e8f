"""Pytest configuration and fixtures."""

import base64

import pytest
from fastapi.testclient import TestClient

from filite.config import Settings
from filite.database import Database
from filite.main import create_app
from filite.services.entries import EntryStore
from filite.services.hasher import CredentialHasher, hash_password
from filite.services.users import UserStore

# Passwords for the users created by the `users` fixture
PASSWORDS = {
    "alice": "alice-password",
    "bob": "bob:has:colons",
    "root": "root-password",
}


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id


def basic_auth(username: str, password: str) -> AuthHeaders:
    """Build an Authorization header for HTTP Basic credentials."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return AuthHeaders({"Authorization": f"Basic {token}"}, user_id=username)


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file with cheap hash parameters."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'filite-test.db'}",
        hash_mem_cost=64,
        hash_time_cost=1,
        hash_lanes=1,
        hash_secret="test-pepper",
        id_length=6,
        max_upload_bytes=1024,
        environment="test",
    )


@pytest.fixture
def hash_params(settings):
    return settings.hash_params


@pytest.fixture
def database(settings):
    """Create the schema on a fresh database file."""
    database = Database.from_settings(settings)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    """Create a database session for each test."""
    with database.session() as session:
        yield session


@pytest.fixture
def hasher():
    hasher = CredentialHasher(max_workers=2)
    yield hasher
    hasher.shutdown()


@pytest.fixture
def entry_store(db):
    return EntryStore(db)


@pytest.fixture
def users(db, hash_params):
    """Create alice and bob as regular users and root as an admin."""
    store = UserStore(db)
    for username, password in PASSWORDS.items():
        password_hash = hash_password(password.encode(), hash_params)
        assert store.insert(username, password_hash, admin=username == "root")
    return {username: store.lookup(username) for username in PASSWORDS}


@pytest.fixture
def client(settings, database):
    """Create a test client sharing the test database file."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(users):
    """Auth headers for alice, the default uploader."""
    return basic_auth("alice", PASSWORDS["alice"])
