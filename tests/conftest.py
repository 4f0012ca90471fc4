from __future__ import annotations

import os

# Settings are read at import time; pin a throwaway in-memory DB before anything imports voters_list.
os.environ["DATA_BACKEND"] = "local"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ.setdefault("SESSION_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient

from voters_list.api.deps import get_auth_provider, get_store_factory
from voters_list.auth import local as local_auth
from voters_list.auth.local import LocalAuthProvider, create_monitor
from voters_list.database import get_engine, init_db
from voters_list.main import app
from voters_list.store.sql import SqlVoterStore

M1_EMAIL = "m1@example.org"
M2_EMAIL = "m2@example.org"
PASSWORD = "correct horse"


@pytest.fixture(autouse=True)
def _fast_password_hashing(monkeypatch):
    monkeypatch.setattr(local_auth, "_PASSWORD_METHOD", "pbkdf2:sha256:1000")


@pytest.fixture
def engine():
    eng = get_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def m1(engine):
    return create_monitor(engine, email=M1_EMAIL, password=PASSWORD, name="Monitor One", monitor_id="m1")


@pytest.fixture
def m2(engine):
    return create_monitor(engine, email=M2_EMAIL, password=PASSWORD, name="Monitor Two", monitor_id="m2")


@pytest.fixture
def store_for(engine):
    def _make(monitor_id: str, **kwargs) -> SqlVoterStore:
        return SqlVoterStore(engine, monitor_id, **kwargs)

    return _make


@pytest.fixture
def auth(engine):
    return LocalAuthProvider(engine)


@pytest.fixture
def client(engine, auth):
    app.dependency_overrides[get_auth_provider] = lambda: auth
    app.dependency_overrides[get_store_factory] = lambda: (lambda user, token: SqlVoterStore(engine, user.id))
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str = PASSWORD):
    return client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
