from __future__ import annotations

from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

from tasktree import create_app
from tasktree.config import Settings
from tasktree.models import db
from tasktree.store import Store

from .helpers import PASSWORD


@pytest.fixture(scope="session")
def password_hash() -> str:
    return generate_password_hash(PASSWORD)


@pytest.fixture()
def settings(tmp_path: Path, password_hash: str) -> Settings:
    """Settings pointing at a fresh SQLite file per test."""
    return Settings(
        db_path=tmp_path / "data" / "tasks.db",
        password_hash=password_hash,
        secret_key="test-secret",
        testing=True,
    )


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    """Flask test client, not logged in."""
    return app.test_client()


@pytest.fixture()
def auth_client(client):
    """Flask test client holding a valid auth cookie."""
    resp = client.post("/api/login", json={"password": PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture()
def store(app):
    with app.app_context():
        yield Store(db)

