"""Shared pytest fixtures: a tmp_path-backed credential store and a Flask test client."""

import json

import pytest

from api import create_app
from models import CredentialStore

TEST_SECRET = "test-secret-key-for-squeeble-auth-0123456789abcdef"
PASSWORD = "correct-horse-battery"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "credentials.json"


@pytest.fixture
def store(db_path):
    """An initialized store over an empty document."""
    credential_store = CredentialStore(db_path, TEST_SECRET)
    credential_store.init()
    return credential_store


@pytest.fixture
def user(store):
    """A registered user: {id, username, email}."""
    return store.register("Alice", "Alice@Example.com", PASSWORD)


@pytest.fixture
def read_document(db_path):
    def _read():
        return json.loads(db_path.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def write_document(db_path):
    def _write(document):
        db_path.write_text(json.dumps(document, indent=2), encoding="utf-8")

    return _write


@pytest.fixture
def app(db_path):
    return create_app(
        "testing",
        overrides={"AUTH_SECRET": TEST_SECRET, "AUTH_DB_PATH": str(db_path)},
    )


@pytest.fixture
def client(app):
    return app.test_client()
