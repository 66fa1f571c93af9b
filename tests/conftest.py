"""
Pytest fixtures for Surveillance Console tests.
"""
import os
import tempfile

# Keep the audit log out of the source tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="console-audit-"))

import pytest

from surveillance_console import create_app
from surveillance_console.auth import CredentialStore, Principal
from surveillance_console.config import TestingConfig
from surveillance_console.models import Role
from surveillance_console.services import ResourceConfigStore, SessionState


ADMIN_LOGIN = "admin"
ADMIN_PASSWORD = "admin123"
OPERATOR_LOGIN = "operator1"
OPERATOR_PASSWORD = "operator123"


class FakeBackend:
    """In-memory stand-in for the WebDAV backend."""

    def __init__(self, document=None, error=None):
        self.document = document
        self.error = error
        self.stored = []

    def fetch(self):
        if self.error is not None:
            raise self.error
        return self.document

    def store(self, payload):
        if self.error is not None:
            raise self.error
        self.stored.append(payload)


@pytest.fixture
def admin():
    return Principal(ADMIN_LOGIN, Role.ADMINISTRATOR)


@pytest.fixture
def operator():
    return Principal(OPERATOR_LOGIN, Role.OPERATOR)


@pytest.fixture
def credentials():
    """Credential store seeded with the default admin and operator."""
    return CredentialStore.from_config(TestingConfig)


@pytest.fixture
def resources():
    """Resource store holding the default registry."""
    return ResourceConfigStore(lock_timeout=1)


@pytest.fixture
def session_state(credentials, resources):
    return SessionState(credentials, resources, lock_timeout=1)


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username, password):
    return client.post("/api/login", json={"login": username, "password": password})


@pytest.fixture
def admin_client(client):
    response = login(client, ADMIN_LOGIN, ADMIN_PASSWORD)
    assert response.status_code == 200
    return client


@pytest.fixture
def operator_client(client):
    response = login(client, OPERATOR_LOGIN, OPERATOR_PASSWORD)
    assert response.status_code == 200
    return client
