"""Shared fixtures: an app bound to a throwaway SQLite database."""

import pytest

from social import create_app, database
from social.config import Config

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        DATABASE_URL = f"sqlite:///{tmp_path / 'test.db'}"
        SECRET_JWT_KEY = TEST_SECRET
        COOKIE_SECURE = False
        COOKIE_SAMESITE = "Lax"
        REDIS_URL = ""
        ALLOWED_CLIENT_ORIGIN_URL = "http://client.test"

    flask_app = create_app(TestConfig)
    yield flask_app
    database.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_client(app):
    """Factory for extra independent clients (separate cookie jars)."""
    return app.test_client


def user_payload(user_at: str, **overrides) -> dict:
    payload = {
        "userName": user_at.capitalize(),
        "userAt": user_at,
        "email": f"{user_at}@example.com",
        "password": "Password123",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register():
    """Register ``user_at`` through ``client`` and assert it succeeded."""

    def _register(client, user_at: str, **overrides):
        response = client.post("/user/create", json=user_payload(user_at, **overrides))
        assert response.status_code == 201, response.get_json()
        return response

    return _register


class FakeRedis:
    """In-memory stand-in for the few redis calls the revocation store makes."""

    def __init__(self):
        self.store = {}

    def setex(self, key, ttl, value):
        self.store[key] = (value, ttl)
        return True

    def exists(self, key):
        return 1 if key in self.store else 0

    def ping(self):
        return True
