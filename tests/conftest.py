"""Pytest configuration and fixtures for testing."""

import os
import time

import mongomock
import pytest
from fastapi.testclient import TestClient

# Settings are read when the app module is imported, so the environment is
# set up before that import.
# MongoDB Configuration (replaced by mongomock per test)
os.environ["MONGO_URI"] = "mongodb://localhost:27017"
os.environ["MONGO_DB_NAME"] = "arithmetic_test"

# Application Configuration
os.environ["LOG_LEVEL"] = "INFO"

from arithmetic_api.main import app  # noqa: E402  # pylint: disable=wrong-import-position
from arithmetic_api.ratelimit import (  # noqa: E402  # pylint: disable=wrong-import-position
    limiter,
)
from arithmetic_api.services import (  # noqa: E402  # pylint: disable=wrong-import-position
    database,
    signing,
)


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Install a fresh in-memory MongoDB client for each test."""
    client = mongomock.MongoClient()
    monkeypatch.setattr(database, "_client", client)
    yield client


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield


@pytest.fixture
def test_client():
    """Create a test client for the FastAPI application."""
    with TestClient(app) as client:
        yield client


def signed_headers(api_key: str, secret_key: str, timestamp: int | None = None) -> dict:
    """Build the auth headers for a signed request."""
    if timestamp is None:
        timestamp = int(time.time())
    return {
        "x-api-key": api_key,
        "x-signature": signing.compute_signature(secret_key, api_key, timestamp),
        "x-timestamp": str(timestamp),
    }


@pytest.fixture
def register(test_client):
    """Register a user and return the registration response body."""

    def _register(email: str = "ada@example.com", plan_type: str = "free") -> dict:
        response = test_client.post(
            "/auth/register",
            json={"name": "Ada", "email": email, "planType": plan_type},
        )
        assert response.status_code == 200
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register):
    """Signed headers for a freshly registered free-plan user."""
    body = register()
    return signed_headers(body["apiKey"], body["secretKey"])


@pytest.fixture
def sign():
    """Expose the header signer to tests that need custom timestamps."""
    return signed_headers
