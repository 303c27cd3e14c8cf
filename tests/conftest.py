"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

import socket
from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from src.contact_relay.config import Settings, get_settings
from src.contact_relay.main import create_app

TEST_JWT_SECRET = "test_jwt_secret_0123456789abcdef0123456789abcdef"


def closed_port_url() -> str:
    """URL on a local port with nothing listening."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/webhook/contact"


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at an unreachable webhook."""
    return Settings(
        n8n_webhook_url=closed_port_url(),
        jwt_secret=TEST_JWT_SECRET,
        log_level="DEBUG",
        webhook={"timeout_seconds": 2},
    )


@pytest.fixture
def test_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """FastAPI test client with a fresh app, and therefore fresh rate limits."""
    app = create_app(test_settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Remove relay variables from the environment and the settings cache."""
    for name in (
        "N8N_WEBHOOK_URL",
        "JWT_SECRET",
        "PORT",
        "RATE_LIMIT_MAX_REQUESTS",
        "CORS_ALLOW_ORIGINS",
        "CORS_ALLOW_METHODS",
        "CORS_ALLOW_HEADERS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("src.contact_relay.config.load_config_file", lambda config_path=None: {})
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def valid_submission() -> Dict[str, Any]:
    """Sample valid contact form body."""
    return {
        "name": "  Ada Lovelace ",
        "email": "ada@example.com ",
        "subject": "Project enquiry",
        "message": " We would like to talk about a new website. ",
        "privacyConsent": True,
        "honeypot": "",
    }

