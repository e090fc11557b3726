"""
Pytest configuration and fixtures for ServiceLane tests.
"""

import os
import sys
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_path))

# Set environment variables for testing BEFORE any imports
# These need to be set before the modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("JWT_SECRET_KEY", "test_jwt_secret_for_testing_only")
os.environ.setdefault("CSRF_ENABLED", "true")
os.environ.setdefault("EMAIL_DEMO_MODE", "true")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest


class FakeWebSocket:
    """Records frames sent through ConnectionManager instead of a real socket."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]


@pytest.fixture
def fake_websocket_factory():
    """Build FakeWebSocket instances; pass fail=True for a broken socket."""
    return FakeWebSocket


@pytest.fixture
def sample_quotes():
    """(request_id, amount, status) rows as returned by the quote repository."""
    from uuid import uuid4

    brakes, oil, detailing = uuid4(), uuid4(), uuid4()
    return [
        # Brakes: accepted 300 against a high of 450 -> saved 150
        (brakes, 450.0, "rejected"),
        (brakes, 300.0, "accepted"),
        (brakes, 380.0, "rejected"),
        # Oil change: accepted 60 against a high of 110 -> saved 50
        (oil, 60.0, "accepted"),
        (oil, 110.0, "rejected"),
        # Detailing: single quote, ignored
        (detailing, 200.0, "accepted"),
    ]
