"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Keep config away from real data, keys and credentials (read at import time)
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="calendar-assistant-tests-"))
os.environ["CALENDAR_DATA_DIR"] = str(_TEST_ROOT / "data")
os.environ["CALENDAR_CONFIG_DIR"] = str(_TEST_ROOT / "config")
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_CREDENTIALS_BASE64"] = ""
os.environ["CALENDAR_TIMEZONE"] = "UTC"

from api.gateway_cache import GatewayCache  # noqa: E402
from services.calendar import CalendarError, CalendarErrorCodes, InMemoryCalendarGateway  # noqa: E402
from services.parser import AIEventParser  # noqa: E402
from services.users import UserManager  # noqa: E402

AI_CREATE_RESPONSE = (
    "ACTION: CREATE\n"
    "TITLE: Meeting with John\n"
    "DATE: 2024-12-18\n"
    "START_TIME: 14:00\n"
    "END_TIME:\n"
    "LOCATION:"
)


class OAuthInMemoryGateway(InMemoryCalendarGateway):
    """In-memory gateway that also plays the OAuth handshake."""

    def __init__(self, user, available: bool):
        super().__init__(available=available)
        self.user = user

    def get_authorization_url(self) -> str:
        return f"https://accounts.example.com/auth?state={self.user.user_id}"

    def complete_authorization(self, code: str) -> None:
        if code == "bad-code":
            raise CalendarError("invalid_grant", CalendarErrorCodes.AUTH_REQUIRED)
        self.available = True


class FakeGatewayFactory:
    """Stands in for GoogleCalendarGateway construction in API tests."""

    def __init__(self):
        self.authorized: set[str] = set()
        self.failure: CalendarError | None = None
        self.built: list[OAuthInMemoryGateway] = []

    def __call__(self, user):
        gateway = OAuthInMemoryGateway(user, available=user.user_id in self.authorized)
        gateway.failure = self.failure
        self.built.append(gateway)
        return gateway


@pytest.fixture
def ai_create_response():
    """AI answer for 'Meeting with John tomorrow at 2 PM'."""
    return AI_CREATE_RESPONSE


@pytest.fixture
def user_manager(tmp_path):
    return UserManager(users_file=tmp_path / "users.json", tokens_dir=tmp_path / "tokens")


@pytest.fixture
def gateway():
    return InMemoryCalendarGateway()


@pytest.fixture
def gateway_cache():
    return GatewayCache(max_size=8)


@pytest.fixture
def gateway_factory():
    return FakeGatewayFactory()


@pytest.fixture
def event_parser(ai_create_response):
    return AIEventParser(lambda prompt: ai_create_response)


@pytest.fixture
def client(user_manager, gateway_cache, gateway_factory, event_parser):
    """TestClient with shared resources swapped for test doubles."""
    from fastapi.testclient import TestClient

    from api.dependencies import (
        get_event_parser,
        get_gateway_cache,
        get_gateway_factory,
        get_user_manager,
    )
    from api.main import app

    app.dependency_overrides[get_user_manager] = lambda: user_manager
    app.dependency_overrides[get_gateway_cache] = lambda: gateway_cache
    app.dependency_overrides[get_gateway_factory] = lambda: gateway_factory
    app.dependency_overrides[get_event_parser] = lambda: event_parser

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
