"""
HTTP tests through FastAPI's TestClient with in-memory gateways.
"""

import sqlite3

import pytest

from api.dependencies import get_gateway_factory
from api.main import app
from core.config import DB_PATH
from core.google_client import token_path
from services.calendar import CalendarError, CalendarErrorCodes

EVENT_FORM = {
    "title": "Meeting with John",
    "date": "2024-12-18",
    "startTime": "14:00",
    "endTime": "",
    "location": "",
}


@pytest.fixture
def registered(user_manager):
    return user_manager.register_user("Ada", "ada@example.com")


@pytest.fixture
def authorized(registered, gateway_factory):
    gateway_factory.authorized.add(registered.user_id)
    return registered


# ----- health -----


def test_health_reports_counts(client, registered):
    response = client.get("/api/events/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["aiParserAvailable"] is True
    assert body["activeUsers"] == 0
    assert body["registeredUsers"] == 1
    assert isinstance(body["timestamp"], int)


# ----- parse -----


def test_parse_returns_structured_fields(client):
    response = client.post("/api/events/parse", json={"text": "Meeting with John tomorrow at 2 PM"})

    assert response.status_code == 200
    assert response.json() == {
        "actionType": "CREATE",
        "title": "Meeting with John",
        "date": "2024-12-18",
        "startTime": "14:00",
        "endTime": None,
        "location": None,
        "successful": True,
        "errorMessage": None,
    }


@pytest.mark.parametrize("payload", [{"text": "   "}, {"text": ""}, {}])
def test_parse_rejects_empty_input(client, payload):
    response = client.post("/api/events/parse", json=payload)

    assert response.status_code == 400
    assert response.json()["successful"] is False
    assert response.json()["errorMessage"] == "Please provide an event description"


def test_parse_failure_is_bad_request(client, event_parser):
    event_parser._complete = lambda prompt: "ACTION: CREATE\nTITLE:\nDATE: 2024-12-18"

    response = client.post("/api/events/parse", json={"text": "something vague"})

    assert response.status_code == 400
    assert response.json()["errorMessage"] == "Could not extract event title"


def test_parse_requests_are_audited(client):
    client.post("/api/events/parse", json={"text": "Meeting with John tomorrow at 2 PM"})

    conn = sqlite3.connect(DB_PATH)
    try:
        rows = conn.execute(
            "SELECT action_type, status_code FROM api_requests WHERE endpoint = ?",
            ("/api/events/parse",),
        ).fetchall()
    finally:
        conn.close()
    assert ("CREATE", 200) in rows


# ----- create -----


def test_create_without_user_header(client):
    response = client.post("/api/events/create", json=EVENT_FORM)

    assert response.status_code == 401
    assert response.json()["errorCode"] == "USER_NOT_FOUND"


def test_create_for_unknown_user(client):
    response = client.post("/api/events/create", json=EVENT_FORM, headers={"User-Id": "user_nobody"})

    assert response.status_code == 401
    assert response.json()["errorCode"] == "USER_NOT_FOUND"


def test_create_without_google_auth(client, registered):
    response = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": registered.user_id}
    )

    assert response.status_code == 401
    assert response.json()["errorCode"] == "AUTH_REQUIRED"


def test_create_success(client, authorized, gateway_cache):
    response = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": authorized.user_id}
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Event 'Meeting with John' created for 2024-12-18 at 14:00:00",
        "errorCode": None,
    }

    gateway = gateway_cache.get(authorized.user_id)
    created = list(gateway.events.values())
    assert len(created) == 1
    assert created[0].end_time.hour == 15
    assert created[0].location is None


def test_create_reuses_cached_gateway(client, authorized, gateway_factory):
    headers = {"User-Id": authorized.user_id}
    client.post("/api/events/create", json=EVENT_FORM, headers=headers)
    client.post("/api/events/create", json=EVENT_FORM, headers=headers)

    assert len(gateway_factory.built) == 1
    assert len(gateway_factory.built[0].events) == 2


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"title": "  "}, "Event title is required"),
        ({"date": ""}, "Event date and start time are required"),
        ({"startTime": None}, "Event date and start time are required"),
        ({"date": "18/12/2024"}, "Invalid date or time format (expected YYYY-MM-DD and HH:MM)"),
        ({"startTime": "2 PM"}, "Invalid date or time format (expected YYYY-MM-DD and HH:MM)"),
    ],
)
def test_create_validates_form(client, authorized, changes, message):
    response = client.post(
        "/api/events/create",
        json={**EVENT_FORM, **changes},
        headers={"User-Id": authorized.user_id},
    )

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_REQUEST"
    assert response.json()["message"] == message


def test_create_reports_provider_error(client, authorized, gateway_factory):
    gateway_factory.failure = CalendarError("Rate limit exceeded", CalendarErrorCodes.API_ERROR)

    response = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": authorized.user_id}
    )

    assert response.status_code == 400
    assert response.json()["errorCode"] == "API_ERROR"
    assert response.json()["message"] == "Failed to create event: Rate limit exceeded"


def test_create_revoked_credential_drops_cache(client, authorized, gateway_factory, gateway_cache):
    gateway_factory.failure = CalendarError("Token revoked", CalendarErrorCodes.AUTH_REQUIRED)

    response = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": authorized.user_id}
    )

    assert response.status_code == 401
    assert response.json()["errorCode"] == "AUTH_REQUIRED"
    assert authorized.user_id not in gateway_cache


def test_create_unexpected_error_is_500(client, authorized):
    def broken_factory(user):
        raise RuntimeError("disk on fire")

    app.dependency_overrides[get_gateway_factory] = lambda: broken_factory

    response = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": authorized.user_id}
    )

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Server error while creating event",
        "errorCode": "INTERNAL_ERROR",
    }


# ----- OAuth -----


def test_auth_check_unknown_user(client):
    response = client.get("/api/events/auth/check/user_nobody")

    assert response.status_code == 200
    assert response.json() == {"needsAuth": True, "error": "User not found"}


def test_auth_check_needs_auth(client, registered):
    response = client.get(f"/api/events/auth/check/{registered.user_id}")

    assert response.json() == {
        "needsAuth": True,
        "userEmail": "ada@example.com",
        "authenticated": False,
    }


def test_auth_check_authenticated(client, authorized, gateway_cache):
    response = client.get(f"/api/events/auth/check/{authorized.user_id}")

    assert response.json()["needsAuth"] is False
    assert response.json()["authenticated"] is True
    assert authorized.user_id in gateway_cache


def test_auth_url_unknown_user(client):
    response = client.get("/api/events/auth/url/user_nobody")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_auth_url_and_callback(client, registered, gateway_cache, user_manager):
    response = client.get(f"/api/events/auth/url/{registered.user_id}")

    assert response.status_code == 200
    assert response.json()["authUrl"].endswith(f"state={registered.user_id}")
    pending = gateway_cache.get(registered.user_id)
    assert pending is not None and not pending.is_available()

    callback = client.get(
        "/api/events/auth/callback",
        params={"code": "good-code", "state": registered.user_id},
    )

    assert callback.status_code == 200
    assert "oauth-success" in callback.text
    assert gateway_cache.get(registered.user_id) is pending
    assert pending.is_available()
    assert user_manager.get_user_by_id(registered.user_id).authenticated

    created = client.post(
        "/api/events/create", json=EVENT_FORM, headers={"User-Id": registered.user_id}
    )
    assert created.status_code == 200


def test_callback_with_bad_code(client, registered, user_manager):
    response = client.get(
        "/api/events/auth/callback",
        params={"code": "bad-code", "state": registered.user_id},
    )

    assert response.status_code == 400
    assert "oauth-error" in response.text
    assert not user_manager.get_user_by_id(registered.user_id).authenticated


def test_callback_missing_parameters(client):
    response = client.get("/api/events/auth/callback", params={"state": "user_x"})

    assert response.status_code == 400
    assert "oauth-error" in response.text


def test_callback_unknown_user(client):
    response = client.get(
        "/api/events/auth/callback", params={"code": "good-code", "state": "user_nobody"}
    )

    assert response.status_code == 404


def test_callback_access_denied(client, registered):
    response = client.get(
        "/api/events/auth/callback",
        params={"error": "access_denied", "state": registered.user_id},
    )

    assert "oauth-error" in response.text
    assert "Authentication failed: access_denied" in response.text


def test_clear_cache_forces_reauthentication(client, authorized, gateway_cache, user_manager):
    client.get(f"/api/events/auth/check/{authorized.user_id}")
    user_manager.mark_authenticated(authorized.user_id)
    token = token_path(authorized.tokens_location)
    token.write_text("{}", encoding="utf-8")

    response = client.delete(f"/api/events/cache/{authorized.user_id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Cache cleared successfully", "userId": authorized.user_id}
    assert authorized.user_id not in gateway_cache
    assert not token.exists()
    assert not user_manager.get_user_by_id(authorized.user_id).authenticated


# ----- users -----


def test_register_is_idempotent_by_email(client):
    first = client.post("/api/users/register", json={"username": "Ada", "email": "ada@example.com"})
    second = client.post("/api/users/register", json={"username": "Ada L", "email": "ADA@example.com "})

    assert first.status_code == 200
    assert first.json()["userId"].startswith("user_")
    assert second.json()["userId"] == first.json()["userId"]
    assert len(client.get("/api/users").json()) == 1


def test_register_validates_body(client):
    response = client.post("/api/users/register", json={"username": "", "email": "ada@example.com"})
    assert response.status_code == 422


def test_login(client, registered):
    response = client.post("/api/users/login", json={"email": "ada@example.com"})

    assert response.status_code == 200
    assert response.json()["authenticated"] is True

    missing = client.post("/api/users/login", json={"email": "bob@example.com"})
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "USER_NOT_FOUND"


def test_get_and_delete_user(client, registered, gateway_cache):
    response = client.get(f"/api/users/{registered.user_id}")
    assert response.json()["email"] == "ada@example.com"

    deleted = client.delete(f"/api/users/{registered.user_id}")
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "User deleted successfully"

    assert client.get(f"/api/users/{registered.user_id}").status_code == 404
    assert client.delete(f"/api/users/{registered.user_id}").status_code == 404
