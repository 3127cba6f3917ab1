"""Event parsing, creation and Google OAuth endpoints."""

import asyncio
import html
import json
import logging

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import HTMLResponse, JSONResponse

from api.dependencies import (
    GatewayFactory,
    get_event_parser,
    get_gateway_cache,
    get_gateway_factory,
    get_user_manager,
)
from api.gateway_cache import GatewayCache
from api.logging import log_request, start_request_log
from api.models.requests import CreateEventDTO, NaturalLanguageRequest
from api.models.responses import (
    AuthStatusResponse,
    AuthUrlResponse,
    ErrorCodes,
    EventResponseDTO,
    MessageResponse,
    ParsedEventDTO,
)
from core.config import FRONTEND_URL
from core.google_client import delete_credentials
from models.users import User
from services.calendar import CalendarError, CalendarErrorCodes, CalendarGateway
from services.interactor import CreateEventInteractor
from services.parser import AIEventParser
from services.presenters import ApiPresenter
from services.users import UserManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events")


def _json(status_code: int, model) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(by_alias=True))


async def resolve_gateway(
    user: User, gateways: GatewayCache, factory: GatewayFactory
) -> CalendarGateway:
    """
    Return the user's cached gateway, or build one from stored credentials.

    Only available gateways are cached here; the caller checks availability.
    """
    gateway = gateways.get(user.user_id)
    if gateway is not None and gateway.is_available():
        return gateway

    gateway = await asyncio.to_thread(factory, user)
    if gateway.is_available():
        gateways.put(user.user_id, gateway)
        logger.info("Google Calendar initialized and cached for %s", user.email)
    return gateway


# =============================================================================
# PARSE
# =============================================================================


@router.post("/parse", response_model=ParsedEventDTO)
async def parse_natural_language(
    request: Request,
    body: NaturalLanguageRequest,
    parser: AIEventParser = Depends(get_event_parser),
):
    """Parse natural language input into structured event fields."""
    request_log = start_request_log(request)

    try:
        if not body.text or not body.text.strip():
            request_log.finish(400, ErrorCodes.INVALID_REQUEST, "Empty input")
            return _json(400, ParsedEventDTO.from_error("Please provide an event description"))

        parsed = await asyncio.to_thread(parser.parse_natural_language, body.text)
        request_log.action_type = parsed.action_type.value

        if not parsed.successful:
            logger.info("Parse failed for %r: %s", body.text, parsed.error_message)
            request_log.finish(400, ErrorCodes.INVALID_REQUEST, parsed.error_message)
            return _json(400, ParsedEventDTO.from_error(parsed.error_message))

        logger.info("Parsed %r -> %s", body.text, parsed.summary())
        request_log.finish(200)
        return ParsedEventDTO.from_event_request(parsed)

    except Exception as e:
        logger.exception("Exception during parse")
        request_log.finish(500, ErrorCodes.INTERNAL_ERROR, str(e))
        return _json(500, ParsedEventDTO.from_error("Server error while parsing input"))

    finally:
        log_request(request_log)


# =============================================================================
# OAUTH
# =============================================================================


@router.get("/auth/check/{user_id}", response_model=AuthStatusResponse, response_model_exclude_none=True)
async def check_auth_status(
    user_id: str,
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
    factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Tell the frontend whether the user must complete Google OAuth."""
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        logger.info("Auth check for unknown user %s", user_id)
        return AuthStatusResponse(needs_auth=True, error="User not found")

    try:
        gateway = await resolve_gateway(user, gateways, factory)
    except Exception:
        logger.exception("Error checking auth status for %s", user_id)
        return _json(
            500,
            AuthStatusResponse(needs_auth=True, error="Failed to check authentication status"),
        )

    needs_auth = not gateway.is_available()
    return AuthStatusResponse(
        needs_auth=needs_auth,
        user_email=user.email,
        authenticated=not needs_auth,
    )


@router.get("/auth/url/{user_id}", response_model=AuthUrlResponse)
async def get_oauth_url(
    user_id: str,
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
    factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Start Google OAuth for a user; the gateway waits in the cache for the callback."""
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        return JSONResponse(status_code=404, content={"error": "User not found"})

    try:
        gateway = await asyncio.to_thread(factory, user)
        auth_url = gateway.get_authorization_url()
    except CalendarError as e:
        logger.error("Could not start OAuth for %s: %s", user_id, e)
        return JSONResponse(
            status_code=500, content={"error": f"Failed to initialize OAuth: {e.message}"}
        )

    gateways.put(user_id, gateway)
    logger.info("OAuth URL generated for %s", user.email)
    return AuthUrlResponse(auth_url=auth_url, message="Please authenticate with Google")


def render_oauth_result(success: bool, message: str, user_id: str | None = None) -> str:
    """Popup page that reports the result to the opening window and closes."""
    payload = json.dumps(
        {"type": "oauth-success" if success else "oauth-error", "userId": user_id, "message": message}
    )
    return f"""<!DOCTYPE html>
<html>
<head><title>Google Calendar</title></head>
<body>
<p>{html.escape(message)}</p>
<script>
  if (window.opener) {{
    window.opener.postMessage({payload}, {json.dumps(FRONTEND_URL)});
  }}
  setTimeout(function () {{ window.close(); }}, 1500);
</script>
</body>
</html>
"""


@router.get("/auth/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
    factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Google redirects here with `code`, and `state` set to the user id."""
    if error:
        logger.info("OAuth denied for %s: %s", state, error)
        return HTMLResponse(render_oauth_result(False, f"Authentication failed: {error}", state))

    if not code or not state:
        return HTMLResponse(
            render_oauth_result(False, "Missing authorization code or state"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    user = user_manager.get_user_by_id(state)
    if user is None:
        return HTMLResponse(
            render_oauth_result(False, "User not found"),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    gateway = gateways.get(state)
    try:
        if gateway is None:
            gateway = await asyncio.to_thread(factory, user)
        await asyncio.to_thread(gateway.complete_authorization, code)
    except CalendarError as e:
        logger.error("OAuth callback failed for %s: %s", state, e)
        return HTMLResponse(
            render_oauth_result(False, "Authentication failed. Please try again.", state),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    gateways.put(state, gateway)
    user_manager.mark_authenticated(state)
    logger.info("OAuth completed for %s", user.email)
    return HTMLResponse(render_oauth_result(True, "Authentication successful! You can close this window.", state))


@router.delete("/cache/{user_id}", response_model=MessageResponse)
async def clear_user_cache(
    user_id: str,
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
):
    """Drop the cached gateway and stored credential so the user re-authenticates."""
    gateways.remove(user_id)
    user = user_manager.get_user_by_id(user_id)
    if user is not None:
        delete_credentials(user.tokens_location)
        user_manager.logout_user(user_id)

    logger.info("Cleared calendar cache for user %s", user_id)
    return MessageResponse(message="Cache cleared successfully", user_id=user_id)


# =============================================================================
# CREATE
# =============================================================================


@router.post("/create", response_model=EventResponseDTO)
async def create_event(
    request: Request,
    body: CreateEventDTO,
    user_id: str | None = Header(None, alias="User-Id"),
    user_manager: UserManager = Depends(get_user_manager),
    gateways: GatewayCache = Depends(get_gateway_cache),
    factory: GatewayFactory = Depends(get_gateway_factory),
):
    """Create a calendar event for the user named in the User-Id header."""
    request_log = start_request_log(request, user_id)
    request_log.action_type = "CREATE"

    try:
        user = user_manager.get_user_by_id(user_id) if user_id else None
        if user is None:
            request_log.finish(401, ErrorCodes.USER_NOT_FOUND)
            return _json(
                401,
                EventResponseDTO.error("User not found. Please login again.", ErrorCodes.USER_NOT_FOUND),
            )

        gateway = await resolve_gateway(user, gateways, factory)
        if not gateway.is_available():
            request_log.finish(401, ErrorCodes.AUTH_REQUIRED)
            return _json(
                401,
                EventResponseDTO.error(
                    "Google Calendar authentication required. Please authenticate first.",
                    ErrorCodes.AUTH_REQUIRED,
                ),
            )

        if not body.title or not body.title.strip():
            request_log.finish(400, ErrorCodes.INVALID_REQUEST, "Missing title")
            return _json(400, EventResponseDTO.error("Event title is required", ErrorCodes.INVALID_REQUEST))
        if not body.date or not body.start_time:
            request_log.finish(400, ErrorCodes.INVALID_REQUEST, "Missing date or start time")
            return _json(
                400,
                EventResponseDTO.error("Event date and start time are required", ErrorCodes.INVALID_REQUEST),
            )

        try:
            event_request = body.to_event_request()
        except ValueError as e:
            request_log.finish(400, ErrorCodes.INVALID_REQUEST, str(e))
            return _json(
                400,
                EventResponseDTO.error(
                    "Invalid date or time format (expected YYYY-MM-DD and HH:MM)",
                    ErrorCodes.INVALID_REQUEST,
                ),
            )

        presenter = ApiPresenter()
        interactor = CreateEventInteractor(gateway, presenter)
        await asyncio.to_thread(interactor.execute, event_request)
        response = presenter.response

        if response.success:
            logger.info("Event created for %s: %s", user.email, response.created_event.id)
            request_log.finish(200)
            return EventResponseDTO.from_event_response(response)

        status_code = 400
        if response.error_code == CalendarErrorCodes.AUTH_REQUIRED:
            # Credential was revoked upstream; make the next call re-authenticate
            gateways.remove(user.user_id)
            status_code = 401
        logger.info("Failed to create event: [%s] %s", response.error_code, response.message)
        request_log.finish(status_code, response.error_code, response.message)
        return _json(status_code, EventResponseDTO.from_event_response(response))

    except Exception as e:
        logger.exception("Exception while creating event")
        request_log.finish(500, ErrorCodes.INTERNAL_ERROR, str(e))
        return _json(
            500, EventResponseDTO.error("Server error while creating event", ErrorCodes.INTERNAL_ERROR)
        )

    finally:
        log_request(request_log)
