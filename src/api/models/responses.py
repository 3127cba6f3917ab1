"""Pydantic response models for API endpoints."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models.events import EventRequest, EventResponse
from models.users import User


class CamelModel(BaseModel):
    """Serializes field names in camelCase for the frontend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(CamelModel):
    """Health check response."""

    status: str
    ai_parser_available: bool
    active_users: int
    registered_users: int
    timestamp: int  # epoch milliseconds


class ParsedEventDTO(CamelModel):
    """Structured fields extracted from natural language."""

    action_type: str | None = None
    title: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    successful: bool = False
    error_message: str | None = None

    @classmethod
    def from_event_request(cls, request: EventRequest) -> "ParsedEventDTO":
        return cls(
            action_type=request.action_type.value if request.action_type else None,
            title=request.title,
            date=request.date.isoformat() if request.date else None,
            start_time=request.start_time.strftime("%H:%M") if request.start_time else None,
            end_time=request.end_time.strftime("%H:%M") if request.end_time else None,
            location=request.location,
            successful=request.successful,
            error_message=request.error_message,
        )

    @classmethod
    def from_error(cls, message: str) -> "ParsedEventDTO":
        return cls(successful=False, error_message=message)


class EventResponseDTO(CamelModel):
    """Result of an event operation."""

    success: bool
    message: str
    error_code: str | None = None

    @classmethod
    def from_event_response(cls, response: EventResponse) -> "EventResponseDTO":
        return cls(
            success=response.success,
            message=response.message,
            error_code=response.error_code,
        )

    @classmethod
    def error(cls, message: str, error_code: str) -> "EventResponseDTO":
        return cls(success=False, message=message, error_code=error_code)


class UserDTO(CamelModel):
    """Public view of a registered user."""

    user_id: str
    username: str
    email: str
    authenticated: bool

    @classmethod
    def from_user(cls, user: User) -> "UserDTO":
        return cls(
            user_id=user.user_id,
            username=user.username,
            email=user.email,
            authenticated=user.authenticated,
        )


class AuthStatusResponse(CamelModel):
    """Whether a user still has to complete Google OAuth."""

    needs_auth: bool
    user_email: str | None = None
    authenticated: bool | None = None
    error: str | None = None


class AuthUrlResponse(CamelModel):
    auth_url: str
    message: str


class MessageResponse(CamelModel):
    message: str
    user_id: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
