"""API Pydantic models."""

from .requests import CreateEventDTO, LoginRequest, NaturalLanguageRequest, RegisterUserRequest
from .responses import (
    AuthStatusResponse,
    AuthUrlResponse,
    ErrorCodes,
    ErrorResponse,
    EventResponseDTO,
    HealthResponse,
    MessageResponse,
    ParsedEventDTO,
    UserDTO,
)

__all__ = [
    "AuthStatusResponse",
    "AuthUrlResponse",
    "CreateEventDTO",
    "ErrorCodes",
    "ErrorResponse",
    "EventResponseDTO",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "NaturalLanguageRequest",
    "ParsedEventDTO",
    "RegisterUserRequest",
    "UserDTO",
]
