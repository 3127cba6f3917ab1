"""Pydantic request bodies for API endpoints."""

from datetime import date, datetime, time

from pydantic import Field

from models.events import ActionType, EventRequest

from .responses import CamelModel


class NaturalLanguageRequest(CamelModel):
    text: str | None = None


class CreateEventDTO(CamelModel):
    """Event fields confirmed by the user in the frontend."""

    title: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None

    def to_event_request(self) -> EventRequest:
        """
        Build a CREATE request.

        Raises:
            ValueError: if date or a time is not ISO formatted
        """
        return EventRequest(
            action_type=ActionType.CREATE,
            title=self.title.strip() if self.title else self.title,
            date=date.fromisoformat(self.date),
            start_time=_parse_time(self.start_time),
            end_time=_parse_time(self.end_time) if self.end_time else None,
            location=self.location or None,
            raw_query="",
            successful=True,
        )


def _parse_time(value: str) -> time:
    # Accept both HH:MM and HH:MM:SS from the form
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value}")


class RegisterUserRequest(CamelModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)


class LoginRequest(CamelModel):
    email: str = Field(min_length=3)
