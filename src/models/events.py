"""
Data models for calendar events, parsed requests and use-case responses.

Plain dataclasses; the API layer maps them to Pydantic DTOs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum

DEFAULT_EVENT_DURATION = timedelta(hours=1)


class ActionType(str, Enum):
    """What the user asked the assistant to do."""

    CREATE = "CREATE"
    VIEW = "VIEW"
    DELETE = "DELETE"
    UPDATE = "UPDATE"
    UNKNOWN = "UNKNOWN"


def add_to_time(value: time, delta: timedelta) -> time:
    """Time-of-day arithmetic, wrapping past midnight."""
    return (datetime.combine(date.min, value) + delta).time()


@dataclass
class Event:
    """A calendar event. `id` stays None until the provider assigns one."""

    title: str
    date: date
    start_time: time
    end_time: time
    id: str | None = None
    description: str | None = None
    location: str | None = None

    def duration_minutes(self) -> int:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)

    def overlaps_with(self, other: Event) -> bool:
        if self.date != other.date:
            return False
        return self.start_time < other.end_time and other.start_time < self.end_time

    def __str__(self) -> str:
        return (
            f"Event(title='{self.title}', date={self.date}, "
            f"time={self.start_time}-{self.end_time}, location='{self.location}')"
        )


@dataclass
class EventRequest:
    """User intent extracted from natural language (or a create form)."""

    action_type: ActionType = ActionType.CREATE
    title: str | None = None
    description: str | None = None
    date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = None
    event_id: str | None = None
    raw_query: str = ""
    successful: bool = True
    error_message: str | None = None

    @classmethod
    def failed(cls, error_message: str, raw_query: str) -> EventRequest:
        return cls(
            action_type=ActionType.UNKNOWN,
            raw_query=raw_query,
            successful=False,
            error_message=error_message,
        )

    def is_valid(self) -> bool:
        """
        Check the request carries what its action needs.

        CREATE needs a title and date, VIEW a date, DELETE/UPDATE an event id
        or a title and date.
        """
        if not self.successful:
            return False
        if self.action_type is None or self.action_type == ActionType.UNKNOWN:
            return False

        if self.action_type == ActionType.CREATE:
            return bool(self.title) and self.date is not None
        if self.action_type == ActionType.VIEW:
            return self.date is not None
        if self.action_type in (ActionType.DELETE, ActionType.UPDATE):
            return self.event_id is not None or (
                self.title is not None and self.date is not None
            )
        return False

    def to_event(self) -> Event:
        """
        Map to an Event; a missing end time defaults to one hour after start.

        Raises:
            ValueError: if title, date or start time is missing
        """
        if not self.title or self.date is None or self.start_time is None:
            raise ValueError("An event needs a title, date and start time")

        end_time = self.end_time
        if end_time is None:
            end_time = add_to_time(self.start_time, DEFAULT_EVENT_DURATION)

        return Event(
            id=self.event_id,
            title=self.title,
            description=self.description,
            date=self.date,
            start_time=self.start_time,
            end_time=end_time,
            location=self.location,
        )

    def summary(self) -> str:
        if not self.successful:
            return f"Failed to understand: {self.error_message}"

        if self.action_type == ActionType.CREATE:
            return f"Create '{self.title}' on {self.date} at {self.start_time}"
        if self.action_type == ActionType.VIEW:
            return f"View schedule for {self.date}"
        if self.action_type == ActionType.DELETE:
            return f"Delete '{self.title}' on {self.date}"
        if self.action_type == ActionType.UPDATE:
            return f"Update '{self.title}' on {self.date}"
        return "Unknown action"


@dataclass
class EventResponse:
    """Outcome of a calendar use case, handed to a presenter."""

    success: bool
    message: str
    action_performed: ActionType | None = None
    created_event: Event | None = None
    events: list[Event] = field(default_factory=list)
    error_code: str | None = None

    @classmethod
    def create_success(cls, event: Event) -> EventResponse:
        return cls(
            success=True,
            message=f"Event '{event.title}' created for {event.date} at {event.start_time}",
            action_performed=ActionType.CREATE,
            created_event=event,
        )

    @classmethod
    def view_success(cls, events: list[Event], date_info: str) -> EventResponse:
        if events:
            message = f"Found {len(events)} event(s) for {date_info}"
        else:
            message = f"No events found for {date_info}"
        return cls(
            success=True,
            message=message,
            action_performed=ActionType.VIEW,
            events=list(events),
        )

    @classmethod
    def error(cls, message: str, error_code: str = "UNKNOWN_ERROR") -> EventResponse:
        return cls(success=False, message=message, error_code=error_code)

    def formatted_event_list(self) -> str:
        """Numbered text listing of `events` for console output."""
        if not self.events:
            return "No events to display."

        lines = []
        for i, event in enumerate(self.events, start=1):
            lines.append(f"{i}. {event.title}")
            lines.append(f"   {event.date} | {event.start_time:%H:%M} - {event.end_time:%H:%M}")
            if event.location:
                lines.append(f"   @ {event.location}")
        return "\n".join(lines)
