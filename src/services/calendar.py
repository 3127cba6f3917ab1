"""
Calendar gateways: the provider abstraction and its implementations.

GoogleCalendarGateway talks to the Google Calendar API for one user.
InMemoryCalendarGateway keeps events in a dict for tests and offline runs.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from core.config import CALENDAR_TIMEZONE, TOKEN_REFRESH_MARGIN_SECONDS
from core.google_client import (
    build_flow,
    delete_code_verifier,
    delete_credentials,
    load_client_config,
    load_code_verifier,
    load_credentials,
    save_code_verifier,
    save_credentials,
)
from models.events import Event
from models.users import User

logger = logging.getLogger(__name__)

# =============================================================================
# ERRORS
# =============================================================================


class CalendarErrorCodes:
    """Error code constants raised by gateways."""

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    API_ERROR = "API_ERROR"
    CALENDAR_ERROR = "CALENDAR_ERROR"


class CalendarError(Exception):
    """A provider call failed; `code` says how."""

    def __init__(self, message: str, code: str = CalendarErrorCodes.CALENDAR_ERROR):
        super().__init__(message)
        self.message = message
        self.code = code


# =============================================================================
# GATEWAY INTERFACE
# =============================================================================


class CalendarGateway(ABC):
    """Remote calendar provider operations used by the use cases."""

    @abstractmethod
    def create_event(self, event: Event) -> Event:
        """Persist a new event and return it with its provider id."""

    def get_events_for_date(self, day: date) -> list[Event]:
        return self.get_events_in_range(day, day)

    @abstractmethod
    def get_events_in_range(self, start_date: date, end_date: date) -> list[Event]:
        """Events starting from `start_date` 00:00 up to the day after `end_date`."""

    @abstractmethod
    def delete_event(self, event_id: str) -> None:
        pass

    @abstractmethod
    def update_event(self, event: Event) -> Event:
        """Fetch the stored event by id, patch it and write it back."""

    @abstractmethod
    def is_available(self) -> bool:
        pass


# =============================================================================
# GOOGLE CALENDAR
# =============================================================================


class GoogleCalendarGateway(CalendarGateway):
    """
    Google Calendar gateway bound to one user's stored OAuth credential.

    Without a usable credential the gateway is unavailable until the user
    completes the out-of-band flow: get_authorization_url() and then
    complete_authorization(code).
    """

    def __init__(
        self,
        user: User,
        client_config: dict | None = None,
        timezone_name: str = CALENDAR_TIMEZONE,
    ):
        self.user = user
        self._client_config = client_config
        self._tz = ZoneInfo(timezone_name)
        self._service = None
        self._flow = None
        self._refresh_lock = threading.Lock()
        self._credentials = load_credentials(user.tokens_location)

        if self._credentials is not None:
            try:
                self._refresh_if_needed()
            except CalendarError as e:
                logger.warning("Stored credential for %s is unusable: %s", user.email, e)
                self._credentials = None

    # ----- credentials -----

    def _seconds_remaining(self) -> float | None:
        expiry = self._credentials.expiry
        if expiry is None:
            return None
        # google-auth keeps expiry as naive UTC
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        return (expiry - now).total_seconds()

    def is_available(self) -> bool:
        if self._credentials is None or not self._credentials.token:
            return False
        remaining = self._seconds_remaining()
        return remaining is None or remaining > 0

    def _needs_refresh(self) -> bool:
        remaining = self._seconds_remaining()
        if remaining is None:
            return not self._credentials.token
        return remaining <= TOKEN_REFRESH_MARGIN_SECONDS

    def _refresh_if_needed(self) -> None:
        if not self._needs_refresh():
            return
        # Cached gateways are shared across request threads
        with self._refresh_lock:
            if self._needs_refresh():
                self._refresh()

    def _refresh(self) -> None:
        if not self._credentials.refresh_token:
            raise CalendarError(
                "Google credential expired; please authenticate again",
                CalendarErrorCodes.AUTH_REQUIRED,
            )

        try:
            self._credentials.refresh(Request())
        except RefreshError as e:
            raise CalendarError(
                f"Failed to refresh Google credential: {e}", CalendarErrorCodes.AUTH_REQUIRED
            ) from e
        except TransportError as e:
            raise CalendarError(
                f"Could not reach Google to refresh credential: {e}",
                CalendarErrorCodes.SERVICE_UNAVAILABLE,
            ) from e

        save_credentials(self.user.tokens_location, self._credentials)
        logger.info("Refreshed Google credential for %s", self.user.email)

    def _get_service(self):
        if self._credentials is None:
            raise CalendarError(
                "Calendar service not available", CalendarErrorCodes.SERVICE_UNAVAILABLE
            )
        self._refresh_if_needed()
        if self._service is None:
            self._service = build(
                "calendar", "v3", credentials=self._credentials, cache_discovery=False
            )
        return self._service

    def _execute(self, request, failure: str):
        """Run an API request, converting provider errors to CalendarError."""
        try:
            return request.execute()
        except HttpError as e:
            code = CalendarErrorCodes.API_ERROR
            if e.resp.status in (401, 403):
                code = CalendarErrorCodes.AUTH_REQUIRED
            raise CalendarError(f"{failure}: {e}", code) from e
        except RefreshError as e:
            raise CalendarError(f"{failure}: {e}", CalendarErrorCodes.AUTH_REQUIRED) from e
        except (TransportError, httplib2.HttpLib2Error, OSError) as e:
            raise CalendarError(f"{failure}: {e}", CalendarErrorCodes.SERVICE_UNAVAILABLE) from e

    # ----- OAuth flow -----

    def get_authorization_url(self) -> str:
        """Start the OAuth flow; the user id travels as the `state` parameter."""
        client_config = self._client_config or load_client_config()
        if client_config is None:
            raise CalendarError(
                "Google OAuth client is not configured", CalendarErrorCodes.SERVICE_UNAVAILABLE
            )

        self._flow = build_flow(client_config)
        auth_url, _state = self._flow.authorization_url(
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
            state=self.user.user_id,
        )
        if self._flow.code_verifier:
            save_code_verifier(self.user.tokens_location, self._flow.code_verifier)
        return auth_url

    def complete_authorization(self, code: str) -> None:
        """Exchange the returned authorization code and store the credential."""
        flow = self._flow
        if flow is None:
            client_config = self._client_config or load_client_config()
            if client_config is None:
                raise CalendarError(
                    "Google OAuth client is not configured",
                    CalendarErrorCodes.SERVICE_UNAVAILABLE,
                )
            # The pending flow was dropped; resume it with the saved PKCE verifier
            flow = build_flow(
                client_config, code_verifier=load_code_verifier(self.user.tokens_location)
            )

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise CalendarError(
                f"Failed to exchange authorization code: {e}", CalendarErrorCodes.AUTH_REQUIRED
            ) from e

        self._credentials = flow.credentials
        self._service = None
        self._flow = None
        save_credentials(self.user.tokens_location, self._credentials)
        delete_code_verifier(self.user.tokens_location)
        logger.info("Stored Google credential for %s", self.user.email)

    def revoke(self) -> None:
        """Forget the stored credential so the user must authenticate again."""
        delete_credentials(self.user.tokens_location)
        self._credentials = None
        self._service = None

    # ----- conversion -----

    def _event_datetime(self, day: date, at: time) -> dict:
        return {
            "dateTime": datetime.combine(day, at, tzinfo=self._tz).isoformat(),
            "timeZone": self._tz.key,
        }

    def _to_google(self, event: Event) -> dict:
        body = {
            "summary": event.title,
            "start": self._event_datetime(event.date, event.start_time),
            "end": self._event_datetime(event.date, event.end_time),
        }
        if event.description is not None:
            body["description"] = event.description
        if event.location is not None:
            body["location"] = event.location
        return body

    def _parse_boundary(self, boundary: dict) -> datetime:
        if "dateTime" in boundary:
            return datetime.fromisoformat(boundary["dateTime"]).astimezone(self._tz)
        # All-day events only carry a date
        return datetime.combine(date.fromisoformat(boundary["date"]), time.min, tzinfo=self._tz)

    def _from_google(self, item: dict) -> Event:
        start = self._parse_boundary(item.get("start") or {})
        end = self._parse_boundary(item.get("end") or {})
        return Event(
            id=item.get("id"),
            title=item.get("summary") or "",
            description=item.get("description"),
            date=start.date(),
            start_time=start.time().replace(tzinfo=None),
            end_time=end.time().replace(tzinfo=None),
            location=item.get("location"),
        )

    # ----- operations -----

    def create_event(self, event: Event) -> Event:
        service = self._get_service()
        request = service.events().insert(
            calendarId=self.user.calendar_id, body=self._to_google(event)
        )
        created = self._execute(request, "Failed to create event")
        return self._from_google(created)

    def get_events_in_range(self, start_date: date, end_date: date) -> list[Event]:
        service = self._get_service()
        time_min = datetime.combine(start_date, time.min, tzinfo=self._tz)
        time_max = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=self._tz)

        events = []
        page_token = None
        while True:
            request = service.events().list(
                calendarId=self.user.calendar_id,
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                singleEvents=True,
                orderBy="startTime",
                pageToken=page_token,
            )
            response = self._execute(request, "Failed to retrieve events")
            events.extend(self._from_google(item) for item in response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return events

    def delete_event(self, event_id: str) -> None:
        service = self._get_service()
        request = service.events().delete(calendarId=self.user.calendar_id, eventId=event_id)
        self._execute(request, "Failed to delete event")

    def update_event(self, event: Event) -> Event:
        if not event.id:
            raise CalendarError("Event id is required for update", CalendarErrorCodes.API_ERROR)

        service = self._get_service()
        stored = self._execute(
            service.events().get(calendarId=self.user.calendar_id, eventId=event.id),
            "Failed to update event",
        )

        stored["summary"] = event.title
        stored["description"] = event.description
        stored["location"] = event.location
        if event.date is not None and event.start_time is not None:
            stored["start"] = self._event_datetime(event.date, event.start_time)
            if event.end_time is not None:
                stored["end"] = self._event_datetime(event.date, event.end_time)

        updated = self._execute(
            service.events().update(
                calendarId=self.user.calendar_id, eventId=event.id, body=stored
            ),
            "Failed to update event",
        )
        return self._from_google(updated)


# =============================================================================
# IN-MEMORY
# =============================================================================


class InMemoryCalendarGateway(CalendarGateway):
    """
    Dict-backed gateway.

    Set `available` to simulate a missing connection, or `failure` to make
    every operation raise that CalendarError.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self.failure: CalendarError | None = None
        self.events: dict[str, Event] = {}
        self.create_calls = 0
        self._ids = itertools.count(1)

    def _check(self) -> None:
        if self.failure is not None:
            raise self.failure
        if not self.available:
            raise CalendarError(
                "Calendar service not available", CalendarErrorCodes.SERVICE_UNAVAILABLE
            )

    def is_available(self) -> bool:
        return self.available

    def create_event(self, event: Event) -> Event:
        self.create_calls += 1
        self._check()
        created = replace(event, id=f"evt_{next(self._ids)}")
        self.events[created.id] = created
        return created

    def get_events_in_range(self, start_date: date, end_date: date) -> list[Event]:
        self._check()
        found = [e for e in self.events.values() if start_date <= e.date <= end_date]
        return sorted(found, key=lambda e: (e.date, e.start_time))

    def delete_event(self, event_id: str) -> None:
        self._check()
        if self.events.pop(event_id, None) is None:
            raise CalendarError(f"Event not found: {event_id}", CalendarErrorCodes.API_ERROR)

    def update_event(self, event: Event) -> Event:
        self._check()
        stored = self.events.get(event.id)
        if stored is None:
            raise CalendarError(f"Event not found: {event.id}", CalendarErrorCodes.API_ERROR)

        updated = replace(
            stored,
            title=event.title,
            description=event.description,
            location=event.location,
        )
        if event.date is not None and event.start_time is not None:
            updated = replace(
                updated,
                date=event.date,
                start_time=event.start_time,
                end_time=event.end_time or stored.end_time,
            )
        self.events[updated.id] = updated
        return updated
