"""
Create-event use case.
"""

import logging
from typing import Protocol

from models.events import EventRequest, EventResponse
from services.calendar import CalendarError, CalendarErrorCodes, CalendarGateway

logger = logging.getLogger(__name__)

INVALID_REQUEST = "INVALID_REQUEST"


class EventPresenter(Protocol):
    """Output side of a use case: gets exactly one call per execution."""

    def present_success(self, response: EventResponse) -> None: ...

    def present_failure(self, response: EventResponse) -> None: ...


class CreateEventInteractor:
    """
    Validate a request, create the event through the gateway and report back.

    Every execution ends in exactly one presenter call.
    """

    def __init__(self, gateway: CalendarGateway, presenter: EventPresenter):
        self.gateway = gateway
        self.presenter = presenter

    def execute(self, request: EventRequest) -> None:
        if not request.is_valid():
            self.presenter.present_failure(
                EventResponse.error(
                    f"Invalid event request: {request.error_message}",
                    INVALID_REQUEST,
                )
            )
            return

        if request.start_time is None:
            self.presenter.present_failure(
                EventResponse.error(
                    "Invalid event request: Event start time is required",
                    INVALID_REQUEST,
                )
            )
            return

        if not self.gateway.is_available():
            self.presenter.present_failure(
                EventResponse.error(
                    "Calendar service is not available. Please check your connection.",
                    CalendarErrorCodes.SERVICE_UNAVAILABLE,
                )
            )
            return

        event = request.to_event()
        try:
            created = self.gateway.create_event(event)
        except CalendarError as e:
            logger.warning("Calendar rejected event %r: [%s] %s", event.title, e.code, e.message)
            self.presenter.present_failure(
                EventResponse.error(
                    f"Failed to create event: {e.message}",
                    e.code or CalendarErrorCodes.CALENDAR_ERROR,
                )
            )
            return

        logger.info("Created event %s (%r)", created.id, created.title)
        self.presenter.present_success(EventResponse.create_success(created))
