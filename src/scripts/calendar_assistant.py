#!/usr/bin/env python3
"""
Interactive console calendar assistant.

Logs a user in by email (registering them on first use), then turns typed
sentences into Google Calendar events.

Usage:
    uv run python src/scripts/calendar_assistant.py you@example.com --name "Your Name"
    uv run python src/scripts/calendar_assistant.py you@example.com --offline
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import ai_client
from core.logging_config import setup_logging
from models.events import ActionType, EventResponse
from models.users import User
from services.calendar import (
    CalendarError,
    CalendarGateway,
    GoogleCalendarGateway,
    InMemoryCalendarGateway,
)
from services.interactor import CreateEventInteractor
from services.parser import AIEventParser
from services.presenters import ConsolePresenter
from services.users import UserManager


def connect_calendar(user: User, offline: bool) -> CalendarGateway:
    """Bind a gateway, walking the user through OAuth if needed."""
    if offline:
        return InMemoryCalendarGateway()

    gateway = GoogleCalendarGateway(user)
    if gateway.is_available():
        return gateway

    print("\nGoogle Calendar needs your permission.")
    print("Open this URL, approve access, then paste the `code` parameter from the redirect:\n")
    print(gateway.get_authorization_url())
    code = input("\nAuthorization code: ").strip()
    gateway.complete_authorization(code)
    return gateway


def show_day(gateway: CalendarGateway, day: date, presenter: ConsolePresenter) -> None:
    try:
        events = gateway.get_events_for_date(day)
    except CalendarError as e:
        presenter.present_failure(EventResponse.error(f"Failed to load events: {e.message}", e.code))
        return
    presenter.present_success(EventResponse.view_success(events, day.isoformat()))


def run(user: User, gateway: CalendarGateway, parser: AIEventParser) -> None:
    presenter = ConsolePresenter()
    interactor = CreateEventInteractor(gateway, presenter)

    print(f"\nWelcome, {user.display_name}! Describe an event, or 'quit' to exit.")
    while True:
        try:
            text = input("\n> ").strip()
        except EOFError:
            break
        if not text:
            continue
        if text.lower() in {"quit", "exit"}:
            break

        request = parser.parse_natural_language(text)
        print(f"Understood: {request.summary()}")

        if request.successful and request.action_type == ActionType.VIEW:
            show_day(gateway, request.date, presenter)
        elif request.successful and request.action_type != ActionType.CREATE:
            print(f"{request.action_type.value} is not supported from the console yet.")
        else:
            interactor.execute(request)


def main():
    parser = argparse.ArgumentParser(description="Natural-language Google Calendar assistant")
    parser.add_argument("email", help="Google account email")
    parser.add_argument("--name", default="", help="Display name when registering")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use an in-memory calendar instead of Google",
    )
    args = parser.parse_args()

    setup_logging("WARNING")

    event_parser = AIEventParser(ai_client.complete if ai_client.get_ai_client() else None)
    if not event_parser.is_available():
        print("Warning: AI parsing not available. Set OPENAI_API_KEY.")

    user_manager = UserManager()
    user = user_manager.login_user(args.email)
    if user is None:
        user = user_manager.register_user(args.name or args.email, args.email)
        user_manager.login_user(args.email)

    try:
        gateway = connect_calendar(user, args.offline)
    except CalendarError as e:
        print(f"\nError: {e.message} ({e.code})")
        sys.exit(1)

    try:
        run(user, gateway, event_parser)
    finally:
        user_manager.logout_user(user.user_id)
        print(f"Goodbye, {user.display_name}!")


if __name__ == "__main__":
    main()
