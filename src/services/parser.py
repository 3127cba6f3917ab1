"""
Natural-language event parsing.

The AI service is asked to answer in a fixed `FIELD: value` layout; the
functions below pull typed fields back out of that text. Extraction never
raises: bad values become None and are logged.
"""

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta

from models.events import ActionType, EventRequest

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

EMPTY_TOKEN = "empty"

ACTION_MAP = {
    "VIEW": ActionType.VIEW,
    "DELETE": ActionType.DELETE,
    "UPDATE": ActionType.UPDATE,
}

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}$")

PROMPT_TEMPLATE = """\
You are a calendar assistant. Parse the following user input into calendar event details.
Today's date is: {today}

User input: "{user_input}"

Extract the following information and respond ONLY in this exact format:
ACTION: [CREATE/VIEW/DELETE/UPDATE]
TITLE: [event title]
DATE: [YYYY-MM-DD format]
START_TIME: [HH:MM in 24-hour format]
END_TIME: [HH:MM in 24-hour format, or leave empty]
LOCATION: [location or leave empty]

Rules:
- If no end time specified, leave END_TIME empty (default will be 1 hour after start)
- Convert relative dates like "tomorrow", "next Monday" to actual dates
- Convert 12-hour time (2 PM) to 24-hour format (14:00)
- If date is ambiguous, use the nearest future occurrence
- If action is unclear, default to CREATE
- Keep title concise but descriptive

Example inputs and outputs:
Input: "Meeting with John tomorrow at 2 PM"
ACTION: CREATE
TITLE: Meeting with John
DATE: {tomorrow}
START_TIME: 14:00
END_TIME:
LOCATION:

Input: "What's on my calendar next Monday?"
ACTION: VIEW
TITLE:
DATE: [next Monday's date]
START_TIME:
END_TIME:
LOCATION:

Now parse the user input above.
"""


# =============================================================================
# FIELD EXTRACTION
# =============================================================================


def extract_field(text: str, field_name: str) -> str | None:
    """
    Return the trimmed value of the first `FIELD_NAME: value` line.

    The field name must start the line and match case-sensitively. Empty
    values and the literal "empty" come back as None.
    """
    pattern = re.compile(rf"^[ \t]*{re.escape(field_name)}:[ \t]*(.*)$", re.MULTILINE)
    match = pattern.search(text or "")
    if not match:
        return None

    value = match.group(1).strip()
    if not value or value == EMPTY_TOKEN:
        return None
    return value


def extract_action(text: str) -> ActionType:
    value = extract_field(text, "ACTION")
    if value is None:
        return ActionType.CREATE
    return ACTION_MAP.get(value.upper(), ActionType.CREATE)


def extract_date(text: str, field_name: str = "DATE") -> date | None:
    value = extract_field(text, field_name)
    if value is None:
        return None

    if DATE_RE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    logger.warning("Failed to parse date: %s", value)
    return None


def extract_time(text: str, field_name: str) -> time | None:
    value = extract_field(text, field_name)
    if value is None:
        return None

    if TIME_RE.match(value):
        try:
            return datetime.strptime(value, "%H:%M").time()
        except ValueError:
            pass
    logger.warning("Failed to parse time for %s: %s", field_name, value)
    return None


def parse_ai_response(ai_response: str, original_input: str) -> EventRequest:
    """Turn the AI's field block into a validated EventRequest."""
    try:
        request = EventRequest(
            action_type=extract_action(ai_response),
            title=extract_field(ai_response, "TITLE"),
            date=extract_date(ai_response),
            start_time=extract_time(ai_response, "START_TIME"),
            end_time=extract_time(ai_response, "END_TIME"),
            location=extract_field(ai_response, "LOCATION"),
            raw_query=original_input,
        )

        if request.action_type == ActionType.CREATE and not request.title:
            return EventRequest.failed("Could not extract event title", original_input)

        if request.date is None and request.action_type in (
            ActionType.CREATE,
            ActionType.VIEW,
        ):
            return EventRequest.failed("Could not extract valid date", original_input)

        request.successful = True
        return request

    except Exception as e:
        logger.exception("Unexpected error while reading AI response")
        return EventRequest.failed(f"Error parsing AI response: {e}", original_input)


def build_prompt(user_input: str, today: date | None = None) -> str:
    today = today or date.today()
    return PROMPT_TEMPLATE.format(
        today=today.isoformat(),
        user_input=user_input,
        tomorrow=(today + timedelta(days=1)).isoformat(),
    )


# =============================================================================
# PARSER
# =============================================================================


class AIEventParser:
    """Parses natural language into EventRequests through a completion function."""

    def __init__(self, complete: Callable[[str], str] | None = None):
        self._complete = complete

    def is_available(self) -> bool:
        return self._complete is not None

    def parse_natural_language(self, user_input: str, today: date | None = None) -> EventRequest:
        if self._complete is None:
            return EventRequest.failed("AI service not available", user_input)

        try:
            ai_response = self._complete(build_prompt(user_input, today))
        except Exception as e:
            logger.exception("AI parsing failed")
            return EventRequest.failed(f"Failed to parse input: {e}", user_input)

        logger.debug("AI response for %r:\n%s", user_input, ai_response)
        return parse_ai_response(ai_response, user_input)
