"""
Presenters for use-case results.
"""

from models.events import EventResponse

RULE = "=" * 50


class ConsolePresenter:
    """Prints results to the terminal."""

    def present_success(self, response: EventResponse) -> None:
        print(f"\n{RULE}")
        print("SUCCESS!")
        print(RULE)
        print(response.message)

        event = response.created_event
        if event is not None:
            print("\nEvent Details:")
            print(f"  Title: {event.title}")
            print(f"  Date: {event.date}")
            print(f"  Time: {event.start_time:%H:%M} - {event.end_time:%H:%M}")
            if event.location:
                print(f"  Location: {event.location}")
        if response.events:
            print()
            print(response.formatted_event_list())
        print(f"{RULE}\n")

    def present_failure(self, response: EventResponse) -> None:
        print(f"\n{RULE}")
        print("ERROR!")
        print(RULE)
        print(response.message)
        print(f"Error Code: {response.error_code}")
        print(f"{RULE}\n")


class ApiPresenter:
    """Keeps the last response for an HTTP handler to serialize."""

    def __init__(self):
        self.response: EventResponse | None = None

    def present_success(self, response: EventResponse) -> None:
        self.response = response

    def present_failure(self, response: EventResponse) -> None:
        self.response = response
