# src/logic/error_reporter.py

from src.core.models.response import ErroredTradeEvent

class ErrorReporter:
    """
    Manages the collection and reporting of processing errors for trade events.
    """
    def __init__(self):
        self._errored_events: dict[str, ErroredTradeEvent] = {}

    def add_error(self, event_id: str, error_reason: str):
        """
        Adds an error for a specific event. If an error for the same
        event ID already exists, the new reason is appended to it.
        """
        if event_id in self._errored_events:
            existing_reason = self._errored_events[event_id].error_reason
            if error_reason not in existing_reason: # Avoid duplicate messages
                self._errored_events[event_id].error_reason += f"; {error_reason}"
        else:
            self._errored_events[event_id] = ErroredTradeEvent(
                event_id=event_id,
                error_reason=error_reason
            )

    def get_errors(self) -> list[ErroredTradeEvent]:
        """
        Returns a list of all collected errored events.
        """
        return list(self._errored_events.values())

    def has_errors(self) -> bool:
        return bool(self._errored_events)

    def clear(self):
        """
        Clears all collected errors.
        """
        self._errored_events = {}
