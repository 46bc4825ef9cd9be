# src/logic/sorter.py

from src.core.models.trade_event import TradeEvent

class TradeEventSorter:
    """
    Responsible for ordering trade events for replay.
    """

    def sort_events(self, events: list[TradeEvent]) -> list[TradeEvent]:
        """
        Sorts events by timestamp ascending.

        Python's sort is stable, so events sharing a timestamp keep their
        input order.

        Args:
            events: Parsed TradeEvent objects in any order.

        Returns:
            A new, sorted list of the events.
        """
        return sorted(events, key=lambda event: event.timestamp)
