"""
Change notifications for tilegarden.

Listeners are called synchronously, in subscription order, from inside the
call that triggered the event. Delivery is best-effort: a failing listener is
logged and the remaining listeners still run.
"""

import logging
from typing import Any, Callable, Dict, List

DATA_SAVED = "data_saved"
DATA_CLEARED = "data_cleared"

Listener = Callable[[Any], None]


class EventBus:
    """
    Minimal synchronous publish/subscribe hub.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for an event.

        Args:
            event: Event name (e.g. DATA_SAVED)
            listener: Called with the event payload (None for payload-less events)

        Returns:
            A callable that removes the listener again
        """
        self._listeners.setdefault(event, []).append(listener)

        def unsubscribe():
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, event: str, payload: Any = None) -> int:
        """
        Deliver an event to every listener.

        Args:
            event: Event name
            payload: Event payload

        Returns:
            Number of listeners that handled the event without raising
        """
        delivered = 0
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
                delivered += 1
            except Exception as e:
                logging.error(f"Listener for '{event}' failed: {e}")
        return delivered

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
