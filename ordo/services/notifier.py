import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

CATALOG_CHANGED = "catalog_changed"
ORDER_INSERTED = "order_inserted"
ORDER_UPDATED = "order_updated"

Listener = Callable[[Any], None]


class ChangeNotifier:
    """
    In-process publish/subscribe for data-change events.

    Listeners run synchronously in publish order. A failing listener is logged
    and does not stop the others or the publisher.
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, callback: Listener) -> Callable[[], None]:
        self._listeners[event].append(callback)

        def unsubscribe():
            try:
                self._listeners[event].remove(callback)
            except ValueError:
                pass
        return unsubscribe

    def publish(self, event: str, payload: Any = None) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(payload)
            except Exception:
                logger.exception("listener for %s failed", event)
