import logging

from ordo.models.core import OrderStatus
from ordo.schemas.orders import OrderOut
from ordo.services.notifier import ORDER_INSERTED, ORDER_UPDATED

logger = logging.getLogger(__name__)


class OrderBoard:
    """
    Admin view of active (non-cancelled) orders.

    Loaded once from the store, then kept current by merging the order
    records pushed with ``order_inserted`` / ``order_updated`` events.
    """

    def __init__(self, store, notifier=None):
        self.store = store
        self._orders: dict[str, OrderOut] = {}
        self._unsubs = []
        if notifier is not None:
            self._unsubs.append(notifier.subscribe(ORDER_INSERTED, self.merge))
            self._unsubs.append(notifier.subscribe(ORDER_UPDATED, self.merge))

    def load(self) -> None:
        self._orders = {o.id: o for o in self.store.fetch_active_orders()}
        logger.info("order board loaded with %d active orders", len(self._orders))

    def merge(self, order: OrderOut) -> None:
        if order.status == OrderStatus.CANCELLED:
            self._orders.pop(order.id, None)
        else:
            self._orders[order.id] = order

    def orders(self, status: OrderStatus | None = None) -> list[OrderOut]:
        rows = [o for o in self._orders.values() if status is None or o.status == status]
        return sorted(rows, key=lambda o: o.created_at, reverse=True)

    def close(self) -> None:
        for unsub in self._unsubs:
            unsub()
        self._unsubs = []
