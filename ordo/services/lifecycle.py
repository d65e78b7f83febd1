import logging
from typing import Optional

from ordo.errors import NotFoundError, ValidationError
from ordo.models.core import OrderStatus, OrderType, PaymentStatus
from ordo.schemas.orders import OrderOut
from ordo.services.notifier import ORDER_UPDATED

logger = logging.getLogger(__name__)

TERMINAL = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

_FORWARD = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.DELIVERING: OrderStatus.COMPLETED,
}


def next_status(order: OrderOut) -> Optional[OrderStatus]:
    if order.status == OrderStatus.READY:
        return OrderStatus.DELIVERING if order.order_type == OrderType.DELIVERY else OrderStatus.COMPLETED
    return _FORWARD.get(order.status)


def transition(order: OrderOut, target: OrderStatus) -> OrderStatus:
    """Validate a status move: one step forward, or cancel while still open."""
    if target == OrderStatus.CANCELLED and order.status not in TERMINAL:
        return target
    if target == next_status(order):
        return target
    raise ValidationError(f"cannot move order from {order.status.value} to {target.value}")


class OrderLifecycle:
    """Admin-side status and payment updates; each one is audited and published."""

    def __init__(self, store, notifier=None):
        self.store = store
        self.notifier = notifier

    def _load(self, order_id: str) -> OrderOut:
        order = self.store.fetch_order(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found")
        return order

    def _apply(self, order_id: str, fields: dict, action: str) -> OrderOut:
        updated = self.store.update_order(order_id, fields, action=action)
        if updated is None:
            raise NotFoundError(f"order {order_id} not found")
        if self.notifier is not None:
            self.notifier.publish(ORDER_UPDATED, updated)
        return updated

    def advance(self, order_id: str, target: OrderStatus) -> OrderOut:
        order = self._load(order_id)
        status = transition(order, target)
        logger.info("order %s: %s -> %s", order_id, order.status.value, status.value)
        return self._apply(order_id, {"status": status}, "STATUS")

    def set_payment(self, order_id: str, payment_status: PaymentStatus, proof: Optional[str] = None) -> OrderOut:
        order = self._load(order_id)
        fields: dict = {"payment_status": payment_status}
        if proof is not None:
            fields["payment_proof"] = proof
        action = "PROOF" if proof is not None and payment_status == order.payment_status else "PAYMENT"
        return self._apply(order_id, fields, action)
