# test_lifecycle.py
from decimal import Decimal

import pytest

from conftest import NOW
from ordo.errors import NotFoundError, ValidationError
from ordo.models.core import OrderStatus, OrderType, PaymentMethod, PaymentStatus
from ordo.schemas.orders import CustomerIn, OrderOut
from ordo.services.lifecycle import OrderLifecycle, next_status, transition
from ordo.services.notifier import ORDER_UPDATED, ChangeNotifier


def order(status=OrderStatus.PENDING, order_type=OrderType.TAKEAWAY, **kw):
    return OrderOut(
        id="o1", created_at=NOW, customer=CustomerIn(name="Ana", phone="1"), items=[],
        status=status, order_type=order_type, payment_method=PaymentMethod.CASH,
        total=Decimal("10.00"), **kw,
    )


@pytest.mark.parametrize("order_type,path", [
    (OrderType.TAKEAWAY, ["CONFIRMED", "PREPARING", "READY", "COMPLETED"]),
    (OrderType.DINE_IN, ["CONFIRMED", "PREPARING", "READY", "COMPLETED"]),
    (OrderType.DELIVERY, ["CONFIRMED", "PREPARING", "READY", "DELIVERING", "COMPLETED"]),
])
def test_forward_path(order_type, path):
    o = order(order_type=order_type)
    seen = []
    while (nxt := next_status(o)) is not None:
        seen.append(nxt.value)
        o = o.model_copy(update={"status": transition(o, nxt)})
    assert seen == path


def test_cannot_skip_steps():
    with pytest.raises(ValidationError):
        transition(order(OrderStatus.PENDING), OrderStatus.READY)


def test_ready_to_delivering_only_for_delivery():
    with pytest.raises(ValidationError):
        transition(order(OrderStatus.READY, OrderType.TAKEAWAY), OrderStatus.DELIVERING)
    assert transition(order(OrderStatus.READY, OrderType.DELIVERY), OrderStatus.DELIVERING) == OrderStatus.DELIVERING


def test_cancel_from_any_open_status():
    for status in (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.DELIVERING):
        assert transition(order(status, OrderType.DELIVERY), OrderStatus.CANCELLED) == OrderStatus.CANCELLED


@pytest.mark.parametrize("terminal", [OrderStatus.CANCELLED, OrderStatus.COMPLETED])
def test_terminal_statuses_are_absorbing(terminal):
    o = order(terminal)
    assert next_status(o) is None
    for target in OrderStatus:
        with pytest.raises(ValidationError):
            transition(o, target)


class MemoryStore:
    def __init__(self, o):
        self.orders = {o.id: o}
        self.actions = []

    def fetch_order(self, order_id):
        return self.orders.get(order_id)

    def update_order(self, order_id, fields, action=None):
        if order_id not in self.orders:
            return None
        self.actions.append(action)
        self.orders[order_id] = self.orders[order_id].model_copy(update=fields)
        return self.orders[order_id]


def test_advance_publishes_and_audits():
    store = MemoryStore(order())
    notifier = ChangeNotifier()
    seen = []
    notifier.subscribe(ORDER_UPDATED, seen.append)

    updated = OrderLifecycle(store, notifier).advance("o1", OrderStatus.CONFIRMED)
    assert updated.status == OrderStatus.CONFIRMED
    assert store.actions == ["STATUS"]
    assert seen == [updated]


def test_invalid_advance_changes_nothing():
    store = MemoryStore(order())
    with pytest.raises(ValidationError):
        OrderLifecycle(store).advance("o1", OrderStatus.COMPLETED)
    assert store.actions == []
    assert store.orders["o1"].status == OrderStatus.PENDING


def test_payment_toggle_and_proof():
    store = MemoryStore(order())
    lc = OrderLifecycle(store)
    paid = lc.set_payment("o1", PaymentStatus.PAID)
    assert paid.payment_status == PaymentStatus.PAID
    proof = lc.set_payment("o1", PaymentStatus.PAID, proof="ref-123")
    assert proof.payment_proof == "ref-123"
    back = lc.set_payment("o1", PaymentStatus.PENDING)
    assert back.payment_status == PaymentStatus.PENDING
    assert back.payment_proof == "ref-123"
    assert store.actions == ["PAYMENT", "PROOF", "PAYMENT"]


def test_unknown_order():
    with pytest.raises(NotFoundError):
        OrderLifecycle(MemoryStore(order())).advance("nope", OrderStatus.CONFIRMED)
