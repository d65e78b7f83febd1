import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from ordo.errors import DispatchError, ValidationError
from ordo.models.core import OrderStatus, OrderType, PaymentMethod, PaymentStatus, ShippingCostType
from ordo.schemas.common import money
from ordo.schemas.orders import CustomerIn, OrderCreate, OrderOut
from ordo.schemas.settings import AppSettings
from ordo.services.cart import Cart
from ordo.services.messages import format_order_message
from ordo.services.notifier import ORDER_INSERTED

logger = logging.getLogger(__name__)


class OrderWriter(Protocol):
    def insert_order(self, order: OrderCreate, created_at: Optional[datetime] = None) -> OrderOut: ...


class MessageSender(Protocol):
    def send(self, destination: str, text: str) -> Optional[str]: ...


@dataclass
class PlacedOrder:
    order: OrderOut
    message: str
    dispatch_url: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


def shipping_cost_for(order_type: OrderType, settings: AppSettings) -> Decimal:
    """Only fixed-price delivery adds to the total; quoted shipping is settled out of band."""
    shipping = settings.shipping
    if order_type == OrderType.DELIVERY and shipping.cost_type == ShippingCostType.FIXED:
        return Decimal(shipping.fixed_cost or 0)
    return Decimal("0")


def accepted_methods(order_type: OrderType, settings: AppSettings) -> list[PaymentMethod]:
    if order_type == OrderType.DELIVERY:
        return list(settings.payment.delivery_methods)
    return list(settings.payment.pickup_methods)


def compose_comments(note: str, tip: Decimal, currency: str) -> Optional[str]:
    parts = [note.strip()] if note and note.strip() else []
    if tip > 0:
        parts.append(f"Tip: {currency} {money(tip)}")
    return " | ".join(parts) or None


class OrderComposer:
    def __init__(self, store: OrderWriter, dispatcher: MessageSender, notifier=None):
        self.store = store
        self.dispatcher = dispatcher
        self.notifier = notifier

    def _check(self, cart, customer, order_type, payment_method, tip, settings, table_ref):
        if cart.is_empty:
            raise ValidationError("cart is empty")
        if tip < 0:
            raise ValidationError("tip cannot be negative")
        if payment_method not in accepted_methods(order_type, settings):
            raise ValidationError(f"payment method {payment_method.value} is not accepted for {order_type.value}")
        if order_type == OrderType.DINE_IN and not table_ref:
            raise ValidationError("dine-in orders need a table")
        if order_type in (OrderType.TAKEAWAY, OrderType.DELIVERY) and not customer.phone:
            raise ValidationError("a phone number is required")
        if order_type == OrderType.DELIVERY and customer.address is None:
            raise ValidationError("delivery orders need an address")

    def place_order(
        self,
        cart: Cart,
        customer: CustomerIn,
        order_type: OrderType,
        payment_method: PaymentMethod,
        tip: Decimal,
        settings: AppSettings,
        now: datetime,
        general_comments: str = "",
        table_ref: Optional[str] = None,
        payment_proof: Optional[str] = None,
    ) -> PlacedOrder:
        tip = Decimal(tip or 0)
        self._check(cart, customer, order_type, payment_method, tip, settings, table_ref)

        subtotal = cart.total()
        shipping = shipping_cost_for(order_type, settings)
        grand_total = subtotal + shipping + tip

        draft = OrderCreate(
            customer=customer if order_type == OrderType.DELIVERY else customer.model_copy(update={"address": None}),
            items=cart.lines,
            status=OrderStatus.PENDING,
            order_type=order_type,
            table_id=table_ref if order_type == OrderType.DINE_IN else None,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            payment_proof=payment_proof,
            tip=tip,
            shipping_cost=shipping,
            total=grand_total,
            general_comments=compose_comments(general_comments, tip, settings.company.currency.code),
        )

        # PersistenceError propagates untouched: no message, cart kept as is.
        order = self.store.insert_order(draft, created_at=now)
        logger.info("order %s placed (%s, total=%s)", order.id, order_type.value, money(grand_total))

        message = format_order_message(order, settings, subtotal, general_comments)
        placed = PlacedOrder(order=order, message=message)
        try:
            placed.dispatch_url = self.dispatcher.send(settings.branch.whatsapp_number, message)
        except DispatchError as e:
            logger.warning("order %s persisted but dispatch failed: %s", order.id, e)
            placed.dispatch_url = e.url
            placed.warnings.append(f"Your order was saved but the message could not be sent: {e}")

        cart.clear()
        if self.notifier is not None:
            self.notifier.publish(ORDER_INSERTED, order)
        return placed
