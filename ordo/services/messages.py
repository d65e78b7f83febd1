"""Plain-text order summaries handed to the messaging channel."""
from decimal import Decimal

from ordo.models.core import OrderType, PaymentMethod, ShippingCostType
from ordo.schemas.common import money
from ordo.schemas.orders import CartLine, OrderCreate
from ordo.schemas.settings import AppSettings

SEPARATOR = "---------------------------------"

PAYMENT_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.MOBILE_PAYMENT: "Mobile Payment",
    PaymentMethod.BANK_TRANSFER: "Bank Transfer",
    PaymentMethod.ZELLE: "Zelle",
    PaymentMethod.POS_TERMINAL: "POS Terminal",
    PaymentMethod.CARD: "Card",
}


def _amount(currency: str, value) -> str:
    return f"{currency} ${money(value)}"


def format_line(line: CartLine) -> str:
    detail = f"*{line.quantity}x {line.name}*"
    for opt in line.options:
        detail += f"\n    + {opt.name}"
    if line.comment:
        detail += f"\n  - _Note: {line.comment}_"
    return detail


def shipping_label(order: OrderCreate, settings: AppSettings) -> str:
    currency = settings.company.currency.code
    cost_type = settings.shipping.cost_type
    if cost_type == ShippingCostType.FIXED:
        return _amount(currency, order.shipping_cost)
    if cost_type == ShippingCostType.FREE:
        return "Free"
    return "To be quoted"


def format_order_message(
    order: OrderCreate,
    settings: AppSettings,
    subtotal: Decimal,
    note: str = "",
) -> str:
    """
    Render one of three templates (dine-in, takeaway, delivery).

    ``note`` is the customer's own general comment; the tip annotation that
    goes into the persisted comments is not repeated here because the tip has
    its own line. Empty parts are dropped before joining.
    """
    currency = settings.company.currency.code
    company = settings.company.name.upper()
    customer = order.customer
    items = [format_line(l) for l in order.items]
    comments = f"*General Comments:*\n_{note}_" if note else ""
    tip = _amount(currency, order.tip) if order.tip > 0 else ""
    payment = f"*Payment Method:* {PAYMENT_LABELS.get(order.payment_method, order.payment_method.value)}"

    if order.order_type == OrderType.DINE_IN:
        parts = [
            f"*New Table Order - {company}*",
            SEPARATOR,
            f"*TABLE:* {order.table_id or ''}",
            f"*CUSTOMER:* {customer.name}",
            SEPARATOR,
            "*ORDER DETAILS:*",
            *items,
            "",
            comments,
            SEPARATOR,
            f"*Subtotal:* {_amount(currency, subtotal)}",
            f"*Tip:* {tip}" if tip else "",
            f"*Total Due:* {_amount(currency, order.total)}",
            payment,
        ]
    elif order.order_type == OrderType.TAKEAWAY:
        parts = [
            f"*New Pickup Order - {company}*",
            SEPARATOR,
            "*CUSTOMER:*",
            f"*Name:* {customer.name}",
            f"*Phone:* {customer.phone or ''}",
            SEPARATOR,
            "*TYPE:* Takeaway (pick up in store)",
            SEPARATOR,
            "*ORDER DETAILS:*",
            *items,
            "",
            comments,
            SEPARATOR,
            f"*Subtotal:* {_amount(currency, subtotal)}",
            f"*Tip:* {tip}" if tip else "",
            f"*Total Due:* {_amount(currency, order.total)}",
            payment,
        ]
    else:
        addr = customer.address
        parts = [
            f"*New Delivery Order - {company}*",
            SEPARATOR,
            "*CUSTOMER:*",
            f"*Name:* {customer.name}",
            f"*Phone:* {customer.phone or ''}",
            SEPARATOR,
            "*DELIVERY ADDRESS:*",
            f"*Neighborhood:* {addr.neighborhood}" if addr else "",
            f"*Street:* {addr.street}" if addr else "",
            f"*Number:* {addr.number}" if addr else "",
            f"*Between Streets:* {addr.between_streets}" if addr and addr.between_streets else "",
            f"*References:* {addr.references}" if addr and addr.references else "",
            f"*Location:* {addr.maps_link}" if addr and addr.maps_link else "",
            SEPARATOR,
            "*ORDER DETAILS:*",
            *items,
            "",
            comments,
            SEPARATOR,
            f"*Subtotal:* {_amount(currency, subtotal)}",
            f"*Shipping:* {shipping_label(order, settings)}",
            f"*Tip:* {tip}" if tip else "",
            f"*Estimated Total:* {_amount(currency, order.total)}",
            payment,
        ]

    return "\n".join(p for p in parts if p != "")
