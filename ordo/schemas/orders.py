from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ordo.models.core import OrderStatus, OrderType, PaymentMethod, PaymentStatus
from ordo.schemas.common import Money


class Address(BaseModel):
    neighborhood: str
    street: str
    number: str
    between_streets: Optional[str] = None
    references: Optional[str] = None
    maps_link: Optional[str] = None


class CustomerIn(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    address: Optional[Address] = None


class OptionSnapshot(BaseModel):
    id: str
    name: str
    price: Money


class CartLine(BaseModel):
    """
    A product frozen at the moment it entered the cart.

    Carries copies of the product name, the already-discounted unit price and
    the chosen options; nothing here points back into the live catalog.
    """
    line_id: str
    product_id: str
    name: str
    unit_price: Money
    quantity: int = Field(ge=1)
    comment: Optional[str] = None
    options: list[OptionSnapshot] = []
    promotion_id: Optional[str] = None

    @property
    def options_price(self) -> Decimal:
        return sum((o.price for o in self.options), Decimal("0"))

    @property
    def unit_total(self) -> Decimal:
        return self.unit_price + self.options_price


class OrderCreate(BaseModel):
    customer: CustomerIn
    items: list[CartLine]
    status: OrderStatus = OrderStatus.PENDING
    order_type: OrderType
    table_id: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_proof: Optional[str] = None
    tip: Money = Decimal("0")
    shipping_cost: Money = Decimal("0")
    total: Money
    general_comments: Optional[str] = None


class OrderOut(OrderCreate):
    id: str
    created_at: datetime


# ---------- cart / checkout payloads ----------

class AddLineIn(BaseModel):
    product_id: str
    quantity: int = 1
    comment: Optional[str] = None
    # option ids in the order the customer picked them
    option_ids: list[str] = []


class UpdateLineIn(BaseModel):
    quantity: Optional[int] = None
    comment: Optional[str] = None


class CartOut(BaseModel):
    session_id: str
    stage: Literal["menu", "confirmation"]
    lines: list[CartLine]
    total: Money
    item_count: int
    general_comments: str = ""
    last_order_id: Optional[str] = None


class CheckoutIn(BaseModel):
    customer: CustomerIn
    order_type: OrderType
    payment_method: PaymentMethod
    tip: Decimal = Field(default=Decimal("0"), ge=0)
    general_comments: str = ""
    table_ref: Optional[str] = None
    payment_proof: Optional[str] = None


class PlacedOrderOut(BaseModel):
    order: OrderOut
    message: str
    dispatch_url: Optional[str] = None
    warnings: list[str] = []


class ConfigureIn(BaseModel):
    option_ids: list[str] = []


class ConfigureOut(BaseModel):
    product_id: str
    selections: dict[str, list[str]]
    options: list[OptionSnapshot]
    unit_price: Money
    options_price: Money
    unit_total: Money
    missing: list[str] = []


# ---------- admin ----------

class StatusIn(BaseModel):
    status: OrderStatus


class PaymentIn(BaseModel):
    payment_status: PaymentStatus
    payment_proof: Optional[str] = None
