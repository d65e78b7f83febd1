from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ordo.models.core import PaymentMethod, ShippingCostType
from ordo.schemas.common import Money

Weekday = Literal["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]
WEEKDAYS: tuple[str, ...] = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


class PrintingMethod(str, Enum):
    NATIVE = "NATIVE"
    BLUETOOTH = "BLUETOOTH"
    USB = "USB"


class Currency(BaseModel):
    code: str = "MXN"
    name: str = "Mexican Peso (MXN $)"


class CompanySettings(BaseModel):
    name: str = "ANYVAL PARK"
    currency: Currency = Currency()


class BranchSettings(BaseModel):
    alias: str = "ANYVAL PARK - Suc."
    full_address: str = ""
    maps_link: str = ""
    whatsapp_number: str = "584146945877"
    logo_url: str = ""
    cover_image_url: str = ""
    is_open: bool = True  # manual override; False closes the store regardless of schedule


class DeliveryTime(BaseModel):
    min: int = 25
    max: int = 45


class PickupTime(BaseModel):
    min: int = 15


class ShippingSettings(BaseModel):
    cost_type: ShippingCostType = ShippingCostType.TO_BE_QUOTED
    fixed_cost: Optional[Money] = None
    free_shipping_minimum: Optional[Money] = None
    delivery_time: DeliveryTime = DeliveryTime()
    pickup_time: PickupTime = PickupTime()


class MobilePaymentDetails(BaseModel):
    bank: str = ""
    phone: str = ""
    id_number: str = ""


class TransferDetails(BaseModel):
    bank: str = ""
    account_number: str = ""
    account_holder: str = ""
    id_number: str = ""


class PaymentSettings(BaseModel):
    delivery_methods: list[PaymentMethod] = [PaymentMethod.CASH]
    pickup_methods: list[PaymentMethod] = [PaymentMethod.CASH]
    show_tip_field: bool = False
    mobile_payment: Optional[MobilePaymentDetails] = None
    transfer: Optional[TransferDetails] = None


class TimeRange(BaseModel):
    start: str = Field(pattern=r"^\d{2}:\d{2}$")
    end: str = Field(pattern=r"^\d{2}:\d{2}$")


class DaySchedule(BaseModel):
    day: Weekday
    shifts: list[TimeRange] = []
    is_open: bool = True


class Schedule(BaseModel):
    id: str
    name: str
    days: list[DaySchedule] = []


def _general_schedule() -> list[Schedule]:
    return [Schedule(id="general", name="General menu", days=[DaySchedule(day=d) for d in WEEKDAYS])]


class PrintingSettings(BaseModel):
    method: PrintingMethod = PrintingMethod.NATIVE


class AppSettings(BaseModel):
    company: CompanySettings = CompanySettings()
    branch: BranchSettings = BranchSettings()
    shipping: ShippingSettings = ShippingSettings()
    payment: PaymentSettings = PaymentSettings()
    schedules: list[Schedule] = Field(default_factory=_general_schedule)
    printing: PrintingSettings = PrintingSettings()
