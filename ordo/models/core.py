from sqlalchemy import (
    String, ForeignKey, Boolean, Numeric, Enum, Text, Date, Integer, JSON, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column
from enum import Enum as PyEnum
from datetime import date
from ordo.db import Base
from ordo.models.common import IdMixin, TSMMixin

# ── Enums ───────────────────────────────────────────────────────────────────
class OrderType(PyEnum):
    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"

class OrderStatus(PyEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERING = "DELIVERING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class PaymentStatus(PyEnum):
    PENDING = "pending"
    PAID = "paid"

class PaymentMethod(PyEnum):
    CASH = "CASH"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"
    BANK_TRANSFER = "BANK_TRANSFER"
    ZELLE = "ZELLE"
    POS_TERMINAL = "POS_TERMINAL"
    CARD = "CARD"

class DiscountKind(PyEnum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"

class PromotionScope(PyEnum):
    ALL_PRODUCTS = "ALL_PRODUCTS"
    SPECIFIC_PRODUCTS = "SPECIFIC_PRODUCTS"

class ShippingCostType(PyEnum):
    TO_BE_QUOTED = "TO_BE_QUOTED"
    FREE = "FREE"
    FIXED = "FIXED"

# ── Menu ────────────────────────────────────────────────────────────────────
class Category(Base, IdMixin, TSMMixin):
    __tablename__ = "category"
    name: Mapped[str] = mapped_column(String(120))

class Product(Base, IdMixin, TSMMixin):
    __tablename__ = "product"
    name: Mapped[str] = mapped_column(String(160))
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    image_url: Mapped[str | None] = mapped_column(String(400))
    category_id: Mapped[str] = mapped_column(String(36), ForeignKey("category.id", ondelete="CASCADE"))
    available: Mapped[bool] = mapped_column(Boolean, default=True)

class Personalization(Base, IdMixin, TSMMixin):
    __tablename__ = "personalization"
    name: Mapped[str] = mapped_column(String(120))
    label: Mapped[str | None] = mapped_column(String(120))
    allow_repetition: Mapped[bool] = mapped_column(Boolean, default=False)
    min_selection: Mapped[int] = mapped_column(default=0)
    max_selection: Mapped[int | None]

class PersonalizationOption(Base, IdMixin, TSMMixin):
    __tablename__ = "personalization_option"
    personalization_id: Mapped[str] = mapped_column(String(36), ForeignKey("personalization.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(120))
    price: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    available: Mapped[bool] = mapped_column(Boolean, default=True)
    position: Mapped[int] = mapped_column(default=0)

class ProductPersonalization(Base, TSMMixin):
    __tablename__ = "product_personalization"
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("product.id", ondelete="CASCADE"), primary_key=True)
    personalization_id: Mapped[str] = mapped_column(String(36), ForeignKey("personalization.id", ondelete="CASCADE"), primary_key=True)
    position: Mapped[int] = mapped_column(default=0)

class Promotion(Base, IdMixin, TSMMixin):
    __tablename__ = "promotion"
    name: Mapped[str] = mapped_column(String(160))
    discount_kind: Mapped[DiscountKind] = mapped_column(Enum(DiscountKind))
    discount_value: Mapped[float] = mapped_column(Numeric(10, 2))
    scope: Mapped[PromotionScope] = mapped_column(Enum(PromotionScope), default=PromotionScope.ALL_PRODUCTS)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

class PromotionProduct(Base):
    __tablename__ = "promotion_product"
    promotion_id: Mapped[str] = mapped_column(String(36), ForeignKey("promotion.id", ondelete="CASCADE"), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("product.id", ondelete="CASCADE"), primary_key=True)

# ── Dining ──────────────────────────────────────────────────────────────────
class Zone(Base, IdMixin, TSMMixin):
    __tablename__ = "zone"
    name: Mapped[str] = mapped_column(String(120))
    rows: Mapped[int] = mapped_column(default=4)
    cols: Mapped[int] = mapped_column(default=4)

class DiningTable(Base, IdMixin, TSMMixin):
    __tablename__ = "dining_table"
    __table_args__ = (UniqueConstraint("zone_id", "name", name="uq_table_zone_name"),)
    zone_id: Mapped[str] = mapped_column(String(36), ForeignKey("zone.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(30))
    row: Mapped[int] = mapped_column(default=1)
    col: Mapped[int] = mapped_column(default=1)
    width: Mapped[int] = mapped_column(default=1)
    height: Mapped[int] = mapped_column(default=1)
    shape: Mapped[str] = mapped_column(String(10), default="square")  # square | round
    status: Mapped[str] = mapped_column(String(12), default="available")  # available | occupied

# ── Orders ──────────────────────────────────────────────────────────────────
class Order(Base, IdMixin, TSMMixin):
    __tablename__ = "orders"
    # customer and items are stored as self-contained JSON snapshots
    customer: Mapped[dict] = mapped_column(JSON)
    items: Mapped[list] = mapped_column(JSON)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), default=OrderStatus.PENDING)
    order_type: Mapped[OrderType] = mapped_column(Enum(OrderType))
    table_id: Mapped[str | None] = mapped_column(String(120))
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod))
    payment_status: Mapped[PaymentStatus] = mapped_column(Enum(PaymentStatus), default=PaymentStatus.PENDING)
    payment_proof: Mapped[str | None] = mapped_column(Text)
    tip: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    shipping_cost: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    total: Mapped[float] = mapped_column(Numeric(12, 2))
    general_comments: Mapped[str | None] = mapped_column(Text)

class OrderAudit(Base, IdMixin, TSMMixin):
    __tablename__ = "order_audit"
    order_id: Mapped[str] = mapped_column(String(36), ForeignKey("orders.id", ondelete="CASCADE"))
    action: Mapped[str] = mapped_column(String(40))  # STATUS / PAYMENT / PROOF
    before: Mapped[str | None] = mapped_column(Text)
    after: Mapped[str | None] = mapped_column(Text)

# ── Settings ────────────────────────────────────────────────────────────────
class AppSettingsRow(Base, TSMMixin):
    __tablename__ = "app_settings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    settings: Mapped[dict] = mapped_column(JSON, default=dict)
