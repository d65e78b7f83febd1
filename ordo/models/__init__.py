# Importing the module registers tables with Base for create_all()
from .core import (  # noqa: F401
    # Enums
    OrderType, OrderStatus, PaymentStatus, PaymentMethod,
    DiscountKind, PromotionScope, ShippingCostType,

    # Menu
    Category, Product, Personalization, PersonalizationOption, ProductPersonalization,
    Promotion, PromotionProduct,

    # Dining
    Zone, DiningTable,

    # Orders
    Order, OrderAudit,

    # Settings
    AppSettingsRow,
)

__all__ = [
    # Enums
    "OrderType", "OrderStatus", "PaymentStatus", "PaymentMethod",
    "DiscountKind", "PromotionScope", "ShippingCostType",

    # Menu
    "Category", "Product", "Personalization", "PersonalizationOption", "ProductPersonalization",
    "Promotion", "PromotionProduct",

    # Dining
    "Zone", "DiningTable",

    # Orders
    "Order", "OrderAudit",

    # Settings
    "AppSettingsRow",
]
