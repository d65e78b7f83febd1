"""
Promotion-aware pricing.

Everything in here is pure: callers hand in the catalog snapshot, the current
instant and the selections, and get Decimals back. A discounted unit price is
rounded to cents once, here; sums over lines are exact from then on.
"""
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from ordo.models.core import DiscountKind, PromotionScope
from ordo.schemas.catalog import CatalogProduct, CatalogPromotion
from ordo.schemas.common import money
from ordo.schemas.orders import CartLine, OptionSnapshot

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def is_promotion_active(promo: CatalogPromotion, now: datetime) -> bool:
    """
    Active iff start-of-day(start) <= now < start-of-day(end + 1 day).

    Dates are read in ``now``'s own timezone, so an end date of D covers every
    instant through 23:59:59.999999 on D.
    """
    tz = now.tzinfo
    if promo.start_date is not None:
        if now < datetime.combine(promo.start_date, time.min, tzinfo=tz):
            return False
    if promo.end_date is not None:
        if now >= datetime.combine(promo.end_date + timedelta(days=1), time.min, tzinfo=tz):
            return False
    return True


def promotion_applies_to(promo: CatalogPromotion, product: CatalogProduct) -> bool:
    if promo.scope == PromotionScope.ALL_PRODUCTS:
        return True
    return product.id in promo.product_ids


def discounted(price: Decimal, promo: CatalogPromotion) -> Decimal:
    if promo.discount_kind == DiscountKind.PERCENTAGE:
        discount = price * (promo.discount_value / HUNDRED)
    else:
        discount = promo.discount_value
    return money(max(price - discount, ZERO))


def price_of(
    product: CatalogProduct,
    promotions: Iterable[CatalogPromotion],
    now: datetime,
) -> tuple[Decimal, CatalogPromotion | None]:
    # First match in iteration order wins. There is no priority field, so the
    # caller's ordering (creation order from the store) is the tie-break.
    for promo in promotions:
        if is_promotion_active(promo, now) and promotion_applies_to(promo, product):
            return discounted(product.price, promo), promo
    return product.price, None


def normalize_quantity(quantity) -> int:
    """Clamp anything that is not a positive integer to 1."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        return 1
    return quantity


def line_total(
    base_unit_price: Decimal,
    selected_options: Sequence[OptionSnapshot],
    quantity: int,
) -> Decimal:
    per_unit = base_unit_price + sum((o.price for o in selected_options), ZERO)
    return per_unit * normalize_quantity(quantity)


def cart_total(lines: Iterable[CartLine]) -> Decimal:
    total = ZERO
    for line in lines:
        total += line.unit_total * line.quantity
    return total
