# test_pricing.py
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import NOW, product, promo
from ordo.models.core import DiscountKind, PromotionScope
from ordo.schemas.orders import OptionSnapshot
from ordo.services.cart import Cart
from ordo.services.pricing import (
    cart_total, is_promotion_active, line_total, money, normalize_quantity, price_of,
)


def test_percentage_promotion_and_line_total():
    p = product(price="5.00")
    price, applied = price_of(p, [promo(value="20")], NOW)
    assert price == Decimal("4.00")
    assert applied is not None and applied.id == "promo1"
    assert line_total(price, [], 2) == Decimal("8.00")


def test_no_promotion_returns_base_price():
    price, applied = price_of(product(price="7.25"), [], NOW)
    assert price == Decimal("7.25")
    assert applied is None


@pytest.mark.parametrize("kind,value", [
    (DiscountKind.FIXED_AMOUNT, "50"),
    (DiscountKind.PERCENTAGE, "150"),
    (DiscountKind.FIXED_AMOUNT, "3.00"),
])
def test_effective_price_never_negative(kind, value):
    price, _ = price_of(product(price="3.00"), [promo(kind=kind, value=value)], NOW)
    assert price >= 0
    assert price == Decimal("0")


def test_fixed_discount_subtracts():
    price, _ = price_of(product(price="12.00"), [promo(kind=DiscountKind.FIXED_AMOUNT, value="2.50")], NOW)
    assert price == Decimal("9.50")


def test_specific_products_scope_ignores_other_products():
    scoped = promo(scope=PromotionScope.SPECIFIC_PRODUCTS, product_ids=["P1"], value="50")
    p1 = product(id="P1", price="10.00")
    p2 = product(id="P2", price="10.00")
    assert price_of(p1, [scoped], NOW)[0] == Decimal("5.00")
    price, applied = price_of(p2, [scoped], NOW)
    assert price == Decimal("10.00")
    assert applied is None


def test_first_matching_promotion_wins():
    first = promo(id="a", value="10")
    second = promo(id="b", value="50")
    price, applied = price_of(product(price="10.00"), [first, second], NOW)
    assert applied.id == "a"
    assert price == Decimal("9.00")


def test_inactive_promotion_is_skipped_for_the_next_one():
    expired = promo(id="old", value="50", end=date(2024, 6, 1))
    live = promo(id="new", value="10")
    _, applied = price_of(product(), [expired, live], NOW)
    assert applied.id == "new"


def test_end_date_covers_the_whole_last_day():
    p = promo(start=date(2024, 6, 1), end=date(2024, 6, 15))
    last_second = datetime(2024, 6, 15, 23, 59, 59, tzinfo=timezone.utc)
    assert is_promotion_active(p, last_second)
    assert is_promotion_active(p, last_second + timedelta(microseconds=999_999))
    assert not is_promotion_active(p, datetime(2024, 6, 16, 0, 0, tzinfo=timezone.utc))


def test_start_date_begins_at_midnight():
    p = promo(start=date(2024, 6, 15))
    assert not is_promotion_active(p, datetime(2024, 6, 14, 23, 59, 59, tzinfo=timezone.utc))
    assert is_promotion_active(p, datetime(2024, 6, 15, 0, 0, tzinfo=timezone.utc))


def test_window_is_read_in_the_clock_timezone():
    tz = timezone(timedelta(hours=-6))
    p = promo(end=date(2024, 6, 15))
    # 23:30 local on the end date is already the 16th in UTC
    assert is_promotion_active(p, datetime(2024, 6, 15, 23, 30, tzinfo=tz))


def test_open_ended_promotion_is_always_active():
    assert is_promotion_active(promo(), NOW)


@pytest.mark.parametrize("raw,expected", [(0, 1), (-3, 1), (True, 1), ("2", 1), (2.5, 1), (4, 4)])
def test_normalize_quantity(raw, expected):
    assert normalize_quantity(raw) == expected


def test_line_total_includes_options():
    opts = [OptionSnapshot(id="x", name="Extra", price=Decimal("0.75")),
            OptionSnapshot(id="y", name="Sauce", price=Decimal("0.50"))]
    assert line_total(Decimal("4.00"), opts, 3) == Decimal("15.75")


def test_cart_total_equals_sum_of_line_totals():
    cart = Cart()
    cart.add(product(id="a"), Decimal("4.00"), quantity=2)
    cart.add(product(id="b"), Decimal("1.75"), quantity=2)
    cart.add(product(id="c"), Decimal("0.10"), quantity=3,
             options=[OptionSnapshot(id="o", name="Ice", price=Decimal("0.05"))])

    expected = sum((line_total(l.unit_price, l.options, l.quantity) for l in cart.lines), Decimal("0"))
    assert cart_total(cart.lines) == expected
    assert cart.total() == Decimal("11.95")


def test_money_rounds_half_up():
    assert money(Decimal("2.675")) == Decimal("2.68")
    assert money(Decimal("1.005")) == Decimal("1.01")
    assert str(money(3)) == "3.00"


def test_discounted_price_is_rounded_to_cents_once():
    price, _ = price_of(product(price="0.99"), [promo(value="50")], NOW)
    assert price == Decimal("0.50")
    assert line_total(price, [], 3) == Decimal("1.50")
