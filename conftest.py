# conftest.py
import random
import string
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from ordo.config import Settings
from ordo.main import create_app
from ordo.models.core import DiscountKind, PromotionScope
from ordo.schemas.catalog import CatalogProduct, CatalogPromotion, GroupOption, PersonalizationGroup

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def app():
    cfg = Settings(DB_URL="sqlite://", CATALOG_POLL_SECONDS=0, ORDER_WEBHOOK_URL=None,
                   GEMINI_API_KEY=None, _env_file=None)
    return create_app(cfg)


@pytest.fixture
def client(app):
    # entering the context runs startup (db open, first catalog fetch)
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def rng_suffix():
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=6))


# ---------- catalog builders for service-level tests ----------

def product(id="p1", price="10.00", name=None, available=True, groups=()):
    return CatalogProduct(
        id=id, name=name or f"Product {id}", price=Decimal(price),
        category_id="c1", available=available, personalization_ids=list(groups),
    )


def promo(id="promo1", kind=DiscountKind.PERCENTAGE, value="10", scope=PromotionScope.ALL_PRODUCTS,
          product_ids=(), start=None, end=None):
    return CatalogPromotion(
        id=id, name=f"Promo {id}", discount_kind=kind, discount_value=Decimal(value),
        scope=scope, product_ids=list(product_ids), start_date=start, end_date=end,
    )


def option(id, price="0", available=True, name=None):
    return GroupOption(id=id, name=name or id.title(), price=Decimal(price), available=available)


def group(id, options, min_selection=0, max_selection=None):
    return PersonalizationGroup(
        id=id, name=id.title(), options=list(options),
        min_selection=min_selection, max_selection=max_selection,
    )
