"""
Data Store collaborator backed by SQLAlchemy.

Maps ORM rows to the catalog/order schemas so no column naming leaks into
the ordering core. Reads raise CatalogFetchError, writes raise
PersistenceError; neither retries.
"""
import json
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ordo.db import Database
from ordo.errors import CatalogFetchError, PersistenceError
from ordo.models.core import (
    AppSettingsRow, Category, Order, OrderAudit, OrderStatus, Personalization, PersonalizationOption,
    Product, ProductPersonalization, Promotion, PromotionProduct,
)
from ordo.schemas.catalog import (
    CatalogCategory, CatalogProduct, CatalogPromotion, GroupOption, PersonalizationGroup,
)
from ordo.schemas.orders import CartLine, CustomerIn, OrderCreate, OrderOut
from ordo.schemas.settings import AppSettings
from ordo.util.audit import audit

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def _utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    # sqlite hands back naive datetimes; everything is written as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _dec(val) -> Decimal:
    return Decimal(str(val if val is not None else 0))


def _plain(val):
    if isinstance(val, PyEnum):
        return val.value
    if isinstance(val, Decimal):
        return str(val)
    return val


def _exact(val):
    # Decimals go into JSON columns as strings so no cent is lost to float
    if isinstance(val, dict):
        return {k: _exact(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_exact(v) for v in val]
    return _plain(val)


def order_out(o: Order) -> OrderOut:
    return OrderOut(
        id=o.id,
        customer=CustomerIn.model_validate(o.customer),
        items=[CartLine.model_validate(i) for i in (o.items or [])],
        status=o.status,
        order_type=o.order_type,
        table_id=o.table_id,
        payment_method=o.payment_method,
        payment_status=o.payment_status,
        payment_proof=o.payment_proof,
        tip=_dec(o.tip),
        shipping_cost=_dec(o.shipping_cost),
        total=_dec(o.total),
        general_comments=o.general_comments,
        created_at=_utc(o.created_at),
    )


def merge_settings(stored: dict | None) -> AppSettings:
    """Stored sections override the built-in defaults one top-level key at a time."""
    base = AppSettings().model_dump(mode="json")
    if stored:
        base.update(stored)
    return AppSettings.model_validate(base)


class SqlDataStore:
    def __init__(self, database: Database):
        self.database = database

    # ---------- catalog ----------

    def fetch_products(self) -> list[CatalogProduct]:
        try:
            with self.database.session() as db:
                rows = db.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
                links = (
                    db.query(ProductPersonalization)
                    .order_by(ProductPersonalization.position.asc())
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error("fetch_products failed: %s", e)
            raise CatalogFetchError("could not load products") from e

        groups_by_product: dict[str, list[str]] = defaultdict(list)
        for link in links:
            groups_by_product[link.product_id].append(link.personalization_id)

        return [
            CatalogProduct(
                id=p.id,
                name=p.name,
                description=p.description,
                price=_dec(p.price),
                image_url=p.image_url,
                category_id=p.category_id,
                available=bool(p.available),
                personalization_ids=groups_by_product.get(p.id, []),
            )
            for p in rows
        ]

    def fetch_categories(self) -> list[CatalogCategory]:
        try:
            with self.database.session() as db:
                rows = db.query(Category).order_by(Category.created_at.asc()).all()
        except SQLAlchemyError as e:
            logger.error("fetch_categories failed: %s", e)
            raise CatalogFetchError("could not load categories") from e
        return [CatalogCategory(id=c.id, name=c.name) for c in rows]

    def fetch_personalization_groups(self) -> list[PersonalizationGroup]:
        try:
            with self.database.session() as db:
                groups = db.query(Personalization).order_by(Personalization.created_at.asc()).all()
                options = (
                    db.query(PersonalizationOption)
                    .order_by(PersonalizationOption.position.asc(), PersonalizationOption.created_at.asc())
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error("fetch_personalization_groups failed: %s", e)
            raise CatalogFetchError("could not load personalizations") from e

        by_group: dict[str, list[GroupOption]] = defaultdict(list)
        for o in options:
            by_group[o.personalization_id].append(
                GroupOption(id=o.id, name=o.name, price=_dec(o.price), available=bool(o.available))
            )
        return [
            PersonalizationGroup(
                id=g.id,
                name=g.name,
                label=g.label,
                options=by_group.get(g.id, []),
                allow_repetition=bool(g.allow_repetition),
                min_selection=g.min_selection or 0,
                max_selection=g.max_selection,
            )
            for g in groups
        ]

    def fetch_active_promotions(self) -> list[CatalogPromotion]:
        """
        Promotions that may still apply, in creation order.

        Long-expired ones are dropped here; the exact date-window check
        happens at pricing time against the caller's clock.
        """
        cutoff = date.today() - timedelta(days=1)
        try:
            with self.database.session() as db:
                rows = (
                    db.query(Promotion)
                    .filter(or_(Promotion.end_date.is_(None), Promotion.end_date >= cutoff))
                    .order_by(Promotion.created_at.asc(), Promotion.name.asc())
                    .all()
                )
                links = db.query(PromotionProduct).all()
        except SQLAlchemyError as e:
            logger.error("fetch_active_promotions failed: %s", e)
            raise CatalogFetchError("could not load promotions") from e

        products_by_promo: dict[str, list[str]] = defaultdict(list)
        for link in links:
            products_by_promo[link.promotion_id].append(link.product_id)

        return [
            CatalogPromotion(
                id=p.id,
                name=p.name,
                discount_kind=p.discount_kind,
                discount_value=_dec(p.discount_value),
                scope=p.scope,
                product_ids=products_by_promo.get(p.id, []),
                start_date=p.start_date,
                end_date=p.end_date,
            )
            for p in rows
        ]

    def fetch_settings(self) -> AppSettings:
        try:
            with self.database.session() as db:
                row = db.get(AppSettingsRow, SETTINGS_ROW_ID)
                stored = dict(row.settings) if row and row.settings else None
        except SQLAlchemyError as e:
            logger.error("fetch_settings failed: %s", e)
            raise CatalogFetchError("could not load settings") from e
        return merge_settings(stored)

    def save_settings(self, settings: AppSettings) -> AppSettings:
        payload = settings.model_dump(mode="json")
        try:
            with self.database.session() as db:
                row = db.get(AppSettingsRow, SETTINGS_ROW_ID)
                if row is None:
                    db.add(AppSettingsRow(id=SETTINGS_ROW_ID, settings=payload))
                else:
                    row.settings = payload
                db.commit()
        except SQLAlchemyError as e:
            logger.error("save_settings failed: %s", e)
            raise PersistenceError("could not save settings") from e
        return settings

    # ---------- orders ----------

    def insert_order(self, order: OrderCreate, created_at: Optional[datetime] = None) -> OrderOut:
        row = Order(
            customer=order.customer.model_dump(mode="json"),
            items=[_exact(line.model_dump()) for line in order.items],
            status=order.status,
            order_type=order.order_type,
            table_id=order.table_id,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            payment_proof=order.payment_proof,
            tip=order.tip,
            shipping_cost=order.shipping_cost,
            total=order.total,
            general_comments=order.general_comments,
        )
        if created_at is not None:
            row.created_at = _utc(created_at)
        try:
            with self.database.session() as db:
                db.add(row)
                db.commit()
                db.refresh(row)
                return order_out(row)
        except SQLAlchemyError as e:
            logger.error("insert_order failed: %s", e)
            raise PersistenceError("could not save the order") from e

    def update_order(self, order_id: str, fields: dict[str, Any], action: Optional[str] = None) -> OrderOut | None:
        """Apply ``fields``; with ``action`` set, an audit row is written in the same transaction."""
        try:
            with self.database.session() as db:
                row = db.get(Order, order_id)
                if row is None:
                    return None
                before = {k: _plain(getattr(row, k)) for k in fields}
                for k, v in fields.items():
                    setattr(row, k, v)
                if action:
                    audit(db, order_id, action, before=before, after={k: _plain(v) for k, v in fields.items()})
                db.commit()
                db.refresh(row)
                return order_out(row)
        except SQLAlchemyError as e:
            logger.error("update_order %s failed: %s", order_id, e)
            raise PersistenceError("could not update the order") from e

    def fetch_order(self, order_id: str) -> OrderOut | None:
        try:
            with self.database.session() as db:
                row = db.get(Order, order_id)
                return order_out(row) if row else None
        except SQLAlchemyError as e:
            raise CatalogFetchError("could not load the order") from e

    def fetch_active_orders(self) -> list[OrderOut]:
        try:
            with self.database.session() as db:
                rows = (
                    db.query(Order)
                    .filter(Order.status != OrderStatus.CANCELLED)
                    .order_by(Order.created_at.desc())
                    .all()
                )
                return [order_out(o) for o in rows]
        except SQLAlchemyError as e:
            logger.error("fetch_active_orders failed: %s", e)
            raise CatalogFetchError("could not load active orders") from e

    def fetch_all_orders(self) -> list[OrderOut]:
        try:
            with self.database.session() as db:
                rows = db.query(Order).order_by(Order.created_at.desc()).all()
                return [order_out(o) for o in rows]
        except SQLAlchemyError as e:
            logger.error("fetch_all_orders failed: %s", e)
            raise CatalogFetchError("could not load orders") from e

    def fetch_order_audit(self, order_id: str) -> list[dict]:
        try:
            with self.database.session() as db:
                rows = (
                    db.query(OrderAudit)
                    .filter(OrderAudit.order_id == order_id)
                    .order_by(OrderAudit.created_at.asc())
                    .all()
                )
                return [
                    {
                        "action": a.action,
                        "before": json.loads(a.before) if a.before else None,
                        "after": json.loads(a.after) if a.after else None,
                        "at": _utc(a.created_at),
                    }
                    for a in rows
                ]
        except SQLAlchemyError as e:
            raise CatalogFetchError("could not load the order history") from e
