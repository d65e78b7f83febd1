import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from starlette.concurrency import run_in_threadpool

from ordo.errors import CatalogFetchError
from ordo.models.common import utcnow
from ordo.schemas.catalog import CatalogCategory, CatalogProduct, CatalogPromotion, PersonalizationGroup
from ordo.schemas.settings import AppSettings
from ordo.services.notifier import CATALOG_CHANGED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    products: tuple[CatalogProduct, ...]
    categories: tuple[CatalogCategory, ...]
    personalizations: tuple[PersonalizationGroup, ...]
    promotions: tuple[CatalogPromotion, ...]
    settings: AppSettings
    fetched_at: datetime

    def product(self, product_id: str) -> CatalogProduct | None:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def groups_for(self, product: CatalogProduct) -> list[PersonalizationGroup]:
        by_id = {g.id: g for g in self.personalizations}
        return [by_id[gid] for gid in product.personalization_ids if gid in by_id]


class CatalogFeed:
    """
    Holds the most recent catalog snapshot.

    Every refresh replaces the snapshot wholesale; there is no merging. Pushes
    arrive as ``catalog_changed`` events, and ``run_poller`` re-fetches on a
    timer to reconcile any push that was missed. Cart lines already priced are
    never touched by a refresh.
    """

    def __init__(self, store, notifier=None):
        self.store = store
        self._snapshot: CatalogSnapshot | None = None
        self.last_error: str | None = None
        self._unsubscribe = None
        if notifier is not None:
            self._unsubscribe = notifier.subscribe(CATALOG_CHANGED, lambda _payload: self.refresh())

    def refresh(self) -> CatalogSnapshot | None:
        try:
            snap = CatalogSnapshot(
                products=tuple(self.store.fetch_products()),
                categories=tuple(self.store.fetch_categories()),
                personalizations=tuple(self.store.fetch_personalization_groups()),
                promotions=tuple(self.store.fetch_active_promotions()),
                settings=self.store.fetch_settings(),
                fetched_at=utcnow(),
            )
        except CatalogFetchError as e:
            # keep serving the previous snapshot; next poll retries
            self.last_error = str(e)
            logger.warning("catalog refresh failed, keeping previous snapshot: %s", e)
            return self._snapshot
        self._snapshot = snap
        self.last_error = None
        logger.debug("catalog refreshed: %d products, %d promotions", len(snap.products), len(snap.promotions))
        return snap

    def current(self) -> CatalogSnapshot:
        if self._snapshot is None and self.refresh() is None:
            raise CatalogFetchError(self.last_error or "catalog is not loaded yet")
        return self._snapshot

    async def run_poller(self, interval: float) -> None:
        logger.info("catalog poll every %ss", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                await run_in_threadpool(self.refresh)
            except Exception:
                logger.exception("catalog poll failed; retrying in %ss", interval)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
