import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordo.config import Settings, settings as default_settings
from ordo.db import Database
from ordo.errors import CatalogFetchError, NotFoundError, PersistenceError, ValidationError
from ordo.middleware import RequestIdMiddleware
from ordo.routers import assistant, cart, dining, menu, orders, promotions, reports
from ordo.routers import settings as settings_router
from ordo.services.assistant import Assistant
from ordo.services.board import OrderBoard
from ordo.services.cart import CartRegistry
from ordo.services.catalog_feed import CatalogFeed
from ordo.services.composer import OrderComposer
from ordo.services.dispatch import WhatsAppDispatcher
from ordo.services.lifecycle import OrderLifecycle
from ordo.services.notifier import ChangeNotifier
from ordo.services.store import SqlDataStore

logger = logging.getLogger(__name__)


def _error(status: int):
    async def handler(request: Request, exc: Exception):
        return JSONResponse(status_code=status, content={"detail": str(exc)})
    return handler


def create_app(cfg: Settings | None = None) -> FastAPI:
    cfg = cfg or default_settings
    logging.basicConfig(
        level=cfg.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Ordo API", version="0.1.0")

    database = Database(cfg.DB_URL)
    notifier = ChangeNotifier()
    store = SqlDataStore(database)
    dispatcher = WhatsAppDispatcher(cfg.ORDER_WEBHOOK_URL, timeout=cfg.DISPATCH_TIMEOUT_SECONDS)

    app.state.config = cfg
    app.state.database = database
    app.state.notifier = notifier
    app.state.store = store
    app.state.feed = CatalogFeed(store, notifier)
    app.state.board = OrderBoard(store, notifier)
    app.state.carts = CartRegistry()
    app.state.composer = OrderComposer(store, dispatcher, notifier)
    app.state.lifecycle = OrderLifecycle(store, notifier)
    app.state.assistant = Assistant(cfg.GEMINI_API_KEY, model=cfg.GEMINI_MODEL, base_url=cfg.GEMINI_URL)
    app.state.poller = None

    @app.on_event("startup")
    async def startup():
        database.open()
        app.state.feed.refresh()
        app.state.board.load()
        if cfg.CATALOG_POLL_SECONDS > 0:
            app.state.poller = asyncio.create_task(app.state.feed.run_poller(cfg.CATALOG_POLL_SECONDS))
        logger.info("ordo started (%s)", cfg.APP_ENV)

    @app.on_event("shutdown")
    async def shutdown():
        if app.state.poller is not None:
            app.state.poller.cancel()
            app.state.poller = None
        app.state.feed.close()
        app.state.board.close()
        database.close()

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _error(422))
    app.add_exception_handler(NotFoundError, _error(404))
    app.add_exception_handler(CatalogFetchError, _error(503))
    app.add_exception_handler(PersistenceError, _error(503))

    app.include_router(menu.router)
    app.include_router(menu.admin_router)
    app.include_router(promotions.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(settings_router.router)
    app.include_router(dining.router)
    app.include_router(assistant.router)
    app.include_router(reports.router)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "catalog_error": app.state.feed.last_error}

    return app


app = create_app()
