from fastapi import Depends, HTTPException, Request

from ordo.services.assistant import Assistant
from ordo.services.board import OrderBoard
from ordo.services.cart import CartRegistry, CartSession
from ordo.services.catalog_feed import CatalogFeed, CatalogSnapshot
from ordo.services.composer import OrderComposer
from ordo.services.lifecycle import OrderLifecycle
from ordo.services.notifier import ChangeNotifier
from ordo.services.store import SqlDataStore


def get_store(request: Request) -> SqlDataStore:
    return request.app.state.store

def get_notifier(request: Request) -> ChangeNotifier:
    return request.app.state.notifier

def get_feed(request: Request) -> CatalogFeed:
    return request.app.state.feed

def get_catalog(feed: CatalogFeed = Depends(get_feed)) -> CatalogSnapshot:
    # raises CatalogFetchError (503) until the first successful fetch
    return feed.current()

def get_carts(request: Request) -> CartRegistry:
    return request.app.state.carts

def get_composer(request: Request) -> OrderComposer:
    return request.app.state.composer

def get_lifecycle(request: Request) -> OrderLifecycle:
    return request.app.state.lifecycle

def get_board(request: Request) -> OrderBoard:
    return request.app.state.board

def get_assistant(request: Request) -> Assistant:
    return request.app.state.assistant

def require_session(session_id: str, carts: CartRegistry = Depends(get_carts)) -> CartSession:
    s = carts.get(session_id)
    if not s:
        raise HTTPException(404, detail="Cart session not found")
    return s
