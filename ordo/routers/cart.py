from fastapi import APIRouter, Depends, HTTPException

from ordo.deps import get_carts, get_catalog, get_composer, require_session
from ordo.errors import ValidationError
from ordo.schemas.orders import AddLineIn, CartOut, CheckoutIn, PlacedOrderOut, UpdateLineIn
from ordo.services.cart import CartRegistry, CartSession
from ordo.services.catalog_feed import CatalogSnapshot
from ordo.services.composer import OrderComposer
from ordo.services.personalization import PersonalizationSelector
from ordo.services.pricing import normalize_quantity, price_of
from ordo.services.schedule import is_open_now
from ordo.util import clock


router = APIRouter(prefix="/cart", tags=["cart"])


def _out(s: CartSession) -> CartOut:
    return CartOut(
        session_id=s.session_id,
        stage=s.stage,
        lines=s.cart.lines,
        total=s.cart.total(),
        item_count=s.cart.item_count(),
        general_comments=s.general_comments,
        last_order_id=s.last_order_id,
    )


@router.post("/sessions", response_model=CartOut)
def open_session(carts: CartRegistry = Depends(get_carts)):
    return _out(carts.open())


@router.get("/sessions/{session_id}", response_model=CartOut)
def get_session(s: CartSession = Depends(require_session)):
    return _out(s)


@router.delete("/sessions/{session_id}")
def close_session(session_id: str, carts: CartRegistry = Depends(get_carts)):
    carts.drop(session_id)
    return {"ok": True}


@router.post("/sessions/{session_id}/lines", response_model=CartOut)
def add_line(
    body: AddLineIn,
    s: CartSession = Depends(require_session),
    snap: CatalogSnapshot = Depends(get_catalog),
):
    """
    Price the product against the live catalog and freeze it into a new line.

    Option ids are replayed in the order given, so radio groups keep the last
    pick and multi-select groups stop at their maximum.
    """
    product = snap.product(body.product_id)
    if not product:
        raise HTTPException(404, detail="product not found")
    if not product.available:
        raise ValidationError(f"{product.name} is not available right now")

    sel = PersonalizationSelector.from_choices(snap.groups_for(product), body.option_ids)
    sel.validate()
    unit_price, promo = price_of(product, snap.promotions, clock.now())

    s.cart.add(
        product,
        unit_price,
        quantity=normalize_quantity(body.quantity),
        comment=body.comment,
        options=sel.snapshot(),
        promotion=promo,
    )
    s.stage = "menu"
    return _out(s)


@router.patch("/sessions/{session_id}/lines/{line_id}", response_model=CartOut)
def update_line(line_id: str, body: UpdateLineIn, s: CartSession = Depends(require_session)):
    if s.cart.get(line_id) is None:
        raise HTTPException(404, detail="line not found")
    if body.comment is not None:
        s.cart.set_comment(line_id, body.comment)
    if body.quantity is not None:
        s.cart.set_quantity(line_id, body.quantity)
    return _out(s)


@router.delete("/sessions/{session_id}/lines/{line_id}", response_model=CartOut)
def remove_line(line_id: str, s: CartSession = Depends(require_session)):
    s.cart.remove(line_id)
    return _out(s)


@router.delete("/sessions/{session_id}/lines", response_model=CartOut)
def clear_lines(s: CartSession = Depends(require_session)):
    s.cart.clear()
    return _out(s)


@router.post("/sessions/{session_id}/checkout", response_model=PlacedOrderOut)
def checkout(
    body: CheckoutIn,
    s: CartSession = Depends(require_session),
    snap: CatalogSnapshot = Depends(get_catalog),
    composer: OrderComposer = Depends(get_composer),
):
    now = clock.now()
    if not is_open_now(snap.settings, now):
        raise ValidationError("the store is closed right now")

    s.general_comments = body.general_comments
    # PersistenceError escapes as 503 with the cart and stage untouched
    placed = composer.place_order(
        s.cart,
        body.customer,
        body.order_type,
        body.payment_method,
        body.tip,
        snap.settings,
        now,
        general_comments=body.general_comments,
        table_ref=body.table_ref,
        payment_proof=body.payment_proof,
    )
    s.stage = "confirmation"
    s.last_order_id = placed.order.id
    s.general_comments = ""
    return PlacedOrderOut(
        order=placed.order,
        message=placed.message,
        dispatch_url=placed.dispatch_url,
        warnings=placed.warnings,
    )


@router.post("/sessions/{session_id}/new-order", response_model=CartOut)
def new_order(s: CartSession = Depends(require_session)):
    s.start_new_order()
    return _out(s)
