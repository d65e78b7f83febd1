from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional

from ordo.deps import get_board, get_lifecycle, get_store
from ordo.models.core import OrderStatus
from ordo.schemas.orders import OrderOut, PaymentIn, StatusIn
from ordo.services.board import OrderBoard
from ordo.services.lifecycle import OrderLifecycle, next_status
from ordo.services.store import SqlDataStore

router = APIRouter(prefix="/admin/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
def list_orders(status: Optional[OrderStatus] = None, board: OrderBoard = Depends(get_board)):
    """
    Active (non-cancelled) orders, newest first.

    Served from the in-memory board, which merges every inserted/updated
    order as it happens.
    """
    return board.orders(status)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, store: SqlDataStore = Depends(get_store)):
    o = store.fetch_order(order_id)
    if not o:
        raise HTTPException(404, detail="order not found")
    return o


@router.get("/{order_id}/next")
def get_next_status(order_id: str, store: SqlDataStore = Depends(get_store)):
    o = store.fetch_order(order_id)
    if not o:
        raise HTTPException(404, detail="order not found")
    nxt = next_status(o)
    return {"id": o.id, "status": o.status.value, "next": nxt.value if nxt else None}


@router.get("/{order_id}/history")
def get_history(order_id: str, store: SqlDataStore = Depends(get_store)):
    if not store.fetch_order(order_id):
        raise HTTPException(404, detail="order not found")
    return store.fetch_order_audit(order_id)


@router.post("/{order_id}/status", response_model=OrderOut)
def set_status(order_id: str, body: StatusIn, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return lifecycle.advance(order_id, body.status)


@router.post("/{order_id}/payment", response_model=OrderOut)
def set_payment(order_id: str, body: PaymentIn, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    return lifecycle.set_payment(order_id, body.payment_status, body.payment_proof)
