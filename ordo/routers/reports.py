from collections import Counter
from decimal import Decimal

from fastapi import APIRouter, Depends

from ordo.deps import get_store
from ordo.models.core import OrderStatus, PaymentStatus
from ordo.schemas.common import money
from ordo.services.store import SqlDataStore

router = APIRouter(prefix="/admin/reports", tags=["reports"])


@router.get("/summary")
def summary(store: SqlDataStore = Depends(get_store)):
    """Order count and revenue over non-cancelled orders, split by payment state."""
    orders = store.fetch_all_orders()
    live = [o for o in orders if o.status != OrderStatus.CANCELLED]

    total = sum((o.total for o in live), Decimal("0"))
    paid = sum((o.total for o in live if o.payment_status == PaymentStatus.PAID), Decimal("0"))
    by_status = Counter(o.status.value for o in orders)

    return {
        "orders": len(live),
        "total": float(money(total)),
        "paid": float(money(paid)),
        "pending": float(money(total - paid)),
        "by_status": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
    }
