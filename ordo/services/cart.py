import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from ordo.schemas.catalog import CatalogProduct, CatalogPromotion, GroupOption
from ordo.schemas.orders import CartLine, OptionSnapshot
from ordo.services.pricing import cart_total, normalize_quantity

logger = logging.getLogger(__name__)


def snapshot_line(
    product: CatalogProduct,
    unit_price: Decimal,
    quantity: int = 1,
    comment: Optional[str] = None,
    options: Iterable[GroupOption | OptionSnapshot] = (),
    promotion: Optional[CatalogPromotion] = None,
) -> CartLine:
    """One-way conversion from catalog product + resolved options to a cart line."""
    return CartLine(
        line_id=uuid.uuid4().hex,
        product_id=product.id,
        name=product.name,
        unit_price=Decimal(unit_price),
        quantity=normalize_quantity(quantity),
        comment=comment or None,
        options=[OptionSnapshot(id=o.id, name=o.name, price=Decimal(o.price)) for o in options],
        promotion_id=promotion.id if promotion else None,
    )


class Cart:
    """Ordered line items; each add is a new line, never merged."""

    def __init__(self):
        self._lines: list[CartLine] = []

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add(self, product, unit_price, quantity=1, comment=None, options=(), promotion=None) -> CartLine:
        # unit_price must already carry any promotion; the cart does not price
        line = snapshot_line(product, unit_price, quantity, comment, options, promotion)
        self._lines.append(line)
        return line

    def get(self, line_id: str) -> CartLine | None:
        for line in self._lines:
            if line.line_id == line_id:
                return line
        return None

    def remove(self, line_id: str) -> None:
        self._lines = [l for l in self._lines if l.line_id != line_id]

    def set_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(line_id)
            return
        self._replace(line_id, quantity=quantity)

    def set_comment(self, line_id: str, text: Optional[str]) -> None:
        self._replace(line_id, comment=text or None)

    def clear(self) -> None:
        self._lines = []

    def total(self) -> Decimal:
        return cart_total(self._lines)

    def item_count(self) -> int:
        return sum(l.quantity for l in self._lines)

    def _replace(self, line_id: str, **changes) -> None:
        self._lines = [
            l.model_copy(update=changes) if l.line_id == line_id else l
            for l in self._lines
        ]


@dataclass
class CartSession:
    session_id: str
    cart: Cart = field(default_factory=Cart)
    general_comments: str = ""
    stage: str = "menu"  # menu | confirmation
    last_order_id: Optional[str] = None

    def start_new_order(self) -> None:
        self.cart.clear()
        self.general_comments = ""
        self.stage = "menu"


class CartRegistry:
    """In-memory customer sessions keyed by an opaque id."""

    def __init__(self):
        self._sessions: dict[str, CartSession] = {}

    def open(self) -> CartSession:
        s = CartSession(session_id=uuid.uuid4().hex)
        self._sessions[s.session_id] = s
        logger.debug("cart session %s opened", s.session_id)
        return s

    def get(self, session_id: str) -> CartSession | None:
        return self._sessions.get(session_id)

    def drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
