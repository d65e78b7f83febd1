from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import PlainSerializer

CENT = Decimal("0.01")


def money(x) -> Decimal:
    """Round to 2dp, half-up, for display and transmission."""
    if x is None:
        x = 0
    return Decimal(str(x)).quantize(CENT, rounding=ROUND_HALF_UP)


# Exact Decimal in Python, 2dp float on the wire.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(money(v)), return_type=float, when_used="json"),
]


