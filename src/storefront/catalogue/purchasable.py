"""The purchasable capability shared by everything the store can sell.

Cart lines and order lines never hold a product object. They carry a
``ProductRef`` (kind tag plus identifier) and resolve it through the
``Catalogue`` when a price or a stock level is needed.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from protean.exceptions import ValidationError


class PurchasableKind(Enum):
    PRODUCT = "Product"
    VARIATION = "ProductVariation"


@dataclass(frozen=True)
class ProductRef:
    """Identifies one purchasable item regardless of its concrete type."""

    kind: PurchasableKind
    id: str

    @classmethod
    def of(cls, kind, id):
        return cls(kind=PurchasableKind(kind), id=str(id))

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class LineSnapshot:
    """Price-pinned description of a quantity of one purchasable.

    This is what a purchasable hands out when asked to create an order line:
    the unit amount is taken at the catalogue version current at that moment.
    """

    product_id: str
    kind: PurchasableKind
    version: int
    title: str
    quantity: int
    unit_amount: float

    @property
    def ref(self) -> ProductRef:
        return ProductRef(kind=self.kind, id=self.product_id)

    @property
    def amount(self) -> float:
        return round(self.quantity * self.unit_amount, 2)


@runtime_checkable
class Purchasable(Protocol):
    id: str
    title: str
    version: int
    stock_quantity: int

    @property
    def ref(self) -> ProductRef: ...

    def unit_price(self, version: int | None = None) -> float: ...

    def can_purchase(self, quantity: int) -> bool: ...

    def deduct_quantity(self, quantity: int) -> None: ...

    def create_line(self, quantity: int) -> LineSnapshot: ...

    def is_in_cart(self, cart) -> bool: ...


# ---------------------------------------------------------------------------
# Price history helpers
# ---------------------------------------------------------------------------
def price_at(price_history, version):
    """Return the price recorded for ``version`` in a JSON price history."""
    history = json.loads(price_history) if price_history else {}
    if str(version) not in history:
        raise ValidationError({"version": [f"No price recorded for version {version}"]})
    return history[str(version)]


def record_price(price_history, version, price):
    history = json.loads(price_history) if price_history else {}
    history[str(version)] = price
    return json.dumps(history)
