"""Shopping Cart aggregate — the session-scoped list of intended purchases.

The cart knows products only by reference and holds no prices. Each
purchasable appears at most once; adding it again replaces the quantity.
Quantity changes floor at zero: a line whose quantity would drop to zero or
below is removed instead.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.cart.events import CartCleared, CartLineAdded, CartLineQuantityChanged, CartLineRemoved
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.domain import storefront


@storefront.entity(part_of="ShoppingCart")
class CartLine:
    product_id = Identifier(required=True)
    kind = String(required=True, choices=PurchasableKind)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def ref(self):
        return ProductRef.of(self.kind, self.product_id)


@storefront.aggregate
class ShoppingCart:
    session_id = String(required=True, max_length=255, unique=True)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, session_id):
        now = datetime.now(UTC)
        return cls(session_id=session_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_line(self, ref):
        return next(
            (line for line in self.lines if str(line.product_id) == ref.id and line.kind == ref.kind.value),
            None,
        )

    def is_empty(self):
        return not self.lines

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(self, ref, quantity):
        """Put ``quantity`` of ``ref`` in the cart, replacing any existing line."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = self.get_line(ref)
        if existing is not None:
            self.remove_lines(existing)

        now = datetime.now(UTC)
        self.add_lines(CartLine(product_id=ref.id, kind=ref.kind.value, quantity=quantity, added_at=now))
        self.updated_at = now

        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                session_id=self.session_id,
                product_id=ref.id,
                kind=ref.kind.value,
                quantity=quantity,
            )
        )

    def increment_quantity(self, ref, delta=1):
        """Raise a line's quantity. Returns False when the line is not in the cart."""
        _validate_delta(delta)
        line = self.get_line(ref)
        if line is None:
            return False
        self._set_quantity(line, line.quantity + delta)
        return True

    def decrement_quantity(self, ref, delta=1):
        """Lower a line's quantity, removing it once nothing would be left.

        Returns False when the line is not in the cart.
        """
        _validate_delta(delta)
        line = self.get_line(ref)
        if line is None:
            return False
        new_quantity = line.quantity - delta
        if new_quantity > 0:
            self._set_quantity(line, new_quantity)
        else:
            self._drop(line)
        return True

    def remove_line(self, ref):
        line = self.get_line(ref)
        if line is None:
            return False
        self._drop(line)
        return True

    def clear(self):
        removed = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), session_id=self.session_id, lines_removed=removed))

    def _set_quantity(self, line, new_quantity):
        previous_quantity = line.quantity
        line.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineQuantityChanged(
                cart_id=str(self.id),
                product_id=str(line.product_id),
                kind=line.kind,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def _drop(self, line):
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=str(line.product_id), kind=line.kind))


def _validate_delta(delta):
    if delta is None or delta < 1:
        raise ValidationError({"delta": ["Quantity change must be at least 1"]})
