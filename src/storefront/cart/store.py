"""Cart store — session-scoped access to a shopping cart.

A ``CartStore`` is created per request (or per checkout) for one session
token and passed along explicitly. The backing cart is created the first time
the store touches it and cleared only when asked to.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(self, session_id: str) -> None:
        if not session_id:
            raise ValueError("A cart store needs a session token")
        self.session_id = session_id

    def __repr__(self) -> str:
        return f"CartStore(session_id={self.session_id!r})"

    def _repository(self):
        return current_domain.repository_for(ShoppingCart)

    @property
    def cart(self) -> ShoppingCart:
        repo = self._repository()
        carts = repo._dao.query.filter(session_id=self.session_id).all().items
        if carts:
            return repo.get(carts[0].id)

        cart = ShoppingCart.create(session_id=self.session_id)
        repo.add(cart)
        logger.debug("cart_created", session_id=self.session_id, cart_id=str(cart.id))
        return cart

    def _save(self, cart: ShoppingCart) -> None:
        self._repository().add(cart)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def lines(self):
        return list(self.cart.lines)

    def get_line(self, ref):
        """Return the line for ``ref`` or None when it is not in the cart."""
        return self.cart.get_line(ref)

    def is_empty(self) -> bool:
        return self.cart.is_empty()

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def add_line(self, ref, quantity: int) -> None:
        cart = self.cart
        cart.add_line(ref, quantity)
        self._save(cart)

    def increment_quantity(self, ref, delta: int = 1) -> bool:
        cart = self.cart
        found = cart.increment_quantity(ref, delta)
        if found:
            self._save(cart)
        return found

    def decrement_quantity(self, ref, delta: int = 1) -> bool:
        cart = self.cart
        found = cart.decrement_quantity(ref, delta)
        if found:
            self._save(cart)
        return found

    def remove_line(self, ref) -> bool:
        cart = self.cart
        found = cart.remove_line(ref)
        if found:
            self._save(cart)
        return found

    def remove_lines(self, refs) -> None:
        cart = self.cart
        removed = [ref for ref in refs if cart.remove_line(ref)]
        if removed:
            self._save(cart)

    def clear(self) -> None:
        cart = self.cart
        cart.clear()
        self._save(cart)
