"""Storefront bounded context — shopping cart, pricing modifiers and checkout.

A single domain hosts the cart, the catalogue snapshot, members and orders so
that committing a cart into an order (order, lines, modifiers, stock
deduction, member record) happens inside one unit of work.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
