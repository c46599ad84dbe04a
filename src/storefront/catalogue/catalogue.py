"""Catalogue collaborator — price and availability lookups for the checkout.

The checkout only ever talks to purchasables through this object, so it never
needs to know which concrete aggregate backs a ``ProductRef``.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.catalogue.variation import ProductVariation

logger = structlog.get_logger(__name__)

_AGGREGATES = {
    PurchasableKind.PRODUCT: Product,
    PurchasableKind.VARIATION: ProductVariation,
}


class Catalogue:
    def _repository(self, ref: ProductRef):
        return current_domain.repository_for(_AGGREGATES[ref.kind])

    def purchasable(self, ref: ProductRef):
        """Load the purchasable behind ``ref``.

        Raises ``ObjectNotFoundError`` when the record does not exist.
        """
        return self._repository(ref).get(ref.id)

    def unit_price_of(self, ref: ProductRef, version: int | None = None) -> float:
        return self.purchasable(ref).unit_price(version)

    def current_version(self, ref: ProductRef) -> int:
        return self.purchasable(ref).version

    def can_purchase(self, ref: ProductRef, quantity: int) -> bool:
        return self.purchasable(ref).can_purchase(quantity)

    def deduct(self, ref: ProductRef, quantity: int):
        """Take ``quantity`` units out of stock and persist the item."""
        item = self.purchasable(ref)
        item.deduct_quantity(quantity)
        self._repository(ref).add(item)
        logger.debug("stock_deducted", product=str(ref), quantity=quantity, remaining=item.stock_quantity)
        return item
