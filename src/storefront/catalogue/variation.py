"""ProductVariation aggregate — one sellable variant (size, colour, ...) of a product.

A variation carries its own price, stock and price version. Its title is the
parent product's title followed by the variation's attribute values.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.catalogue.events import VariationPriceChanged, VariationRestocked, VariationStockDeducted
from storefront.catalogue.purchasable import LineSnapshot, ProductRef, PurchasableKind, price_at, record_price
from storefront.domain import storefront


@storefront.aggregate
class ProductVariation:
    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    sku = String(max_length=50)
    attributes = Text()  # JSON: {"Size": "M", "Colour": "Red"}
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0)
    version = Integer(default=1, min_value=1)
    price_history = Text()  # JSON: {version: price}
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_go_negative(self):
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

    @classmethod
    def create(cls, product, price, attributes=None, stock_quantity=0, sku=None):
        attributes = attributes or {}
        title = product.title
        if attributes:
            title = f"{product.title} ({', '.join(str(v) for v in attributes.values())})"
        now = datetime.now(UTC)
        return cls(
            product_id=str(product.id),
            title=title,
            sku=sku,
            attributes=json.dumps(attributes),
            price=price,
            stock_quantity=stock_quantity,
            version=1,
            price_history=record_price(None, 1, price),
            created_at=now,
            updated_at=now,
        )

    @property
    def ref(self):
        return ProductRef(kind=PurchasableKind.VARIATION, id=str(self.id))

    def unit_price(self, version=None):
        if version is None or version == self.version:
            return self.price
        return price_at(self.price_history, version)

    def can_purchase(self, quantity):
        return self.stock_quantity - quantity >= 0

    def deduct_quantity(self, quantity):
        if not self.can_purchase(quantity):
            raise ValidationError(
                {"stock_quantity": [f"Only {self.stock_quantity} of '{self.title}' left, {quantity} requested"]}
            )
        self.stock_quantity -= quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VariationStockDeducted(
                variation_id=str(self.id),
                product_id=str(self.product_id),
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )

    def restock(self, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Restock quantity must be at least 1"]})
        self.stock_quantity += quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VariationRestocked(
                variation_id=str(self.id),
                product_id=str(self.product_id),
                quantity=quantity,
                stock_quantity=self.stock_quantity,
            )
        )

    def change_price(self, new_price):
        if new_price < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})
        if new_price == self.price:
            return
        previous_price = self.price
        self.version += 1
        self.price = new_price
        self.price_history = record_price(self.price_history, self.version, new_price)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            VariationPriceChanged(
                variation_id=str(self.id),
                product_id=str(self.product_id),
                previous_price=previous_price,
                new_price=new_price,
                version=self.version,
            )
        )

    def create_line(self, quantity):
        return LineSnapshot(
            product_id=str(self.id),
            kind=PurchasableKind.VARIATION,
            version=self.version,
            title=self.title,
            quantity=quantity,
            unit_amount=self.price,
        )

    def is_in_cart(self, cart):
        return cart.get_line(self.ref) is not None
