"""Product aggregate — a standalone purchasable with its own price and stock.

Prices are versioned: every reprice bumps ``version`` and records the new
price in ``price_history`` so that order lines pinned to an older version
keep resolving to the price the customer saw.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.catalogue.events import ProductPriceChanged, ProductRestocked, ProductStockDeducted
from storefront.catalogue.purchasable import LineSnapshot, ProductRef, PurchasableKind, price_at, record_price
from storefront.domain import storefront


@storefront.aggregate
class Product:
    title = String(required=True, max_length=255)
    sku = String(max_length=50)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0)
    allow_purchase = Boolean(default=True)
    version = Integer(default=1, min_value=1)
    price_history = Text()  # JSON: {version: price}
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_go_negative(self):
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

    @classmethod
    def create(cls, title, price, stock_quantity=0, sku=None, allow_purchase=True):
        now = datetime.now(UTC)
        return cls(
            title=title,
            sku=sku,
            price=price,
            stock_quantity=stock_quantity,
            allow_purchase=allow_purchase,
            version=1,
            price_history=record_price(None, 1, price),
            created_at=now,
            updated_at=now,
        )

    @property
    def ref(self):
        return ProductRef(kind=PurchasableKind.PRODUCT, id=str(self.id))

    def unit_price(self, version=None):
        if version is None or version == self.version:
            return self.price
        return price_at(self.price_history, version)

    def can_purchase(self, quantity):
        return bool(self.allow_purchase) and self.stock_quantity - quantity >= 0

    def deduct_quantity(self, quantity):
        if not self.can_purchase(quantity):
            raise ValidationError(
                {"stock_quantity": [f"Only {self.stock_quantity} of '{self.title}' left, {quantity} requested"]}
            )
        self.stock_quantity -= quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductStockDeducted(
                product_id=str(self.id),
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
            ProductRestocked(
                product_id=str(self.id),
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
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous_price,
                new_price=new_price,
                version=self.version,
            )
        )

    def create_line(self, quantity):
        return LineSnapshot(
            product_id=str(self.id),
            kind=PurchasableKind.PRODUCT,
            version=self.version,
            title=self.title,
            quantity=quantity,
            unit_amount=self.price,
        )

    def is_in_cart(self, cart):
        return cart.get_line(self.ref) is not None
