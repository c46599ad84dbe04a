"""Domain events for catalogue items."""

from protean.fields import Float, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductPriceChanged:
    """A product was repriced; the previous price stays pinned to its version."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
    version = Integer(required=True)


@storefront.event(part_of="Product")
class ProductStockDeducted:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class ProductRestocked:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_quantity = Integer(required=True)


@storefront.event(part_of="ProductVariation")
class VariationPriceChanged:
    """A variation was repriced; the previous price stays pinned to its version."""

    __version__ = 1

    variation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
    version = Integer(required=True)


@storefront.event(part_of="ProductVariation")
class VariationStockDeducted:
    __version__ = 1

    variation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="ProductVariation")
class VariationRestocked:
    __version__ = 1

    variation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_quantity = Integer(required=True)
