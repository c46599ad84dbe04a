"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartLineAdded:
    """A purchasable was put in the cart, replacing any line it already had."""

    __version__ = 1

    cart_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    kind = String(required=True, max_length=50)
    quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartLineQuantityChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    kind = String(required=True, max_length=50)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    kind = String(required=True, max_length=50)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    lines_removed = Integer(required=True)
