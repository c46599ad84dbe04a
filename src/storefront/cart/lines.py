"""Cart line management — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String

from storefront.cart.cart import ShoppingCart
from storefront.cart.store import CartStore
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.domain import storefront


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    kind = String(choices=PurchasableKind, default=PurchasableKind.PRODUCT.value)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class IncrementCartLine:
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    kind = String(choices=PurchasableKind, default=PurchasableKind.PRODUCT.value)
    delta = Integer(default=1, min_value=1)


@storefront.command(part_of="ShoppingCart")
class DecrementCartLine:
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    kind = String(choices=PurchasableKind, default=PurchasableKind.PRODUCT.value)
    delta = Integer(default=1, min_value=1)


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    session_id = String(required=True, max_length=255)
    product_id = Identifier(required=True)
    kind = String(choices=PurchasableKind, default=PurchasableKind.PRODUCT.value)


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    session_id = String(required=True, max_length=255)


def _ref(command):
    return ProductRef.of(command.kind, command.product_id)


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartLinesHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        CartStore(command.session_id).add_line(_ref(command), command.quantity)

    @handle(IncrementCartLine)
    def increment_line(self, command):
        return CartStore(command.session_id).increment_quantity(_ref(command), command.delta)

    @handle(DecrementCartLine)
    def decrement_line(self, command):
        return CartStore(command.session_id).decrement_quantity(_ref(command), command.delta)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        return CartStore(command.session_id).remove_line(_ref(command))

    @handle(ClearCart)
    def clear_cart(self, command):
        CartStore(command.session_id).clear()
