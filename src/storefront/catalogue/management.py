"""Catalogue management — commands and handlers for listing, pricing and stocking items."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.catalogue.variation import ProductVariation
from storefront.domain import storefront


@storefront.command(part_of="Product")
class AddProduct:
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    sku = String(max_length=50)


@storefront.command(part_of="Product")
class ChangeProductPrice:
    product_id = Identifier(required=True)
    new_price = Float(required=True, min_value=0.0)


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ProductVariation")
class AddVariation:
    product_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    attributes = Text()  # JSON: {"Size": "M"}
    stock_quantity = Integer(default=0, min_value=0)
    sku = String(max_length=50)


@storefront.command(part_of="ProductVariation")
class ChangeVariationPrice:
    variation_id = Identifier(required=True)
    new_price = Float(required=True, min_value=0.0)


@storefront.command(part_of="ProductVariation")
class RestockVariation:
    variation_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command_handler(part_of=Product)
class ManageProductsHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            title=command.title,
            price=command.price,
            stock_quantity=command.stock_quantity or 0,
            sku=command.sku,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(ChangeProductPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.new_price)
        repo.add(product)

    @handle(RestockProduct)
    def restock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity)
        repo.add(product)


@storefront.command_handler(part_of=ProductVariation)
class ManageVariationsHandler:
    @handle(AddVariation)
    def add_variation(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        attributes = json.loads(command.attributes) if command.attributes else {}
        variation = ProductVariation.create(
            product=product,
            price=command.price,
            attributes=attributes,
            stock_quantity=command.stock_quantity or 0,
            sku=command.sku,
        )
        current_domain.repository_for(ProductVariation).add(variation)
        return str(variation.id)

    @handle(ChangeVariationPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(ProductVariation)
        variation = repo.get(command.variation_id)
        variation.change_price(command.new_price)
        repo.add(variation)

    @handle(RestockVariation)
    def restock(self, command):
        repo = current_domain.repository_for(ProductVariation)
        variation = repo.get(command.variation_id)
        variation.restock(command.quantity)
        repo.add(variation)
