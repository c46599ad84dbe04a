"""BDD tests for committing a cart into an order."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.catalogue.management import AddProduct
from storefront.catalogue.product import Product
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.exceptions import EmptyOrderError, NoPurchasableItemsError
from storefront.members.directory import MemberProfile
from storefront.modifiers.chain import ModifierChain, get_modifier_chain, set_modifier_chain
from storefront.modifiers.shipping import FlatShippingModifier
from storefront.modifiers.tax import TaxModifier
from storefront.order.draft import OrderDraft
from storefront.order.order import Order
from storefront.order.payment import pay_for_order
from storefront.order.processor import OrderProcessor
from storefront.payments.gateway import set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway

scenarios("features/checkout.feature")


@pytest.fixture(autouse=True)
def _fresh_chain_and_gateway():
    set_modifier_chain(ModifierChain())
    set_gateway(FakeGateway())


def _ref(products, title):
    return ProductRef(kind=PurchasableKind.PRODUCT, id=products[title])


def _placed_order(outcome):
    return current_domain.repository_for(Order).get(outcome["result"].order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue lists "{title}" at {price:f} with {stock:d} in stock'))
def catalogue_lists(products, title, price, stock):
    products[title] = current_domain.process(
        AddProduct(title=title, price=price, stock_quantity=stock),
        asynchronous=False,
    )


@given(parsers.cfparse('a {rate:d}% {tax_type} "{name}" applies in "{country}"'))
def tax_applies(rate, tax_type, name, country):
    tax = TaxModifier()
    tax.set_by_country(country, rate / 100, name, tax_type)
    get_modifier_chain().add(tax)


@given(parsers.cfparse("shipping costs {charge:f}"))
def shipping_costs(charge):
    get_modifier_chain().add(FlatShippingModifier(default_charge=charge))


@given(parsers.cfparse('{qty:d} "{title}" are in the cart'))
def titled_product_in_cart(cart, products, qty, title):
    cart.add_line(_ref(products, title), qty)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer from "{country}" checks out'))
def customer_checks_out(cart, country, outcome):
    draft = OrderDraft(cart, country=country)
    try:
        outcome["result"] = OrderProcessor(draft).commit(MemberProfile(email="shopper@example.com", country=country))
    except (EmptyOrderError, NoPurchasableItemsError) as exc:
        outcome["exc"] = exc


@when(parsers.cfparse('the customer pays the outstanding balance by "{method}"'))
def customer_pays(outcome, method):
    pay_for_order(outcome["result"].order_id, method)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order subtotal is {amount:f}"))
def order_subtotal(outcome, amount):
    assert _placed_order(outcome).subtotal() == pytest.approx(amount)


@then(parsers.cfparse("the order total is {amount:f}"))
def order_total(outcome, amount):
    assert _placed_order(outcome).total() == pytest.approx(amount)


@then(parsers.cfparse("the order has {count:d} line"))
def order_line_count(outcome, count):
    assert len(_placed_order(outcome).lines) == count


@then(parsers.cfparse('"{title}" is reported as rejected'))
def reported_rejected(outcome, products, title):
    assert products[title] in [line.product_id for line in outcome["result"].rejected_lines]


@then(parsers.cfparse('{qty:d} "{title}" are still in the cart'))
def still_in_cart(cart, products, qty, title):
    assert cart.get_line(_ref(products, title)).quantity == qty


@then(parsers.cfparse('{stock:d} "{title}" remain in stock'))
def remaining_stock(products, stock, title):
    assert current_domain.repository_for(Product).get(products[title]).stock_quantity == stock


@then("the checkout fails because the cart is empty")
def fails_empty(outcome):
    assert isinstance(outcome["exc"], EmptyOrderError)


@then("the checkout fails because nothing can be purchased")
def fails_nothing_purchasable(outcome):
    assert isinstance(outcome["exc"], NoPurchasableItemsError)


@then(parsers.cfparse('the order is "{status}"'))
def order_status(outcome, status):
    assert _placed_order(outcome).status == status


@then("nothing is outstanding")
def nothing_outstanding(outcome):
    assert _placed_order(outcome).total_outstanding() == 0
