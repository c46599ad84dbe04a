"""Application tests for the pre-commit order read model."""

import pytest
from protean import current_domain
from storefront.cart.store import CartStore
from storefront.catalogue.management import AddProduct, ChangeProductPrice
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.members.directory import MemberProfile
from storefront.modifiers.chain import ModifierChain, ModifierKind, set_modifier_chain
from storefront.modifiers.shipping import FlatShippingModifier
from storefront.modifiers.tax import TaxModifier
from storefront.order.draft import OrderDraft
from storefront.order.processor import OrderProcessor


def _add_product(title="Linen Shirt", price=25.0, stock=10):
    return current_domain.process(
        AddProduct(title=title, price=price, stock_quantity=stock),
        asynchronous=False,
    )


def _draft(*lines, country="NZ"):
    cart = CartStore("sess-001")
    for product_id, quantity in lines:
        cart.add_line(ProductRef(kind=PurchasableKind.PRODUCT, id=product_id), quantity)
    return OrderDraft(cart, country=country)


def _inclusive_chain():
    tax = TaxModifier()
    tax.set_by_country("NZ", 0.125, "GST", "inclusive")
    return ModifierChain([tax])


class TestLiveReadModel:
    def test_draft_has_no_identity(self):
        draft = _draft()
        assert draft.id is None
        assert draft.order is None

    def test_items_priced_from_catalogue(self):
        shirt = _add_product(price=25.0)
        mug = _add_product(title="Mug", price=13.0)
        draft = _draft((shirt, 3), (mug, 2))
        assert sorted(item.amount for item in draft.items()) == [26.0, 75.0]
        assert draft.subtotal() == 101.0

    def test_subtotal_follows_live_prices(self):
        shirt = _add_product(price=25.0)
        draft = _draft((shirt, 2))
        assert draft.subtotal() == 50.0

        current_domain.process(ChangeProductPrice(product_id=shirt, new_price=30.0), asynchronous=False)

        assert draft.subtotal() == 60.0

    def test_subtotal_follows_cart_changes(self):
        shirt = _add_product(price=25.0)
        draft = _draft((shirt, 2))
        CartStore("sess-001").decrement_quantity(ProductRef(kind=PurchasableKind.PRODUCT, id=shirt))
        assert draft.subtotal() == 25.0

    def test_modifiers_evaluated_live(self):
        set_modifier_chain(ModifierChain([FlatShippingModifier(default_charge=9.5)]))
        shirt = _add_product(price=40.0)
        draft = _draft((shirt, 1))
        modifiers = draft.modifiers()
        assert len(modifiers) == 1
        assert modifiers[0].kind == ModifierKind.CHARGEABLE
        assert draft.total() == 49.5

    def test_inclusive_tax_shown_but_not_added(self):
        set_modifier_chain(_inclusive_chain())
        shirt = _add_product(price=50.0)
        draft = _draft((shirt, 2))
        assert draft.modifiers()[0].amount == pytest.approx(11.11)
        assert draft.total() == 100.0

    def test_total_outstanding_before_commit_is_total(self):
        set_modifier_chain(ModifierChain([FlatShippingModifier(default_charge=5.0)]))
        shirt = _add_product(price=10.0)
        draft = _draft((shirt, 1))
        assert draft.total_outstanding() == 15.0


class TestCommittedReadModel:
    def test_committed_draft_reads_frozen_amounts(self):
        set_modifier_chain(ModifierChain([FlatShippingModifier(default_charge=5.0)]))
        shirt = _add_product(price=10.0)
        draft = _draft((shirt, 2))
        OrderProcessor(draft).commit(MemberProfile(email="ada@example.com", country="NZ"))

        current_domain.process(ChangeProductPrice(product_id=shirt, new_price=99.0), asynchronous=False)
        set_modifier_chain(ModifierChain())

        assert draft.subtotal() == 20.0
        assert draft.total() == 25.0
        assert len(draft.items()) == 1
        assert draft.modifiers()[0].amount == 5.0
