"""Application tests for paying for a placed order."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.cart.store import CartStore
from storefront.catalogue.management import AddProduct
from storefront.catalogue.product import Product
from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.exceptions import InvalidPaymentMethodError, PaymentError
from storefront.members.directory import MemberProfile
from storefront.modifiers.chain import ModifierChain, set_modifier_chain
from storefront.modifiers.discount import FlatDiscountModifier
from storefront.modifiers.shipping import FlatShippingModifier
from storefront.order.checkout import checkout
from storefront.order.draft import OrderDraft
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.payment import ProcessPayment, pay_for_order, resume_payment
from storefront.order.processor import OrderProcessor
from storefront.payments.gateway import set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import GatewayStatus

PROFILE = MemberProfile(email="ada@example.com", first_name="Ada", country="NZ")


@pytest.fixture()
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    return fake


def _cart(price=50.0, quantity=2):
    product_id = current_domain.process(
        AddProduct(title="Linen Shirt", price=price, stock_quantity=10),
        asynchronous=False,
    )
    cart = CartStore("sess-001")
    cart.add_line(ProductRef(kind=PurchasableKind.PRODUCT, id=product_id), quantity)
    return cart


def _place_order(price=50.0, quantity=2):
    set_modifier_chain(ModifierChain([FlatShippingModifier(default_charge=10.0)]))
    result = OrderProcessor(OrderDraft(_cart(price, quantity), country="NZ")).commit(PROFILE)
    return result.order_id


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestSuccessfulPayment:
    def test_full_payment_marks_order_paid(self, gateway):
        order_id = _place_order()
        outcome = pay_for_order(order_id, "card")

        assert outcome.status == GatewayStatus.SUCCESS
        order = _order(order_id)
        assert order.status == OrderStatus.PAID.value
        assert order.total_outstanding() == 0
        assert gateway.calls[0]["amount"] == 110.0

    def test_receipt_logged_for_customer(self, gateway):
        order_id = _place_order()
        pay_for_order(order_id, "card")
        logs = _order(order_id).status_logs
        assert any(log.title == "Order receipt" and log.sent_to_customer for log in logs)

    def test_partial_payment(self, gateway):
        order_id = _place_order()
        pay_for_order(order_id, "card", amount=60.0)

        order = _order(order_id)
        assert order.total_outstanding() == 50.0
        assert order.status == OrderStatus.UNPAID.value

        pay_for_order(order_id, "invoice")
        assert _order(order_id).is_paid()

    def test_overpayment_is_capped_at_outstanding(self, gateway):
        order_id = _place_order()
        pay_for_order(order_id, "card", amount=500.0)
        assert _order(order_id).total_paid() == 110.0


class TestFailedPayment:
    def test_declined_payment_raises_after_recording(self, gateway):
        gateway.configure(outcome="failure", failure_reason="Insufficient funds")
        order_id = _place_order()

        with pytest.raises(PaymentError) as exc:
            pay_for_order(order_id, "card")

        assert "Insufficient funds" in str(exc.value)
        order = _order(order_id)
        assert order.status == OrderStatus.UNPAID.value
        assert len(order.payments) == 1
        assert order.payments[0].status == PaymentStatus.FAILURE.value
        assert order.total_outstanding() == 110.0

    def test_unsupported_method_rejected(self, gateway):
        order_id = _place_order()
        with pytest.raises(InvalidPaymentMethodError):
            pay_for_order(order_id, "barter")
        assert gateway.calls == []
        assert len(_order(order_id).payments) == 0

    def test_cancelled_order_cannot_be_paid(self, gateway):
        order_id = _place_order()
        order = _order(order_id)
        order.cancel_by_member(order.member_id)
        current_domain.repository_for(Order).add(order)

        with pytest.raises(ValidationError):
            current_domain.process(ProcessPayment(order_id=order_id, method="card"), asynchronous=False)


class TestProcessingPayment:
    def test_processing_returns_redirect(self, gateway):
        gateway.configure(outcome="processing")
        order_id = _place_order()

        outcome = pay_for_order(order_id, "card")

        assert outcome.is_processing
        assert outcome.redirect.startswith("https://")
        order = _order(order_id)
        assert order.payments[0].status == PaymentStatus.PENDING.value
        assert order.total_outstanding() == 110.0

    def test_resume_settles_pending_payment(self, gateway):
        gateway.configure(outcome="processing", confirm_outcome="success")
        order_id = _place_order()
        outcome = pay_for_order(order_id, "card")

        resumed = resume_payment(order_id, outcome.payment_id)

        assert resumed.status == GatewayStatus.SUCCESS
        assert _order(order_id).is_paid()

    def test_resume_with_failure_raises(self, gateway):
        gateway.configure(outcome="processing", confirm_outcome="failure")
        order_id = _place_order()
        outcome = pay_for_order(order_id, "card")

        with pytest.raises(PaymentError):
            resume_payment(order_id, outcome.payment_id)

        order = _order(order_id)
        assert order.payments[0].status == PaymentStatus.FAILURE.value
        assert not order.is_paid()

    def test_second_payment_rejected_while_one_is_pending(self, gateway):
        gateway.configure(outcome="processing", confirm_outcome="success")
        order_id = _place_order()
        first = pay_for_order(order_id, "card")

        with pytest.raises(ValidationError) as exc:
            pay_for_order(order_id, "card")

        assert "payments" in exc.value.messages
        assert len(gateway.calls) == 1
        assert len(_order(order_id).payments) == 1

        resume_payment(order_id, first.payment_id)
        order = _order(order_id)
        assert order.total_paid() == 110.0
        assert order.total_outstanding() == 0

    def test_new_payment_allowed_once_pending_one_fails(self, gateway):
        gateway.configure(outcome="processing", confirm_outcome="failure")
        order_id = _place_order()
        first = pay_for_order(order_id, "card")
        with pytest.raises(PaymentError):
            resume_payment(order_id, first.payment_id)

        gateway.configure(outcome="success")
        pay_for_order(order_id, "card")

        order = _order(order_id)
        assert order.is_paid()
        assert order.total_paid() == 110.0


class TestCheckout:
    def test_checkout_commits_and_pays(self, gateway):
        outcome = checkout(_cart(), PROFILE, "card")
        assert outcome.payment.status == GatewayStatus.SUCCESS
        assert _order(outcome.order_id).is_paid()
        assert not outcome.awaiting_payment

    def test_checkout_suspends_on_processing_payment(self, gateway):
        gateway.configure(outcome="processing")
        outcome = checkout(_cart(), PROFILE, "card")
        assert outcome.awaiting_payment
        assert not _order(outcome.order_id).is_paid()

    def test_unsupported_method_rejected_before_commit(self, gateway):
        cart = _cart()
        product_id = cart.lines()[0].product_id

        with pytest.raises(InvalidPaymentMethodError):
            checkout(cart, PROFILE, "barter")

        assert current_domain.repository_for(Order)._dao.query.all().items == []
        assert current_domain.repository_for(Product).get(product_id).stock_quantity == 10
        assert [(line.product_id, line.quantity) for line in CartStore("sess-001").lines()] == [(product_id, 2)]
        assert gateway.calls == []

    def test_zero_total_order_needs_no_payment(self, gateway):
        set_modifier_chain(ModifierChain([FlatDiscountModifier(100.0)]))
        outcome = checkout(_cart(price=20.0, quantity=1), PROFILE, "barter")

        assert gateway.calls == []
        assert _order(outcome.order_id).is_paid()
