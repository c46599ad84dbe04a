"""Checkout flow — commit the cart, then take payment when one is required.

This is the sequence the storefront runs when a customer submits the checkout
form. Payment is only requested for a positive total. A processing payment
suspends the checkout: the caller redirects to ``payment.redirect`` and later
calls ``resume_payment`` with the same order id.
"""

from dataclasses import dataclass

import structlog

from storefront.exceptions import InvalidPaymentMethodError
from storefront.order.draft import OrderDraft
from storefront.order.payment import PaymentOutcome, pay_for_order
from storefront.order.processor import CommitResult, OrderProcessor
from storefront.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutOutcome:
    commit: CommitResult
    payment: PaymentOutcome | None = None

    @property
    def order_id(self) -> str:
        return self.commit.order_id

    @property
    def awaiting_payment(self) -> bool:
        return self.payment is not None and self.payment.is_processing


def checkout(cart, profile, payment_method, member_id=None, shipping_country=None, currency="USD"):
    """Place the order held in ``cart`` and pay for it.

    Commit failures propagate untouched. An unsupported payment method is
    rejected before anything is written. A declined payment raises
    ``PaymentError`` after the order has been placed.
    """
    draft = OrderDraft(cart, country=profile.country, shipping_country=shipping_country)
    if draft.total() > 0 and not get_gateway().supports(payment_method):
        raise InvalidPaymentMethodError(payment_method)

    result = OrderProcessor(draft).commit(profile, member_id=member_id, currency=currency)

    # A zero total is settled without contacting the gateway
    payment = pay_for_order(result.order_id, payment_method)
    logger.info("checkout_completed", order_id=result.order_id, payment_status=payment.status.value)
    return CheckoutOutcome(commit=result, payment=payment)
