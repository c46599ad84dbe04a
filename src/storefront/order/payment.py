"""Order payment — commands, handler and the checkout-facing helper.

A payment attempt always leaves a ``Payment`` on the order, successful or
not, so declined attempts stay visible. A "processing" outcome records a
pending payment and hands back the provider's redirect; ``ConfirmPayment``
settles it later for the same order.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.exceptions import InvalidPaymentMethodError, PaymentError
from storefront.order.order import Order, PaymentStatus
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import GatewayStatus

logger = structlog.get_logger(__name__)

_PAYMENT_STATUS_FOR = {
    GatewayStatus.SUCCESS: PaymentStatus.SUCCESS,
    GatewayStatus.PROCESSING: PaymentStatus.PENDING,
    GatewayStatus.FAILURE: PaymentStatus.FAILURE,
}


@dataclass(frozen=True)
class PaymentOutcome:
    order_id: str
    status: GatewayStatus
    payment_id: str | None = None
    redirect: str | None = None
    message: str | None = None

    @property
    def is_processing(self) -> bool:
        return self.status is GatewayStatus.PROCESSING


@storefront.command(part_of="Order")
class ProcessPayment:
    order_id = Identifier(required=True)
    method = String(required=True, max_length=50)
    amount = Float(min_value=0.01)  # Defaults to the outstanding balance


@storefront.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_cancelled():
            raise ValidationError({"status": ["Cannot take payment for a cancelled order"]})
        if order.pending_payment() is not None:
            # Confirm or fail the open payment first
            raise ValidationError({"payments": ["A payment for this order is still being processed"]})

        outstanding = order.total_outstanding()
        if outstanding <= 0:
            # Nothing owed, so no payment is required
            order.settle_without_payment()
            repo.add(order)
            return PaymentOutcome(order_id=str(order.id), status=GatewayStatus.SUCCESS, message="No payment required")

        gateway = get_gateway()
        if not gateway.supports(command.method):
            raise InvalidPaymentMethodError(command.method)

        amount = min(command.amount or outstanding, outstanding)
        result = gateway.process_payment(
            amount=amount,
            currency=order.currency,
            method=command.method,
            order_reference=str(order.id),
        )
        payment = order.record_payment(
            amount=amount,
            method=command.method,
            status=_PAYMENT_STATUS_FOR[result.status],
            reference=result.reference,
            message=result.message,
        )
        repo.add(order)

        logger.info("payment_processed", order_id=str(order.id), status=result.status.value, amount=amount)
        return PaymentOutcome(
            order_id=str(order.id),
            status=result.status,
            payment_id=str(payment.id),
            redirect=result.value,
            message=result.message,
        )

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        payment = next((p for p in order.payments if str(p.id) == str(command.payment_id)), None)
        if payment is None:
            raise ValidationError({"payment_id": ["Payment not found on this order"]})

        result = get_gateway().confirm_payment(payment.reference)
        if result.status is GatewayStatus.PROCESSING:
            return PaymentOutcome(
                order_id=str(order.id),
                status=result.status,
                payment_id=str(payment.id),
                redirect=result.value,
                message=result.message,
            )

        order.resolve_payment(payment.id, success=result.success, reference=result.reference, message=result.message)
        repo.add(order)

        logger.info("payment_confirmed", order_id=str(order.id), status=result.status.value)
        return PaymentOutcome(
            order_id=str(order.id),
            status=result.status,
            payment_id=str(payment.id),
            message=result.message,
        )


def _raise_on_failure(outcome):
    if outcome.status is GatewayStatus.FAILURE:
        raise PaymentError(outcome.order_id, outcome.message or "Payment declined")
    return outcome


def pay_for_order(order_id, method, amount=None):
    """Take a payment for a placed order.

    The attempt is recorded on the order before a declined payment is turned
    into a ``PaymentError``; the order itself is never rolled back.
    """
    outcome = current_domain.process(
        ProcessPayment(order_id=order_id, method=method, amount=amount),
        asynchronous=False,
    )
    return _raise_on_failure(outcome)


def resume_payment(order_id, payment_id):
    """Resume a checkout that was suspended on a processing payment."""
    outcome = current_domain.process(
        ConfirmPayment(order_id=order_id, payment_id=payment_id),
        asynchronous=False,
    )
    return _raise_on_failure(outcome)
