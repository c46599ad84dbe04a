"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. The outcome of the next
payments is configured at runtime: immediate success, immediate failure, or a
"processing" result that hands back a redirect and settles later through
``confirm_payment``.
"""

from uuid import uuid4

from storefront.payments.gateway.port import GatewayStatus, PaymentGateway, PaymentResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    supported_methods = ("card", "invoice")

    def __init__(self) -> None:
        self.outcome: GatewayStatus = GatewayStatus.SUCCESS
        self.confirm_outcome: GatewayStatus = GatewayStatus.SUCCESS
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(
        self,
        outcome: str = "success",
        confirm_outcome: str = "success",
        failure_reason: str = "Card declined",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.outcome = GatewayStatus(outcome)
        self.confirm_outcome = GatewayStatus(confirm_outcome)
        self.failure_reason = failure_reason

    def process_payment(self, amount: float, currency: str, method: str, order_reference: str) -> PaymentResult:
        self.calls.append(
            {
                "method": "process_payment",
                "amount": amount,
                "currency": currency,
                "payment_method": method,
                "order_reference": order_reference,
            }
        )
        reference = f"fake_txn_{uuid4().hex[:12]}"
        return self._result(self.outcome, reference)

    def confirm_payment(self, reference: str) -> PaymentResult:
        self.calls.append({"method": "confirm_payment", "reference": reference})
        return self._result(self.confirm_outcome, reference)

    def _result(self, status: GatewayStatus, reference: str) -> PaymentResult:
        if status is GatewayStatus.SUCCESS:
            return PaymentResult(status=status, reference=reference, message="Payment successful")
        if status is GatewayStatus.PROCESSING:
            return PaymentResult(
                status=status,
                reference=reference,
                value=f"https://payments.invalid/authorise/{reference}",
                message="Awaiting authorisation",
            )
        return PaymentResult(status=status, reference=reference, message=self.failure_reason)
