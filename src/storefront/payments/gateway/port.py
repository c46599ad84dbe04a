"""Payment gateway port (abstract interface).

The checkout only consumes the outcome of a payment attempt. How a provider
talks to card networks, banks or wallets stays behind an adapter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class GatewayStatus(Enum):
    SUCCESS = "success"
    PROCESSING = "processing"
    FAILURE = "failure"


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a payment attempt.

    ``value`` is the redirect target when the status is PROCESSING: the caller
    sends the customer there and resumes the order once the provider reports
    back.
    """

    status: GatewayStatus
    reference: str | None = None
    value: str | None = None
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.status is GatewayStatus.SUCCESS


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    supported_methods: tuple[str, ...] = ()

    def supports(self, method: str) -> bool:
        return method in self.supported_methods

    @abstractmethod
    def process_payment(self, amount: float, currency: str, method: str, order_reference: str) -> PaymentResult:
        """Take a payment for an order."""
        ...

    @abstractmethod
    def confirm_payment(self, reference: str) -> PaymentResult:
        """Ask for the final outcome of a payment that was left processing."""
        ...
