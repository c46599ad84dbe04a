"""Checkout error vocabulary.

Everything builds on ``protean.exceptions`` so callers can keep catching the
framework's ``ValidationError`` / ``InvalidOperationError`` while tests and
adapters still distinguish the individual failure modes. Missing records use
protean's own ``ObjectNotFoundError``.
"""

from protean.exceptions import InvalidOperationError, ProteanException, ValidationError


class EmptyOrderError(ValidationError):
    """The cart being committed has no lines at all."""

    def __init__(self, message="Cannot place an order from an empty cart"):
        super().__init__({"cart": [message]})


class NoPurchasableItemsError(ValidationError):
    """Every line in the cart failed the stock check."""

    def __init__(self, message="None of the items in the cart can be purchased"):
        super().__init__({"cart": [message]})


class InvalidPaymentMethodError(ValidationError):
    def __init__(self, method):
        super().__init__({"method": [f"Payment method '{method}' is not supported"]})


class MemberConflictError(ValidationError):
    """A guest checkout tried to use an email that belongs to a registered member."""

    def __init__(self, email):
        super().__init__({"email": [f"A member with email '{email}' already exists. Please log in to continue"]})


class ConflictError(InvalidOperationError):
    """The operation clashes with the current state of the target."""


class AlreadyProcessedError(ConflictError):
    """A draft order that was already committed was committed again."""


class PaymentError(ProteanException):
    """The payment collaborator declined or failed a payment."""

    def __init__(self, order_id, message):
        self.order_id = order_id
        self.message = message
        super().__init__(f"Payment for order {order_id} failed: {message}")


class PersistenceError(ProteanException):
    """A transactional write failed; nothing from the unit of work was kept."""
