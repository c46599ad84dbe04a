"""Order aggregate — the durable record a committed cart becomes.

An order owns its lines, its modifier amounts, its payments and its status log.
Line and modifier amounts are frozen when the order is placed and never
recomputed afterwards, so catalogue repricing or a reconfigured modifier chain
cannot change what the customer owes.

State Machine (8 states):
    UNPAID → PAID → PROCESSING → SENT → COMPLETE
    UNPAID ⇄ QUERY
    UNPAID/QUERY → CUSTOMER_CANCELLED (owner, while unpaid)
    any non-terminal state → ADMIN_CANCELLED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.catalogue.purchasable import ProductRef, PurchasableKind
from storefront.domain import storefront
from storefront.modifiers.chain import ModifierKind, fold
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentRecorded,
    ReceiptIssued,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    UNPAID = "Unpaid"
    QUERY = "Query"
    PAID = "Paid"
    PROCESSING = "Processing"
    SENT = "Sent"
    COMPLETE = "Complete"
    ADMIN_CANCELLED = "AdminCancelled"
    CUSTOMER_CANCELLED = "CustomerCancelled"


class PaymentStatus(Enum):
    PENDING = "Pending"
    SUCCESS = "Success"
    FAILURE = "Failure"


class CancellationActor(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"


_VALID_TRANSITIONS = {
    OrderStatus.UNPAID: {
        OrderStatus.QUERY,
        OrderStatus.PAID,
        OrderStatus.CUSTOMER_CANCELLED,
        OrderStatus.ADMIN_CANCELLED,
    },
    OrderStatus.QUERY: {
        OrderStatus.UNPAID,
        OrderStatus.PAID,
        OrderStatus.CUSTOMER_CANCELLED,
        OrderStatus.ADMIN_CANCELLED,
    },
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.SENT, OrderStatus.ADMIN_CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SENT, OrderStatus.ADMIN_CANCELLED},
    OrderStatus.SENT: {OrderStatus.COMPLETE, OrderStatus.ADMIN_CANCELLED},
    OrderStatus.COMPLETE: set(),  # Terminal
    OrderStatus.ADMIN_CANCELLED: set(),  # Terminal
    OrderStatus.CUSTOMER_CANCELLED: set(),  # Terminal
}

_PAID_STATES = {
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SENT,
    OrderStatus.COMPLETE,
}

_CANCELLED_STATES = {OrderStatus.ADMIN_CANCELLED, OrderStatus.CUSTOMER_CANCELLED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingDetails:
    """Where the order goes, captured at checkout and not tied to later member edits."""

    name = String(max_length=200)
    address = String(max_length=255)
    city = String(max_length=100)
    country = String(max_length=2)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    """A committed quantity of one purchasable at the price of a pinned catalogue version."""

    product_id = Identifier(required=True)
    kind = String(required=True, choices=PurchasableKind)
    version = Integer(required=True, min_value=1)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_amount = Float(required=True, min_value=0.0)
    amount = Float(required=True, min_value=0.0)
    position = Integer(required=True, min_value=0)

    @property
    def ref(self):
        return ProductRef.of(self.kind, self.product_id)


@storefront.entity(part_of="Order")
class OrderModifier:
    """A modifier amount as evaluated when the order was placed."""

    name = String(required=True, max_length=100)
    kind = String(required=True, choices=ModifierKind)
    amount = Float(required=True, min_value=0.0)
    label = String(max_length=255)
    position = Integer(required=True, min_value=0)
    country = String(max_length=2)
    rate = Float()
    tax_type = String(max_length=20)


@storefront.entity(part_of="Order")
class Payment:
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    method = String(required=True, max_length=50)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    reference = String(max_length=255)
    message = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @property
    def success(self):
        return self.status == PaymentStatus.SUCCESS.value


@storefront.entity(part_of="Order")
class OrderStatusLog:
    title = String(required=True, max_length=100)
    note = Text()
    sent_to_customer = Boolean(default=False)
    author_id = Identifier()
    logged_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    member_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.UNPAID.value)
    shipping = ValueObject(ShippingDetails)
    currency = String(max_length=3, default="USD")
    lines = HasMany(OrderLine)
    adjustments = HasMany(OrderModifier)
    payments = HasMany(Payment)
    status_logs = HasMany(OrderStatusLog)
    placed_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def line_amounts_must_match_quantities(self):
        for line in self.lines or []:
            if round(line.quantity * line.unit_amount, 2) != line.amount:
                raise ValidationError({"lines": [f"Line amount for {line.product_id} does not match its quantity"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, member_id, shipping=None, currency="USD"):
        """Start an order for ``member_id``. Lines and modifiers are added before ``mark_placed``."""
        now = datetime.now(UTC)
        return cls(
            member_id=member_id,
            status=OrderStatus.UNPAID.value,
            shipping=shipping,
            currency=currency,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Placement (append-only until placed)
    # -------------------------------------------------------------------
    def _assert_not_placed(self):
        if self.placed_at is not None:
            raise ValidationError({"order": ["A placed order cannot be changed"]})

    def add_line(self, snapshot):
        """Append an order line frozen from a ``LineSnapshot``."""
        self._assert_not_placed()
        line = OrderLine(
            product_id=snapshot.product_id,
            kind=snapshot.kind.value,
            version=snapshot.version,
            title=snapshot.title,
            quantity=snapshot.quantity,
            unit_amount=snapshot.unit_amount,
            amount=snapshot.amount,
            position=len(self.lines),
        )
        self.add_lines(line)
        return line

    def add_modifier(self, result):
        """Append a modifier frozen from a ``ModifierResult``."""
        self._assert_not_placed()
        modifier = OrderModifier(
            name=result.name,
            kind=result.kind.value,
            amount=result.amount,
            label=result.label,
            position=len(self.adjustments),
            country=result.details.get("country"),
            rate=result.details.get("rate"),
            tax_type=result.details.get("tax_type"),
        )
        self.add_adjustments(modifier)
        return modifier

    def mark_placed(self):
        self._assert_not_placed()
        if not self.lines:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        self.placed_at = now
        self.updated_at = now

        lines_data = [
            {
                "product_id": str(line.product_id),
                "kind": line.kind,
                "version": line.version,
                "quantity": line.quantity,
                "unit_amount": line.unit_amount,
                "amount": line.amount,
            }
            for line in self.items()
        ]
        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                member_id=str(self.member_id),
                lines=json.dumps(lines_data),
                subtotal=self.subtotal(),
                total=self.total(),
                currency=self.currency,
                placed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Read model
    # -------------------------------------------------------------------
    def items(self):
        return sorted(self.lines, key=lambda line: line.position)

    def modifiers(self):
        return sorted(self.adjustments, key=lambda modifier: modifier.position)

    def item_count(self):
        return sum(line.quantity for line in self.lines)

    def subtotal(self):
        return round(sum(line.amount for line in self.lines), 2)

    def total(self):
        return fold(self.subtotal(), self.modifiers())

    def total_paid(self):
        return round(sum(payment.amount for payment in self.payments if payment.success), 2)

    def total_outstanding(self):
        return round(self.total() - self.total_paid(), 2)

    def pending_payment(self):
        """The payment still waiting on the provider, if any."""
        return next((p for p in self.payments if p.status == PaymentStatus.PENDING.value), None)

    # -------------------------------------------------------------------
    # Status predicates
    # -------------------------------------------------------------------
    def is_paid(self):
        return OrderStatus(self.status) in _PAID_STATES

    def is_processing(self):
        return OrderStatus(self.status) == OrderStatus.PROCESSING

    def is_sent(self):
        return OrderStatus(self.status) in {OrderStatus.SENT, OrderStatus.COMPLETE}

    def is_complete(self):
        return OrderStatus(self.status) == OrderStatus.COMPLETE

    def is_cancelled(self):
        return OrderStatus(self.status) in _CANCELLED_STATES

    def can_cancel(self):
        return not self.is_paid() and not self.is_cancelled()

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _transition(self, target_status, author_id=None, note=None, sent_to_customer=False):
        self._assert_can_transition(target_status)
        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        self.log_status(target_status.value, note=note, author_id=author_id, sent_to_customer=sent_to_customer)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                author_id=str(author_id) if author_id else None,
                changed_at=now,
            )
        )

    def log_status(self, title, note=None, author_id=None, sent_to_customer=False):
        log = OrderStatusLog(
            title=title,
            note=note,
            author_id=author_id,
            sent_to_customer=sent_to_customer,
            logged_at=datetime.now(UTC),
        )
        self.add_status_logs(log)
        return log

    def change_status(self, new_status, author_id=None, note=None):
        """Administrator status change, e.g. Paid → Processing → Sent."""
        target = OrderStatus(new_status)
        if target in _CANCELLED_STATES:
            raise ValidationError({"status": ["Use cancellation to cancel an order"]})
        self._transition(target, author_id=author_id, note=note)

    def cancel_by_member(self, member_id, reason=None):
        """Cancel on behalf of the owner. Only possible while the order is unpaid."""
        if str(member_id) != str(self.member_id):
            raise ValidationError({"member_id": ["Only the member who placed the order can cancel it"]})
        if not self.can_cancel():
            raise ValidationError({"status": ["Paid orders can only be cancelled by an administrator"]})
        self._cancel(OrderStatus.CUSTOMER_CANCELLED, CancellationActor.CUSTOMER, member_id, reason)

    def cancel_by_admin(self, admin_id, reason=None):
        self._cancel(OrderStatus.ADMIN_CANCELLED, CancellationActor.ADMIN, admin_id, reason)

    def _cancel(self, target_status, actor, author_id, reason):
        self._transition(target_status, author_id=author_id, note=reason, sent_to_customer=True)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                cancelled_by=actor.value,
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def record_payment(self, amount, method, status, reference=None, message=None):
        """Append a payment. A successful payment that settles the order marks it paid."""
        if self.placed_at is None:
            raise ValidationError({"order": ["Payments can only be taken for placed orders"]})
        if self.is_cancelled():
            raise ValidationError({"status": ["Cannot take payment for a cancelled order"]})
        if self.pending_payment() is not None:
            raise ValidationError({"payments": ["A payment for this order is still being processed"]})

        now = datetime.now(UTC)
        payment = Payment(
            amount=round(amount, 2),
            currency=self.currency,
            method=method,
            status=PaymentStatus(status).value,
            reference=reference,
            message=message,
            created_at=now,
            updated_at=now,
        )
        self.add_payments(payment)
        self.updated_at = now
        self._raise_payment_recorded(payment)

        if payment.success:
            self._settle_if_paid()
        return payment

    def resolve_payment(self, payment_id, success, reference=None, message=None):
        """Settle a pending payment exactly once."""
        payment = next((p for p in self.payments if str(p.id) == str(payment_id)), None)
        if payment is None:
            raise ValidationError({"payment_id": ["Payment not found on this order"]})
        if payment.status != PaymentStatus.PENDING.value:
            raise ValidationError({"payment_id": [f"Payment is already {payment.status}"]})

        payment.status = PaymentStatus.SUCCESS.value if success else PaymentStatus.FAILURE.value
        payment.reference = reference or payment.reference
        payment.message = message
        payment.updated_at = datetime.now(UTC)
        self.updated_at = payment.updated_at
        self._raise_payment_recorded(payment)

        if payment.success:
            self._settle_if_paid()
        return payment

    def settle_without_payment(self):
        """Mark a zero-total order as paid; nothing is owed so nothing is charged."""
        if self.total_outstanding() > 0:
            raise ValidationError({"payments": ["This order still has an outstanding balance"]})
        self._settle_if_paid()

    def _settle_if_paid(self):
        if self.total_outstanding() <= 0 and not self.is_paid():
            self._transition(OrderStatus.PAID, note="Payment received")
            self.issue_receipt()

    def issue_receipt(self):
        self.log_status("Order receipt", note="Receipt sent to customer", sent_to_customer=True)
        self.raise_(
            ReceiptIssued(
                order_id=str(self.id),
                member_id=str(self.member_id),
                total=self.total(),
                currency=self.currency,
                item_count=self.item_count(),
            )
        )

    def _raise_payment_recorded(self, payment):
        self.raise_(
            PaymentRecorded(
                order_id=str(self.id),
                payment_id=str(payment.id),
                amount=payment.amount,
                method=payment.method,
                status=payment.status,
                reference=payment.reference,
            )
        )
