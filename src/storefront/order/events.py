"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was committed into an order with frozen line and modifier amounts."""

    __version__ = 1

    order_id = Identifier(required=True)
    member_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of {product_id, kind, version, quantity, unit_amount, amount}
    subtotal = Float(required=True)
    total = Float(required=True)
    currency = String(max_length=3)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    method = String(required=True, max_length=50)
    status = String(required=True, max_length=20)
    reference = String(max_length=255)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True, max_length=30)
    new_status = String(required=True, max_length=30)
    author_id = Identifier()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    cancelled_by = String(required=True, max_length=20)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReceiptIssued:
    """The customer should be sent a receipt for a paid order."""

    __version__ = 1

    order_id = Identifier(required=True)
    member_id = Identifier(required=True)
    total = Float(required=True)
    currency = String(max_length=3)
    sent_to_customer = Boolean(default=True)
    item_count = Integer(required=True)
