"""Order placement — the transactional half of a checkout.

``PlaceOrder`` carries the cart lines that passed the pre-commit stock check.
Its handler runs inside the unit of work every command handler gets, so the
member record, the order with its lines and modifiers, the stock deductions
and the cart cleanup are written together or not at all.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.store import CartStore
from storefront.catalogue.catalogue import Catalogue
from storefront.catalogue.purchasable import ProductRef
from storefront.domain import storefront
from storefront.exceptions import NoPurchasableItemsError
from storefront.members.directory import MemberDirectory, MemberProfile
from storefront.modifiers.chain import PricingContext, get_modifier_chain
from storefront.order.order import Order, ShippingDetails

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    session_id = String(required=True, max_length=255)
    lines = Text(required=True)  # JSON: list of {product_id, kind, quantity}
    profile = Text(required=True)  # JSON: MemberProfile fields
    member_id = Identifier()
    customer_country = String(max_length=2)  # Country the draft was priced for
    shipping_country = String(max_length=2)
    currency = String(max_length=3, default="USD")


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = json.loads(command.lines)
        profile = MemberProfile.from_dict(json.loads(command.profile))
        catalogue = Catalogue()

        member_id = MemberDirectory().resolve_or_create(profile, member_id=command.member_id)

        shipping_country = command.shipping_country or profile.country
        order = Order.create(
            member_id=member_id,
            shipping=ShippingDetails(
                name=profile.full_name or None,
                address=profile.address,
                city=profile.city,
                country=shipping_country,
            ),
            currency=command.currency or "USD",
        )

        committed, rejected = [], []
        for line in lines:
            ref = ProductRef.of(line["kind"], line["product_id"])
            quantity = line["quantity"]

            # Stock may have moved since the pre-commit check
            try:
                item = catalogue.purchasable(ref)
            except ObjectNotFoundError:
                rejected.append({**line, "reason": "not_found"})
                continue
            if not item.can_purchase(quantity):
                logger.warning("line_rejected_at_commit", product=str(ref), quantity=quantity)
                rejected.append({**line, "reason": "insufficient_stock"})
                continue

            order.add_line(item.create_line(quantity))
            catalogue.deduct(ref, quantity)
            committed.append(ref)

        if not committed:
            raise NoPurchasableItemsError("Stock for every item ran out while the order was being placed")

        # Priced with the same context as the draft
        context = PricingContext(
            subtotal=order.subtotal(),
            customer_country=command.customer_country,
            shipping_country=command.shipping_country,
        )
        for result in get_modifier_chain().evaluate(context):
            order.add_modifier(result)

        order.mark_placed()
        current_domain.repository_for(Order).add(order)

        CartStore(command.session_id).remove_lines(committed)

        return {"order_id": str(order.id), "rejected": rejected}
