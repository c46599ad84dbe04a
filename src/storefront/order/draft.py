"""Draft order — the order as the customer sees it before checkout.

A draft has no identity and stores nothing of its own. Its items come from the
cart store priced at the live catalogue, and its modifiers come from the
configured modifier chain. Once committed it delegates everything to the
persisted ``Order`` and its frozen amounts.
"""

from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.catalogue import Catalogue
from storefront.modifiers.chain import PricingContext, fold, get_modifier_chain
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


class DraftState(Enum):
    DRAFT = "Draft"
    COMMITTING = "Committing"
    COMMITTED = "Committed"


class OrderDraft:
    def __init__(self, cart, country=None, shipping_country=None, catalogue=None):
        self.cart = cart
        self.country = country
        self.shipping_country = shipping_country
        self.catalogue = catalogue or Catalogue()
        self.state = DraftState.DRAFT
        self._order_id = None

    def __repr__(self):
        return f"OrderDraft(session_id={self.cart.session_id!r}, state={self.state.value})"

    @property
    def id(self):
        return self._order_id

    @property
    def order(self):
        """The committed order, reloaded so payments taken since the commit are visible."""
        if self._order_id is None:
            return None
        return current_domain.repository_for(Order).get(self._order_id)

    @property
    def is_committed(self):
        return self.state == DraftState.COMMITTED

    # -------------------------------------------------------------------
    # State changes, driven by the order processor
    # -------------------------------------------------------------------
    def begin_commit(self):
        self.state = DraftState.COMMITTING

    def abort_commit(self):
        self.state = DraftState.DRAFT

    def complete_commit(self, order_id):
        self._order_id = str(order_id)
        self.state = DraftState.COMMITTED

    # -------------------------------------------------------------------
    # Read model
    # -------------------------------------------------------------------
    def pricing_context(self):
        return PricingContext(
            subtotal=self.subtotal(),
            customer_country=self.country,
            shipping_country=self.shipping_country,
        )

    def items(self):
        """Order lines: frozen when committed, otherwise live snapshots of the cart."""
        if self.is_committed:
            return self.order.items()

        snapshots = []
        for line in self.cart.lines():
            try:
                snapshots.append(self.catalogue.purchasable(line.ref).create_line(line.quantity))
            except ObjectNotFoundError:
                logger.debug("draft_line_unresolvable", product=str(line.ref))
        return snapshots

    def modifiers(self):
        if self.is_committed:
            return self.order.modifiers()
        return get_modifier_chain().evaluate(self.pricing_context())

    def subtotal(self):
        if self.is_committed:
            return self.order.subtotal()
        return round(sum(item.amount for item in self.items()), 2)

    def total(self):
        if self.is_committed:
            return self.order.total()
        context = self.pricing_context()
        return fold(context.subtotal, get_modifier_chain().evaluate(context))

    def total_outstanding(self):
        if self.is_committed:
            return self.order.total_outstanding()
        return self.total()
