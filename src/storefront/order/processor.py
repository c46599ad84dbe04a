"""Order processor — commits a draft order.

The commit runs in two halves. The checks (draft state, empty cart, stock)
only read, so a failure there leaves nothing behind. The writes are delegated
to ``PlaceOrder``, whose handler runs in a single unit of work; any error it
raises rolls every write back and the draft returns to the Draft state.

Lines that fail the stock check are not an error. They are reported on the
``CommitResult`` and stay in the cart so the customer can adjust them.
"""

import json
from dataclasses import dataclass, field

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.exceptions import (
    AlreadyProcessedError,
    EmptyOrderError,
    NoPurchasableItemsError,
    PersistenceError,
)
from storefront.order.draft import DraftState
from storefront.order.placement import PlaceOrder
from storefront.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RejectedLine:
    """A cart line left out of the order because it could not be purchased."""

    product_id: str
    kind: str
    quantity: int
    reason: str


@dataclass
class CommitResult:
    order: object
    rejected_lines: list[RejectedLine] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.order is not None

    @property
    def order_id(self) -> str:
        return str(self.order.id)

    @property
    def item_count(self) -> int:
        return self.order.item_count()

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected_lines)


class OrderProcessor:
    def __init__(self, draft) -> None:
        self.draft = draft

    def commit(self, profile, member_id=None, currency="USD") -> CommitResult:
        """Turn the draft's cart into a placed order for the member described by ``profile``."""
        draft = self.draft
        if draft.state != DraftState.DRAFT or draft.id is not None:
            raise AlreadyProcessedError(f"Order {draft.id} has already been placed")

        add_context(session_id=draft.cart.session_id)
        try:
            lines = draft.cart.lines()
            if not lines:
                raise EmptyOrderError()

            logger.info("order_commit_started", line_count=len(lines))
            purchasable, rejected = self._partition(lines)
            if not purchasable:
                raise NoPurchasableItemsError()

            draft.begin_commit()
            try:
                outcome = current_domain.process(
                    PlaceOrder(
                        session_id=draft.cart.session_id,
                        lines=json.dumps(purchasable),
                        profile=json.dumps(profile.to_dict()),
                        member_id=member_id,
                        customer_country=draft.country,
                        shipping_country=draft.shipping_country,
                        currency=currency,
                    ),
                    asynchronous=False,
                )
            except (ValidationError, InvalidOperationError, ObjectNotFoundError):
                draft.abort_commit()
                raise
            except Exception as exc:
                draft.abort_commit()
                logger.exception("order_commit_failed")
                raise PersistenceError(f"Order could not be saved: {exc}") from exc

            rejected.extend(
                RejectedLine(
                    product_id=line["product_id"],
                    kind=line["kind"],
                    quantity=line["quantity"],
                    reason=line["reason"],
                )
                for line in outcome["rejected"]
            )
            draft.complete_commit(outcome["order_id"])
            order = draft.order

            logger.info(
                "order_committed",
                order_id=outcome["order_id"],
                subtotal=order.subtotal(),
                total=order.total(),
                rejected_count=len(rejected),
            )
            return CommitResult(order=order, rejected_lines=rejected)
        finally:
            clear_context("session_id")

    def _partition(self, lines):
        """Split cart lines into purchasable line dicts and rejected lines."""
        purchasable, rejected = [], []
        for line in lines:
            ref = line.ref
            try:
                available = self.draft.catalogue.can_purchase(ref, line.quantity)
                reason = "insufficient_stock"
            except ObjectNotFoundError:
                available = False
                reason = "not_found"

            if available:
                purchasable.append({"product_id": ref.id, "kind": ref.kind.value, "quantity": line.quantity})
            else:
                logger.warning("line_rejected", product=str(ref), quantity=line.quantity, reason=reason)
                rejected.append(
                    RejectedLine(product_id=ref.id, kind=ref.kind.value, quantity=line.quantity, reason=reason)
                )
        return purchasable, rejected
