"""Order cancellation — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class CancelOrder:
    """Cancellation requested by the member who placed the order."""

    order_id = Identifier(required=True)
    member_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class AdminCancelOrder:
    order_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel_by_member(member_id=command.member_id, reason=command.reason)
        repo.add(order)

    @handle(AdminCancelOrder)
    def admin_cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel_by_admin(admin_id=command.admin_id, reason=command.reason)
        repo.add(order)
