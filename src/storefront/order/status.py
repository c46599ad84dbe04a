"""Administrator status changes — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, choices=OrderStatus)
    author_id = Identifier(required=True)
    note = Text()


@storefront.command_handler(part_of=Order)
class ChangeOrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_status(command.new_status, author_id=command.author_id, note=command.note)
        repo.add(order)
