"""Revision request — command and handler."""

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class RequestRevision:
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    message = Text(required=True)


@marketplace.command_handler(part_of=Order)
class RequestRevisionHandler:
    @handle(RequestRevision)
    def request_revision(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_revision(command.buyer_id, command.message)
        repo.add(order)
        return len(order.revision_requests)
