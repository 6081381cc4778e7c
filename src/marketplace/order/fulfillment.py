"""Seller-side workflow — requirement review and delivery commands."""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class MarkRequirementsReviewed:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    message = Text(required=True)
    files = Text()  # JSON: list of {"url", "public_id"}


@marketplace.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(MarkRequirementsReviewed)
    def mark_requirements_reviewed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_requirements_reviewed(command.seller_id)
        repo.add(order)

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver(
            seller_id=command.seller_id,
            message=command.message,
            files=json.loads(command.files) if command.files else None,
        )
        repo.add(order)
