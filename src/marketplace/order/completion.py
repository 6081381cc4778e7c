"""Buyer approval of the final delivery — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class ApproveDelivery:
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class ApproveDeliveryHandler:
    @handle(ApproveDelivery)
    def approve_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.approve(command.buyer_id)
        repo.add(order)
        logger.info("Order approved", order_id=str(order.id), buyer_id=str(order.buyer_id))
