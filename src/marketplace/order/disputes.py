"""Dispute resolution — raise and respond commands and handlers.

Ticket ids are drawn from the resolution-ticket counter inside the same
unit of work that saves the order, so a failed raise never burns a number.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.counter.counter import RESOLUTION_TICKETS, next_value
from marketplace.domain import marketplace
from marketplace.member.member import Member, MemberRole
from marketplace.order.order import DisputeDecision, Order

logger = structlog.get_logger(__name__)

TICKET_PREFIX = "RSL-"


@marketplace.command(part_of="Order")
class RaiseDispute:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    reason = String(required=True, max_length=255)
    message = Text(required=True)


@marketplace.command(part_of="Order")
class RespondToDispute:
    order_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    decision = String(required=True, choices=DisputeDecision)
    admin_response = Text()


@marketplace.command_handler(part_of=Order)
class DisputeHandler:
    @handle(RaiseDispute)
    def raise_dispute(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ensure_dispute_can_be_raised()

        ticket_id = f"{TICKET_PREFIX}{next_value(RESOLUTION_TICKETS)}"
        order.raise_dispute(
            requested_by=command.requested_by,
            reason=command.reason,
            message=command.message,
            ticket_id=ticket_id,
        )
        repo.add(order)

        logger.info("Dispute raised", order_id=str(order.id), ticket_id=ticket_id, requested_by=str(command.requested_by))
        return ticket_id

    @handle(RespondToDispute)
    def respond_to_dispute(self, command):
        responder = current_domain.repository_for(Member).get(command.responder_id)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.respond_to_dispute(
            responder_id=command.responder_id,
            decision=command.decision,
            is_admin=responder.has_role(MemberRole.ADMIN),
            admin_response=command.admin_response,
        )
        repo.add(order)

        logger.info(
            "Dispute answered",
            order_id=str(order.id),
            ticket_id=order.resolution_request.ticket_id,
            decision=command.decision,
            status=order.status,
        )
        return order.status
