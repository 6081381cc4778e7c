"""Coworker sub-engagement — invite and respond commands and handlers.

Results are plain strings the API passes through: "invited" or
"already invited" for invites, "accepted", "rejected" or "already
responded" for responses. Repeats are not errors.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.member.member import Member, MemberRole
from marketplace.order.order import Order

ALREADY_INVITED = "already invited"
ALREADY_RESPONDED = "already responded"


@marketplace.command(part_of="Order")
class InviteCoworker:
    order_id = Identifier(required=True)
    inviter_id = Identifier(required=True)
    coworker_id = Identifier(required=True)
    price_type = String(required=True, max_length=10)
    rate = Float(required=True)
    max_hours = Float()


@marketplace.command(part_of="Order")
class RespondToCoworkerInvite:
    order_id = Identifier(required=True)
    coworker_id = Identifier(required=True)
    accept = Boolean(required=True)


@marketplace.command_handler(part_of=Order)
class CoworkerHandler:
    @handle(InviteCoworker)
    def invite_coworker(self, command):
        invitee = current_domain.repository_for(Member).get(command.coworker_id)
        if not invitee.has_role(MemberRole.SELLER):
            raise ValidationError({"coworker_id": ["Only sellers can be invited as coworkers"]})

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        invited = order.invite_coworker(
            inviter_id=command.inviter_id,
            coworker_id=command.coworker_id,
            price_type=command.price_type,
            rate=command.rate,
            max_hours=command.max_hours,
        )
        if not invited:
            return ALREADY_INVITED

        repo.add(order)
        return "invited"

    @handle(RespondToCoworkerInvite)
    def respond_to_coworker_invite(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.respond_to_coworker_invite(command.coworker_id, command.accept):
            return ALREADY_RESPONDED

        repo.add(order)
        return order.coworker(command.coworker_id).status
