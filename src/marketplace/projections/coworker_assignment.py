"""Coworker assignments — one row per invited coworker, for "orders I help on" listings."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import CoworkerInvited, CoworkerResponded
from marketplace.order.order import CoworkerStatus, Order


def assignment_key(order_id, coworker_id) -> str:
    return f"{order_id}:{coworker_id}"


@marketplace.projection
class CoworkerAssignment:
    assignment_id = String(identifier=True, required=True, max_length=100)
    order_id = Identifier(required=True)
    coworker_id = Identifier(required=True)
    seller_id = Identifier(required=True)  # primary seller
    price_type = String(required=True)
    rate = Float(required=True)
    max_hours = Float()
    status = String(required=True)
    invited_at = DateTime()
    responded_at = DateTime()


@marketplace.projector(projector_for=CoworkerAssignment, aggregates=[Order])
class CoworkerAssignmentProjector:
    @on(CoworkerInvited)
    def on_coworker_invited(self, event):
        repo = current_domain.repository_for(CoworkerAssignment)
        key = assignment_key(event.order_id, event.coworker_id)
        try:
            # Re-invite after a rejection
            record = repo.get(key)
            record.price_type = event.price_type
            record.rate = event.rate
            record.max_hours = event.max_hours
            record.status = CoworkerStatus.PENDING.value
            record.invited_at = event.invited_at
            record.responded_at = None
        except ObjectNotFoundError:
            record = CoworkerAssignment(
                assignment_id=key,
                order_id=event.order_id,
                coworker_id=event.coworker_id,
                seller_id=event.seller_id,
                price_type=event.price_type,
                rate=event.rate,
                max_hours=event.max_hours,
                status=CoworkerStatus.PENDING.value,
                invited_at=event.invited_at,
            )
        repo.add(record)

    @on(CoworkerResponded)
    def on_coworker_responded(self, event):
        repo = current_domain.repository_for(CoworkerAssignment)
        record = repo.get(assignment_key(event.order_id, event.coworker_id))
        record.status = event.status
        record.responded_at = event.responded_at
        repo.add(record)
