"""Order summary — listing view of orders by buyer, seller and status."""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import (
    DisputeRaised,
    DisputeResolved,
    OrderCompleted,
    OrderDelivered,
    OrderPlaced,
    RequirementsReviewed,
    RevisionRequested,
)
from marketplace.order.order import Order, OrderStatus


@marketplace.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    gig_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    package_type = String(required=True)
    package_name = String()
    status = String(required=True)
    total_amount = Float()
    is_paid = Boolean(default=False)
    ticket_id = String()
    delivery_due_date = DateTime()
    created_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                gig_id=event.gig_id,
                buyer_id=event.buyer_id,
                seller_id=event.seller_id,
                package_type=event.package_type,
                package_name=event.package_name,
                status=OrderStatus.PENDING.value,
                total_amount=event.total_amount,
                is_paid=True,
                delivery_due_date=event.delivery_due_date,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update_status(self, order_id, status, updated_at=None, **changes):
        repo = current_domain.repository_for(OrderSummary)
        record = repo.get(order_id)
        record.status = status
        for field, value in changes.items():
            setattr(record, field, value)
        if updated_at:
            record.updated_at = updated_at
        repo.add(record)

    @on(RequirementsReviewed)
    def on_requirements_reviewed(self, event):
        self._update_status(event.order_id, OrderStatus.IN_PROGRESS.value, event.reviewed_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update_status(event.order_id, OrderStatus.DELIVERED.value, event.delivered_at)

    @on(RevisionRequested)
    def on_revision_requested(self, event):
        self._update_status(event.order_id, OrderStatus.REVISION.value, event.requested_at)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        self._update_status(event.order_id, OrderStatus.COMPLETED.value, event.completed_at)

    @on(DisputeRaised)
    def on_dispute_raised(self, event):
        self._update_status(event.order_id, OrderStatus.DISPUTED.value, event.raised_at, ticket_id=event.ticket_id)

    @on(DisputeResolved)
    def on_dispute_resolved(self, event):
        self._update_status(event.order_id, event.order_status, event.resolved_at)
