"""Order side effects: emails and in-app notifications for lifecycle events.

Runs after the order change has committed. Delivery goes through
notify_member, which logs and drops transport failures, so a broken
mail relay never undoes a transition.
"""

import structlog
from protean.utils.mixins import handle

from marketplace.channel.dispatch import client_link, notify_member
from marketplace.domain import marketplace
from marketplace.order.events import (
    BuyerReviewSubmitted,
    CoworkerInvited,
    CoworkerResponded,
    DisputeRaised,
    DisputeResolved,
    OrderCompleted,
    OrderDelivered,
    OrderPlaced,
    RequirementsReviewed,
    RevisionRequested,
    SellerReviewSubmitted,
)
from marketplace.order.order import Order
from marketplace.templates.base import TargetRole

logger = structlog.get_logger(__name__)


def _order_link(order_id) -> str:
    return client_link(f"/orders/{order_id}")


def _role_of(event, member_id) -> str:
    return TargetRole.BUYER.value if str(member_id) == str(event.buyer_id) else TargetRole.SELLER.value


@marketplace.event_handler(part_of=Order)
class OrderNotificationsHandler:
    """Sends buyer/seller notifications for every Order lifecycle event."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        context = {
            "order_id": str(event.order_id),
            "amount": f"{event.total_amount:.2f}",
            "package_name": event.package_name,
            "delivery_due_date": event.delivery_due_date.date().isoformat() if event.delivery_due_date else None,
        }
        link = _order_link(event.order_id)
        notify_member(event.buyer_id, "order_placed_buyer", context, link=link)
        notify_member(event.seller_id, "order_placed_seller", context, link=link)

    @handle(RequirementsReviewed)
    def on_requirements_reviewed(self, event: RequirementsReviewed) -> None:
        notify_member(
            event.buyer_id,
            "requirements_reviewed",
            {"order_id": str(event.order_id)},
            link=_order_link(event.order_id),
        )

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        notify_member(
            event.buyer_id,
            "order_delivered",
            {
                "order_id": str(event.order_id),
                "revision_number": event.revision_number,
                "message": event.message,
            },
            link=_order_link(event.order_id),
        )

    @handle(RevisionRequested)
    def on_revision_requested(self, event: RevisionRequested) -> None:
        context = {
            "order_id": str(event.order_id),
            "revision_number": event.revision_number,
            "revision_quota": event.revision_quota,
            "message": event.message,
        }
        link = _order_link(event.order_id)
        notify_member(event.buyer_id, "revision_requested_buyer", context, link=link)
        notify_member(event.seller_id, "revision_requested_seller", context, link=link)

    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        context = {"order_id": str(event.order_id)}
        link = _order_link(event.order_id)

        if event.auto_completed:
            # The buyer took no action, so only the seller hears about it
            notify_member(event.seller_id, "order_auto_completed", context, link=link)
            return

        notify_member(event.buyer_id, "order_completed", context, target_role=TargetRole.BUYER.value, link=link)
        notify_member(event.seller_id, "order_completed", context, target_role=TargetRole.SELLER.value, link=link)

    @handle(DisputeRaised)
    def on_dispute_raised(self, event: DisputeRaised) -> None:
        context = {
            "order_id": str(event.order_id),
            "ticket_id": event.ticket_id,
            "reason": event.reason,
            "message": event.message,
        }
        link = _order_link(event.order_id)
        notify_member(event.requested_by, "dispute_raised_initiator", context, link=link)
        notify_member(event.counterparty_id, "dispute_raised_counterparty", context, link=link)

    @handle(DisputeResolved)
    def on_dispute_resolved(self, event: DisputeResolved) -> None:
        context = {
            "order_id": str(event.order_id),
            "ticket_id": event.ticket_id,
            "decision": event.decision,
            "admin_response": event.admin_response,
        }
        link = _order_link(event.order_id)

        if event.by_admin:
            for member_id in (event.buyer_id, event.seller_id):
                notify_member(
                    member_id,
                    "dispute_resolved_by_admin",
                    context,
                    target_role=_role_of(event, member_id),
                    link=link,
                )
            return

        notify_member(
            event.requested_by,
            "dispute_resolved_counterparty",
            context,
            target_role=_role_of(event, event.requested_by),
            link=link,
        )
        notify_member(
            event.responded_by,
            "dispute_resolved_responder",
            context,
            target_role=_role_of(event, event.responded_by),
            link=link,
        )

    @handle(CoworkerInvited)
    def on_coworker_invited(self, event: CoworkerInvited) -> None:
        base = f"/orders/{event.order_id}/coworkers/{event.coworker_id}"
        notify_member(
            event.coworker_id,
            "coworker_invited",
            {
                "order_id": str(event.order_id),
                "price_type": event.price_type,
                "rate": event.rate,
                "max_hours": event.max_hours,
                "accept_link": client_link(f"{base}/accept"),
                "reject_link": client_link(f"{base}/reject"),
            },
            link=_order_link(event.order_id),
        )

    @handle(CoworkerResponded)
    def on_coworker_responded(self, event: CoworkerResponded) -> None:
        notify_member(
            event.seller_id,
            "coworker_responded",
            {"order_id": str(event.order_id), "status": event.status},
            link=_order_link(event.order_id),
        )

    @handle(BuyerReviewSubmitted)
    def on_buyer_review(self, event: BuyerReviewSubmitted) -> None:
        notify_member(
            event.reviewee_id,
            "review_received",
            {"order_id": str(event.order_id), "rating": event.rating},
            target_role=TargetRole.SELLER.value,
            link=_order_link(event.order_id),
        )

    @handle(SellerReviewSubmitted)
    def on_seller_review(self, event: SellerReviewSubmitted) -> None:
        notify_member(
            event.reviewee_id,
            "review_received",
            {"order_id": str(event.order_id), "rating": event.rating},
            target_role=TargetRole.BUYER.value,
            link=_order_link(event.order_id),
        )
