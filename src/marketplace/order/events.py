"""Domain events for the Order aggregate.

Events are raised by Order methods and dispatched after the unit of work
commits. They drive:
- Buyer/seller emails and in-app notifications
- Referral settlement on completion
- The OrderSummary and CoworkerAssignment read models
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A paid order was created for a gig package."""

    __version__ = 1

    order_id = Identifier(required=True)
    gig_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    referrer_id = Identifier()
    package_type = String(required=True)
    package_name = String()
    total_amount = Float(required=True)
    payment_method = String(required=True)
    delivery_due_date = DateTime()
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class RequirementsReviewed:
    """The seller reviewed the buyer's requirements and started work."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    reviewed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    """The seller delivered work. revision_number is 0 for the original delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    revision_number = Integer(default=0)
    message = Text()
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class RevisionRequested:
    """The buyer asked for another round of changes."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    revision_number = Integer(required=True)
    revision_quota = Integer(required=True)
    message = Text()
    requested_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCompleted:
    """The order was completed by buyer approval or by the auto-complete sweep."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    referrer_id = Identifier()
    total_amount = Float()
    auto_completed = Boolean(default=False)
    completed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class DisputeRaised:
    """A buyer or seller opened a resolution request."""

    __version__ = 1

    order_id = Identifier(required=True)
    ticket_id = String(required=True)
    requested_by = Identifier(required=True)
    counterparty_id = Identifier(required=True)
    reason = String(required=True)
    message = Text()
    raised_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class DisputeResolved:
    """An open resolution request was accepted (order cancelled) or rejected (order back to pending)."""

    __version__ = 1

    order_id = Identifier(required=True)
    ticket_id = String(required=True)
    decision = String(required=True)  # accept | reject
    order_status = String(required=True)
    requested_by = Identifier(required=True)
    responded_by = Identifier(required=True)
    by_admin = Boolean(default=False)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    admin_response = Text()
    resolved_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class CoworkerInvited:
    """The primary seller invited a coworker (new or previously rejected)."""

    __version__ = 1

    order_id = Identifier(required=True)
    coworker_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    price_type = String(required=True)
    rate = Float(required=True)
    max_hours = Float()
    invited_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class CoworkerResponded:
    """An invited coworker accepted or rejected the invitation."""

    __version__ = 1

    order_id = Identifier(required=True)
    coworker_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True)
    responded_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class BuyerReviewSubmitted:
    __version__ = 1

    order_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewee_id = Identifier(required=True)
    rating = Integer(required=True)
    reviewed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class SellerReviewSubmitted:
    __version__ = 1

    order_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewee_id = Identifier(required=True)
    rating = Integer(required=True)
    reviewed_at = DateTime(required=True)
