"""Order aggregate (CQRS) — the core of the marketplace domain.

An Order is created only after payment has been captured, then moves
through the seller/buyer workflow below until it is completed or cancelled.
Deliveries, revision requests and timeline stamps are append-only and
change only through the transition methods on this class.

State Machine (7 states):
    pending → in_progress → delivered ⇄ revision
    delivered → completed                (buyer approval or 72h sweep)
    any non-terminal → disputed → cancelled (accepted) | pending (rejected)
    completed, cancelled: terminal
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.errors import ConflictError, ForbiddenError
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

CUSTOM_PACKAGE_REVISIONS = 5
AUTO_COMPLETE_WINDOW = timedelta(hours=72)
DISPUTE_MESSAGE_MAX_LENGTH = 500
AUTO_COMPLETE_NOTE = "Order auto-completed: no buyer action within 72 hours of the last delivery."


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    REVISION = "revision"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class CoworkerStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PriceType(Enum):
    HOURLY = "hourly"
    FIXED = "fixed"


class ResolutionStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class DisputeDecision(Enum):
    ACCEPT = "accept"
    REJECT = "reject"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PROGRESS, OrderStatus.DELIVERED, OrderStatus.DISPUTED},
    OrderStatus.IN_PROGRESS: {OrderStatus.DELIVERED, OrderStatus.DISPUTED},
    OrderStatus.DELIVERED: {OrderStatus.REVISION, OrderStatus.COMPLETED, OrderStatus.DISPUTED},
    OrderStatus.REVISION: {OrderStatus.DELIVERED, OrderStatus.DISPUTED},
    OrderStatus.DISPUTED: {
        OrderStatus.CANCELLED,  # Resolution accepted
        OrderStatus.PENDING,  # Resolution rejected
        OrderStatus.DISPUTED,  # Re-raised
    },
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_TIMELINE_STAMPS = (
    "delivered_at",
    "requirements_reviewed_at",
    "approved_at",
    "completed_at",
    "cancelled_at",
    "auto_completed_at",
    "system_note",
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class PackageSnapshot:
    """The package as it was when the order was placed.

    Copied from the gig (or from the custom offer) at creation and never
    refreshed, so later gig edits cannot change what the buyer paid for.
    """

    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.0)
    delivery_time = Integer(required=True, min_value=1)  # days
    revisions = Integer(required=True, min_value=0)
    number_of_pages = Integer()
    after_project_support = Boolean(default=False)


@marketplace.value_object(part_of="Order")
class Timeline:
    """Milestone stamps. A stamp, once set, is never replaced or cleared."""

    delivered_at = DateTime()
    requirements_reviewed_at = DateTime()
    approved_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    auto_completed_at = DateTime()
    system_note = String(max_length=500)


@marketplace.value_object(part_of="Order")
class ResolutionRequest:
    ticket_id = String(required=True, max_length=20)
    reason = String(required=True, max_length=255)
    message = String(required=True, max_length=DISPUTE_MESSAGE_MAX_LENGTH)
    requested_by = Identifier(required=True)
    requested_at = DateTime(required=True)
    status = String(choices=ResolutionStatus, default=ResolutionStatus.OPEN.value)
    admin_response = Text()
    responded_by = Identifier()
    resolved_at = DateTime()


@marketplace.value_object(part_of="Order")
class BuyerReview:
    overall_rating = Integer(required=True, min_value=1, max_value=5)
    communication_level = Integer(required=True, min_value=1, max_value=5)
    service_as_described = Integer(required=True, min_value=1, max_value=5)
    recommend_to_friend = Integer(required=True, min_value=1, max_value=5)
    review = Text()
    reviewed_at = DateTime()


@marketplace.value_object(part_of="Order")
class SellerReview:
    rating = Integer(required=True, min_value=1, max_value=5)
    review = Text()
    reviewed_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderFile:
    url = String(required=True, max_length=1024)
    public_id = String(required=True, max_length=512)


@marketplace.entity(part_of="Order")
class Delivery:
    message = Text(required=True)
    files = Text()  # JSON list of {"url", "public_id"}
    delivered_at = DateTime(required=True)
    revision_number = Integer(default=0, min_value=0)  # 0 = original delivery

    @property
    def file_list(self) -> list[dict]:
        return json.loads(self.files) if self.files else []


@marketplace.entity(part_of="Order")
class RevisionRequest:
    message = Text(required=True)
    requested_at = DateTime(required=True)
    revision_number = Integer(required=True, min_value=1)


@marketplace.entity(part_of="Order")
class Coworker:
    """A secondary seller invited onto the order under their own rate agreement."""

    seller_id = Identifier(required=True)
    price_type = String(required=True, choices=PriceType)
    rate = Float(required=True, min_value=0.01)
    max_hours = Float()
    status = String(choices=CoworkerStatus, default=CoworkerStatus.PENDING.value)
    invited_at = DateTime()
    responded_at = DateTime()

    @invariant.post
    def hourly_rate_needs_hour_cap(self):
        if self.price_type == PriceType.HOURLY.value and not (self.max_hours and self.max_hours > 0):
            raise ValidationError({"max_hours": ["Max hours is required for hourly coworkers"]})


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    gig_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    referrer_id = Identifier()
    package_type = String(required=True, max_length=20)
    package_details = ValueObject(PackageSnapshot, required=True)
    requirements = Text(required=True)
    files = HasMany(OrderFile)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    total_amount = Float(required=True, min_value=0.01)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    payment_method = String(max_length=20)
    payment_reference = String(max_length=255)
    receipt_url = String(max_length=1024)
    deliveries = HasMany(Delivery)
    revision_requests = HasMany(RevisionRequest)
    timeline = ValueObject(Timeline)
    coworkers = HasMany(Coworker)
    resolution_request = ValueObject(ResolutionRequest)
    buyer_review = ValueObject(BuyerReview)
    seller_review = ValueObject(SellerReview)
    delivery_due_date = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def revision_requests_within_quota(self):
        if self.package_details is None:
            return
        if len(self.revision_requests) > self.package_details.revisions:
            raise ValidationError({"revision_requests": ["Revision requests exceed the package quota"]})

    @invariant.post
    def buyer_cannot_be_seller(self):
        if self.buyer_id and str(self.buyer_id) == str(self.seller_id):
            raise ValidationError({"buyer_id": ["Buyer and seller must be different members"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        gig_id,
        buyer_id,
        seller_id,
        package_type,
        package,
        requirements,
        total_amount,
        files=None,
        referrer_id=None,
        order_id=None,
    ):
        """Build an unpaid order. It is persisted only after ``confirm_payment``."""
        if str(buyer_id) == str(seller_id):
            raise ConflictError("You cannot order your own gig")
        if not requirements or not requirements.strip():
            raise ValidationError({"requirements": ["Requirements are required"]})

        now = datetime.now(UTC)
        identity = {"id": str(order_id)} if order_id else {}
        return cls(
            **identity,
            gig_id=gig_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            referrer_id=referrer_id,
            package_type=package_type,
            package_details=package,
            requirements=requirements,
            files=[OrderFile(url=f["url"], public_id=f["public_id"]) for f in files or []],
            status=OrderStatus.PENDING.value,
            total_amount=total_amount,
            is_paid=False,
            timeline=Timeline(),
            delivery_due_date=now + timedelta(days=package.delivery_time),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ConflictError(
                f"Cannot transition from {current.value} to {target_status.value}",
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]},
            )

    def _transition(self, target_status: OrderStatus, at: datetime):
        self._assert_can_transition(target_status)
        self.status = target_status.value
        self.updated_at = at

    def _stamp(self, **stamps):
        """Set timeline stamps that are still empty; set stamps are kept as they are."""
        current = {name: getattr(self.timeline, name, None) if self.timeline else None for name in _TIMELINE_STAMPS}
        for name, value in stamps.items():
            if current[name] is None:
                current[name] = value
        self.timeline = Timeline(**current)

    def _require_buyer(self, actor_id, action):
        if str(actor_id) != str(self.buyer_id):
            raise ForbiddenError(f"Only the buyer can {action}")

    def _require_seller(self, actor_id, action):
        if str(actor_id) != str(self.seller_id):
            raise ForbiddenError(f"Only the seller can {action}")

    def counterparty_of(self, member_id) -> str:
        return str(self.seller_id) if str(member_id) == str(self.buyer_id) else str(self.buyer_id)

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[OrderStatus(self.status)]

    @property
    def last_delivered_at(self) -> datetime | None:
        stamps = [_as_utc(d.delivered_at) for d in self.deliveries if d.delivered_at]
        if stamps:
            return max(stamps)
        return _as_utc(self.timeline.delivered_at) if self.timeline else None

    @property
    def revision_deliveries(self) -> list:
        return sorted(
            (d for d in self.deliveries if d.revision_number),
            key=lambda d: _as_utc(d.delivered_at),
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def confirm_payment(self, method, reference, paid_at, receipt_url=None):
        if self.is_paid:
            raise ConflictError("Order is already paid")

        self.is_paid = True
        self.paid_at = paid_at
        self.payment_method = method
        self.payment_reference = reference
        self.receipt_url = receipt_url

        self.raise_(
            OrderPlaced(
                order_id=str(self.id),
                gig_id=str(self.gig_id),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                referrer_id=str(self.referrer_id) if self.referrer_id else None,
                package_type=self.package_type,
                package_name=self.package_details.name,
                total_amount=self.total_amount,
                payment_method=method,
                delivery_due_date=self.delivery_due_date,
                placed_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Seller workflow
    # -------------------------------------------------------------------
    def mark_requirements_reviewed(self, seller_id):
        self._require_seller(seller_id, "review the requirements")
        now = datetime.now(UTC)
        self._transition(OrderStatus.IN_PROGRESS, now)
        self._stamp(requirements_reviewed_at=now)

        self.raise_(
            RequirementsReviewed(
                order_id=str(self.id),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                reviewed_at=now,
            )
        )

    def deliver(self, seller_id, message, files=None):
        """Record a delivery. The first one stamps the timeline; later ones are revision deliveries."""
        self._require_seller(seller_id, "deliver this order")
        if not message or not message.strip():
            raise ValidationError({"message": ["Delivery message is required"]})

        now = datetime.now(UTC)
        revision_number = len(self.revision_requests)
        self._transition(OrderStatus.DELIVERED, now)
        self.add_deliveries(
            Delivery(
                message=message,
                files=json.dumps(files or []),
                delivered_at=now,
                revision_number=revision_number,
            )
        )
        if revision_number == 0:
            self._stamp(delivered_at=now)

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                revision_number=revision_number,
                message=message,
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Buyer workflow
    # -------------------------------------------------------------------
    def request_revision(self, buyer_id, message):
        self._require_buyer(buyer_id, "request a revision")
        if len(self.revision_requests) >= self.package_details.revisions:
            raise ConflictError(
                "Maximum revisions reached",
                {"revision_requests": [f"The package allows {self.package_details.revisions} revision(s)"]},
            )
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise ConflictError("Revisions can only be requested on a delivered order")
        if not message or not message.strip():
            raise ValidationError({"message": ["Revision message is required"]})

        now = datetime.now(UTC)
        revision_number = len(self.revision_requests) + 1
        self._transition(OrderStatus.REVISION, now)
        self.add_revision_requests(RevisionRequest(message=message, requested_at=now, revision_number=revision_number))

        self.raise_(
            RevisionRequested(
                order_id=str(self.id),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                revision_number=revision_number,
                revision_quota=self.package_details.revisions,
                message=message,
                requested_at=now,
            )
        )

    def approve(self, buyer_id):
        self._require_buyer(buyer_id, "approve the delivery")
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise ConflictError("Only a delivered order can be approved")

        now = datetime.now(UTC)
        self._transition(OrderStatus.COMPLETED, now)
        self._stamp(approved_at=now, completed_at=now)
        self._raise_completed(now, auto_completed=False)

    # -------------------------------------------------------------------
    # Auto-completion
    # -------------------------------------------------------------------
    def is_due_for_auto_completion(self, as_of: datetime) -> bool:
        if OrderStatus(self.status) != OrderStatus.DELIVERED or self.timeline is None:
            return False
        if self.timeline.delivered_at is None:
            return False
        if self.timeline.completed_at is not None or self.timeline.cancelled_at is not None:
            return False
        last = self.last_delivered_at
        return last is not None and last <= _as_utc(as_of) - AUTO_COMPLETE_WINDOW

    def auto_complete(self, as_of: datetime):
        if not self.is_due_for_auto_completion(as_of):
            raise ConflictError("Order is not eligible for auto-completion")

        now = datetime.now(UTC)
        self._transition(OrderStatus.COMPLETED, now)
        self._stamp(
            completed_at=now,
            approved_at=now,
            auto_completed_at=now,
            system_note=AUTO_COMPLETE_NOTE,
        )
        self._raise_completed(now, auto_completed=True)

    def _raise_completed(self, completed_at, auto_completed):
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                referrer_id=str(self.referrer_id) if self.referrer_id else None,
                total_amount=self.total_amount,
                auto_completed=auto_completed,
                completed_at=completed_at,
            )
        )

    # -------------------------------------------------------------------
    # Disputes
    # -------------------------------------------------------------------
    def raise_dispute(self, requested_by, reason, message, ticket_id):
        if str(requested_by) not in (str(self.buyer_id), str(self.seller_id)):
            raise ForbiddenError("Only the buyer or seller can raise a dispute")
        if not reason or not message:
            raise ValidationError({"reason": ["Reason and message are required"]})
        if len(message) > DISPUTE_MESSAGE_MAX_LENGTH:
            raise ValidationError({"message": [f"Message cannot exceed {DISPUTE_MESSAGE_MAX_LENGTH} characters"]})

        now = datetime.now(UTC)
        self._transition(OrderStatus.DISPUTED, now)
        self.resolution_request = ResolutionRequest(
            ticket_id=ticket_id,
            reason=reason,
            message=message,
            requested_by=requested_by,
            requested_at=now,
            status=ResolutionStatus.OPEN.value,
        )

        self.raise_(
            DisputeRaised(
                order_id=str(self.id),
                ticket_id=ticket_id,
                requested_by=str(requested_by),
                counterparty_id=self.counterparty_of(requested_by),
                reason=reason,
                message=message,
                raised_at=now,
            )
        )

    def ensure_dispute_can_be_raised(self):
        """Checked before a ticket number is drawn."""
        self._assert_can_transition(OrderStatus.DISPUTED)

    def respond_to_dispute(self, responder_id, decision, is_admin=False, admin_response=None):
        request = self.resolution_request
        if request is None or request.status != ResolutionStatus.OPEN.value:
            raise ConflictError("No open resolution request on this order")

        is_party = str(responder_id) in (str(self.buyer_id), str(self.seller_id))
        if not (is_party or is_admin):
            raise ForbiddenError("Only the buyer, the seller or an admin can respond to a dispute")
        if str(responder_id) == str(request.requested_by) and not is_admin:
            raise ForbiddenError("You cannot respond to your own resolution request")

        decision = DisputeDecision(decision)
        now = datetime.now(UTC)
        if decision == DisputeDecision.ACCEPT:
            self._transition(OrderStatus.CANCELLED, now)
            self._stamp(cancelled_at=now)
            resolution_status = ResolutionStatus.RESOLVED
        else:
            self._transition(OrderStatus.PENDING, now)
            resolution_status = ResolutionStatus.REJECTED

        self.resolution_request = ResolutionRequest(
            ticket_id=request.ticket_id,
            reason=request.reason,
            message=request.message,
            requested_by=request.requested_by,
            requested_at=request.requested_at,
            status=resolution_status.value,
            admin_response=admin_response,
            responded_by=responder_id,
            resolved_at=now,
        )

        self.raise_(
            DisputeResolved(
                order_id=str(self.id),
                ticket_id=request.ticket_id,
                decision=decision.value,
                order_status=self.status,
                requested_by=str(request.requested_by),
                responded_by=str(responder_id),
                by_admin=bool(is_admin),
                buyer_id=str(self.buyer_id),
                seller_id=str(self.seller_id),
                admin_response=admin_response,
                resolved_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Coworkers
    # -------------------------------------------------------------------
    def coworker(self, coworker_id) -> Coworker | None:
        return next((c for c in self.coworkers if str(c.seller_id) == str(coworker_id)), None)

    def invite_coworker(self, inviter_id, coworker_id, price_type, rate, max_hours=None) -> bool:
        """Invite a coworker. Returns False when a pending or accepted invite already exists."""
        self._require_seller(inviter_id, "invite coworkers")
        if str(coworker_id) == str(self.seller_id):
            raise ValidationError({"coworker_id": ["You cannot invite yourself"]})
        if price_type not in {p.value for p in PriceType}:
            raise ValidationError({"price_type": ["Price type must be hourly or fixed"]})
        if rate is None or rate <= 0:
            raise ValidationError({"rate": ["Rate must be a positive number"]})
        if price_type == PriceType.HOURLY.value and not (max_hours and max_hours > 0):
            raise ValidationError({"max_hours": ["Max hours is required for hourly coworkers"]})

        now = datetime.now(UTC)
        hours = max_hours if price_type == PriceType.HOURLY.value else None
        existing = self.coworker(coworker_id)
        if existing is not None:
            if existing.status != CoworkerStatus.REJECTED.value:
                return False
            # A rejected invite is replaced by a fresh pending one
            self.remove_coworkers(existing)

        self.add_coworkers(
            Coworker(
                seller_id=coworker_id,
                price_type=price_type,
                rate=rate,
                max_hours=hours,
                status=CoworkerStatus.PENDING.value,
                invited_at=now,
            )
        )
        self.updated_at = now

        self.raise_(
            CoworkerInvited(
                order_id=str(self.id),
                coworker_id=str(coworker_id),
                seller_id=str(self.seller_id),
                price_type=price_type,
                rate=rate,
                max_hours=hours,
                invited_at=now,
            )
        )
        return True

    def respond_to_coworker_invite(self, coworker_id, accept: bool) -> bool:
        """Accept or reject a pending invite. Returns False when already responded."""
        entry = self.coworker(coworker_id)
        if entry is None:
            raise ObjectNotFoundError({"coworker": ["No coworker invitation for this member"]})
        if entry.status != CoworkerStatus.PENDING.value:
            return False

        now = datetime.now(UTC)
        entry.status = CoworkerStatus.ACCEPTED.value if accept else CoworkerStatus.REJECTED.value
        entry.responded_at = now
        self.updated_at = now

        self.raise_(
            CoworkerResponded(
                order_id=str(self.id),
                coworker_id=str(coworker_id),
                seller_id=str(self.seller_id),
                status=entry.status,
                responded_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def _assert_reviewable(self):
        if OrderStatus(self.status) != OrderStatus.COMPLETED:
            raise ConflictError("Reviews can only be left on completed orders")

    def submit_buyer_review(
        self,
        buyer_id,
        overall_rating,
        communication_level,
        service_as_described,
        recommend_to_friend,
        review=None,
    ):
        self._require_buyer(buyer_id, "review the seller")
        self._assert_reviewable()
        if self.buyer_review is not None:
            raise ConflictError("Buyer review already submitted")

        now = datetime.now(UTC)
        self.buyer_review = BuyerReview(
            overall_rating=overall_rating,
            communication_level=communication_level,
            service_as_described=service_as_described,
            recommend_to_friend=recommend_to_friend,
            review=review,
            reviewed_at=now,
        )
        self.updated_at = now

        self.raise_(
            BuyerReviewSubmitted(
                order_id=str(self.id),
                reviewer_id=str(self.buyer_id),
                reviewee_id=str(self.seller_id),
                rating=overall_rating,
                reviewed_at=now,
            )
        )

    def submit_seller_review(self, seller_id, rating, review=None):
        self._require_seller(seller_id, "review the buyer")
        self._assert_reviewable()
        if self.seller_review is not None:
            raise ConflictError("Seller review already submitted")

        now = datetime.now(UTC)
        self.seller_review = SellerReview(rating=rating, review=review, reviewed_at=now)
        self.updated_at = now

        self.raise_(
            SellerReviewSubmitted(
                order_id=str(self.id),
                reviewer_id=str(self.seller_id),
                reviewee_id=str(self.buyer_id),
                rating=rating,
                reviewed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------
    def stored_file_ids(self) -> list[str]:
        """Storage ids of every attachment and delivery file on the order."""
        ids = [f.public_id for f in self.files]
        for delivery in self.deliveries:
            ids.extend(f["public_id"] for f in delivery.file_list if f.get("public_id"))
        return ids
