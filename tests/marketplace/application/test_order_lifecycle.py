"""Application tests for the seller/buyer workflow — review, delivery, revisions, approval."""

import pytest
from protean import current_domain

from marketplace.errors import ConflictError, ForbiddenError
from marketplace.order.completion import ApproveDelivery
from marketplace.order.fulfillment import DeliverOrder, MarkRequirementsReviewed
from marketplace.order.order import Order, OrderStatus
from marketplace.order.revisions import RequestRevision
from marketplace.projections.order_summary import OrderSummary


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _titles(notifications, member_id):
    return [n["title"] for n in notifications.for_user(member_id)]


class TestPlacementNotifications:
    def test_both_parties_are_told(self, place_order, buyer_id, seller_id, emails, notifications):
        place_order()

        assert "Order Placed Successfully" in _titles(notifications, buyer_id)
        assert "You Have a New Order" in _titles(notifications, seller_id)
        assert len(emails.sent_to("buyer@example.com")) == 1
        assert len(emails.sent_to("seller@example.com")) == 1


class TestRequirementsReview:
    def test_seller_starts_work(self, place_order, buyer_id, seller_id, notifications):
        order_id = place_order()
        _process(MarkRequirementsReviewed(order_id=order_id, seller_id=seller_id))

        order = _order(order_id)
        assert order.status == OrderStatus.IN_PROGRESS.value
        assert order.timeline.requirements_reviewed_at is not None
        assert "Work Has Started on Your Order" in _titles(notifications, buyer_id)
        assert current_domain.repository_for(OrderSummary).get(order_id).status == OrderStatus.IN_PROGRESS.value

    def test_buyer_cannot_mark_requirements_reviewed(self, place_order, buyer_id):
        order_id = place_order()
        with pytest.raises(ForbiddenError):
            _process(MarkRequirementsReviewed(order_id=order_id, seller_id=buyer_id))


class TestDelivery:
    def test_delivery_notifies_buyer(self, delivered_order_id, buyer_id, notifications):
        order = _order(delivered_order_id)

        assert order.status == OrderStatus.DELIVERED.value
        assert order.deliveries[0].message == "First draft"
        assert "Your Order Has Been Delivered" in _titles(notifications, buyer_id)

    def test_only_the_seller_delivers(self, place_order, buyer_id):
        order_id = place_order()
        with pytest.raises(ForbiddenError):
            _process(DeliverOrder(order_id=order_id, seller_id=buyer_id, message="Not mine"))
        assert _order(order_id).status == OrderStatus.PENDING.value


class TestRevisions:
    def test_revision_rounds_until_quota(self, place_order, buyer_id, seller_id, notifications):
        order_id = place_order(package_type="standard", total_amount=120.0)

        _process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Draft"))
        assert _process(RequestRevision(order_id=order_id, buyer_id=buyer_id, message="Bigger font")) == 1
        assert _order(order_id).status == OrderStatus.REVISION.value

        _process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Draft 2"))
        assert _process(RequestRevision(order_id=order_id, buyer_id=buyer_id, message="Other colour")) == 2

        _process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Draft 3"))
        with pytest.raises(ConflictError, match="Maximum revisions reached"):
            _process(RequestRevision(order_id=order_id, buyer_id=buyer_id, message="One more"))

        order = _order(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert len(order.revision_requests) == 2
        assert "Revision Requested" in _titles(notifications, seller_id)
        assert "Revised Delivery Received" in _titles(notifications, buyer_id)

    def test_revision_requires_delivery(self, place_order, buyer_id):
        order_id = place_order()
        with pytest.raises(ConflictError):
            _process(RequestRevision(order_id=order_id, buyer_id=buyer_id, message="Too early"))

    def test_seller_cannot_request_revision(self, delivered_order_id, seller_id):
        with pytest.raises(ForbiddenError):
            _process(RequestRevision(order_id=delivered_order_id, buyer_id=seller_id, message="Hmm"))


class TestApproval:
    def test_approval_completes_and_notifies_both(self, completed_order_id, buyer_id, seller_id, notifications):
        order = _order(completed_order_id)

        assert order.status == OrderStatus.COMPLETED.value
        assert order.timeline.approved_at is not None
        assert order.timeline.completed_at is not None
        assert "Order Completed" in _titles(notifications, buyer_id)
        assert "Order Completed" in _titles(notifications, seller_id)

        summary = current_domain.repository_for(OrderSummary).get(completed_order_id)
        assert summary.status == OrderStatus.COMPLETED.value

    def test_completed_order_cannot_be_approved_again(self, completed_order_id, buyer_id):
        with pytest.raises(ConflictError):
            _process(ApproveDelivery(order_id=completed_order_id, buyer_id=buyer_id))

    def test_seller_cannot_approve(self, delivered_order_id, seller_id):
        with pytest.raises(ForbiddenError):
            _process(ApproveDelivery(order_id=delivered_order_id, buyer_id=seller_id))


class TestNotificationFailures:
    def test_broken_email_relay_does_not_undo_delivery(self, place_order, buyer_id, seller_id, emails, notifications):
        order_id = place_order()
        emails.configure(should_succeed=False)

        _process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Draft"))

        assert _order(order_id).status == OrderStatus.DELIVERED.value
        assert "Your Order Has Been Delivered" in _titles(notifications, buyer_id)

    def test_broken_notification_store_does_not_undo_approval(self, delivered_order_id, buyer_id, emails, notifications):
        notifications.configure(should_succeed=False)

        _process(ApproveDelivery(order_id=delivered_order_id, buyer_id=buyer_id))

        assert _order(delivered_order_id).status == OrderStatus.COMPLETED.value
        assert any(email["subject"] == "Order Completed" for email in emails.sent_to("buyer@example.com"))
