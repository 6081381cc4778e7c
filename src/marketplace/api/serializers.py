"""Render aggregates and read models as API payloads (camelCase)."""

from marketplace.order.order import Order
from marketplace.wallet.wallet import Wallet


def _iso(value):
    return value.isoformat() if value else None


def _files(files) -> list[dict]:
    return [{"url": f["url"], "publicId": f["public_id"]} for f in files]


def _delivery(delivery) -> dict:
    return {
        "message": delivery.message,
        "files": _files(delivery.file_list),
        "deliveredAt": _iso(delivery.delivered_at),
        "revisionNumber": delivery.revision_number,
    }


def serialize_order(order: Order) -> dict:
    package = order.package_details
    timeline = order.timeline
    resolution = order.resolution_request
    original = next((d for d in order.deliveries if not d.revision_number), None)

    return {
        "id": str(order.id),
        "gigId": str(order.gig_id),
        "buyerId": str(order.buyer_id),
        "sellerId": str(order.seller_id),
        "referrerId": str(order.referrer_id) if order.referrer_id else None,
        "packageType": order.package_type,
        "packageDetails": {
            "name": package.name,
            "description": package.description,
            "price": package.price,
            "deliveryTime": package.delivery_time,
            "revisions": package.revisions,
            "numberOfPages": package.number_of_pages,
            "afterProjectSupport": package.after_project_support,
        },
        "requirements": order.requirements,
        "files": _files({"url": f.url, "public_id": f.public_id} for f in order.files),
        "status": order.status,
        "totalAmount": order.total_amount,
        "isPaid": order.is_paid,
        "paidAt": _iso(order.paid_at),
        "paymentMethod": order.payment_method,
        "paymentReference": order.payment_reference,
        "receiptUrl": order.receipt_url,
        "deliveryDueDate": _iso(order.delivery_due_date),
        "timeline": {
            "deliveredAt": _iso(timeline.delivered_at) if timeline else None,
            "requirementsReviewedAt": _iso(timeline.requirements_reviewed_at) if timeline else None,
            "approvedAt": _iso(timeline.approved_at) if timeline else None,
            "completedAt": _iso(timeline.completed_at) if timeline else None,
            "cancelledAt": _iso(timeline.cancelled_at) if timeline else None,
            "autoCompletedAt": _iso(timeline.auto_completed_at) if timeline else None,
            "systemNote": timeline.system_note if timeline else None,
            "delivery": _delivery(original) if original else None,
            "revisionRequests": [
                {
                    "message": r.message,
                    "requestedAt": _iso(r.requested_at),
                    "revisionNumber": r.revision_number,
                }
                for r in sorted(order.revision_requests, key=lambda r: r.revision_number)
            ],
            "revisionDeliveries": [_delivery(d) for d in order.revision_deliveries],
        },
        "coworkers": [
            {
                "sellerId": str(c.seller_id),
                "priceType": c.price_type,
                "rate": c.rate,
                "maxHours": c.max_hours,
                "status": c.status,
                "invitedAt": _iso(c.invited_at),
                "respondedAt": _iso(c.responded_at),
            }
            for c in order.coworkers
        ],
        "resolutionRequest": (
            {
                "ticketId": resolution.ticket_id,
                "reason": resolution.reason,
                "message": resolution.message,
                "requestedBy": str(resolution.requested_by),
                "requestedAt": _iso(resolution.requested_at),
                "status": resolution.status,
                "adminResponse": resolution.admin_response,
                "respondedBy": str(resolution.responded_by) if resolution.responded_by else None,
                "resolvedAt": _iso(resolution.resolved_at),
            }
            if resolution
            else None
        ),
        "buyerReview": (
            {
                "overallRating": order.buyer_review.overall_rating,
                "communicationLevel": order.buyer_review.communication_level,
                "serviceAsDescribed": order.buyer_review.service_as_described,
                "recommendToFriend": order.buyer_review.recommend_to_friend,
                "review": order.buyer_review.review,
                "reviewedAt": _iso(order.buyer_review.reviewed_at),
            }
            if order.buyer_review
            else None
        ),
        "sellerReview": (
            {
                "rating": order.seller_review.rating,
                "review": order.seller_review.review,
                "reviewedAt": _iso(order.seller_review.reviewed_at),
            }
            if order.seller_review
            else None
        ),
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }


def serialize_summary(record) -> dict:
    return {
        "id": str(record.order_id),
        "gigId": str(record.gig_id),
        "buyerId": str(record.buyer_id),
        "sellerId": str(record.seller_id),
        "packageType": record.package_type,
        "packageName": record.package_name,
        "status": record.status,
        "totalAmount": record.total_amount,
        "isPaid": record.is_paid,
        "ticketId": record.ticket_id,
        "deliveryDueDate": _iso(record.delivery_due_date),
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def serialize_assignment(record) -> dict:
    return {
        "orderId": str(record.order_id),
        "coworkerId": str(record.coworker_id),
        "sellerId": str(record.seller_id),
        "priceType": record.price_type,
        "rate": record.rate,
        "maxHours": record.max_hours,
        "status": record.status,
        "invitedAt": _iso(record.invited_at),
        "respondedAt": _iso(record.responded_at),
    }


def serialize_wallet(wallet: Wallet) -> dict:
    return {
        "id": str(wallet.id),
        "userId": str(wallet.user_id),
        "balance": wallet.balance,
        "transactions": [
            {
                "type": tx.type,
                "amount": tx.amount,
                "description": tx.description,
                "affectsBalance": tx.affects_balance,
                "reference": tx.reference,
                "createdAt": _iso(tx.created_at),
            }
            for tx in sorted(wallet.transactions, key=lambda tx: tx.created_at)
        ],
        "cards": [
            {
                "paymentMethodId": card.provider_method_id,
                "brand": card.brand,
                "last4": card.last4,
                "expMonth": card.exp_month,
                "expYear": card.exp_year,
                "isPrimary": card.is_primary,
            }
            for card in wallet.cards
        ],
        "referrals": [
            {
                "referredUserId": str(r.referred_user_id),
                "orderId": str(r.order_id),
                "creditsEarned": r.credits_earned,
                "earnedAt": _iso(r.earned_at),
            }
            for r in wallet.referrals
        ],
    }
