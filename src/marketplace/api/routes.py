"""FastAPI routes for the Marketplace domain — members, gigs, orders and wallets."""

import base64
import binascii
import json
import os

from fastapi import APIRouter, HTTPException, Query
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    ActorRequest,
    AmountRequest,
    AutoCompleteRequest,
    BuyerReviewRequest,
    CardRequest,
    ConfigureGatewayRequest,
    CreateOrderRequest,
    DeliverOrderRequest,
    InviteCoworkerRequest,
    OpenWalletRequest,
    PublishGigRequest,
    RaiseDisputeRequest,
    RegisterMemberRequest,
    RequestRevisionRequest,
    RespondToCoworkerInviteRequest,
    RespondToDisputeRequest,
    SellerReviewRequest,
    SettleReferralRequest,
    StatusResponse,
    UpdateGigPackageRequest,
    UploadFileRequest,
)
from marketplace.api.serializers import (
    serialize_assignment,
    serialize_order,
    serialize_summary,
    serialize_wallet,
)
from marketplace.errors import ForbiddenError
from marketplace.gateway import get_gateway
from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.gig.publishing import PublishGig, UpdateGigPackage
from marketplace.member.member import Member, MemberRole
from marketplace.member.registration import OpenPayoutAccount, RegisterMember
from marketplace.order.auto_completion import AutoCompleteDeliveredOrders
from marketplace.order.completion import ApproveDelivery
from marketplace.order.coworkers import InviteCoworker, RespondToCoworkerInvite
from marketplace.order.creation import CreateOrder
from marketplace.order.deletion import DeleteOrder
from marketplace.order.disputes import RaiseDispute, RespondToDispute
from marketplace.order.fulfillment import DeliverOrder, MarkRequirementsReviewed
from marketplace.order.order import CoworkerStatus, Order, OrderStatus
from marketplace.order.reviews import SubmitBuyerReview, SubmitSellerReview
from marketplace.order.revisions import RequestRevision
from marketplace.projections.coworker_assignment import CoworkerAssignment
from marketplace.projections.order_summary import OrderSummary
from marketplace.storage import get_storage
from marketplace.wallet.cards import AddCard, OpenWallet, RemoveCard, SetPrimaryCard
from marketplace.wallet.compensation import process_payment
from marketplace.wallet.funding import TopUpWallet, WithdrawFunds
from marketplace.wallet.referral import settle_referral
from marketplace.wallet.wallet import wallet_for_user


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _idempotency(body) -> dict:
    return {"idempotency_key": body.idempotency_key} if body.idempotency_key else {}


def _require_admin(member_id: str) -> Member:
    member = current_domain.repository_for(Member).get(member_id)
    if not member.has_role(MemberRole.ADMIN):
        raise ForbiddenError("Admin access required")
    return member


def _newest_first(records):
    return sorted(records, key=lambda r: r.created_at, reverse=True)


# ---------------------------------------------------------------------------
# Member Router
# ---------------------------------------------------------------------------
member_router = APIRouter(prefix="/members", tags=["members"])


@member_router.post("", status_code=201, response_model=StatusResponse)
async def register_member(body: RegisterMemberRequest) -> StatusResponse:
    member_id = _process(
        RegisterMember(
            email=body.email,
            first_name=body.first_name,
            last_name=body.last_name,
            roles=json.dumps(body.roles),
        )
    )
    return StatusResponse(message="Member registered", data={"memberId": member_id})


@member_router.post("/{member_id}/payout-account", response_model=StatusResponse)
async def open_payout_account(member_id: str) -> StatusResponse:
    account = _process(OpenPayoutAccount(member_id=member_id))
    return StatusResponse(
        message="Payout account created",
        data={"accountId": account["account_id"], "onboardingUrl": account["onboarding_url"]},
    )


# ---------------------------------------------------------------------------
# Gig Router
# ---------------------------------------------------------------------------
gig_router = APIRouter(prefix="/gigs", tags=["gigs"])


@gig_router.post("", status_code=201, response_model=StatusResponse)
async def publish_gig(body: PublishGigRequest) -> StatusResponse:
    gig_id = _process(
        PublishGig(
            seller_id=body.seller_id,
            title=body.title,
            description=body.description,
            packages=json.dumps([package.model_dump() for package in body.packages]),
        )
    )
    return StatusResponse(message="Gig published", data={"gigId": gig_id})


@gig_router.put("/{gig_id}/packages/{package_type}", response_model=StatusResponse)
async def update_gig_package(gig_id: str, package_type: str, body: UpdateGigPackageRequest) -> StatusResponse:
    _process(
        UpdateGigPackage(
            gig_id=gig_id,
            package_type=package_type,
            seller_id=body.seller_id,
            name=body.name,
            description=body.description,
            price=body.price,
            delivery_time=body.delivery_time,
            revisions=body.revisions,
            number_of_pages=body.number_of_pages,
            after_project_support=body.after_project_support,
        )
    )
    return StatusResponse(message="Package updated")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=StatusResponse)
async def create_order(body: CreateOrderRequest) -> StatusResponse:
    custom = body.custom_package
    order_id = process_payment(
        CreateOrder(
            gig_id=body.gig_id,
            buyer_id=body.buyer_id,
            seller_id=body.seller_id,
            package_type=body.package_type,
            requirements=body.requirements,
            total_amount=body.total_amount,
            payment_method=body.payment_method,
            files=json.dumps([f.model_dump() for f in body.files]) if body.files else None,
            referrer_id=body.referrer_id,
            custom_name=custom.name if custom else None,
            custom_description=custom.description if custom else None,
            custom_delivery_time=custom.delivery_time if custom else None,
        )
    )
    order = current_domain.repository_for(Order).get(order_id)
    return StatusResponse(message="Order placed successfully", data=serialize_order(order))


@order_router.get("", response_model=StatusResponse)
async def list_orders_for_user(
    user_id: str = Query(alias="userId"),
    role: str = Query(default="buyer", pattern="^(buyer|seller)$"),
) -> StatusResponse:
    field = "buyer_id" if role == "buyer" else "seller_id"
    records = current_domain.repository_for(OrderSummary)._dao.query.filter(**{field: user_id}).all().items
    return StatusResponse(message="Orders fetched", data=[serialize_summary(r) for r in _newest_first(records)])


@order_router.get("/all", response_model=StatusResponse)
async def list_all_orders(admin_id: str = Query(alias="adminId")) -> StatusResponse:
    _require_admin(admin_id)
    records = current_domain.repository_for(OrderSummary)._dao.query.all().items
    return StatusResponse(message="Orders fetched", data=[serialize_summary(r) for r in _newest_first(records)])


@order_router.get("/disputed", response_model=StatusResponse)
async def list_disputed_orders(admin_id: str = Query(alias="adminId")) -> StatusResponse:
    _require_admin(admin_id)
    records = (
        current_domain.repository_for(OrderSummary)
        ._dao.query.filter(status=OrderStatus.DISPUTED.value)
        .all()
        .items
    )
    return StatusResponse(message="Disputed orders fetched", data=[serialize_summary(r) for r in _newest_first(records)])


@order_router.get("/coworker-assignments", response_model=StatusResponse)
async def list_coworker_assignments(user_id: str = Query(alias="userId")) -> StatusResponse:
    records = current_domain.repository_for(CoworkerAssignment)._dao.query.filter(coworker_id=user_id).all().items
    active = [
        r for r in records if r.status in (CoworkerStatus.PENDING.value, CoworkerStatus.ACCEPTED.value)
    ]
    return StatusResponse(message="Coworker orders fetched", data=[serialize_assignment(r) for r in active])


@order_router.get("/{order_id}", response_model=StatusResponse)
async def get_order(order_id: str) -> StatusResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return StatusResponse(message="Order fetched", data=serialize_order(order))


@order_router.post("/{order_id}/requirements-reviewed", response_model=StatusResponse)
async def mark_requirements_reviewed(order_id: str, body: ActorRequest) -> StatusResponse:
    _process(MarkRequirementsReviewed(order_id=order_id, seller_id=body.user_id))
    return StatusResponse(message="Requirements reviewed")


@order_router.post("/{order_id}/deliver", response_model=StatusResponse)
async def deliver_order(order_id: str, body: DeliverOrderRequest) -> StatusResponse:
    _process(
        DeliverOrder(
            order_id=order_id,
            seller_id=body.seller_id,
            message=body.message,
            files=json.dumps([f.model_dump() for f in body.files]) if body.files else None,
        )
    )
    return StatusResponse(message="Order delivered")


@order_router.post("/{order_id}/revisions", response_model=StatusResponse)
async def request_revision(order_id: str, body: RequestRevisionRequest) -> StatusResponse:
    count = _process(RequestRevision(order_id=order_id, buyer_id=body.buyer_id, message=body.message))
    return StatusResponse(message="Revision requested", data={"revisionRequests": count})


@order_router.post("/{order_id}/approve", response_model=StatusResponse)
async def approve_delivery(order_id: str, body: ActorRequest) -> StatusResponse:
    _process(ApproveDelivery(order_id=order_id, buyer_id=body.user_id))
    return StatusResponse(message="Order completed")


@order_router.post("/{order_id}/disputes", status_code=201, response_model=StatusResponse)
async def raise_dispute(order_id: str, body: RaiseDisputeRequest) -> StatusResponse:
    ticket_id = _process(
        RaiseDispute(
            order_id=order_id,
            requested_by=body.requested_by,
            reason=body.reason,
            message=body.message,
        )
    )
    return StatusResponse(message="Resolution request submitted", data={"ticketId": ticket_id})


@order_router.post("/{order_id}/disputes/respond", response_model=StatusResponse)
async def respond_to_dispute(order_id: str, body: RespondToDisputeRequest) -> StatusResponse:
    status = _process(
        RespondToDispute(
            order_id=order_id,
            responder_id=body.responder_id,
            decision=body.decision,
            admin_response=body.admin_response,
        )
    )
    return StatusResponse(message=f"Resolution {body.decision}ed", data={"status": status})


@order_router.post("/{order_id}/coworkers", response_model=StatusResponse)
async def invite_coworker(order_id: str, body: InviteCoworkerRequest) -> StatusResponse:
    result = _process(
        InviteCoworker(
            order_id=order_id,
            inviter_id=body.inviter_id,
            coworker_id=body.coworker_id,
            price_type=body.price_type,
            rate=body.rate,
            max_hours=body.max_hours,
        )
    )
    return StatusResponse(message=f"Coworker {result}", data={"result": result})


@order_router.post("/{order_id}/coworkers/respond", response_model=StatusResponse)
async def respond_to_coworker_invite(order_id: str, body: RespondToCoworkerInviteRequest) -> StatusResponse:
    result = _process(RespondToCoworkerInvite(order_id=order_id, coworker_id=body.coworker_id, accept=body.accept))
    return StatusResponse(message=f"Invitation {result}", data={"result": result})


@order_router.post("/{order_id}/reviews/buyer", status_code=201, response_model=StatusResponse)
async def submit_buyer_review(order_id: str, body: BuyerReviewRequest) -> StatusResponse:
    _process(
        SubmitBuyerReview(
            order_id=order_id,
            buyer_id=body.buyer_id,
            overall_rating=body.overall_rating,
            communication_level=body.communication_level,
            service_as_described=body.service_as_described,
            recommend_to_friend=body.recommend_to_friend,
            review=body.review,
        )
    )
    return StatusResponse(message="Review submitted")


@order_router.post("/{order_id}/reviews/seller", status_code=201, response_model=StatusResponse)
async def submit_seller_review(order_id: str, body: SellerReviewRequest) -> StatusResponse:
    _process(SubmitSellerReview(order_id=order_id, seller_id=body.seller_id, rating=body.rating, review=body.review))
    return StatusResponse(message="Review submitted")


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def delete_order(order_id: str, admin_id: str = Query(alias="adminId")) -> StatusResponse:
    _process(DeleteOrder(order_id=order_id, admin_id=admin_id))
    return StatusResponse(message="Order deleted")


# ---------------------------------------------------------------------------
# Wallet Router
# ---------------------------------------------------------------------------
wallet_router = APIRouter(prefix="/wallets", tags=["wallets"])


@wallet_router.post("", status_code=201, response_model=StatusResponse)
async def open_wallet(body: OpenWalletRequest) -> StatusResponse:
    wallet_id = _process(OpenWallet(user_id=body.user_id))
    return StatusResponse(message="Wallet created", data={"walletId": wallet_id})


@wallet_router.get("/{user_id}", response_model=StatusResponse)
async def get_wallet(user_id: str) -> StatusResponse:
    return StatusResponse(message="Wallet fetched", data=serialize_wallet(wallet_for_user(user_id)))


@wallet_router.post("/{user_id}/cards", status_code=201, response_model=StatusResponse)
async def add_card(user_id: str, body: CardRequest) -> StatusResponse:
    card = _process(AddCard(user_id=user_id, payment_method_id=body.payment_method_id))
    return StatusResponse(
        message="Card added",
        data={
            "brand": card["brand"],
            "last4": card["last4"],
            "expMonth": card["exp_month"],
            "expYear": card["exp_year"],
            "isPrimary": card["is_primary"],
        },
    )


@wallet_router.post("/{user_id}/cards/primary", response_model=StatusResponse)
async def set_primary_card(user_id: str, body: CardRequest) -> StatusResponse:
    _process(SetPrimaryCard(user_id=user_id, payment_method_id=body.payment_method_id))
    return StatusResponse(message="Primary card updated")


@wallet_router.delete("/{user_id}/cards/{payment_method_id}", response_model=StatusResponse)
async def remove_card(user_id: str, payment_method_id: str) -> StatusResponse:
    _process(RemoveCard(user_id=user_id, payment_method_id=payment_method_id))
    return StatusResponse(message="Card removed")


@wallet_router.post("/{user_id}/top-up", response_model=StatusResponse)
async def top_up_wallet(user_id: str, body: AmountRequest) -> StatusResponse:
    balance = process_payment(TopUpWallet(user_id=user_id, amount=body.amount, **_idempotency(body)))
    return StatusResponse(message="Wallet topped up", data={"balance": balance})


@wallet_router.post("/{user_id}/withdraw", response_model=StatusResponse)
async def withdraw_funds(user_id: str, body: AmountRequest) -> StatusResponse:
    balance = process_payment(WithdrawFunds(user_id=user_id, amount=body.amount, **_idempotency(body)))
    return StatusResponse(message="Withdrawal initiated", data={"balance": balance})


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/auto-complete-orders", response_model=StatusResponse)
async def auto_complete_orders(body: AutoCompleteRequest | None = None) -> StatusResponse:
    batch_size = body.batch_size if body else 100
    completed = _process(AutoCompleteDeliveredOrders(batch_size=batch_size))
    return StatusResponse(message=f"Auto-completed {completed} orders", data={"completed": completed})


@maintenance_router.post("/settle-referral", response_model=StatusResponse)
async def settle_referral_endpoint(body: SettleReferralRequest) -> StatusResponse:
    credited = settle_referral(body.order_id, body.referrer_id)
    message = "Referral credited" if credited else "Referral already settled"
    return StatusResponse(message=message, data={"credited": credited})


# ---------------------------------------------------------------------------
# File Router
# ---------------------------------------------------------------------------
file_router = APIRouter(prefix="/files", tags=["files"])


@file_router.post("", status_code=201, response_model=StatusResponse)
async def upload_file(body: UploadFileRequest) -> StatusResponse:
    try:
        data = base64.b64decode(body.content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError({"content_base64": ["File content must be base64 encoded"]}) from exc

    stored = get_storage().upload(data, body.folder, body.filename, body.content_type)
    return StatusResponse(message="File uploaded", data={"url": stored.url, "publicId": stored.public_id})


# ---------------------------------------------------------------------------
# Payment Gateway Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/gateway/configure", response_model=StatusResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> StatusResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return StatusResponse(
        message="Gateway configured",
        data={
            "gateway": type(gateway).__name__,
            "shouldSucceed": gateway.should_succeed,
            "failureReason": gateway.failure_reason,
        },
    )
