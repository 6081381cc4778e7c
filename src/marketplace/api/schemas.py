"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Payloads use camelCase on the wire; snake_case
field names are accepted as well.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class FileSchema(CamelModel):
    url: str
    public_id: str


class PackageSchema(CamelModel):
    package_type: Literal["basic", "standard", "premium"]
    name: str
    description: str | None = None
    price: float = Field(gt=0)
    delivery_time: int = Field(ge=1)
    revisions: int = Field(ge=0)
    number_of_pages: int | None = None
    after_project_support: bool = False


# ---------------------------------------------------------------------------
# Member / Gig
# ---------------------------------------------------------------------------
class RegisterMemberRequest(CamelModel):
    email: str
    first_name: str
    last_name: str
    roles: list[Literal["buyer", "seller", "admin"]] = Field(default_factory=lambda: ["buyer"])

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "email": "ada@example.com",
                    "firstName": "Ada",
                    "lastName": "Lovelace",
                    "roles": ["buyer", "seller"],
                }
            ]
        },
    )


class PublishGigRequest(CamelModel):
    seller_id: str
    title: str
    description: str | None = None
    packages: list[PackageSchema] = Field(min_length=1)


class UpdateGigPackageRequest(CamelModel):
    seller_id: str
    name: str
    description: str | None = None
    price: float = Field(gt=0)
    delivery_time: int = Field(ge=1)
    revisions: int = Field(ge=0)
    number_of_pages: int | None = None
    after_project_support: bool = False


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CustomPackageSchema(CamelModel):
    name: str | None = None
    description: str | None = None
    delivery_time: int | None = Field(default=None, ge=1)


class CreateOrderRequest(CamelModel):
    gig_id: str
    buyer_id: str
    seller_id: str
    package_type: Literal["basic", "standard", "premium", "custom"]
    requirements: str
    total_amount: float = Field(gt=0)
    payment_method: Literal["balance", "card"]
    files: list[FileSchema] = Field(default_factory=list)
    referrer_id: str | None = None
    custom_package: CustomPackageSchema | None = None


class ActorRequest(CamelModel):
    user_id: str


class DeliverOrderRequest(CamelModel):
    seller_id: str
    message: str
    files: list[FileSchema] = Field(default_factory=list)


class RequestRevisionRequest(CamelModel):
    buyer_id: str
    message: str


class RaiseDisputeRequest(CamelModel):
    requested_by: str
    reason: str
    message: str


class RespondToDisputeRequest(CamelModel):
    responder_id: str
    decision: Literal["accept", "reject"]
    admin_response: str | None = None


class InviteCoworkerRequest(CamelModel):
    inviter_id: str
    coworker_id: str
    price_type: Literal["hourly", "fixed"]
    rate: float
    max_hours: float | None = None


class RespondToCoworkerInviteRequest(CamelModel):
    coworker_id: str
    accept: bool


class BuyerReviewRequest(CamelModel):
    buyer_id: str
    overall_rating: int = Field(ge=1, le=5)
    communication_level: int = Field(ge=1, le=5)
    service_as_described: int = Field(ge=1, le=5)
    recommend_to_friend: int = Field(ge=1, le=5)
    review: str | None = None


class SellerReviewRequest(CamelModel):
    seller_id: str
    rating: int = Field(ge=1, le=5)
    review: str | None = None


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------
class OpenWalletRequest(CamelModel):
    user_id: str


class CardRequest(CamelModel):
    payment_method_id: str


class AmountRequest(CamelModel):
    amount: float = Field(gt=0)
    # Resending a request with the same key moves money at most once
    idempotency_key: str | None = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Maintenance / files / gateway
# ---------------------------------------------------------------------------
class AutoCompleteRequest(CamelModel):
    batch_size: int = Field(default=100, ge=1)


class SettleReferralRequest(CamelModel):
    order_id: str
    referrer_id: str


class UploadFileRequest(CamelModel):
    folder: str = "orders"
    filename: str
    content_base64: str
    content_type: str | None = None


class ConfigureGatewayRequest(CamelModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    success: bool = True
    message: str = "OK"
    data: Any = None
