"""Order creation — command and handler.

Payment is captured before the order is added to the repository. Both
run in the command's unit of work: if capture fails, nothing is written
(the buyer only receives the payment-failed notification).

The order id is fixed on the command and keys the card charge, so a
re-run of the handler after a version conflict replays the charge at the
provider rather than taking the money twice.
"""

import json
from uuid import uuid4

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError, ForbiddenError
from marketplace.gig.gig import Gig, PackageType
from marketplace.member.member import Member
from marketplace.order.order import CUSTOM_PACKAGE_REVISIONS, Order, PackageSnapshot
from marketplace.wallet.capture import PaymentMethod, capture_payment

logger = structlog.get_logger(__name__)


def _new_order_id() -> str:
    return str(uuid4())


def order_charge_key(order_id) -> str:
    return f"order:{order_id}"


@marketplace.command(part_of="Order")
class CreateOrder:
    # Fixed per command so a re-run handler reuses the id and the card charge key
    order_id = Identifier(default=_new_order_id)
    gig_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    package_type = String(required=True, choices=PackageType)
    requirements = Text(required=True)
    total_amount = Float(required=True, min_value=0.01)
    payment_method = String(required=True, choices=PaymentMethod)
    files = Text()  # JSON: list of {"url", "public_id"}
    referrer_id = Identifier()
    # Custom offers only
    custom_name = String(max_length=100)
    custom_description = Text()
    custom_delivery_time = Integer(min_value=1)


def _snapshot_package(gig, command) -> PackageSnapshot:
    if command.package_type == PackageType.CUSTOM.value:
        errors = {}
        if not command.custom_description:
            errors["custom_description"] = ["Description is required for a custom package"]
        if not command.custom_delivery_time:
            errors["custom_delivery_time"] = ["Delivery time is required for a custom package"]
        if errors:
            raise ValidationError(errors)

        return PackageSnapshot(
            name=command.custom_name or "Custom Offer",
            description=command.custom_description,
            price=command.total_amount,
            delivery_time=command.custom_delivery_time,
            revisions=CUSTOM_PACKAGE_REVISIONS,
        )

    package = gig.package(command.package_type)
    if package is None:
        raise ObjectNotFoundError({"package_type": [f"Gig has no {command.package_type} package"]})

    return PackageSnapshot(
        name=package.name,
        description=package.description,
        price=package.price,
        delivery_time=package.delivery_time,
        revisions=package.revisions,
        number_of_pages=package.number_of_pages,
        after_project_support=package.after_project_support,
    )


@marketplace.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        current_domain.repository_for(Member).get(command.buyer_id)
        gig = current_domain.repository_for(Gig).get(command.gig_id)
        if str(gig.seller_id) != str(command.seller_id):
            raise ForbiddenError("Seller does not own this gig")

        repo = current_domain.repository_for(Order)
        if repo._dao.query.filter(id=str(command.order_id)).all().items:
            raise ConflictError("Order already placed")

        order = Order.place(
            order_id=command.order_id,
            gig_id=command.gig_id,
            buyer_id=command.buyer_id,
            seller_id=command.seller_id,
            package_type=command.package_type,
            package=_snapshot_package(gig, command),
            requirements=command.requirements,
            total_amount=command.total_amount,
            files=json.loads(command.files) if command.files else None,
            referrer_id=command.referrer_id,
        )

        receipt = capture_payment(
            buyer_id=command.buyer_id,
            amount=command.total_amount,
            method=command.payment_method,
            description=f"Payment for order {order.id}",
            metadata={"order_id": str(order.id), "gig_id": str(gig.id), "buyer_id": str(command.buyer_id)},
            idempotency_key=order_charge_key(order.id),
        )
        order.confirm_payment(
            method=receipt.method,
            reference=receipt.reference,
            paid_at=receipt.paid_at,
            receipt_url=receipt.receipt_url,
        )
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            buyer_id=str(order.buyer_id),
            seller_id=str(order.seller_id),
            total_amount=order.total_amount,
            payment_method=receipt.method,
        )
        return str(order.id)
