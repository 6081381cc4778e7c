"""Payment capture — charge a buyer from wallet balance or a stored card.

Runs inside the unit of work of the command that needs the money (order
creation, wallet top-up), so a balance debit commits together with the
record it pays for, or not at all. A failed capture notifies the buyer
and raises PaymentError.

Card charges carry an idempotency key taken from the command, so when the
command is re-run after a version conflict the provider replays the first
charge instead of taking the money again. If the command never commits,
``release_unrecorded_charge`` refunds the charge it left behind.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.channel.dispatch import client_link, notify_member
from marketplace.errors import PaymentError
from marketplace.gateway import get_gateway
from marketplace.wallet.wallet import Wallet, wallet_for_user

logger = structlog.get_logger(__name__)


class PaymentMethod(Enum):
    BALANCE = "balance"
    CARD = "card"


@dataclass(frozen=True)
class PaymentReceipt:
    method: str
    reference: str | None
    receipt_url: str | None
    paid_at: datetime


def charge_primary_card(wallet: Wallet, amount: float, metadata: dict, idempotency_key: str):
    card = wallet.primary_card
    if card is None or not wallet.provider_customer_id:
        raise PaymentError("No primary card on file")

    try:
        result = get_gateway().charge_off_session(
            customer_id=wallet.provider_customer_id,
            method_id=card.provider_method_id,
            amount=amount,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )
    except Exception as exc:
        logger.error("Payment provider raised during charge", user_id=str(wallet.user_id), error=str(exc))
        raise PaymentError("Payment provider error") from exc

    if not result.success:
        raise PaymentError(f"Card payment failed: {result.failure_reason or result.status}")
    return result


def capture_payment(
    buyer_id,
    amount: float,
    method: str,
    description: str,
    metadata: dict,
    idempotency_key: str,
) -> PaymentReceipt:
    """Capture ``amount`` from the buyer and return a receipt.

    Raises PaymentError after sending the buyer a "Payment Failed" notification.
    """
    repo = current_domain.repository_for(Wallet)
    wallet = wallet_for_user(buyer_id)

    try:
        if method == PaymentMethod.BALANCE.value:
            wallet.debit(amount, description)
            repo.add(wallet)
            receipt = PaymentReceipt(
                method=method,
                reference=str(wallet.transactions[-1].id),
                receipt_url=None,
                paid_at=datetime.now(UTC),
            )
        elif method == PaymentMethod.CARD.value:
            result = charge_primary_card(wallet, amount, metadata, idempotency_key)
            wallet.record_card_payment(amount, description, reference=result.transaction_id)
            repo.add(wallet)
            receipt = PaymentReceipt(
                method=method,
                reference=result.transaction_id,
                receipt_url=result.receipt_url,
                paid_at=datetime.now(UTC),
            )
        else:
            raise PaymentError(f"Unsupported payment method: {method}")
    except PaymentError as exc:
        logger.warning("Payment capture failed", buyer_id=str(buyer_id), method=method, amount=amount, reason=exc.message)
        notify_member(
            buyer_id,
            "payment_failed",
            {"amount": f"{amount:.2f}", "reason": exc.message},
            link=client_link("/settings/billing"),
        )
        raise

    logger.info("Payment captured", buyer_id=str(buyer_id), method=method, amount=amount, reference=receipt.reference)
    return receipt


def release_unrecorded_charge(user_id, idempotency_key: str, amount: float) -> bool:
    """Refund the charge made under ``idempotency_key`` unless the ledger holds it.

    Called after the command that made the charge failed to commit. Returns
    True when a refund was issued.
    """
    result = get_gateway().find_charge(idempotency_key)
    if result is None or not result.success:
        return False

    try:
        recorded = wallet_for_user(user_id).has_reference(result.transaction_id)
    except ObjectNotFoundError:
        recorded = False
    if recorded:
        return False

    refund = get_gateway().create_refund(result.transaction_id, amount, "Payment was not recorded")
    if refund.success:
        logger.warning(
            "Refunded unrecorded charge",
            user_id=str(user_id),
            transaction_id=result.transaction_id,
            amount=amount,
            refund_id=refund.refund_id,
        )
    else:
        logger.error(
            "Refund of unrecorded charge failed",
            user_id=str(user_id),
            transaction_id=result.transaction_id,
            amount=amount,
            reason=refund.failure_reason,
        )
    return refund.success
