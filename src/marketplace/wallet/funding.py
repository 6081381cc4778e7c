"""Wallet top-up and withdrawal — commands and handlers.

Both commands carry an idempotency key that is sent to the payment
provider. When a handler is re-run after a version conflict, the
provider replays the first charge or transfer, so money moves once and
the retry records it once.
"""

from uuid import uuid4

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError, PaymentError
from marketplace.gateway import get_gateway
from marketplace.member.member import Member
from marketplace.wallet.capture import charge_primary_card
from marketplace.wallet.wallet import Wallet, wallet_for_user

logger = structlog.get_logger(__name__)


def _new_key() -> str:
    return uuid4().hex


def top_up_charge_key(idempotency_key) -> str:
    return f"top-up:{idempotency_key}"


def withdrawal_transfer_key(idempotency_key) -> str:
    return f"withdrawal:{idempotency_key}"


@marketplace.command(part_of="Wallet")
class TopUpWallet:
    """Charge the primary card and credit the wallet balance."""

    user_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.01)
    idempotency_key = String(max_length=255, default=_new_key)


@marketplace.command(part_of="Wallet")
class WithdrawFunds:
    """Pay out wallet balance to the member's connected payout account."""

    user_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.01)
    idempotency_key = String(max_length=255, default=_new_key)


@marketplace.command_handler(part_of=Wallet)
class WalletFundingHandler:
    @handle(TopUpWallet)
    def top_up(self, command):
        repo = current_domain.repository_for(Wallet)
        wallet = wallet_for_user(command.user_id)

        result = charge_primary_card(
            wallet,
            command.amount,
            {"user_id": str(command.user_id), "purpose": "wallet_top_up"},
            idempotency_key=top_up_charge_key(command.idempotency_key),
        )
        if wallet.has_reference(result.transaction_id):
            logger.info("Top-up already credited", user_id=str(command.user_id), reference=result.transaction_id)
            return wallet.balance

        wallet.credit(command.amount, "Wallet Top-Up", reference=result.transaction_id)
        repo.add(wallet)

        logger.info("Wallet topped up", user_id=str(command.user_id), amount=command.amount)
        return wallet.balance

    @handle(WithdrawFunds)
    def withdraw(self, command):
        member = current_domain.repository_for(Member).get(command.user_id)
        if not member.payout_account_id:
            raise ConflictError("Payout account onboarding required")

        repo = current_domain.repository_for(Wallet)
        wallet = wallet_for_user(command.user_id)
        # An overdraw fails before any money leaves the platform
        wallet.ensure_funds(command.amount)

        payout = get_gateway().create_payout(
            member.payout_account_id,
            command.amount,
            {"user_id": str(member.id), "purpose": "wallet_withdrawal"},
            idempotency_key=withdrawal_transfer_key(command.idempotency_key),
        )
        if not payout.success:
            raise PaymentError(f"Withdrawal failed: {payout.failure_reason}")
        if wallet.has_reference(payout.transfer_id):
            logger.info("Withdrawal already debited", user_id=str(member.id), transfer_id=payout.transfer_id)
            return wallet.balance

        wallet.debit(command.amount, "Wallet Withdrawal", reference=payout.transfer_id)
        repo.add(wallet)

        logger.info("Funds withdrawn", user_id=str(member.id), amount=command.amount, transfer_id=payout.transfer_id)
        return wallet.balance


def release_unrecorded_payout(user_id, idempotency_key: str, amount: float) -> bool:
    """Reverse the transfer a WithdrawFunds with ``idempotency_key`` made, unless the ledger holds it.

    Returns True when a reversal was issued.
    """
    gateway = get_gateway()
    payout = gateway.find_payout(withdrawal_transfer_key(idempotency_key))
    if payout is None or not payout.success:
        return False

    try:
        recorded = wallet_for_user(user_id).has_reference(payout.transfer_id)
    except ObjectNotFoundError:
        recorded = False
    if recorded:
        return False

    reversed_ = gateway.reverse_payout(payout.transfer_id, amount)
    if reversed_:
        logger.warning("Reversed unrecorded payout", user_id=str(user_id), transfer_id=payout.transfer_id, amount=amount)
    else:
        logger.error("Reversal of unrecorded payout failed", user_id=str(user_id), transfer_id=payout.transfer_id)
    return reversed_
