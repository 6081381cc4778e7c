"""Entry point for commands that move money at the payment provider.

A provider charge or transfer happens inside the command's unit of work,
before the wallet is saved. When that save loses a version race on every
retry, or the command fails for any other reason after the provider call,
the money has moved but nothing was committed. ``process_payment`` runs
the command and, if it raises, refunds the charge or reverses the
transfer that the ledger does not account for.
"""

import structlog
from protean.utils.globals import current_domain

from marketplace.order.creation import CreateOrder, order_charge_key
from marketplace.wallet.capture import PaymentMethod, release_unrecorded_charge
from marketplace.wallet.funding import (
    TopUpWallet,
    WithdrawFunds,
    release_unrecorded_payout,
    top_up_charge_key,
)

logger = structlog.get_logger(__name__)


def _release(command) -> bool:
    if isinstance(command, CreateOrder):
        if command.payment_method != PaymentMethod.CARD.value:
            return False
        return release_unrecorded_charge(command.buyer_id, order_charge_key(command.order_id), command.total_amount)
    if isinstance(command, TopUpWallet):
        return release_unrecorded_charge(command.user_id, top_up_charge_key(command.idempotency_key), command.amount)
    if isinstance(command, WithdrawFunds):
        return release_unrecorded_payout(command.user_id, command.idempotency_key, command.amount)
    return False


def process_payment(command):
    """Process ``command``, undoing provider-side money movement if it does not commit."""
    try:
        return current_domain.process(command, asynchronous=False)
    except Exception:
        try:
            _release(command)
        except Exception:
            logger.exception("Could not release provider funds", command=type(command).__name__)
        raise
