"""Referral settlement — credit the referrer's wallet when a referred order completes.

OrderCompleted carries the referrer captured at placement. The wallet
handler turns it into a SettleReferral command, which credits the
referrer exactly once per order no matter how often it is delivered.
The command reads the order itself: only a completed order, settled for
the referrer recorded on it, earns a reward, and the referred member is
always the order's buyer.
Settlement failures are logged and never propagate back into approval
or the auto-complete sweep.
"""

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.channel.dispatch import client_link, notify_member
from marketplace.domain import marketplace
from marketplace.errors import ConflictError, MarketplaceError
from marketplace.order.events import OrderCompleted
from marketplace.order.order import Order, OrderStatus
from marketplace.wallet.events import ReferralCredited
from marketplace.wallet.wallet import Wallet, wallet_for_user

logger = structlog.get_logger(__name__)

REFERRAL_REWARD = 1.0
SETTLEMENT_ATTEMPTS = 3


@marketplace.command(part_of="Wallet")
class SettleReferral:
    order_id = Identifier(required=True)
    referrer_id = Identifier(required=True)
    amount = Float(default=REFERRAL_REWARD, min_value=0.01)


@marketplace.command_handler(part_of=Wallet)
class SettleReferralHandler:
    @handle(SettleReferral)
    def settle_referral(self, command: SettleReferral) -> bool:
        """Returns True when a credit was written, False when already settled."""
        order = current_domain.repository_for(Order).get(command.order_id)
        if order.status != OrderStatus.COMPLETED.value:
            raise ConflictError("Order is not completed")
        if not order.referrer_id or str(order.referrer_id) != str(command.referrer_id):
            raise ConflictError("Order was not referred by this member")
        if str(order.referrer_id) == str(order.buyer_id):
            logger.info("Self-referral ignored", order_id=str(order.id))
            return False

        wallet = wallet_for_user(command.referrer_id)
        credited = wallet.credit_referral(order.id, order.buyer_id, command.amount)
        if not credited:
            logger.info(
                "Referral already settled",
                order_id=str(command.order_id),
                referrer_id=str(command.referrer_id),
            )
            return False

        current_domain.repository_for(Wallet).add(wallet)
        logger.info(
            "Referral credited",
            order_id=str(command.order_id),
            referrer_id=str(command.referrer_id),
            amount=command.amount,
        )
        return True


def settle_referral(order_id, referrer_id) -> bool:
    """Process SettleReferral, retrying when a concurrent wallet write wins."""
    command = SettleReferral(order_id=str(order_id), referrer_id=str(referrer_id))
    for attempt in range(1, SETTLEMENT_ATTEMPTS + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            logger.warning("Referral settlement conflicted, retrying", order_id=str(order_id), attempt=attempt)
    logger.error("Referral settlement gave up after conflicts", order_id=str(order_id))
    return False


@marketplace.event_handler(part_of=Wallet, stream_category="marketplace::order")
class ReferralSettlementHandler:
    """Settles referral rewards for completed orders."""

    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        if not event.referrer_id:
            return

        try:
            settle_referral(event.order_id, event.referrer_id)
        except (ObjectNotFoundError, ValidationError, MarketplaceError):
            logger.exception(
                "Referral settlement failed",
                order_id=str(event.order_id),
                referrer_id=str(event.referrer_id),
            )


@marketplace.event_handler(part_of=Wallet)
class WalletNotificationsHandler:
    @handle(ReferralCredited)
    def on_referral_credited(self, event: ReferralCredited) -> None:
        notify_member(
            event.user_id,
            "referral_credited",
            {"amount": f"{event.amount:.2f}", "order_id": event.order_id},
            link=client_link("/wallet"),
        )
