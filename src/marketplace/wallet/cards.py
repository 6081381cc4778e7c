"""Wallet opening and stored card management — commands and handlers."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.gateway import get_gateway
from marketplace.member.member import Member
from marketplace.wallet.wallet import Wallet, wallet_for_user

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Wallet")
class OpenWallet:
    user_id = Identifier(required=True)


@marketplace.command(part_of="Wallet")
class AddCard:
    """Attach a tokenized payment method. The first card becomes primary."""

    user_id = Identifier(required=True)
    payment_method_id = String(required=True, max_length=255)


@marketplace.command(part_of="Wallet")
class SetPrimaryCard:
    user_id = Identifier(required=True)
    payment_method_id = String(required=True, max_length=255)


@marketplace.command(part_of="Wallet")
class RemoveCard:
    user_id = Identifier(required=True)
    payment_method_id = String(required=True, max_length=255)


@marketplace.command_handler(part_of=Wallet)
class WalletCardsHandler:
    @handle(OpenWallet)
    def open_wallet(self, command):
        current_domain.repository_for(Member).get(command.user_id)

        repo = current_domain.repository_for(Wallet)
        if repo._dao.query.filter(user_id=str(command.user_id)).all().items:
            raise ConflictError("Wallet already exists")

        wallet = Wallet.open(command.user_id)
        repo.add(wallet)
        return str(wallet.id)

    @handle(AddCard)
    def add_card(self, command):
        repo = current_domain.repository_for(Wallet)
        wallet = wallet_for_user(command.user_id)
        if wallet.has_card(command.payment_method_id):
            raise ConflictError("Card already added")

        gateway = get_gateway()
        if not wallet.provider_customer_id:
            member = current_domain.repository_for(Member).get(command.user_id)
            wallet.provider_customer_id = gateway.create_customer(member.email, member.full_name)

        details = gateway.attach_payment_method(wallet.provider_customer_id, command.payment_method_id)
        card = wallet.add_card(details)
        repo.add(wallet)

        logger.info("Card added", user_id=str(command.user_id), last4=card.last4, is_primary=card.is_primary)
        return {
            "brand": card.brand,
            "last4": card.last4,
            "exp_month": card.exp_month,
            "exp_year": card.exp_year,
            "is_primary": card.is_primary,
        }

    @handle(SetPrimaryCard)
    def set_primary_card(self, command):
        repo = current_domain.repository_for(Wallet)
        wallet = wallet_for_user(command.user_id)
        wallet.set_primary_card(command.payment_method_id)
        repo.add(wallet)

    @handle(RemoveCard)
    def remove_card(self, command):
        repo = current_domain.repository_for(Wallet)
        wallet = wallet_for_user(command.user_id)
        promoted = wallet.remove_card(command.payment_method_id)

        get_gateway().detach_payment_method(command.payment_method_id)
        repo.add(wallet)

        logger.info(
            "Card removed",
            user_id=str(command.user_id),
            promoted=promoted.provider_method_id if promoted else None,
        )
