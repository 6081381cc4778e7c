"""Member registration and payout account onboarding — commands and handlers."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.gateway import get_gateway
from marketplace.member.member import Member

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Member")
class RegisterMember:
    """Create a member with the given roles (defaults to buyer only)."""

    email: String(required=True, max_length=254)
    first_name: String(required=True, max_length=100)
    last_name: String(required=True, max_length=100)
    roles: Text()  # JSON list


@marketplace.command(part_of="Member")
class OpenPayoutAccount:
    """Create a connected payout account so the member can withdraw funds."""

    member_id = Identifier(required=True)


@marketplace.command_handler(part_of=Member)
class MemberHandler:
    @handle(RegisterMember)
    def register_member(self, command):
        repo = current_domain.repository_for(Member)
        email = command.email.strip().lower()
        if repo._dao.query.filter(email=email).all().items:
            raise ConflictError("A member with this email already exists")

        roles = json.loads(command.roles) if command.roles else None
        member = Member.register(
            email=email,
            first_name=command.first_name,
            last_name=command.last_name,
            roles=roles,
        )
        repo.add(member)
        logger.info("Member registered", member_id=str(member.id), roles=member.role_list)
        return str(member.id)

    @handle(OpenPayoutAccount)
    def open_payout_account(self, command):
        repo = current_domain.repository_for(Member)
        member = repo.get(command.member_id)
        if member.payout_account_id:
            raise ConflictError("Payout account already linked")

        account = get_gateway().create_payout_account(member.email)
        member.link_payout_account(account.account_id)
        repo.add(member)

        logger.info("Payout account opened", member_id=str(member.id), account_id=account.account_id)
        return {"account_id": account.account_id, "onboarding_url": account.onboarding_url}
