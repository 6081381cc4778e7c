"""Member aggregate — a person on the marketplace acting as buyer, seller or admin."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from marketplace.domain import marketplace


class MemberRole(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


_ROLE_VALUES = {role.value for role in MemberRole}


@marketplace.aggregate
class Member:
    """A registered marketplace user.

    Roles are capabilities, not exclusive types: a seller usually buys too.
    The payout account is created lazily the first time the member asks to
    withdraw wallet funds.
    """

    email: String(required=True, max_length=254, unique=True)
    first_name: String(required=True, max_length=100)
    last_name: String(required=True, max_length=100)
    roles: Text(default="[]")  # JSON list of MemberRole values
    payout_account_id: String(max_length=255)
    registered_at: DateTime()

    @invariant.post
    def roles_must_be_known(self):
        unknown = set(self.role_list) - _ROLE_VALUES
        if unknown:
            raise ValidationError({"roles": [f"Unknown role(s): {', '.join(sorted(unknown))}"]})

    @classmethod
    def register(cls, email, first_name, last_name, roles=None):
        return cls(
            email=email.strip().lower(),
            first_name=first_name,
            last_name=last_name,
            roles=json.dumps(sorted(set(roles or [MemberRole.BUYER.value]))),
            registered_at=datetime.now(UTC),
        )

    @property
    def role_list(self) -> list[str]:
        return json.loads(self.roles) if self.roles else []

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_role(self, role: MemberRole) -> bool:
        return role.value in self.role_list

    def link_payout_account(self, account_id: str) -> None:
        if self.payout_account_id:
            raise ValidationError({"payout_account_id": ["Payout account already linked"]})
        self.payout_account_id = account_id
