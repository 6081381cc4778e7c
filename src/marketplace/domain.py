"""Marketplace bounded context — service orders and their settlement.

Covers the order lifecycle (creation with payment capture, delivery,
revisions, approval, auto-completion, disputes), coworker sub-engagement,
and the wallet ledger that funds orders and receives referral rewards.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
