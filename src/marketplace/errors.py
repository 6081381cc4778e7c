"""Marketplace error taxonomy.

Input validation uses ``protean.exceptions.ValidationError`` and unknown
records surface as ``protean.exceptions.ObjectNotFoundError``. The errors
below cover the remaining failure kinds. Each carries a human-readable
message naming the rule that was violated, plus optional field messages.
"""


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message: str, messages: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.messages = messages or {}


class ForbiddenError(MarketplaceError):
    """The actor does not own, or may not act on, the target record."""

    status_code = 403


class ConflictError(MarketplaceError):
    """The operation is illegal in the record's current state."""

    status_code = 409


class PaymentError(MarketplaceError):
    """The provider declined the charge or the wallet cannot cover it."""

    status_code = 402


class DependencyError(MarketplaceError):
    """A provider, storage or email transport failed for non-business reasons."""

    status_code = 500
