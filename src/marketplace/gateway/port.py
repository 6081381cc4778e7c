"""Payment provider port (abstract interface).

Defines the contract every payment provider adapter implements, so order
creation, wallet top-ups and withdrawals never depend on a concrete SDK.
Amounts are in major currency units; adapters convert as needed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CardDetails:
    """A payment method attached to a provider customer."""

    method_id: str
    brand: str | None = None
    last4: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None


@dataclass(frozen=True)
class ChargeResult:
    """Result of an off-session charge attempt."""

    success: bool
    transaction_id: str | None = None
    status: str | None = None
    receipt_url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class PayoutAccount:
    """A connected account that can receive payouts."""

    account_id: str
    onboarding_url: str | None = None


@dataclass(frozen=True)
class PayoutResult:
    """Result of a transfer to a connected account."""

    success: bool
    transfer_id: str | None = None
    failure_reason: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment provider interface.

    Money-moving calls take an ``idempotency_key``: repeating a call with the
    same key returns the original result instead of moving money again, and
    the key can later be used to find what the call did.
    """

    @abstractmethod
    def create_customer(self, email: str, name: str) -> str:
        """Create a provider customer and return its id."""
        ...

    @abstractmethod
    def attach_payment_method(self, customer_id: str, method_id: str) -> CardDetails:
        """Attach a tokenized payment method to a customer."""
        ...

    @abstractmethod
    def detach_payment_method(self, method_id: str) -> None:
        """Detach a payment method from whichever customer holds it."""
        ...

    @abstractmethod
    def charge_off_session(
        self,
        customer_id: str,
        method_id: str,
        amount: float,
        metadata: dict,
        idempotency_key: str,
    ) -> ChargeResult:
        """Create and confirm a charge without the customer present."""
        ...

    @abstractmethod
    def find_charge(self, idempotency_key: str) -> ChargeResult | None:
        """Look up the charge made under ``idempotency_key``, if any."""
        ...

    @abstractmethod
    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        """Refund a previous charge."""
        ...

    @abstractmethod
    def create_payout_account(self, email: str) -> PayoutAccount:
        """Create a connected account for withdrawals."""
        ...

    @abstractmethod
    def create_payout(self, account_id: str, amount: float, metadata: dict, idempotency_key: str) -> PayoutResult:
        """Transfer funds to a connected account."""
        ...

    @abstractmethod
    def find_payout(self, idempotency_key: str) -> PayoutResult | None:
        """Look up the transfer made under ``idempotency_key``, if any."""
        ...

    @abstractmethod
    def reverse_payout(self, transfer_id: str, amount: float) -> bool:
        """Pull a transfer back from the connected account."""
        ...
