"""Configurable fake payment provider for development and testing.

Simulates the provider without network calls. It can be switched to fail
at runtime (via /payments/gateway/configure or directly in tests), and it
records every call for assertions. Like the real provider, a charge or
payout repeated under the same idempotency key replays the first result.
"""

from uuid import uuid4

from marketplace.gateway.port import (
    CardDetails,
    ChargeResult,
    PaymentGateway,
    PayoutAccount,
    PayoutResult,
    RefundResult,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment provider."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self.charges: dict[str, ChargeResult] = {}
        self.payouts: dict[str, PayoutResult] = {}
        self.refunds: list[dict] = []
        self.reversals: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        """Configure provider behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def calls_for(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def captured(self) -> list[ChargeResult]:
        """Successful charges, one per idempotency key."""
        return [result for result in self.charges.values() if result.success]

    def create_customer(self, email: str, name: str) -> str:
        self.calls.append({"method": "create_customer", "email": email, "name": name})
        return f"fake_cus_{uuid4().hex[:12]}"

    def attach_payment_method(self, customer_id: str, method_id: str) -> CardDetails:
        self.calls.append(
            {
                "method": "attach_payment_method",
                "customer_id": customer_id,
                "method_id": method_id,
            }
        )
        return CardDetails(
            method_id=method_id,
            brand="visa",
            last4="4242",
            exp_month=12,
            exp_year=2030,
        )

    def detach_payment_method(self, method_id: str) -> None:
        self.calls.append({"method": "detach_payment_method", "method_id": method_id})

    def charge_off_session(
        self,
        customer_id: str,
        method_id: str,
        amount: float,
        metadata: dict,
        idempotency_key: str,
    ) -> ChargeResult:
        replayed = idempotency_key in self.charges
        self.calls.append(
            {
                "method": "charge_off_session",
                "customer_id": customer_id,
                "method_id": method_id,
                "amount": amount,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
                "replayed": replayed,
            }
        )
        if replayed:
            return self.charges[idempotency_key]

        if self.should_succeed:
            transaction_id = f"fake_pi_{uuid4().hex[:12]}"
            result = ChargeResult(
                success=True,
                transaction_id=transaction_id,
                status="succeeded",
                receipt_url=f"https://receipts.example.test/{transaction_id}",
            )
        else:
            result = ChargeResult(
                success=False,
                status="failed",
                failure_reason=self.failure_reason,
            )
        self.charges[idempotency_key] = result
        return result

    def find_charge(self, idempotency_key: str) -> ChargeResult | None:
        return self.charges.get(idempotency_key)

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
            }
        )
        refund_id = f"fake_re_{uuid4().hex[:12]}"
        self.refunds.append({"transaction_id": transaction_id, "amount": amount, "refund_id": refund_id})
        return RefundResult(success=True, refund_id=refund_id)

    def create_payout_account(self, email: str) -> PayoutAccount:
        self.calls.append({"method": "create_payout_account", "email": email})
        account_id = f"fake_acct_{uuid4().hex[:12]}"
        return PayoutAccount(
            account_id=account_id,
            onboarding_url=f"https://connect.example.test/onboarding/{account_id}",
        )

    def create_payout(self, account_id: str, amount: float, metadata: dict, idempotency_key: str) -> PayoutResult:
        replayed = idempotency_key in self.payouts
        self.calls.append(
            {
                "method": "create_payout",
                "account_id": account_id,
                "amount": amount,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
                "replayed": replayed,
            }
        )
        if replayed:
            return self.payouts[idempotency_key]

        if self.should_succeed:
            result = PayoutResult(success=True, transfer_id=f"fake_tr_{uuid4().hex[:12]}", metadata=dict(metadata))
        else:
            result = PayoutResult(success=False, failure_reason=self.failure_reason)
        self.payouts[idempotency_key] = result
        return result

    def find_payout(self, idempotency_key: str) -> PayoutResult | None:
        return self.payouts.get(idempotency_key)

    def reverse_payout(self, transfer_id: str, amount: float) -> bool:
        self.calls.append({"method": "reverse_payout", "transfer_id": transfer_id, "amount": amount})
        self.reversals.append({"transfer_id": transfer_id, "amount": amount})
        return True
