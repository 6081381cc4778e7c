"""Stripe payment provider adapter.

Uses the stripe-python SDK:
- Customers and PaymentMethods for stored cards
- PaymentIntents confirmed off-session for order and top-up charges
- Connect Express accounts and Transfers for withdrawals
- Refunds and transfer reversals to undo money movement that was never recorded

Provider exceptions during a charge are reported as a failed ChargeResult;
the caller treats them as a hard failure, never as a retryable timeout.
"""

import structlog
import stripe

from marketplace.errors import DependencyError
from marketplace.gateway.port import (
    CardDetails,
    ChargeResult,
    PaymentGateway,
    PayoutAccount,
    PayoutResult,
    RefundResult,
)

logger = structlog.get_logger(__name__)


def _to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def _charge_result(intent) -> ChargeResult:
    if intent.status != "succeeded":
        return ChargeResult(
            success=False,
            transaction_id=intent.id,
            status=intent.status,
            failure_reason=f"Payment {intent.status}",
        )

    charge = intent.latest_charge
    receipt_url = getattr(charge, "receipt_url", None) if charge and not isinstance(charge, str) else None
    return ChargeResult(
        success=True,
        transaction_id=intent.id,
        status=intent.status,
        receipt_url=receipt_url,
    )


class StripeGateway(PaymentGateway):
    """Production Stripe adapter."""

    def __init__(
        self,
        api_key: str,
        currency: str = "usd",
        client_url: str = "http://localhost:3000",
        payout_country: str = "US",
    ) -> None:
        self.api_key = api_key
        self.currency = currency
        self.client_url = client_url.rstrip("/")
        self.payout_country = payout_country

    def create_customer(self, email: str, name: str) -> str:
        try:
            customer = stripe.Customer.create(email=email, name=name, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe customer creation failed", email=email, error=str(exc))
            raise DependencyError("Failed to create payment customer") from exc
        return customer.id

    def attach_payment_method(self, customer_id: str, method_id: str) -> CardDetails:
        try:
            method = stripe.PaymentMethod.attach(method_id, customer=customer_id, api_key=self.api_key)
            stripe.Customer.modify(
                customer_id,
                invoice_settings={"default_payment_method": method_id},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe payment method attach failed", customer_id=customer_id, error=str(exc))
            raise DependencyError("Failed to attach payment method") from exc

        card = method.card
        return CardDetails(
            method_id=method.id,
            brand=card.brand if card else None,
            last4=card.last4 if card else None,
            exp_month=card.exp_month if card else None,
            exp_year=card.exp_year if card else None,
        )

    def detach_payment_method(self, method_id: str) -> None:
        try:
            stripe.PaymentMethod.detach(method_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe payment method detach failed", method_id=method_id, error=str(exc))
            raise DependencyError("Failed to remove payment method") from exc

    def charge_off_session(
        self,
        customer_id: str,
        method_id: str,
        amount: float,
        metadata: dict,
        idempotency_key: str,
    ) -> ChargeResult:
        tagged = {**metadata, "idempotency_key": idempotency_key}
        try:
            intent = stripe.PaymentIntent.create(
                amount=_to_minor_units(amount),
                currency=self.currency,
                customer=customer_id,
                payment_method=method_id,
                off_session=True,
                confirm=True,
                metadata={key: str(value) for key, value in tagged.items()},
                expand=["latest_charge"],
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe charge failed", customer_id=customer_id, error=str(exc))
            return ChargeResult(
                success=False,
                status="error",
                failure_reason=getattr(exc, "user_message", None) or str(exc),
            )
        return _charge_result(intent)

    def find_charge(self, idempotency_key: str) -> ChargeResult | None:
        try:
            found = stripe.PaymentIntent.search(
                query=f"metadata['idempotency_key']:'{idempotency_key}'",
                expand=["data.latest_charge"],
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe charge lookup failed", idempotency_key=idempotency_key, error=str(exc))
            raise DependencyError("Failed to look up payment") from exc
        if not found.data:
            return None
        return _charge_result(found.data[0])

    def create_refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        try:
            refund = stripe.Refund.create(
                payment_intent=transaction_id,
                amount=_to_minor_units(amount),
                metadata={"reason": reason},
                idempotency_key=f"{transaction_id}:refund",
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe refund failed", transaction_id=transaction_id, error=str(exc))
            return RefundResult(success=False, failure_reason=str(exc))
        return RefundResult(success=refund.status in ("succeeded", "pending"), refund_id=refund.id)

    def create_payout_account(self, email: str) -> PayoutAccount:
        try:
            account = stripe.Account.create(
                type="express",
                country=self.payout_country,
                email=email,
                business_type="individual",
                capabilities={"transfers": {"requested": True}},
                api_key=self.api_key,
            )
            link = stripe.AccountLink.create(
                account=account.id,
                refresh_url=f"{self.client_url}/settings/billing",
                return_url=f"{self.client_url}/settings/billing",
                type="account_onboarding",
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe payout account creation failed", email=email, error=str(exc))
            raise DependencyError("Failed to create payout account") from exc
        return PayoutAccount(account_id=account.id, onboarding_url=link.url)

    def create_payout(self, account_id: str, amount: float, metadata: dict, idempotency_key: str) -> PayoutResult:
        try:
            transfer = stripe.Transfer.create(
                amount=_to_minor_units(amount),
                currency=self.currency,
                destination=account_id,
                transfer_group=idempotency_key,
                metadata={key: str(value) for key, value in metadata.items()},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe transfer failed", account_id=account_id, error=str(exc))
            return PayoutResult(success=False, failure_reason=str(exc))
        return PayoutResult(success=True, transfer_id=transfer.id, metadata=dict(metadata))

    def find_payout(self, idempotency_key: str) -> PayoutResult | None:
        try:
            found = stripe.Transfer.list(transfer_group=idempotency_key, limit=1, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.error("Stripe transfer lookup failed", idempotency_key=idempotency_key, error=str(exc))
            raise DependencyError("Failed to look up payout") from exc
        if not found.data:
            return None
        transfer = found.data[0]
        return PayoutResult(success=True, transfer_id=transfer.id, metadata=dict(transfer.metadata or {}))

    def reverse_payout(self, transfer_id: str, amount: float) -> bool:
        try:
            stripe.Transfer.create_reversal(
                transfer_id,
                amount=_to_minor_units(amount),
                idempotency_key=f"{transfer_id}:reversal",
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe transfer reversal failed", transfer_id=transfer_id, error=str(exc))
            return False
        return True
