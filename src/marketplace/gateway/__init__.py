"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- StripeGateway when PAYMENT_GATEWAY=stripe
"""

import os

from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _gateway_from_env() -> PaymentGateway:
    if os.environ.get("PAYMENT_GATEWAY", "fake").lower() == "stripe":
        from marketplace.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=os.environ["STRIPE_SECRET_KEY"],
            currency=os.environ.get("PAYMENT_CURRENCY", "usd"),
            client_url=os.environ.get("CLIENT_URL", "http://localhost:3000"),
            payout_country=os.environ.get("PAYOUT_COUNTRY", "US"),
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _gateway_from_env()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the environment-configured gateway."""
    global _current_gateway
    _current_gateway = None
