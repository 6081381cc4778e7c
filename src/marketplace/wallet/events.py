"""Domain events for the Wallet aggregate."""

from protean.fields import Float, Identifier

from marketplace.domain import marketplace


@marketplace.event(part_of="Wallet")
class ReferralCredited:
    """A referrer's wallet received the reward for a completed order."""

    __version__ = 1

    wallet_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    referred_user_id = Identifier(required=True)
    amount = Float(required=True)
