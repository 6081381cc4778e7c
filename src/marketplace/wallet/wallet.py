"""Wallet aggregate — stored balance, append-only ledger, cards and referral rewards.

Transactions are the source of truth and ``balance`` is a cache of them.
Every method that moves money changes both inside ``atomic_change`` so the
ledger invariant is checked once, on the combined result. Concurrent
writers are serialized by the aggregate version: a stale copy cannot be
saved, which rules out read-modify-write overdrafts.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError, PaymentError
from marketplace.wallet.events import ReferralCredited

# Ledger comparisons are made to the cent
_CENT = 0.005


class TransactionType(Enum):
    CREDIT = "credit"
    DEBIT = "debit"


def _money(amount) -> float:
    return round(float(amount), 2)


@marketplace.entity(part_of="Wallet")
class WalletTransaction:
    type = String(required=True, choices=TransactionType)
    amount = Float(required=True, min_value=0.01)
    description = String(max_length=255)
    # Card-funded order payments are listed on the statement but never touch the balance
    affects_balance = Boolean(default=True)
    reference = String(max_length=255)
    created_at = DateTime()


@marketplace.entity(part_of="Wallet")
class StoredCard:
    provider_method_id = String(required=True, max_length=255)
    brand = String(max_length=50)
    last4 = String(max_length=4)
    exp_month = Integer()
    exp_year = Integer()
    is_primary = Boolean(default=False)


@marketplace.entity(part_of="Wallet")
class Referral:
    referred_user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    credits_earned = Float(required=True, min_value=0.01)
    earned_at = DateTime()


@marketplace.aggregate
class Wallet:
    user_id = Identifier(required=True, unique=True)
    balance = Float(default=0.0, min_value=0.0)
    provider_customer_id = String(max_length=255)
    transactions = HasMany(WalletTransaction)
    cards = HasMany(StoredCard)
    referrals = HasMany(Referral)
    created_at = DateTime()

    @invariant.post
    def balance_matches_ledger(self):
        if abs(_money(self.balance or 0.0) - self.ledger_balance()) > _CENT:
            raise ValidationError({"balance": ["Balance does not match the transaction ledger"]})

    @invariant.post
    def at_most_one_primary_card(self):
        if len([c for c in self.cards if c.is_primary]) > 1:
            raise ValidationError({"cards": ["Only one card can be primary"]})

    @invariant.post
    def one_referral_per_order(self):
        order_ids = [str(r.order_id) for r in self.referrals]
        if len(order_ids) != len(set(order_ids)):
            raise ValidationError({"referrals": ["A referral can be credited only once per order"]})

    @classmethod
    def open(cls, user_id):
        return cls(user_id=user_id, balance=0.0, created_at=datetime.now(UTC))

    # -------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------
    def ledger_balance(self) -> float:
        total = 0.0
        for tx in self.transactions:
            if not tx.affects_balance:
                continue
            total += tx.amount if tx.type == TransactionType.CREDIT.value else -tx.amount
        return _money(total)

    def _append(self, tx_type, amount, description, affects_balance=True, reference=None):
        tx = WalletTransaction(
            type=tx_type.value,
            amount=amount,
            description=description,
            affects_balance=affects_balance,
            reference=reference,
            created_at=datetime.now(UTC),
        )
        self.add_transactions(tx)
        return tx

    def credit(self, amount, description, reference=None):
        amount = _money(amount)
        if amount <= 0:
            raise ValidationError({"amount": ["Amount must be positive"]})

        with atomic_change(self):
            self.balance = _money(self.balance + amount)
            self._append(TransactionType.CREDIT, amount, description, reference=reference)

    def has_reference(self, reference) -> bool:
        """True when a provider charge or transfer is already on the ledger."""
        return bool(reference) and any(tx.reference == reference for tx in self.transactions)

    def ensure_funds(self, amount):
        if self.balance + _CENT < _money(amount):
            raise PaymentError("Insufficient wallet balance")

    def debit(self, amount, description, reference=None):
        amount = _money(amount)
        if amount <= 0:
            raise ValidationError({"amount": ["Amount must be positive"]})
        self.ensure_funds(amount)

        with atomic_change(self):
            self.balance = _money(self.balance - amount)
            self._append(TransactionType.DEBIT, amount, description, reference=reference)

    def record_card_payment(self, amount, description, reference=None):
        """Record a charge made against a stored card; the balance is untouched."""
        self._append(
            TransactionType.DEBIT,
            _money(amount),
            description,
            affects_balance=False,
            reference=reference,
        )

    # -------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------
    @property
    def primary_card(self) -> StoredCard | None:
        return next((c for c in self.cards if c.is_primary), None)

    def _card(self, method_id) -> StoredCard | None:
        return next((c for c in self.cards if c.provider_method_id == method_id), None)

    def has_card(self, method_id) -> bool:
        return self._card(method_id) is not None

    def add_card(self, card_details) -> StoredCard:
        if self.has_card(card_details.method_id):
            raise ConflictError("Card already added")

        card = StoredCard(
            provider_method_id=card_details.method_id,
            brand=card_details.brand,
            last4=card_details.last4,
            exp_month=card_details.exp_month,
            exp_year=card_details.exp_year,
            is_primary=not self.cards,
        )
        self.add_cards(card)
        return card

    def set_primary_card(self, method_id):
        card = self._card(method_id)
        if card is None:
            raise ObjectNotFoundError({"method_id": ["Card not found"]})

        with atomic_change(self):
            for other in self.cards:
                other.is_primary = False
            card.is_primary = True

    def remove_card(self, method_id) -> StoredCard | None:
        """Remove a card, promoting the next one when the primary goes.

        Returns the newly promoted card, if any.
        """
        card = self._card(method_id)
        if card is None:
            raise ObjectNotFoundError({"method_id": ["Card not found"]})

        was_primary = card.is_primary
        self.remove_cards(card)
        if was_primary and self.cards:
            promoted = self.cards[0]
            promoted.is_primary = True
            return promoted
        return None

    # -------------------------------------------------------------------
    # Referrals
    # -------------------------------------------------------------------
    def has_referral_for(self, order_id) -> bool:
        return any(str(r.order_id) == str(order_id) for r in self.referrals)

    def credit_referral(self, order_id, referred_user_id, amount) -> bool:
        """Credit a referral reward once per order. Returns False when already credited."""
        if self.has_referral_for(order_id):
            return False

        amount = _money(amount)
        self.credit(amount, "Referral reward", reference=str(order_id))
        self.add_referrals(
            Referral(
                referred_user_id=referred_user_id,
                order_id=order_id,
                credits_earned=amount,
                earned_at=datetime.now(UTC),
            )
        )

        self.raise_(
            ReferralCredited(
                wallet_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                referred_user_id=str(referred_user_id),
                amount=amount,
            )
        )
        return True


def wallet_for_user(user_id) -> Wallet:
    """Load the wallet owned by a user."""
    repo = current_domain.repository_for(Wallet)
    matches = repo._dao.query.filter(user_id=str(user_id)).all().items
    if not matches:
        raise ObjectNotFoundError({"wallet": [f"Wallet not found for user {user_id}"]})
    return repo.get(matches[0].id)
