"""Application tests for wallet commands — opening, cards, top-up and withdrawal."""

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError

from marketplace.errors import ConflictError, PaymentError
from marketplace.gateway import set_gateway
from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.member.registration import OpenPayoutAccount
from marketplace.order.creation import CreateOrder
from marketplace.order.order import Order
from marketplace.wallet.cards import AddCard, OpenWallet, RemoveCard, SetPrimaryCard
from marketplace.wallet.compensation import process_payment
from marketplace.wallet.funding import TopUpWallet, WithdrawFunds
from marketplace.wallet.wallet import TransactionType, Wallet, wallet_for_user


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestOpenWallet:
    def test_open_wallet(self, buyer_id, open_wallet):
        wallet_id = open_wallet(buyer_id)

        wallet = current_domain.repository_for(Wallet).get(wallet_id)
        assert str(wallet.user_id) == buyer_id
        assert wallet.balance == 0.0

    def test_one_wallet_per_member(self, buyer_id, open_wallet):
        open_wallet(buyer_id)
        with pytest.raises(ConflictError, match="Wallet already exists"):
            open_wallet(buyer_id)

    def test_unknown_member(self, open_wallet):
        with pytest.raises(ObjectNotFoundError):
            open_wallet("missing-member")


class TestCards:
    def test_first_card_creates_provider_customer(self, buyer_id, open_wallet, gateway):
        open_wallet(buyer_id)

        card = _process(AddCard(user_id=buyer_id, payment_method_id="pm_card_visa"))

        assert card["last4"] == "4242"
        assert card["is_primary"] is True
        assert len(gateway.calls_for("create_customer")) == 1
        assert wallet_for_user(buyer_id).provider_customer_id.startswith("fake_cus_")

    def test_second_card_reuses_customer(self, funded_wallet, gateway):
        card = _process(AddCard(user_id=funded_wallet, payment_method_id="pm_card_mastercard"))

        assert card["is_primary"] is False
        assert len(gateway.calls_for("create_customer")) == 1

    def test_duplicate_card(self, funded_wallet, gateway):
        with pytest.raises(ConflictError, match="Card already added"):
            _process(AddCard(user_id=funded_wallet, payment_method_id="pm_card_visa"))

    def test_switch_primary_and_remove(self, funded_wallet, gateway):
        _process(AddCard(user_id=funded_wallet, payment_method_id="pm_card_mastercard"))
        _process(SetPrimaryCard(user_id=funded_wallet, payment_method_id="pm_card_mastercard"))
        assert wallet_for_user(funded_wallet).primary_card.provider_method_id == "pm_card_mastercard"

        _process(RemoveCard(user_id=funded_wallet, payment_method_id="pm_card_mastercard"))

        wallet = wallet_for_user(funded_wallet)
        assert wallet.primary_card.provider_method_id == "pm_card_visa"
        assert gateway.calls_for("detach_payment_method")[-1]["method_id"] == "pm_card_mastercard"


class TestTopUp:
    def test_top_up_credits_wallet(self, funded_wallet, gateway):
        balance = _process(TopUpWallet(user_id=funded_wallet, amount=25.0))

        assert balance == 225.0
        credit = wallet_for_user(funded_wallet).transactions[-1]
        assert credit.type == TransactionType.CREDIT.value
        assert credit.reference.startswith("fake_pi_")

    def test_declined_top_up_leaves_balance(self, funded_wallet, gateway):
        gateway.configure(should_succeed=False)

        with pytest.raises(PaymentError):
            _process(TopUpWallet(user_id=funded_wallet, amount=25.0))
        assert wallet_for_user(funded_wallet).balance == 200.0


class TestWithdraw:
    def test_withdraw_requires_payout_account(self, funded_wallet):
        with pytest.raises(ConflictError, match="Payout account onboarding required"):
            _process(WithdrawFunds(user_id=funded_wallet, amount=10.0))

    def test_withdraw_pays_out(self, funded_wallet, gateway):
        _process(OpenPayoutAccount(member_id=funded_wallet))

        balance = _process(WithdrawFunds(user_id=funded_wallet, amount=60.0))

        assert balance == 140.0
        payout = gateway.calls_for("create_payout")[-1]
        assert payout["amount"] == 60.0
        assert wallet_for_user(funded_wallet).transactions[-1].reference.startswith("fake_tr_")

    def test_overdraw_is_refused_before_payout(self, funded_wallet, gateway):
        _process(OpenPayoutAccount(member_id=funded_wallet))

        with pytest.raises(PaymentError, match="Insufficient wallet balance"):
            _process(WithdrawFunds(user_id=funded_wallet, amount=500.0))
        assert gateway.calls_for("create_payout") == []

    def test_failed_payout_rolls_back_debit(self, funded_wallet, gateway):
        _process(OpenPayoutAccount(member_id=funded_wallet))
        gateway.configure(should_succeed=False, failure_reason="Account restricted")

        with pytest.raises(PaymentError, match="Account restricted"):
            _process(WithdrawFunds(user_id=funded_wallet, amount=60.0))

        wallet = wallet_for_user(funded_wallet)
        assert wallet.balance == 200.0
        assert wallet.transactions[-1].type == TransactionType.CREDIT.value


class TestConcurrentWrites:
    def test_stale_copy_cannot_overwrite(self, funded_wallet):
        repo = current_domain.repository_for(Wallet)
        first = wallet_for_user(funded_wallet)
        second = wallet_for_user(funded_wallet)

        first.debit(150.0, "First purchase")
        repo.add(first)

        second.debit(150.0, "Second purchase")
        with pytest.raises(ExpectedVersionError):
            repo.add(second)

        assert wallet_for_user(funded_wallet).balance == 50.0


class ContestedGateway(FakeGateway):
    """Commits a competing write to the member's wallet during every charge and payout."""

    def __init__(self, user_id) -> None:
        super().__init__()
        self.user_id = user_id

    def _touch_wallet(self):
        dao = current_domain.repository_for(Wallet)._dao.outside_uow()
        try:
            rival = dao.query.filter(user_id=str(self.user_id)).all().items[0]
            dao.save(rival)
        finally:
            dao._outside_uow = False

    def charge_off_session(self, *args, **kwargs):
        result = super().charge_off_session(*args, **kwargs)
        self._touch_wallet()
        return result

    def create_payout(self, *args, **kwargs):
        result = super().create_payout(*args, **kwargs)
        self._touch_wallet()
        return result


@pytest.fixture()
def contested(funded_wallet):
    fake = ContestedGateway(funded_wallet)
    set_gateway(fake)
    return fake


class TestProviderIdempotency:
    def test_repeated_top_up_key_credits_once(self, funded_wallet, gateway):
        first = _process(TopUpWallet(user_id=funded_wallet, amount=25.0, idempotency_key="tu-1"))
        second = _process(TopUpWallet(user_id=funded_wallet, amount=25.0, idempotency_key="tu-1"))

        assert first == second == 225.0
        assert gateway.calls_for("charge_off_session")[-1]["replayed"] is True
        assert len([tx for tx in wallet_for_user(funded_wallet).transactions if tx.description == "Wallet Top-Up"]) == 2

    def test_retried_top_up_charges_once_and_refunds_when_lost(self, funded_wallet, contested):
        with pytest.raises(ExpectedVersionError):
            process_payment(TopUpWallet(user_id=funded_wallet, amount=25.0))

        charges = contested.calls_for("charge_off_session")
        assert len(charges) > 1
        assert all(call["replayed"] for call in charges[1:])
        assert len(contested.captured()) == 1
        refund = contested.refunds[0]
        assert len(contested.refunds) == 1
        assert refund["transaction_id"] == contested.captured()[0].transaction_id
        assert refund["amount"] == 25.0
        assert wallet_for_user(funded_wallet).balance == 200.0

    def test_lost_withdrawal_is_reversed(self, funded_wallet, contested):
        _process(OpenPayoutAccount(member_id=funded_wallet))

        with pytest.raises(ExpectedVersionError):
            process_payment(WithdrawFunds(user_id=funded_wallet, amount=60.0))

        assert len(contested.payouts) == 1
        assert all(call["replayed"] for call in contested.calls_for("create_payout")[1:])
        assert [r["amount"] for r in contested.reversals] == [60.0]
        assert wallet_for_user(funded_wallet).balance == 200.0

    def test_lost_card_order_is_refunded(self, gig_id, buyer_id, seller_id, contested):
        with pytest.raises(ExpectedVersionError):
            process_payment(
                CreateOrder(
                    gig_id=gig_id,
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    package_type="basic",
                    requirements="A minimalist logo for a coffee shop",
                    total_amount=50.0,
                    payment_method="card",
                )
            )

        assert len(contested.captured()) == 1
        assert [r["amount"] for r in contested.refunds] == [50.0]
        assert current_domain.repository_for(Order)._dao.query.all().items == []

    def test_committed_top_up_is_not_refunded(self, funded_wallet, gateway):
        assert process_payment(TopUpWallet(user_id=funded_wallet, amount=25.0)) == 225.0
        assert gateway.refunds == []
