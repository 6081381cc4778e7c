"""Application tests for order creation — payment capture first, then persistence."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.errors import ConflictError, ForbiddenError, PaymentError
from marketplace.gig.publishing import UpdateGigPackage
from marketplace.order.creation import CreateOrder
from marketplace.order.order import Order, OrderStatus
from marketplace.projections.order_summary import OrderSummary
from marketplace.wallet.cards import AddCard
from marketplace.wallet.funding import TopUpWallet
from marketplace.wallet.wallet import TransactionType, wallet_for_user


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _create(gig_id, buyer_id, seller_id, **overrides):
    fields = {
        "gig_id": gig_id,
        "buyer_id": buyer_id,
        "seller_id": seller_id,
        "package_type": "basic",
        "requirements": "A minimalist logo",
        "total_amount": 100.0,
        "payment_method": "balance",
    }
    fields.update(overrides)
    return _process(CreateOrder(**fields))


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestBalancePayment:
    def test_insufficient_balance_creates_nothing(
        self, gig_id, buyer_id, seller_id, open_wallet, gateway, notifications
    ):
        open_wallet(buyer_id)
        _process(AddCard(user_id=buyer_id, payment_method_id="pm_card_visa"))
        _process(TopUpWallet(user_id=buyer_id, amount=50.0))

        with pytest.raises(PaymentError, match="Insufficient wallet balance"):
            _create(gig_id, buyer_id, seller_id)

        assert _orders() == []
        assert wallet_for_user(buyer_id).balance == 50.0
        failed = [n for n in notifications.for_user(buyer_id) if n["title"] == "Payment Failed"]
        assert len(failed) == 1

    def test_balance_payment_debits_wallet(self, gig_id, buyer_id, seller_id, funded_wallet):
        order_id = _create(gig_id, buyer_id, seller_id)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.is_paid is True
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_method == "balance"

        wallet = wallet_for_user(buyer_id)
        assert wallet.balance == 100.0
        debits = [tx for tx in wallet.transactions if tx.type == TransactionType.DEBIT.value]
        assert len(debits) == 1
        assert debits[0].amount == 100.0
        assert order.payment_reference == str(debits[0].id)

    def test_summary_row_is_projected(self, gig_id, buyer_id, seller_id, funded_wallet):
        order_id = _create(gig_id, buyer_id, seller_id)

        summary = current_domain.repository_for(OrderSummary).get(order_id)
        assert summary.status == OrderStatus.PENDING.value
        assert summary.is_paid is True
        assert summary.package_name == "Basic Logo"


class TestCardPayment:
    def test_card_payment_charges_primary_card(self, gig_id, buyer_id, seller_id, funded_wallet, gateway):
        order_id = _create(gig_id, buyer_id, seller_id, payment_method="card")

        order = current_domain.repository_for(Order).get(order_id)
        charges = gateway.calls_for("charge_off_session")
        assert charges[-1]["amount"] == 100.0
        assert charges[-1]["metadata"]["order_id"] == order_id
        assert order.payment_reference.startswith("fake_pi_")
        assert order.receipt_url is not None

        wallet = wallet_for_user(buyer_id)
        assert wallet.balance == 200.0
        assert wallet.transactions[-1].affects_balance is False

    def test_declined_card_creates_nothing(self, gig_id, buyer_id, seller_id, funded_wallet, gateway, notifications):
        gateway.configure(should_succeed=False, failure_reason="Your card was declined")

        with pytest.raises(PaymentError, match="Your card was declined"):
            _create(gig_id, buyer_id, seller_id, payment_method="card")

        assert _orders() == []
        assert any(n["title"] == "Payment Failed" for n in notifications.for_user(buyer_id))

    def test_card_payment_without_card(self, gig_id, buyer_id, seller_id, open_wallet):
        open_wallet(buyer_id)
        with pytest.raises(PaymentError, match="No primary card on file"):
            _create(gig_id, buyer_id, seller_id, payment_method="card")

    def test_buyer_without_wallet(self, gig_id, buyer_id, seller_id):
        with pytest.raises(ObjectNotFoundError):
            _create(gig_id, buyer_id, seller_id)
        assert _orders() == []


class TestPackages:
    def test_listed_package_is_snapshotted(self, gig_id, buyer_id, seller_id, funded_wallet):
        order_id = _create(gig_id, buyer_id, seller_id, package_type="standard", total_amount=120.0)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.package_details.name == "Standard Logo"
        assert order.package_details.revisions == 2
        assert order.package_details.number_of_pages == 3

    def test_gig_edits_do_not_reach_existing_orders(self, gig_id, buyer_id, seller_id, funded_wallet):
        order_id = _create(gig_id, buyer_id, seller_id, package_type="basic", total_amount=50.0)

        _process(
            UpdateGigPackage(
                gig_id=gig_id,
                seller_id=seller_id,
                package_type="basic",
                name="Basic Logo Deluxe",
                price=80.0,
                delivery_time=1,
                revisions=9,
            )
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.package_details.name == "Basic Logo"
        assert order.package_details.revisions == 1

    def test_custom_package_gets_fixed_revision_quota(self, gig_id, buyer_id, seller_id, funded_wallet):
        order_id = _create(
            gig_id,
            buyer_id,
            seller_id,
            package_type="custom",
            total_amount=75.0,
            custom_description="Logo plus business card",
            custom_delivery_time=4,
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order.package_details.revisions == 5
        assert order.package_details.price == 75.0
        assert order.package_details.name == "Custom Offer"

    def test_custom_package_needs_description_and_delivery_time(self, gig_id, buyer_id, seller_id, funded_wallet):
        with pytest.raises(ValidationError) as exc:
            _create(gig_id, buyer_id, seller_id, package_type="custom")

        assert "custom_description" in exc.value.messages
        assert "custom_delivery_time" in exc.value.messages
        assert wallet_for_user(buyer_id).balance == 200.0

    def test_missing_listed_package(self, gig_id, buyer_id, seller_id, funded_wallet):
        with pytest.raises(ObjectNotFoundError):
            _create(gig_id, buyer_id, seller_id, package_type="premium")
        assert wallet_for_user(buyer_id).balance == 200.0


class TestOwnership:
    def test_seller_must_own_gig(self, gig_id, buyer_id, register_member, funded_wallet):
        other_seller = register_member("other@example.com", roles=("seller",))
        with pytest.raises(ForbiddenError, match="Seller does not own this gig"):
            _create(gig_id, buyer_id, other_seller)

    def test_seller_cannot_buy_own_gig(self, gig_id, seller_id, open_wallet, gateway):
        open_wallet(seller_id)
        _process(AddCard(user_id=seller_id, payment_method_id="pm_card_visa"))
        _process(TopUpWallet(user_id=seller_id, amount=200.0))

        with pytest.raises(ConflictError, match="You cannot order your own gig"):
            _create(gig_id, seller_id, seller_id)
        assert wallet_for_user(seller_id).balance == 200.0
