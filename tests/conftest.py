import json
import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from marketplace.domain import marketplace

    marketplace.init()
    marketplace.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db, setup_db

    setup_db(marketplace)

    yield

    drop_db(marketplace)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from marketplace.channel import reset_channels
    from marketplace.gateway import reset_gateway
    from marketplace.storage import reset_storage

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_channels()
    reset_storage()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    from marketplace.gateway import set_gateway
    from marketplace.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def emails():
    from marketplace.channel import set_email_sender
    from marketplace.channel.fake_email import FakeEmailAdapter

    fake = FakeEmailAdapter()
    set_email_sender(fake)
    return fake


@pytest.fixture()
def notifications():
    from marketplace.channel import set_notification_sink
    from marketplace.channel.fake_notification import FakeNotificationSink

    fake = FakeNotificationSink()
    set_notification_sink(fake)
    return fake


@pytest.fixture()
def storage():
    from marketplace.storage import set_storage
    from marketplace.storage.fake_storage import FakeFileStorage

    fake = FakeFileStorage()
    set_storage(fake)
    return fake


# ---------------------------------------------------------------------------
# Marketplace builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def register_member():
    from protean import current_domain

    from marketplace.member.registration import RegisterMember

    def _register(email, first_name="Test", last_name="Member", roles=("buyer",)):
        return current_domain.process(
            RegisterMember(email=email, first_name=first_name, last_name=last_name, roles=json.dumps(list(roles))),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def buyer_id(register_member):
    return register_member("buyer@example.com", first_name="Bea", roles=("buyer",))


@pytest.fixture()
def seller_id(register_member):
    return register_member("seller@example.com", first_name="Sam", roles=("buyer", "seller"))


@pytest.fixture()
def admin_id(register_member):
    return register_member("admin@example.com", first_name="Ada", roles=("admin",))


@pytest.fixture()
def gig_id(seller_id):
    from protean import current_domain

    from marketplace.gig.publishing import PublishGig

    packages = [
        {
            "package_type": "basic",
            "name": "Basic Logo",
            "description": "One concept",
            "price": 50.0,
            "delivery_time": 3,
            "revisions": 1,
        },
        {
            "package_type": "standard",
            "name": "Standard Logo",
            "description": "Three concepts",
            "price": 120.0,
            "delivery_time": 5,
            "revisions": 2,
            "number_of_pages": 3,
        },
    ]
    return current_domain.process(
        PublishGig(seller_id=seller_id, title="I will design your logo", packages=json.dumps(packages)),
        asynchronous=False,
    )


@pytest.fixture()
def open_wallet():
    from protean import current_domain

    from marketplace.wallet.cards import OpenWallet

    def _open(user_id):
        return current_domain.process(OpenWallet(user_id=user_id), asynchronous=False)

    return _open


@pytest.fixture()
def funded_wallet(buyer_id, open_wallet, gateway):
    """Buyer wallet with one card on file and a balance of 200.00."""
    from protean import current_domain

    from marketplace.wallet.cards import AddCard
    from marketplace.wallet.funding import TopUpWallet

    open_wallet(buyer_id)
    current_domain.process(AddCard(user_id=buyer_id, payment_method_id="pm_card_visa"), asynchronous=False)
    current_domain.process(TopUpWallet(user_id=buyer_id, amount=200.0), asynchronous=False)
    return buyer_id


@pytest.fixture()
def place_order(gig_id, buyer_id, seller_id, funded_wallet):
    from protean import current_domain

    from marketplace.order.creation import CreateOrder

    def _place(package_type="basic", total_amount=50.0, payment_method="balance", **extra):
        return current_domain.process(
            CreateOrder(
                gig_id=gig_id,
                buyer_id=buyer_id,
                seller_id=seller_id,
                package_type=package_type,
                requirements="A minimalist logo for a coffee shop",
                total_amount=total_amount,
                payment_method=payment_method,
                **extra,
            ),
            asynchronous=False,
        )

    return _place
