"""Shared BDD fixtures and step definitions for the Marketplace domain."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from marketplace.errors import ConflictError, MarketplaceError
from marketplace.order.creation import CreateOrder
from marketplace.order.fulfillment import DeliverOrder
from marketplace.order.order import Order
from marketplace.wallet.cards import AddCard
from marketplace.wallet.funding import TopUpWallet


def _attempt(ctx, command):
    """Process a command, keeping a domain failure in ``ctx`` instead of raising it."""
    ctx["error"] = None
    try:
        return current_domain.process(command, asynchronous=False)
    except (MarketplaceError, ValidationError) as exc:
        ctx["error"] = exc
        return None


@pytest.fixture()
def ctx():
    """Mutable scenario state shared between steps."""
    return {"order_id": None, "error": None, "result": None}


@pytest.fixture()
def attempt(ctx):
    def _process(command):
        return _attempt(ctx, command)

    return _process


@pytest.fixture()
def current_order(ctx):
    def _load():
        return current_domain.repository_for(Order).get(ctx["order_id"])

    return _load


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a seller with a published logo gig")
def _(gig_id, gateway, emails, notifications):
    pass


@given(parsers.cfparse("the buyer's wallet holds {amount:f}"))
def _(buyer_id, open_wallet, amount):
    open_wallet(buyer_id)
    current_domain.process(AddCard(user_id=buyer_id, payment_method_id="pm_card_visa"), asynchronous=False)
    current_domain.process(TopUpWallet(user_id=buyer_id, amount=amount), asynchronous=False)


@given(parsers.cfparse('the buyer has ordered the "{package_type}" package for {amount:f}'))
def _(ctx, gig_id, buyer_id, seller_id, package_type, amount):
    ctx["order_id"] = current_domain.process(
        CreateOrder(
            gig_id=gig_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            package_type=package_type,
            requirements="A logo for a neighbourhood bakery",
            total_amount=amount,
            payment_method="balance",
        ),
        asynchronous=False,
    )


@given(parsers.cfparse('the seller delivers "{message}"'))
@when(parsers.cfparse('the seller delivers "{message}"'))
def _(ctx, seller_id, message):
    _attempt(ctx, DeliverOrder(order_id=ctx["order_id"], seller_id=seller_id, message=message))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(current_order, status):
    assert current_order().status == status


@then("the request is refused as a conflict")
def _(ctx):
    assert isinstance(ctx["error"], ConflictError)


@then("the request is refused as invalid")
def _(ctx):
    assert isinstance(ctx["error"], ValidationError)
