"""BDD tests for paying for an order."""

from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when

from marketplace.errors import PaymentError
from marketplace.order.creation import CreateOrder
from marketplace.order.order import Order
from marketplace.wallet.wallet import TransactionType, wallet_for_user

scenarios("features/order_payment.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the buyer orders the "{package_type}" package for {amount:f} paid by "{method}"'))
def _(ctx, attempt, gig_id, buyer_id, seller_id, package_type, amount, method):
    ctx["order_id"] = attempt(
        CreateOrder(
            gig_id=gig_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            package_type=package_type,
            requirements="A logo for a neighbourhood bakery",
            total_amount=amount,
            payment_method=method,
        ),
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order is refused with a payment error")
def _(ctx):
    assert isinstance(ctx["error"], PaymentError)


@then("no order exists")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().items == []


@then(parsers.cfparse('the buyer received {count:d} "{title}" notification'))
def _(notifications, buyer_id, count, title):
    assert len([n for n in notifications.for_user(buyer_id) if n["title"] == title]) == count


@then("the order is paid")
def _(ctx, current_order):
    assert ctx["error"] is None
    assert current_order().is_paid is True


@then(parsers.cfparse("the buyer's wallet balance is {amount:f}"))
def _(buyer_id, amount):
    assert wallet_for_user(buyer_id).balance == amount


@then(parsers.cfparse("the buyer's wallet has {count:d} debit of {amount:f}"))
def _(buyer_id, count, amount):
    debits = [tx for tx in wallet_for_user(buyer_id).transactions if tx.type == TransactionType.DEBIT.value]
    assert len(debits) == count
    assert all(tx.amount == amount for tx in debits)
