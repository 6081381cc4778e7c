"""BDD tests for delivery and revision rounds."""

from pytest_bdd import parsers, scenarios, then, when

from marketplace.order.revisions import RequestRevision

scenarios("features/order_revisions.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the buyer requests a revision "{message}"'))
def _(ctx, attempt, buyer_id, message):
    attempt(RequestRevision(order_id=ctx["order_id"], buyer_id=buyer_id, message=message))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order has a first delivery stamp")
def _(current_order):
    assert current_order().timeline.delivered_at is not None


@then(parsers.re(r"the order has (?P<count>\d+) revision requests?"), converters={"count": int})
def _(current_order, count):
    assert len(current_order().revision_requests) == count


@then(parsers.cfparse('the revision deliveries are "{message}"'))
def _(current_order, message):
    assert [d.message for d in current_order().revision_deliveries] == [message]
