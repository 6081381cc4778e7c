from datetime import UTC, datetime

import pytest

from marketplace.order.order import Order, PackageSnapshot


def build_order(revisions=2, buyer_id="buyer-001", seller_id="seller-001", referrer_id=None, files=None):
    order = Order.place(
        gig_id="gig-001",
        buyer_id=buyer_id,
        seller_id=seller_id,
        package_type="standard",
        package=PackageSnapshot(name="Standard Logo", price=120.0, delivery_time=5, revisions=revisions),
        requirements="A logo for a bakery",
        total_amount=120.0,
        files=files,
        referrer_id=referrer_id,
    )
    order.confirm_payment("balance", "wallet-debit", datetime.now(UTC))
    order._events.clear()
    return order


@pytest.fixture()
def make_order():
    return build_order


@pytest.fixture()
def delivered_order():
    order = build_order()
    order.deliver("seller-001", "First draft attached")
    order._events.clear()
    return order
