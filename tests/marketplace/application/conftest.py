import pytest
from protean import current_domain

from marketplace.order.completion import ApproveDelivery
from marketplace.order.fulfillment import DeliverOrder


def _process(command):
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def delivered_order_id(place_order, seller_id, emails, notifications):
    order_id = place_order()
    _process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="First draft"))
    return order_id


@pytest.fixture()
def completed_order_id(delivered_order_id, buyer_id):
    _process(ApproveDelivery(order_id=delivered_order_id, buyer_id=buyer_id))
    return delivered_order_id
