"""Auto-completion sweep — finalize delivered orders the buyer never acted on.

Triggered periodically by the scheduler process (src/scheduler.py) or the
maintenance API endpoint. The sweep collects candidate orders and
dispatches one AutoCompleteOrder command per order. Each command reloads
the order and re-checks every guard before completing it, so running the
sweep again, or racing it against a buyer's approval, never completes (or
notifies about) an order twice: the loser sees either a completed order
or a version conflict.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ConflictError
from marketplace.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class AutoCompleteDeliveredOrders:
    """Complete every delivered order whose last delivery is older than the window."""

    as_of = DateTime()  # Optional: defaults to now
    batch_size = Integer(default=100, min_value=1)


@marketplace.command(part_of="Order")
class AutoCompleteOrder:
    order_id = Identifier(required=True)
    as_of = DateTime()


def _due_order_ids(as_of, batch_size):
    query = current_domain.repository_for(Order)._dao.query.filter(status=OrderStatus.DELIVERED.value)

    due = []
    offset = 0
    while True:
        page = query.offset(offset).limit(batch_size).all()
        due.extend(str(order.id) for order in page.items if order.is_due_for_auto_completion(as_of))
        if not page.has_next:
            break
        offset += batch_size
    return due


@marketplace.command_handler(part_of=Order)
class AutoCompletionHandler:
    @handle(AutoCompleteDeliveredOrders)
    def auto_complete_delivered_orders(self, command):
        as_of = command.as_of or datetime.now(UTC)
        due = _due_order_ids(as_of, command.batch_size or 100)

        if not due:
            logger.info("No orders due for auto-completion", as_of=as_of.isoformat())
            return 0

        completed = 0
        for order_id in due:
            try:
                current_domain.process(AutoCompleteOrder(order_id=order_id, as_of=as_of), asynchronous=False)
                completed += 1
            except (ConflictError, ExpectedVersionError) as exc:
                logger.info("Skipped auto-completion", order_id=order_id, reason=str(exc))

        logger.info("Auto-completion sweep finished", candidates=len(due), completed=completed)
        return completed

    @handle(AutoCompleteOrder)
    def auto_complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.auto_complete(command.as_of or datetime.now(UTC))
        repo.add(order)
        logger.info("Order auto-completed", order_id=str(order.id), seller_id=str(order.seller_id))
