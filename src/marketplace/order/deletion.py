"""Admin order deletion — removes the order, its read-model rows and its stored files."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ForbiddenError
from marketplace.member.member import Member, MemberRole
from marketplace.order.order import Order
from marketplace.projections.coworker_assignment import CoworkerAssignment
from marketplace.projections.order_summary import OrderSummary
from marketplace.storage import get_storage

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    admin_id = Identifier(required=True)


def _release_files(order_id, public_ids):
    storage = get_storage()
    released = 0
    for public_id in public_ids:
        try:
            storage.delete(public_id)
            released += 1
        except Exception:
            logger.exception("Failed to release order file", order_id=order_id, public_id=public_id)
    return released


@marketplace.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        admin = current_domain.repository_for(Member).get(command.admin_id)
        if not admin.has_role(MemberRole.ADMIN):
            raise ForbiddenError("Only admins can delete orders")

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order_id = str(order.id)
        public_ids = order.stored_file_ids()

        repo._dao.delete(order)

        for view in (OrderSummary, CoworkerAssignment):
            view_repo = current_domain.repository_for(view)
            for record in view_repo._dao.query.filter(order_id=order_id).all().items:
                view_repo._dao.delete(record)

        released = _release_files(order_id, public_ids)
        logger.info("Order deleted", order_id=order_id, admin_id=str(admin.id), files_released=released)
