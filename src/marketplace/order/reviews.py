"""Order reviews — one from each side, once the order is completed."""

from protean import handle
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class SubmitBuyerReview:
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    overall_rating = Integer(required=True, min_value=1, max_value=5)
    communication_level = Integer(required=True, min_value=1, max_value=5)
    service_as_described = Integer(required=True, min_value=1, max_value=5)
    recommend_to_friend = Integer(required=True, min_value=1, max_value=5)
    review = Text()


@marketplace.command(part_of="Order")
class SubmitSellerReview:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    review = Text()


@marketplace.command_handler(part_of=Order)
class ReviewHandler:
    @handle(SubmitBuyerReview)
    def submit_buyer_review(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.submit_buyer_review(
            buyer_id=command.buyer_id,
            overall_rating=command.overall_rating,
            communication_level=command.communication_level,
            service_as_described=command.service_as_described,
            recommend_to_friend=command.recommend_to_friend,
            review=command.review,
        )
        repo.add(order)

    @handle(SubmitSellerReview)
    def submit_seller_review(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.submit_seller_review(command.seller_id, command.rating, command.review)
        repo.add(order)
