"""Gig publishing and package edits — commands and handlers."""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ForbiddenError
from marketplace.gig.gig import Gig
from marketplace.member.member import Member, MemberRole

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Gig")
class PublishGig:
    seller_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    description = Text()
    packages = Text(required=True)  # JSON list of package dicts


@marketplace.command(part_of="Gig")
class UpdateGigPackage:
    gig_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    package_type = String(required=True, max_length=20)
    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True)
    delivery_time = Integer(required=True)
    revisions = Integer(required=True)
    number_of_pages = Integer()
    after_project_support = Boolean(default=False)


@marketplace.command_handler(part_of=Gig)
class GigHandler:
    @handle(PublishGig)
    def publish_gig(self, command):
        seller = current_domain.repository_for(Member).get(command.seller_id)
        if not seller.has_role(MemberRole.SELLER):
            raise ForbiddenError("Only sellers can publish gigs")

        gig = Gig.publish(
            seller_id=command.seller_id,
            title=command.title,
            description=command.description,
            packages=json.loads(command.packages),
        )
        current_domain.repository_for(Gig).add(gig)
        logger.info("Gig published", gig_id=str(gig.id), seller_id=str(command.seller_id))
        return str(gig.id)

    @handle(UpdateGigPackage)
    def update_gig_package(self, command):
        repo = current_domain.repository_for(Gig)
        gig = repo.get(command.gig_id)
        if str(gig.seller_id) != str(command.seller_id):
            raise ForbiddenError("Only the gig owner can edit its packages")

        gig.upsert_package(
            command.package_type,
            name=command.name,
            description=command.description,
            price=command.price,
            delivery_time=command.delivery_time,
            revisions=command.revisions,
            number_of_pages=command.number_of_pages,
            after_project_support=command.after_project_support,
        )
        repo.add(gig)
