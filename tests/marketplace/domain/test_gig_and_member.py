"""Tests for the Gig package table and Member roles."""

import pytest
from protean.exceptions import ValidationError

from marketplace.gig.gig import Gig
from marketplace.member.member import Member, MemberRole


def _package(package_type="basic", **overrides):
    package = {
        "package_type": package_type,
        "name": f"{package_type.title()} package",
        "price": 50.0,
        "delivery_time": 3,
        "revisions": 1,
    }
    package.update(overrides)
    return package


class TestGig:
    def test_publish_with_packages(self):
        gig = Gig.publish("seller-001", "Logo design", packages=[_package("basic"), _package("premium", price=300.0)])

        assert gig.package("premium").price == 300.0
        assert gig.package("standard") is None

    def test_custom_packages_cannot_be_listed(self):
        with pytest.raises(ValidationError):
            Gig.publish("seller-001", "Logo design", packages=[_package("custom")])

    def test_one_package_per_type(self):
        with pytest.raises(ValidationError):
            Gig.publish("seller-001", "Logo design", packages=[_package("basic"), _package("basic")])

    def test_upsert_replaces_existing_package(self):
        gig = Gig.publish("seller-001", "Logo design", packages=[_package("basic")])
        gig.upsert_package("basic", name="Basic v2", price=75.0, delivery_time=2, revisions=3)

        assert len(gig.packages) == 1
        assert gig.package("basic").name == "Basic v2"
        assert gig.package("basic").revisions == 3


class TestMember:
    def test_default_role_is_buyer(self):
        member = Member.register("Ada@Example.com", "Ada", "Lovelace")

        assert member.email == "ada@example.com"
        assert member.role_list == ["buyer"]
        assert member.has_role(MemberRole.BUYER)
        assert not member.has_role(MemberRole.ADMIN)

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValidationError):
            Member.register("x@example.com", "X", "Y", roles=["wizard"])

    def test_payout_account_links_once(self):
        member = Member.register("s@example.com", "Sam", "Seller", roles=["seller"])
        member.link_payout_account("acct_1")

        assert member.payout_account_id == "acct_1"
        with pytest.raises(ValidationError):
            member.link_payout_account("acct_2")
