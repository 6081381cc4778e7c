"""Gig aggregate — a seller's service listing with its package table."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from marketplace.domain import marketplace


class PackageType(Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    CUSTOM = "custom"


# Custom offers are negotiated per order, never listed on a gig
_LISTED_PACKAGE_TYPES = {PackageType.BASIC.value, PackageType.STANDARD.value, PackageType.PREMIUM.value}


@marketplace.entity(part_of="Gig")
class GigPackage:
    package_type = String(required=True, choices=PackageType)
    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.01)
    delivery_time = Integer(required=True, min_value=1)  # days
    revisions = Integer(required=True, min_value=0)
    number_of_pages = Integer(min_value=0)
    after_project_support = Boolean(default=False)


@marketplace.aggregate
class Gig:
    seller_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    description = Text()
    packages = HasMany(GigPackage)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def listed_packages_only(self):
        if any(p.package_type not in _LISTED_PACKAGE_TYPES for p in self.packages):
            raise ValidationError({"packages": ["Only basic, standard and premium packages can be listed"]})

    @invariant.post
    def one_package_per_type(self):
        types = [p.package_type for p in self.packages]
        if len(types) != len(set(types)):
            raise ValidationError({"packages": ["Each package type can be listed only once"]})

    @classmethod
    def publish(cls, seller_id, title, description=None, packages=None):
        now = datetime.now(UTC)
        return cls(
            seller_id=seller_id,
            title=title,
            description=description,
            packages=[GigPackage(**package) for package in packages or []],
            created_at=now,
            updated_at=now,
        )

    def package(self, package_type: str) -> GigPackage | None:
        return next((p for p in self.packages if p.package_type == package_type), None)

    def upsert_package(self, package_type, **attributes):
        """Replace the package of this type, or add it if the gig has none yet.

        Orders snapshot package details at creation, so edits here never
        reach existing orders.
        """
        existing = self.package(package_type)
        if existing:
            self.remove_packages(existing)
        self.add_packages(GigPackage(package_type=package_type, **attributes))
        self.updated_at = datetime.now(UTC)
