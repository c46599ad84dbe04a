"""Member aggregate — the shopper an order belongs to.

Members are keyed by email. The email is the identifier a guest checkout would
otherwise use to take over somebody else's account, which is why it must stay
unique across members.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, String

from storefront.domain import storefront
from storefront.members.events import MemberDetailsUpdated, MemberRegistered

_PROFILE_FIELDS = ("first_name", "surname", "phone", "address", "city", "country")


@storefront.aggregate
class Member:
    email = String(required=True, max_length=254, unique=True)
    first_name = String(max_length=100)
    surname = String(max_length=100)
    phone = String(max_length=30)
    address = String(max_length=255)
    city = String(max_length=100)
    country = String(max_length=2)  # ISO 3166-1 alpha-2
    registered_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, email, **profile):
        now = datetime.now(UTC)
        member = cls(
            email=email.strip().lower(),
            registered_at=now,
            updated_at=now,
            **{k: v for k, v in profile.items() if k in _PROFILE_FIELDS},
        )
        member.raise_(
            MemberRegistered(
                member_id=str(member.id),
                email=member.email,
                first_name=member.first_name,
                surname=member.surname,
                registered_at=now,
            )
        )
        return member

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.surname) if part)

    def update_details(self, email=None, **profile):
        """Apply the non-empty values from a checkout profile."""
        if email:
            self.email = email.strip().lower()
        for field_name in _PROFILE_FIELDS:
            value = profile.get(field_name)
            if value:
                setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            MemberDetailsUpdated(
                member_id=str(self.id),
                email=self.email,
                country=self.country,
            )
        )
