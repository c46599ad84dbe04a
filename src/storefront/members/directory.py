"""Member directory — resolves the member a checkout belongs to.

Checkout never creates a member blindly. A logged-in member is updated in
place; a guest is registered, unless their email already belongs to someone,
in which case they must log in first.
"""

from dataclasses import asdict, dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.exceptions import MemberConflictError
from storefront.members.member import Member

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MemberProfile:
    """Contact and address details captured at checkout."""

    email: str
    first_name: str | None = None
    surname: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None

    @property
    def normalized_email(self) -> str:
        return self.email.strip().lower()

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.surname) if part)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MemberProfile":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class MemberDirectory:
    def _repository(self):
        return current_domain.repository_for(Member)

    def find_by_email(self, email: str) -> Member | None:
        members = self._repository()._dao.query.filter(email=email.strip().lower()).all().items
        return members[0] if members else None

    def is_unique_identifier(self, profile: MemberProfile, member_id=None) -> bool:
        """True unless a member other than ``member_id`` already owns the profile's email."""
        existing = self.find_by_email(profile.email)
        if existing is None:
            return True
        return member_id is not None and str(existing.id) == str(member_id)

    def resolve_or_create(self, profile: MemberProfile, member_id=None) -> str:
        """Return the id of the member placing the order, registering a guest if needed.

        Raises ``MemberConflictError`` when the email belongs to another member
        and ``ObjectNotFoundError`` when ``member_id`` is unknown.
        """
        if not self.is_unique_identifier(profile, member_id):
            logger.warning("member_identifier_taken", email=profile.normalized_email)
            raise MemberConflictError(profile.normalized_email)

        repo = self._repository()
        details = {k: v for k, v in profile.to_dict().items() if k != "email"}

        if member_id is not None:
            member = repo.get(member_id)
            member.update_details(email=profile.email, **details)
        else:
            member = Member.register(profile.email, **details)
            logger.info("member_registered", member_id=str(member.id))

        repo.add(member)
        return str(member.id)
