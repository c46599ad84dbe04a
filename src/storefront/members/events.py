"""Domain events for the Member aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Member")
class MemberRegistered:
    """A shopper became a member, usually as a side effect of their first checkout."""

    __version__ = 1

    member_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    first_name = String(max_length=100)
    surname = String(max_length=100)
    registered_at = DateTime(required=True)


@storefront.event(part_of="Member")
class MemberDetailsUpdated:
    __version__ = 1

    member_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    country = String(max_length=2)
