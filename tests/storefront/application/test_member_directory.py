"""Application tests for member resolution at checkout."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.exceptions import MemberConflictError
from storefront.members.directory import MemberDirectory, MemberProfile
from storefront.members.member import Member


def _profile(**overrides):
    defaults = {"email": "ada@example.com", "first_name": "Ada", "surname": "Lovelace", "country": "NZ"}
    defaults.update(overrides)
    return MemberProfile(**defaults)


class TestResolveOrCreate:
    def test_guest_is_registered(self):
        member_id = MemberDirectory().resolve_or_create(_profile())
        member = current_domain.repository_for(Member).get(member_id)
        assert member.email == "ada@example.com"
        assert member.full_name == "Ada Lovelace"
        assert member.country == "NZ"

    def test_email_is_normalised(self):
        member_id = MemberDirectory().resolve_or_create(_profile(email="  Ada@Example.COM "))
        assert current_domain.repository_for(Member).get(member_id).email == "ada@example.com"

    def test_logged_in_member_is_updated_not_duplicated(self):
        directory = MemberDirectory()
        member_id = directory.resolve_or_create(_profile())
        again = directory.resolve_or_create(_profile(city="Auckland"), member_id=member_id)
        assert again == member_id
        assert len(current_domain.repository_for(Member)._dao.query.all().items) == 1
        assert current_domain.repository_for(Member).get(member_id).city == "Auckland"

    def test_guest_cannot_take_over_existing_email(self):
        directory = MemberDirectory()
        directory.resolve_or_create(_profile())
        with pytest.raises(MemberConflictError):
            directory.resolve_or_create(_profile(first_name="Mallory"))

    def test_member_cannot_switch_to_another_members_email(self):
        directory = MemberDirectory()
        directory.resolve_or_create(_profile())
        other_id = directory.resolve_or_create(_profile(email="grace@example.com"))
        with pytest.raises(ValidationError):
            directory.resolve_or_create(_profile(), member_id=other_id)

    def test_unknown_member_id(self):
        with pytest.raises(ObjectNotFoundError):
            MemberDirectory().resolve_or_create(_profile(), member_id="mem-404")


class TestIsUniqueIdentifier:
    def test_unused_email_is_unique(self):
        assert MemberDirectory().is_unique_identifier(_profile()) is True

    def test_email_owned_by_someone_else(self):
        directory = MemberDirectory()
        directory.resolve_or_create(_profile())
        assert directory.is_unique_identifier(_profile()) is False
        assert directory.is_unique_identifier(_profile(), member_id="mem-other") is False

    def test_own_email_is_unique_for_owner(self):
        directory = MemberDirectory()
        member_id = directory.resolve_or_create(_profile())
        assert directory.is_unique_identifier(_profile(), member_id=member_id) is True
