"""Community and membership behaviour, run against every backend."""

from __future__ import annotations

import pytest

from models import CommunityUpdate, InsertCommunity
from storage import DuplicateKeyError


def test_join_leave_scenario(storage, make_user, community):
    user = make_user()

    storage.join_community(community.id, user.id)
    assert storage.get_community(community.id).members_count == 1

    storage.join_community(community.id, user.id)
    assert storage.get_community(community.id).members_count == 1

    assert storage.leave_community(community.id, user.id) is True
    assert storage.get_community(community.id).members_count == 0
    assert storage.is_community_member(community.id, user.id) is False

    assert storage.leave_community(community.id, user.id) is False
    assert storage.get_community(community.id).members_count == 0


def test_join_twice_returns_same_membership(storage, make_user, community):
    user = make_user()
    first = storage.join_community(community.id, user.id)
    second = storage.join_community(community.id, user.id)
    assert first.id == second.id
    assert len(storage.get_community_members(community.id)) == 1


def test_duplicate_slug_rejected(storage, community):
    with pytest.raises(DuplicateKeyError) as exc:
        storage.create_community(InsertCommunity(name="Other", slug="tesla-owners", type="BRAND"))
    assert exc.value.field == "slug"


def test_update_to_taken_slug_rejected(storage, community):
    other = storage.create_community(InsertCommunity(name="Rivian Club", slug="rivian-club", type="BRAND"))
    with pytest.raises(DuplicateKeyError):
        storage.update_community(other.id, CommunityUpdate(slug="tesla-owners"))


def test_partial_update_keeps_other_fields(storage, community):
    updated = storage.update_community(community.id, CommunityUpdate(description="For Model 3 and Y drivers"))
    assert updated.description == "For Model 3 and Y drivers"
    assert updated.name == "Tesla Owners"
    assert updated.slug == "tesla-owners"


def test_communities_sorted_by_members_and_searchable(storage, make_user, community):
    small = storage.create_community(InsertCommunity(name="Leaf Lovers", slug="leaf-lovers", type="BRAND"))
    for _ in range(2):
        storage.join_community(small.id, make_user().id)
    storage.join_community(community.id, make_user().id)

    names = [c.name for c in storage.get_communities()]
    assert names == ["Leaf Lovers", "Tesla Owners"]
    assert [c.slug for c in storage.get_communities(search="TESLA")] == ["tesla-owners"]
    assert storage.get_community_by_slug("leaf-lovers").id == small.id


def test_delete_community_removes_memberships(storage, make_user, community):
    user = make_user()
    storage.join_community(community.id, user.id)
    assert storage.delete_community(community.id) is True
    assert storage.get_community(community.id) is None
    assert storage.get_community_members(community.id) == []
    assert storage.delete_community(community.id) is False


def test_returned_records_are_copies(storage, community):
    fetched = storage.get_community(community.id)
    fetched.members_count = 99
    assert storage.get_community(community.id).members_count == 0
