"""Follows, blocks, users and notifications."""

from __future__ import annotations

import pytest

from models import InsertNotification, InsertProfile, InsertUser, NotificationType, ProfileUpdate, UserRole, UserUpdate
from storage import DuplicateKeyError


def _counts(storage, user_id):
    profile = storage.get_profile(user_id)
    return profile.followers_count, profile.following_count


def test_follow_is_idempotent(storage, make_user):
    a, b = make_user(), make_user()
    first = storage.follow_user(a.id, b.id)
    second = storage.follow_user(a.id, b.id)

    assert first.id == second.id
    assert _counts(storage, a.id) == (0, 1)
    assert _counts(storage, b.id) == (1, 0)
    assert [f.follower_id for f in storage.get_followers(b.id)] == [a.id]
    assert [f.following_id for f in storage.get_following(a.id)] == [b.id]


def test_unfollow(storage, make_user):
    a, b = make_user(), make_user()
    storage.follow_user(a.id, b.id)
    assert storage.unfollow_user(a.id, b.id) is True
    assert storage.unfollow_user(a.id, b.id) is False
    assert _counts(storage, a.id) == (0, 0)
    assert _counts(storage, b.id) == (0, 0)


def test_block_removes_follows_both_ways(storage, make_user):
    a, b = make_user(), make_user()
    storage.follow_user(a.id, b.id)
    storage.follow_user(b.id, a.id)

    storage.block_user(b.id, a.id)

    assert storage.is_following(a.id, b.id) is False
    assert storage.is_following(b.id, a.id) is False
    assert _counts(storage, a.id) == (0, 0)
    assert _counts(storage, b.id) == (0, 0)
    assert storage.is_blocked(b.id, a.id) is True
    assert storage.is_blocked(a.id, b.id) is False


def test_block_is_idempotent(storage, make_user):
    a, b = make_user(), make_user()
    first = storage.block_user(a.id, b.id)
    second = storage.block_user(a.id, b.id)
    assert first.id == second.id
    assert [blk.blocked_id for blk in storage.get_blocked_users(a.id)] == [b.id]
    assert [blk.blocker_id for blk in storage.get_blocked_by_users(b.id)] == [a.id]
    assert storage.unblock_user(a.id, b.id) is True
    assert storage.is_blocked(a.id, b.id) is False


def test_duplicate_email_rejected(storage, make_user):
    make_user(email="same@example.com")
    with pytest.raises(DuplicateKeyError):
        storage.create_user(InsertUser(email="same@example.com", password_hash="x"))


def test_second_profile_rejected(storage, make_user):
    user = make_user(display_name="First")
    with pytest.raises(DuplicateKeyError) as exc:
        storage.create_profile(InsertProfile(user_id=user.id, display_name="Second"))

    assert exc.value.field == "user_id"
    assert storage.get_profile(user.id).display_name == "First"


def test_update_user_and_profile(storage, make_user):
    user = make_user()
    updated = storage.update_user(user.id, UserUpdate(role=UserRole.MODERATOR))
    assert updated.role == UserRole.MODERATOR
    assert updated.email == user.email

    profile = storage.update_profile(user.id, ProfileUpdate(bio="Driving a Kona since 2021"))
    assert profile.bio == "Driving a Kona since 2021"
    assert storage.update_profile("missing", ProfileUpdate(bio="x")) is None
    assert storage.update_user("missing", UserUpdate(role=UserRole.ADMIN)) is None


def test_delete_user_cleans_up_relationships(storage, make_user, community):
    a, b = make_user(), make_user()
    storage.follow_user(a.id, b.id)
    storage.join_community(community.id, a.id)

    assert storage.delete_user(a.id) is True
    assert storage.get_user(a.id) is None
    assert storage.get_profile(a.id) is None
    assert _counts(storage, b.id) == (0, 0)
    assert storage.get_community(community.id).members_count == 0
    assert storage.delete_user(a.id) is False


def test_notifications_read_flow(storage, make_user):
    a, b = make_user(), make_user()
    first = storage.create_notification(InsertNotification(user_id=a.id, type=NotificationType.FOLLOW, actor_id=b.id))
    storage.create_notification(InsertNotification(user_id=a.id, type=NotificationType.LIKE, actor_id=b.id))

    assert len(storage.get_notifications(a.id)) == 2
    assert len(storage.get_notifications(a.id, limit=1)) == 1

    # Someone else's notification cannot be marked read
    assert storage.mark_notification_read(b.id, first.id) is None
    assert storage.mark_notification_read(a.id, first.id).is_read is True
    assert len(storage.get_notifications(a.id, unread_only=True)) == 1

    assert storage.mark_all_notifications_read(a.id) == 1
    assert storage.get_notifications(a.id, unread_only=True) == []
