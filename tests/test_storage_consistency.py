"""Derived counters under drift, duplicate rows and concurrent callers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from models import (
    ArticleKind, CommunityMember, Coords, InsertAnswer, InsertArticle, InsertArticleComment,
    InsertBookmark, InsertComment, InsertCommunity, InsertNotification, InsertPost, InsertQuestion,
    InsertStation, NotificationType, TargetType,
)
from storage import MemStorage


def _corrupt(storage, table, entity_id, column, value):
    """Overwrite a stored counter behind the storage API."""
    if isinstance(storage, MemStorage):
        setattr(getattr(storage, table)[entity_id], column, value)
        return
    from database import get_db
    with get_db(storage.db_path) as conn:
        conn.execute(f"UPDATE {table} SET {column} = ? WHERE id = ?", (value, entity_id))


def test_recount_repairs_every_counter(storage, make_user, community):
    alice, bob = make_user(), make_user()
    storage.join_community(community.id, alice.id)
    storage.follow_user(alice.id, bob.id)

    post = storage.create_post(InsertPost(author_id=alice.id, text="Range report"))
    storage.create_comment(InsertComment(post_id=post.id, author_id=bob.id, text="Nice"))
    article = storage.create_article(InsertArticle(
        kind=ArticleKind.TIP, title="Tyres", summary="s", body="b", author_id=alice.id,
    ))
    storage.create_article_comment(InsertArticleComment(article_id=article.id, author_id=bob.id, text="ok"))
    question = storage.create_question(InsertQuestion(author_id=alice.id, title="Heat pump?", body="?"))
    storage.create_answer(InsertAnswer(question_id=question.id, author_id=bob.id, body="Yes"))
    station = storage.create_station(InsertStation(name="Ionna", coords=Coords(lat=1, lng=2), address="Main St"))
    storage.create_bookmark(InsertBookmark(user_id=bob.id, target_type=TargetType.STATION, target_id=station.id))
    assert storage.recount_counters() == 0

    alice_profile = storage.get_profile(alice.id)
    bob_profile = storage.get_profile(bob.id)
    _corrupt(storage, "communities", community.id, "members_count", 5)
    _corrupt(storage, "posts", post.id, "comments_count", 0)
    _corrupt(storage, "articles", article.id, "comments_count", 3)
    _corrupt(storage, "questions", question.id, "answers_count", 9)
    _corrupt(storage, "stations", station.id, "bookmarks_count", 4)
    _corrupt(storage, "profiles", alice_profile.id, "following_count", 0)
    _corrupt(storage, "profiles", bob_profile.id, "followers_count", 7)

    assert storage.recount_counters() == 7

    assert storage.get_community(community.id).members_count == 1
    assert storage.get_post(post.id).comments_count == 1
    assert storage.get_article(article.id).comments_count == 1
    assert storage.get_question(question.id).answers_count == 1
    assert storage.get_station(station.id).bookmarks_count == 1
    assert storage.get_profile(alice.id).following_count == 1
    assert storage.get_profile(bob.id).followers_count == 1
    assert storage.recount_counters() == 0


def test_leave_removes_duplicate_memberships():
    # Only the in-memory store can hold duplicate rows; SQLite has a unique pair index
    storage = MemStorage()
    community = storage.create_community(InsertCommunity(name="Ioniq Club", slug="ioniq-club", type="BRAND"))
    storage.join_community(community.id, "other-user")
    storage.join_community(community.id, "user-1")
    extra = CommunityMember(community_id=community.id, user_id="user-1")
    storage.community_members[extra.id] = extra
    storage.communities[community.id].members_count = 3

    assert storage.leave_community(community.id, "user-1") is True

    assert storage.is_community_member(community.id, "user-1") is False
    assert [m.user_id for m in storage.get_community_members(community.id)] == ["other-user"]
    assert storage.get_community(community.id).members_count == 1


def test_leave_floors_counter_at_zero():
    storage = MemStorage()
    community = storage.create_community(InsertCommunity(name="Leaf Club", slug="leaf-club", type="BRAND"))
    storage.join_community(community.id, "user-1")
    extra = CommunityMember(community_id=community.id, user_id="user-1")
    storage.community_members[extra.id] = extra

    storage.leave_community(community.id, "user-1")
    assert storage.get_community(community.id).members_count == 0


def test_reads_survive_concurrent_writes(storage):
    def write(i):
        for n in range(25):
            storage.create_notification(InsertNotification(user_id="u1", type=NotificationType.LIKE, actor_id=f"a{i}-{n}"))

    def read(_):
        for _ in range(25):
            storage.get_notifications("u1")
            storage.get_unread_message_count("u1")
            storage.search_entities("a")

    with ThreadPoolExecutor(max_workers=6) as pool:
        futures = [pool.submit(write, i) for i in range(2)] + [pool.submit(read, i) for i in range(4)]
        for future in futures:
            future.result()

    assert len(storage.get_notifications("u1")) == 50


def test_concurrent_joins_keep_counter_exact(storage, community):
    users = [f"user-{i}" for i in range(20)]

    def join_twice(user_id):
        storage.join_community(community.id, user_id)
        storage.join_community(community.id, user_id)
        storage.get_communities()

    with ThreadPoolExecutor(max_workers=5) as pool:
        list(pool.map(join_twice, users))

    assert storage.get_community(community.id).members_count == len(users)
    assert len(storage.get_community_members(community.id)) == len(users)

    with ThreadPoolExecutor(max_workers=5) as pool:
        assert all(pool.map(lambda user_id: storage.leave_community(community.id, user_id), users))

    assert storage.get_community(community.id).members_count == 0
    assert storage.recount_counters() == 0
