"""SQLite-backed storage.

One table per entity (see database_schemas.py). Lists and nested objects are
stored as JSON text. Relationship pairs are protected by UNIQUE indexes so
idempotent inserts are ``INSERT OR IGNORE``; anything that touches a derived
counter runs in a single ``BEGIN IMMEDIATE`` transaction and adjusts the
counter in SQL.
"""

import json
import logging
import sqlite3
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from database import get_db, init_db, transaction
from models import (
    User, InsertUser, UserUpdate,
    Profile, InsertProfile, ProfileUpdate,
    UserFollow, UserBlock,
    Community, InsertCommunity, CommunityUpdate, CommunityMember,
    Post, InsertPost, PostUpdate,
    Comment, InsertComment,
    Station, InsertStation, StationUpdate,
    Bookmark, InsertBookmark,
    Question, InsertQuestion, QuestionUpdate,
    Answer, InsertAnswer,
    Article, InsertArticle,
    ArticleComment, InsertArticleComment,
    KnowledgeCategory, InsertKnowledgeCategory,
    Report, InsertReport, ReportUpdate,
    AuditLog, InsertAuditLog,
    Notification, InsertNotification,
    Conversation, Message, InsertMessage,
    TargetType, utcnow, as_utc,
)
from storage.base import IStorage, DuplicateKeyError
from storage.search import (
    SearchLimits, SearchResults, CommunityHit, PostHit, StationHit, UserHit,
    normalize_query, build_snippet, merge_user_matches,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Columns holding JSON text, per table
_JSON_FIELDS: Dict[str, Sequence[str]] = {
    "profiles": ("location", "vehicle", "interests", "notification_prefs"),
    "communities": ("moderators",),
    "posts": ("media", "likes"),
    "stations": ("coords", "connectors"),
    "questions": ("tags", "upvotes"),
    "answers": ("upvotes",),
    "articles": ("tags", "likes"),
    "audit_logs": ("metadata",),
    "notifications": ("metadata",),
}

NEWEST_FIRST = "ORDER BY created_at DESC, rowid DESC"
OLDEST_FIRST = "ORDER BY created_at, rowid"

_RECOUNT_SQL = [
    """UPDATE communities SET members_count = (
           SELECT COUNT(*) FROM community_members m WHERE m.community_id = communities.id)
       WHERE members_count != (
           SELECT COUNT(*) FROM community_members m WHERE m.community_id = communities.id)""",
    """UPDATE posts SET comments_count = (
           SELECT COUNT(*) FROM comments c WHERE c.post_id = posts.id)
       WHERE comments_count != (
           SELECT COUNT(*) FROM comments c WHERE c.post_id = posts.id)""",
    """UPDATE articles SET comments_count = (
           SELECT COUNT(*) FROM article_comments c WHERE c.article_id = articles.id)
       WHERE comments_count != (
           SELECT COUNT(*) FROM article_comments c WHERE c.article_id = articles.id)""",
    """UPDATE questions SET answers_count = (
           SELECT COUNT(*) FROM answers a WHERE a.question_id = questions.id)
       WHERE answers_count != (
           SELECT COUNT(*) FROM answers a WHERE a.question_id = questions.id)""",
    """UPDATE stations SET bookmarks_count = (
           SELECT COUNT(*) FROM bookmarks b WHERE b.target_type = 'STATION' AND b.target_id = stations.id)
       WHERE bookmarks_count != (
           SELECT COUNT(*) FROM bookmarks b WHERE b.target_type = 'STATION' AND b.target_id = stations.id)""",
    """UPDATE profiles SET
           followers_count = (SELECT COUNT(*) FROM user_follows f WHERE f.following_id = profiles.user_id),
           following_count = (SELECT COUNT(*) FROM user_follows f WHERE f.follower_id = profiles.user_id)
       WHERE followers_count != (SELECT COUNT(*) FROM user_follows f WHERE f.following_id = profiles.user_id)
          OR following_count != (SELECT COUNT(*) FROM user_follows f WHERE f.follower_id = profiles.user_id)""",
]


def _ts(value: datetime) -> str:
    # Fixed width so text comparison orders chronologically
    return as_utc(value).isoformat(timespec="microseconds")

def _icontains(text: Optional[str], needle: str) -> int:
    return int(text is not None and needle in text.lower())

def _to_row(table: str, entity: BaseModel) -> Dict[str, Any]:
    json_fields = _JSON_FIELDS.get(table, ())
    encoded = entity.model_dump(mode="json", include=set(json_fields)) if json_fields else {}
    row = {}
    for key, value in entity.model_dump().items():
        if key in json_fields:
            row[key] = json.dumps(encoded[key]) if value is not None else None
        elif isinstance(value, datetime):
            row[key] = _ts(value)
        elif isinstance(value, Enum):
            row[key] = value.value
        else:
            row[key] = value
    return row

def _from_row(model: Type[T], table: str, row: Optional[sqlite3.Row]) -> Optional[T]:
    if row is None:
        return None
    data = dict(row)
    for key in _JSON_FIELDS.get(table, ()):
        if data.get(key) is not None:
            data[key] = json.loads(data[key])
    return model.model_validate(data)

def _insert(conn: sqlite3.Connection, table: str, entity: BaseModel, or_ignore: bool = False) -> int:
    row = _to_row(table, entity)
    columns = ", ".join(row)
    placeholders = ", ".join("?" for _ in row)
    verb = "INSERT OR IGNORE" if or_ignore else "INSERT"
    cursor = conn.execute(f"{verb} INTO {table} ({columns}) VALUES ({placeholders})", tuple(row.values()))
    return cursor.rowcount

def _replace(conn: sqlite3.Connection, table: str, entity: BaseModel) -> None:
    row = _to_row(table, entity)
    entity_id = row.pop("id")
    assignments = ", ".join(f"{column} = ?" for column in row)
    conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", (*row.values(), entity_id))

def _select_one(conn: sqlite3.Connection, model: Type[T], table: str, where: str, params: Sequence[Any]) -> Optional[T]:
    row = conn.execute(f"SELECT * FROM {table} WHERE {where}", tuple(params)).fetchone()
    return _from_row(model, table, row)

def _select_all(conn: sqlite3.Connection, model: Type[T], table: str, tail: str, params: Sequence[Any] = ()) -> List[T]:
    rows = conn.execute(f"SELECT * FROM {table} {tail}", tuple(params)).fetchall()
    return [_from_row(model, table, row) for row in rows]

def _where(clauses: List[str]) -> str:
    return "WHERE " + " AND ".join(clauses) if clauses else ""


class SqliteStorage(IStorage):
    def __init__(self, db_path: str):
        self.db_path = db_path
        init_db(db_path)
        logger.info("SQLite storage ready at %s", db_path)

    # Generic helpers

    def _get(self, model: Type[T], table: str, entity_id: str) -> Optional[T]:
        with get_db(self.db_path) as conn:
            return _select_one(conn, model, table, "id = ?", (entity_id,))

    def _list(self, model: Type[T], table: str, tail: str, params: Sequence[Any] = ()) -> List[T]:
        with get_db(self.db_path) as conn:
            return _select_all(conn, model, table, tail, params)

    def _create(self, table: str, entity: T) -> T:
        with get_db(self.db_path) as conn:
            _insert(conn, table, entity)
        return entity

    def _update(self, model: Type[T], table: str, where: str, params: Sequence[Any], updates: BaseModel) -> Optional[T]:
        with get_db(self.db_path) as conn, transaction(conn):
            current = _select_one(conn, model, table, where, params)
            if current is None:
                return None
            changes = updates.model_dump(exclude_unset=True)
            updated = model.model_validate({**current.model_dump(), **changes})
            _replace(conn, table, updated)
            return updated

    def _toggle(self, model: Type[T], table: str, column: str, entity_id: str, user_id: str) -> Optional[T]:
        with get_db(self.db_path) as conn, transaction(conn):
            row = conn.execute(f"SELECT {column} FROM {table} WHERE id = ?", (entity_id,)).fetchone()
            if row is None:
                return None
            values = json.loads(row[column])
            if user_id in values:
                values = [v for v in values if v != user_id]
            else:
                values.append(user_id)
            conn.execute(f"UPDATE {table} SET {column} = ? WHERE id = ?", (json.dumps(values), entity_id))
            return _select_one(conn, model, table, "id = ?", (entity_id,))

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        return self._get(User, "users", user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_db(self.db_path) as conn:
            return _select_one(conn, User, "users", "email = ?", (email,))

    def get_users(self) -> List[User]:
        return self._list(User, "users", NEWEST_FIRST)

    def create_user(self, data: InsertUser) -> User:
        try:
            return self._create("users", User(**data.model_dump()))
        except sqlite3.IntegrityError:
            raise DuplicateKeyError("email", data.email)

    def update_user(self, user_id: str, updates: UserUpdate) -> Optional[User]:
        try:
            return self._update(User, "users", "id = ?", (user_id,), updates)
        except sqlite3.IntegrityError:
            raise DuplicateKeyError("email", updates.email)

    def delete_user(self, user_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            if conn.execute("DELETE FROM users WHERE id = ?", (user_id,)).rowcount == 0:
                return False
            conn.execute("DELETE FROM profiles WHERE user_id = ?", (user_id,))
            follows = conn.execute(
                "SELECT follower_id, following_id FROM user_follows WHERE follower_id = ? OR following_id = ?",
                (user_id, user_id),
            ).fetchall()
            for row in follows:
                self._drop_follow(conn, row["follower_id"], row["following_id"])
            memberships = conn.execute(
                "SELECT community_id FROM community_members WHERE user_id = ?", (user_id,)
            ).fetchall()
            for row in memberships:
                self._drop_membership(conn, row["community_id"], user_id)
            return True

    # Profiles

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with get_db(self.db_path) as conn:
            return _select_one(conn, Profile, "profiles", "user_id = ?", (user_id,))

    def get_profile_by_id(self, profile_id: str) -> Optional[Profile]:
        return self._get(Profile, "profiles", profile_id)

    def create_profile(self, data: InsertProfile) -> Profile:
        try:
            return self._create("profiles", Profile(**data.model_dump()))
        except sqlite3.IntegrityError:
            raise DuplicateKeyError("user_id", data.user_id)

    def update_profile(self, user_id: str, updates: ProfileUpdate) -> Optional[Profile]:
        return self._update(Profile, "profiles", "user_id = ?", (user_id,), updates)

    # Follows

    def _drop_follow(self, conn: sqlite3.Connection, follower_id: str, following_id: str) -> bool:
        removed = conn.execute(
            "DELETE FROM user_follows WHERE follower_id = ? AND following_id = ?",
            (follower_id, following_id),
        ).rowcount
        if removed:
            conn.execute(
                "UPDATE profiles SET following_count = MAX(following_count - 1, 0) WHERE user_id = ?",
                (follower_id,),
            )
            conn.execute(
                "UPDATE profiles SET followers_count = MAX(followers_count - 1, 0) WHERE user_id = ?",
                (following_id,),
            )
        return removed > 0

    def follow_user(self, follower_id: str, following_id: str) -> UserFollow:
        follow = UserFollow(follower_id=follower_id, following_id=following_id)
        with get_db(self.db_path) as conn, transaction(conn):
            if _insert(conn, "user_follows", follow, or_ignore=True):
                conn.execute(
                    "UPDATE profiles SET following_count = following_count + 1 WHERE user_id = ?",
                    (follower_id,),
                )
                conn.execute(
                    "UPDATE profiles SET followers_count = followers_count + 1 WHERE user_id = ?",
                    (following_id,),
                )
            return _select_one(
                conn, UserFollow, "user_follows",
                "follower_id = ? AND following_id = ?", (follower_id, following_id),
            )

    def unfollow_user(self, follower_id: str, following_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            return self._drop_follow(conn, follower_id, following_id)

    def get_followers(self, user_id: str) -> List[UserFollow]:
        return self._list(UserFollow, "user_follows", f"WHERE following_id = ? {NEWEST_FIRST}", (user_id,))

    def get_following(self, user_id: str) -> List[UserFollow]:
        return self._list(UserFollow, "user_follows", f"WHERE follower_id = ? {NEWEST_FIRST}", (user_id,))

    def is_following(self, follower_id: str, following_id: str) -> bool:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM user_follows WHERE follower_id = ? AND following_id = ?",
                (follower_id, following_id),
            ).fetchone()
            return row is not None

    # Blocks

    def block_user(self, blocker_id: str, blocked_id: str) -> UserBlock:
        block = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
        with get_db(self.db_path) as conn, transaction(conn):
            if _insert(conn, "user_blocks", block, or_ignore=True):
                self._drop_follow(conn, blocker_id, blocked_id)
                self._drop_follow(conn, blocked_id, blocker_id)
            return _select_one(
                conn, UserBlock, "user_blocks",
                "blocker_id = ? AND blocked_id = ?", (blocker_id, blocked_id),
            )

    def unblock_user(self, blocker_id: str, blocked_id: str) -> bool:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM user_blocks WHERE blocker_id = ? AND blocked_id = ?", (blocker_id, blocked_id)
            )
            return cursor.rowcount > 0

    def is_blocked(self, blocker_id: str, blocked_id: str) -> bool:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM user_blocks WHERE blocker_id = ? AND blocked_id = ?", (blocker_id, blocked_id)
            ).fetchone()
            return row is not None

    def get_blocked_users(self, user_id: str) -> List[UserBlock]:
        return self._list(UserBlock, "user_blocks", f"WHERE blocker_id = ? {NEWEST_FIRST}", (user_id,))

    def get_blocked_by_users(self, user_id: str) -> List[UserBlock]:
        return self._list(UserBlock, "user_blocks", f"WHERE blocked_id = ? {NEWEST_FIRST}", (user_id,))

    # Notifications

    def create_notification(self, data: InsertNotification) -> Notification:
        return self._create("notifications", Notification(**data.model_dump()))

    def get_notifications(self, user_id: str, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]:
        clauses, params = ["user_id = ?"], [user_id]
        if unread_only:
            clauses.append("is_read = 0")
        tail = f"{_where(clauses)} {NEWEST_FIRST}"
        if limit is not None:
            tail += " LIMIT ?"
            params.append(limit)
        return self._list(Notification, "notifications", tail, params)

    def mark_notification_read(self, user_id: str, notification_id: str) -> Optional[Notification]:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE notifications SET is_read = 1 WHERE id = ? AND user_id = ?", (notification_id, user_id)
            )
            if cursor.rowcount == 0:
                return None
            return _select_one(conn, Notification, "notifications", "id = ?", (notification_id,))

    def mark_all_notifications_read(self, user_id: str) -> int:
        with get_db(self.db_path) as conn:
            cursor = conn.execute("UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0", (user_id,))
            return cursor.rowcount

    # Conversations & messages

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._get(Conversation, "conversations", conversation_id)

    def _find_conversation(self, conn: sqlite3.Connection, user_a_id: str, user_b_id: str) -> Optional[Conversation]:
        return _select_one(
            conn, Conversation, "conversations",
            "(participant_a_id = ? AND participant_b_id = ?) OR (participant_a_id = ? AND participant_b_id = ?)",
            (user_a_id, user_b_id, user_b_id, user_a_id),
        )

    def find_conversation_between(self, user_a_id: str, user_b_id: str) -> Optional[Conversation]:
        with get_db(self.db_path) as conn:
            return self._find_conversation(conn, user_a_id, user_b_id)

    def create_conversation(self, participant_a_id: str, participant_b_id: str) -> Conversation:
        conversation = Conversation(participant_a_id=participant_a_id, participant_b_id=participant_b_id)
        with get_db(self.db_path) as conn, transaction(conn):
            _insert(conn, "conversations", conversation, or_ignore=True)
            return self._find_conversation(conn, participant_a_id, participant_b_id)

    def get_conversations_for_user(self, user_id: str) -> List[Conversation]:
        return self._list(
            Conversation, "conversations",
            f"WHERE participant_a_id = ? OR participant_b_id = ? {NEWEST_FIRST}", (user_id, user_id),
        )

    def create_message(self, data: InsertMessage) -> Message:
        return self._create("messages", Message(**data.model_dump()))

    def get_messages(self, conversation_id: str, limit: Optional[int] = None, before: Optional[datetime] = None) -> List[Message]:
        clauses, params = ["conversation_id = ?"], [conversation_id]
        if before is not None:
            clauses.append("created_at < ?")
            params.append(_ts(before))
        tail = f"{_where(clauses)} {NEWEST_FIRST}"
        if limit is not None:
            tail += " LIMIT ?"
            params.append(limit)
        messages = self._list(Message, "messages", tail, params)
        messages.reverse()
        return messages

    def mark_message_read(self, conversation_id: str, message_id: str, user_id: str) -> Optional[Message]:
        with get_db(self.db_path) as conn, transaction(conn):
            message = _select_one(
                conn, Message, "messages", "id = ? AND conversation_id = ?", (message_id, conversation_id)
            )
            if message is None or message.sender_id == user_id:
                return message
            conn.execute(
                "UPDATE messages SET is_read = 1, read_at = ? WHERE id = ?", (_ts(utcnow()), message_id)
            )
            return _select_one(conn, Message, "messages", "id = ?", (message_id,))

    def get_unread_message_count(self, user_id: str) -> int:
        with get_db(self.db_path) as conn:
            row = conn.execute("""
                SELECT COUNT(*) FROM messages m
                JOIN conversations c ON m.conversation_id = c.id
                WHERE (c.participant_a_id = ? OR c.participant_b_id = ?)
                  AND m.sender_id != ? AND m.is_read = 0
            """, (user_id, user_id, user_id)).fetchone()
            return row[0]

    # Communities

    def get_communities(self, search: Optional[str] = None, type: Optional[str] = None) -> List[Community]:
        clauses, params = [], []
        if type:
            clauses.append("type = ?")
            params.append(type)
        if search:
            clauses.append("(icontains(name, ?) OR icontains(description, ?))")
            params.extend([search.lower(), search.lower()])
        with get_db(self.db_path) as conn:
            conn.create_function("icontains", 2, _icontains, deterministic=True)
            return _select_all(
                conn, Community, "communities", f"{_where(clauses)} ORDER BY members_count DESC, rowid", params
            )

    def get_community(self, community_id: str) -> Optional[Community]:
        return self._get(Community, "communities", community_id)

    def get_community_by_slug(self, slug: str) -> Optional[Community]:
        with get_db(self.db_path) as conn:
            return _select_one(conn, Community, "communities", "slug = ?", (slug,))

    def create_community(self, data: InsertCommunity) -> Community:
        try:
            return self._create("communities", Community(**data.model_dump()))
        except sqlite3.IntegrityError:
            raise DuplicateKeyError("slug", data.slug)

    def update_community(self, community_id: str, updates: CommunityUpdate) -> Optional[Community]:
        try:
            return self._update(Community, "communities", "id = ?", (community_id,), updates)
        except sqlite3.IntegrityError:
            raise DuplicateKeyError("slug", updates.slug)

    def delete_community(self, community_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            if conn.execute("DELETE FROM communities WHERE id = ?", (community_id,)).rowcount == 0:
                return False
            removed = conn.execute("DELETE FROM community_members WHERE community_id = ?", (community_id,)).rowcount
            logger.info("Deleted community %s and %d membership(s)", community_id, removed)
            return True

    # Community members

    def _drop_membership(self, conn: sqlite3.Connection, community_id: str, user_id: str) -> int:
        removed = conn.execute(
            "DELETE FROM community_members WHERE community_id = ? AND user_id = ?", (community_id, user_id)
        ).rowcount
        if removed:
            conn.execute(
                "UPDATE communities SET members_count = MAX(members_count - ?, 0) WHERE id = ?",
                (removed, community_id),
            )
        return removed

    def join_community(self, community_id: str, user_id: str) -> CommunityMember:
        member = CommunityMember(community_id=community_id, user_id=user_id)
        with get_db(self.db_path) as conn, transaction(conn):
            if _insert(conn, "community_members", member, or_ignore=True):
                conn.execute(
                    "UPDATE communities SET members_count = members_count + 1 WHERE id = ?", (community_id,)
                )
            return _select_one(
                conn, CommunityMember, "community_members",
                "community_id = ? AND user_id = ?", (community_id, user_id),
            )

    def leave_community(self, community_id: str, user_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            return self._drop_membership(conn, community_id, user_id) > 0

    def is_community_member(self, community_id: str, user_id: str) -> bool:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM community_members WHERE community_id = ? AND user_id = ?", (community_id, user_id)
            ).fetchone()
            return row is not None

    def get_community_members(self, community_id: str) -> List[CommunityMember]:
        return self._list(
            CommunityMember, "community_members", "WHERE community_id = ? ORDER BY rowid", (community_id,)
        )

    # Posts

    def get_posts(
        self,
        community_id: Optional[str] = None,
        author_id: Optional[str] = None,
        visibility: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Post]:
        clauses, params = [], []
        for column, value in (("community_id", community_id), ("author_id", author_id), ("visibility", visibility)):
            if value:
                clauses.append(f"{column} = ?")
                params.append(value.value if isinstance(value, Enum) else value)
        params.extend([limit, offset])
        return self._list(Post, "posts", f"{_where(clauses)} {NEWEST_FIRST} LIMIT ? OFFSET ?", params)

    def get_post(self, post_id: str) -> Optional[Post]:
        return self._get(Post, "posts", post_id)

    def create_post(self, data: InsertPost) -> Post:
        return self._create("posts", Post(**data.model_dump()))

    def update_post(self, post_id: str, updates: PostUpdate) -> Optional[Post]:
        return self._update(Post, "posts", "id = ?", (post_id,), updates)

    def delete_post(self, post_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            if conn.execute("DELETE FROM posts WHERE id = ?", (post_id,)).rowcount == 0:
                return False
            conn.execute("DELETE FROM comments WHERE post_id = ?", (post_id,))
            return True

    def toggle_post_like(self, post_id: str, user_id: str) -> Optional[Post]:
        return self._toggle(Post, "posts", "likes", post_id, user_id)

    # Comments

    def get_comments(self, post_id: str) -> List[Comment]:
        return self._list(Comment, "comments", f"WHERE post_id = ? {OLDEST_FIRST}", (post_id,))

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        return self._get(Comment, "comments", comment_id)

    def create_comment(self, data: InsertComment) -> Comment:
        comment = Comment(**data.model_dump())
        with get_db(self.db_path) as conn, transaction(conn):
            _insert(conn, "comments", comment)
            conn.execute("UPDATE posts SET comments_count = comments_count + 1 WHERE id = ?", (comment.post_id,))
        return comment

    def delete_comment(self, comment_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            comment = _select_one(conn, Comment, "comments", "id = ?", (comment_id,))
            if comment is None:
                return False
            conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
            conn.execute(
                "UPDATE posts SET comments_count = MAX(comments_count - 1, 0) WHERE id = ?", (comment.post_id,)
            )
            return True

    # Stations

    def get_stations(self, verified: Optional[bool] = None, limit: int = 100) -> List[Station]:
        if verified is None:
            return self._list(Station, "stations", "ORDER BY rowid LIMIT ?", (limit,))
        return self._list(Station, "stations", "WHERE verified = ? ORDER BY rowid LIMIT ?", (int(verified), limit))

    def get_station(self, station_id: str) -> Optional[Station]:
        return self._get(Station, "stations", station_id)

    def create_station(self, data: InsertStation) -> Station:
        return self._create("stations", Station(**data.model_dump()))

    def update_station(self, station_id: str, updates: StationUpdate) -> Optional[Station]:
        return self._update(Station, "stations", "id = ?", (station_id,), updates)

    # Bookmarks

    def get_bookmarks(self, user_id: str, target_type: Optional[TargetType] = None) -> List[Bookmark]:
        if target_type is None:
            return self._list(Bookmark, "bookmarks", f"WHERE user_id = ? {NEWEST_FIRST}", (user_id,))
        return self._list(
            Bookmark, "bookmarks", f"WHERE user_id = ? AND target_type = ? {NEWEST_FIRST}",
            (user_id, TargetType(target_type).value),
        )

    def create_bookmark(self, data: InsertBookmark) -> Bookmark:
        bookmark = Bookmark(**data.model_dump())
        with get_db(self.db_path) as conn, transaction(conn):
            _insert(conn, "bookmarks", bookmark)
            if bookmark.target_type == TargetType.STATION:
                conn.execute(
                    "UPDATE stations SET bookmarks_count = bookmarks_count + 1 WHERE id = ?", (bookmark.target_id,)
                )
        return bookmark

    def delete_bookmark(self, bookmark_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            bookmark = _select_one(conn, Bookmark, "bookmarks", "id = ?", (bookmark_id,))
            if bookmark is None:
                return False
            conn.execute("DELETE FROM bookmarks WHERE id = ?", (bookmark_id,))
            if bookmark.target_type == TargetType.STATION:
                conn.execute(
                    "UPDATE stations SET bookmarks_count = MAX(bookmarks_count - 1, 0) WHERE id = ?",
                    (bookmark.target_id,),
                )
            return True

    def get_bookmark(self, user_id: str, target_id: str) -> Optional[Bookmark]:
        with get_db(self.db_path) as conn:
            return _select_one(
                conn, Bookmark, "bookmarks", "user_id = ? AND target_id = ? ORDER BY rowid LIMIT 1",
                (user_id, target_id),
            )

    # Questions

    def get_questions(
        self,
        tag: Optional[str] = None,
        sort: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Question]:
        clauses, params = [], []
        if tag:
            clauses.append("EXISTS (SELECT 1 FROM json_each(questions.tags) WHERE value = ?)")
            params.append(tag)
        order = "ORDER BY json_array_length(upvotes) DESC, rowid" if sort == "upvotes" else NEWEST_FIRST
        params.extend([limit, offset])
        return self._list(Question, "questions", f"{_where(clauses)} {order} LIMIT ? OFFSET ?", params)

    def get_question(self, question_id: str) -> Optional[Question]:
        return self._get(Question, "questions", question_id)

    def create_question(self, data: InsertQuestion) -> Question:
        return self._create("questions", Question(**data.model_dump()))

    def update_question(self, question_id: str, updates: QuestionUpdate) -> Optional[Question]:
        return self._update(Question, "questions", "id = ?", (question_id,), updates)

    def toggle_question_upvote(self, question_id: str, user_id: str) -> Optional[Question]:
        return self._toggle(Question, "questions", "upvotes", question_id, user_id)

    def delete_question(self, question_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            conn.execute("DELETE FROM answers WHERE question_id = ?", (question_id,))
            return conn.execute("DELETE FROM questions WHERE id = ?", (question_id,)).rowcount > 0

    # Answers

    def get_answers(self, question_id: str) -> List[Answer]:
        return self._list(
            Answer, "answers", "WHERE question_id = ? ORDER BY json_array_length(upvotes) DESC, rowid", (question_id,)
        )

    def get_answer(self, answer_id: str) -> Optional[Answer]:
        return self._get(Answer, "answers", answer_id)

    def create_answer(self, data: InsertAnswer) -> Answer:
        answer = Answer(**data.model_dump())
        with get_db(self.db_path) as conn, transaction(conn):
            _insert(conn, "answers", answer)
            conn.execute(
                "UPDATE questions SET answers_count = answers_count + 1 WHERE id = ?", (answer.question_id,)
            )
        return answer

    def toggle_answer_upvote(self, answer_id: str, user_id: str) -> Optional[Answer]:
        return self._toggle(Answer, "answers", "upvotes", answer_id, user_id)

    # Articles

    def get_articles(self, kind: Optional[str] = None, tag: Optional[str] = None, limit: int = 50) -> List[Article]:
        clauses, params = [], []
        if kind:
            clauses.append("kind = ?")
            params.append(kind.value if isinstance(kind, Enum) else kind)
        if tag:
            clauses.append("EXISTS (SELECT 1 FROM json_each(articles.tags) WHERE value = ?)")
            params.append(tag)
        params.append(limit)
        return self._list(
            Article, "articles", f"{_where(clauses)} ORDER BY published_at DESC, rowid DESC LIMIT ?", params
        )

    def get_article(self, article_id: str) -> Optional[Article]:
        return self._get(Article, "articles", article_id)

    def create_article(self, data: InsertArticle) -> Article:
        return self._create("articles", Article(**data.model_dump()))

    def toggle_article_like(self, article_id: str, user_id: str) -> Optional[Article]:
        return self._toggle(Article, "articles", "likes", article_id, user_id)

    def delete_article(self, article_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            if conn.execute("DELETE FROM articles WHERE id = ?", (article_id,)).rowcount == 0:
                return False
            conn.execute("DELETE FROM article_comments WHERE article_id = ?", (article_id,))
            return True

    # Article comments

    def get_article_comments(self, article_id: str) -> List[ArticleComment]:
        return self._list(
            ArticleComment, "article_comments", f"WHERE article_id = ? {OLDEST_FIRST}", (article_id,)
        )

    def get_article_comment(self, comment_id: str) -> Optional[ArticleComment]:
        return self._get(ArticleComment, "article_comments", comment_id)

    def create_article_comment(self, data: InsertArticleComment) -> ArticleComment:
        comment = ArticleComment(**data.model_dump())
        with get_db(self.db_path) as conn, transaction(conn):
            _insert(conn, "article_comments", comment)
            conn.execute(
                "UPDATE articles SET comments_count = comments_count + 1 WHERE id = ?", (comment.article_id,)
            )
        return comment

    def delete_article_comment(self, comment_id: str) -> bool:
        with get_db(self.db_path) as conn, transaction(conn):
            comment = _select_one(conn, ArticleComment, "article_comments", "id = ?", (comment_id,))
            if comment is None:
                return False
            conn.execute("DELETE FROM article_comments WHERE id = ?", (comment_id,))
            conn.execute(
                "UPDATE articles SET comments_count = MAX(comments_count - 1, 0) WHERE id = ?",
                (comment.article_id,),
            )
            return True

    # Knowledge categories

    def get_knowledge_categories(self) -> List[KnowledgeCategory]:
        return self._list(KnowledgeCategory, "knowledge_categories", "ORDER BY rowid")

    def get_knowledge_category(self, category_id: str) -> Optional[KnowledgeCategory]:
        return self._get(KnowledgeCategory, "knowledge_categories", category_id)

    def create_knowledge_category(self, data: InsertKnowledgeCategory) -> KnowledgeCategory:
        return self._create("knowledge_categories", KnowledgeCategory(**data.model_dump()))

    def delete_knowledge_category(self, category_id: str) -> bool:
        with get_db(self.db_path) as conn:
            return conn.execute("DELETE FROM knowledge_categories WHERE id = ?", (category_id,)).rowcount > 0

    # Reports

    def get_reports(self, status: Optional[str] = None, limit: int = 100) -> List[Report]:
        if status:
            status = status.value if isinstance(status, Enum) else status
            return self._list(Report, "reports", f"WHERE status = ? {NEWEST_FIRST} LIMIT ?", (status, limit))
        return self._list(Report, "reports", f"{NEWEST_FIRST} LIMIT ?", (limit,))

    def get_report(self, report_id: str) -> Optional[Report]:
        return self._get(Report, "reports", report_id)

    def create_report(self, data: InsertReport) -> Report:
        return self._create("reports", Report(**data.model_dump()))

    def update_report(self, report_id: str, updates: ReportUpdate) -> Optional[Report]:
        return self._update(Report, "reports", "id = ?", (report_id,), updates)

    # Audit logs

    def create_audit_log(self, data: InsertAuditLog) -> AuditLog:
        return self._create("audit_logs", AuditLog(**data.model_dump()))

    def get_audit_logs(self, limit: int = 100) -> List[AuditLog]:
        return self._list(AuditLog, "audit_logs", f"{NEWEST_FIRST} LIMIT ?", (limit,))

    # Search

    def search_entities(self, query: str, limits: Optional[SearchLimits] = None) -> SearchResults:
        term = normalize_query(query)
        if not term:
            return SearchResults()
        limits = limits or SearchLimits()
        needle = term.lower()

        with get_db(self.db_path) as conn:
            conn.create_function("icontains", 2, _icontains, deterministic=True)
            communities = conn.execute("""
                SELECT id, name, slug, description, members_count FROM communities
                WHERE icontains(name, ?) OR icontains(description, ?)
                ORDER BY rowid LIMIT ?
            """, (needle, needle, limits.communities)).fetchall()
            posts = conn.execute("""
                SELECT id, title, text, community_id FROM posts
                WHERE icontains(title, ?) OR icontains(text, ?)
                ORDER BY rowid LIMIT ?
            """, (needle, needle, limits.posts)).fetchall()
            stations = conn.execute("""
                SELECT id, name, address, provider FROM stations
                WHERE icontains(name, ?) OR icontains(address, ?) OR icontains(provider, ?)
                ORDER BY rowid LIMIT ?
            """, (needle, needle, needle, limits.stations)).fetchall()
            profiles = conn.execute("""
                SELECT user_id, display_name, avatar_url FROM profiles
                WHERE icontains(display_name, ?)
                ORDER BY rowid LIMIT ?
            """, (needle, limits.users)).fetchall()
            emails = conn.execute("""
                SELECT id, email FROM users
                WHERE icontains(email, ?)
                ORDER BY rowid LIMIT ?
            """, (needle, limits.users)).fetchall()

        profile_hits = [
            UserHit(id=row["user_id"], display_name=row["display_name"], avatar_url=row["avatar_url"])
            for row in profiles
        ]
        email_hits = [UserHit(id=row["id"], email=row["email"]) for row in emails]
        return SearchResults(
            communities=[CommunityHit(**dict(row)) for row in communities],
            posts=[
                PostHit(id=row["id"], title=row["title"], text=build_snippet(row["text"], term),
                        community_id=row["community_id"])
                for row in posts
            ],
            stations=[StationHit(**dict(row)) for row in stations],
            users=merge_user_matches(profile_hits, email_hits, limits.users),
        )

    # Maintenance

    def recount_counters(self) -> int:
        with get_db(self.db_path) as conn, transaction(conn):
            fixed = sum(conn.execute(statement).rowcount for statement in _RECOUNT_SQL)
        if fixed:
            logger.info("Recount corrected %d counter(s)", fixed)
        return fixed
