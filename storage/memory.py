"""In-memory storage backend.

Each instance owns its own dicts, so tests can build isolated stores. Every
public method hands back deep copies; callers can never mutate stored state.
Reads and compound mutations (check, insert, bump counter) all run under one
re-entrant lock because FastAPI executes sync handlers on a threadpool.
"""

import functools
import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, TypeVar

from pydantic import BaseModel

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
    normalize_query, matches, build_snippet, merge_user_matches,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _locked(method):
    """Hold the store lock for the whole call, copies included."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper

def _copy(entity: Optional[T]) -> Optional[T]:
    return entity.model_copy(deep=True) if entity is not None else None

def _copies(entities: Iterable[T]) -> List[T]:
    return [e.model_copy(deep=True) for e in entities]

def _merge(entity: T, updates: BaseModel) -> T:
    """Apply the explicitly set fields of a partial update and re-validate."""
    changes = updates.model_dump(exclude_unset=True)
    return type(entity).model_validate({**entity.model_dump(), **changes})

def _toggle(values: List[str], user_id: str) -> List[str]:
    if user_id in values:
        return [v for v in values if v != user_id]
    return values + [user_id]

def _newest_first(entities: Iterable[T], attr: str = "created_at") -> List[T]:
    # Ties on the timestamp go to the later insertion
    return sorted(list(entities)[::-1], key=lambda e: getattr(e, attr), reverse=True)


class MemStorage(IStorage):
    def __init__(self):
        self._lock = threading.RLock()
        self.users: Dict[str, User] = {}
        self.profiles: Dict[str, Profile] = {}
        self.follows: Dict[str, UserFollow] = {}
        self.blocks: Dict[str, UserBlock] = {}
        self.communities: Dict[str, Community] = {}
        self.community_members: Dict[str, CommunityMember] = {}
        self.posts: Dict[str, Post] = {}
        self.comments: Dict[str, Comment] = {}
        self.stations: Dict[str, Station] = {}
        self.bookmarks: Dict[str, Bookmark] = {}
        self.questions: Dict[str, Question] = {}
        self.answers: Dict[str, Answer] = {}
        self.articles: Dict[str, Article] = {}
        self.article_comments: Dict[str, ArticleComment] = {}
        self.knowledge_categories: Dict[str, KnowledgeCategory] = {}
        self.reports: Dict[str, Report] = {}
        self.audit_logs: Dict[str, AuditLog] = {}
        self.notifications: Dict[str, Notification] = {}
        self.conversations: Dict[str, Conversation] = {}
        self.messages: Dict[str, Message] = {}

    # Users

    @_locked
    def get_user(self, user_id: str) -> Optional[User]:
        return _copy(self.users.get(user_id))

    @_locked
    def get_user_by_email(self, email: str) -> Optional[User]:
        return _copy(next((u for u in self.users.values() if u.email == email), None))

    @_locked
    def get_users(self) -> List[User]:
        return _copies(_newest_first(self.users.values()))

    def create_user(self, data: InsertUser) -> User:
        with self._lock:
            if any(u.email == data.email for u in self.users.values()):
                raise DuplicateKeyError("email", data.email)
            user = User(**data.model_dump())
            self.users[user.id] = user
            return _copy(user)

    def update_user(self, user_id: str, updates: UserUpdate) -> Optional[User]:
        with self._lock:
            user = self.users.get(user_id)
            if not user:
                return None
            if updates.email is not None and any(
                u.email == updates.email and u.id != user_id for u in self.users.values()
            ):
                raise DuplicateKeyError("email", updates.email)
            updated = _merge(user, updates)
            self.users[user_id] = updated
            return _copy(updated)

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            if self.users.pop(user_id, None) is None:
                return False
            profile = self._profile_for(user_id)
            if profile:
                del self.profiles[profile.id]
            touched = set()
            for follow in list(self.follows.values()):
                if user_id in (follow.follower_id, follow.following_id):
                    del self.follows[follow.id]
                    touched.update((follow.follower_id, follow.following_id))
            touched.discard(user_id)
            for other_id in touched:
                self._sync_follow_counts(other_id)
            for member in list(self.community_members.values()):
                if member.user_id == user_id:
                    self.leave_community(member.community_id, user_id)
            return True

    # Profiles

    def _profile_for(self, user_id: str) -> Optional[Profile]:
        return next((p for p in self.profiles.values() if p.user_id == user_id), None)

    @_locked
    def get_profile(self, user_id: str) -> Optional[Profile]:
        return _copy(self._profile_for(user_id))

    @_locked
    def get_profile_by_id(self, profile_id: str) -> Optional[Profile]:
        return _copy(self.profiles.get(profile_id))

    def create_profile(self, data: InsertProfile) -> Profile:
        with self._lock:
            if self._profile_for(data.user_id):
                raise DuplicateKeyError("user_id", data.user_id)
            profile = Profile(**data.model_dump())
            self.profiles[profile.id] = profile
            return _copy(profile)

    def update_profile(self, user_id: str, updates: ProfileUpdate) -> Optional[Profile]:
        with self._lock:
            profile = self._profile_for(user_id)
            if not profile:
                return None
            updated = _merge(profile, updates)
            self.profiles[profile.id] = updated
            return _copy(updated)

    # Follows

    def _find_follow(self, follower_id: str, following_id: str) -> Optional[UserFollow]:
        return next(
            (f for f in self.follows.values() if f.follower_id == follower_id and f.following_id == following_id),
            None,
        )

    def _sync_follow_counts(self, user_id: str) -> None:
        profile = self._profile_for(user_id)
        if not profile:
            return
        profile.followers_count = sum(1 for f in self.follows.values() if f.following_id == user_id)
        profile.following_count = sum(1 for f in self.follows.values() if f.follower_id == user_id)

    def follow_user(self, follower_id: str, following_id: str) -> UserFollow:
        with self._lock:
            existing = self._find_follow(follower_id, following_id)
            if existing:
                return _copy(existing)
            follow = UserFollow(follower_id=follower_id, following_id=following_id)
            self.follows[follow.id] = follow
            self._sync_follow_counts(follower_id)
            self._sync_follow_counts(following_id)
            return _copy(follow)

    def unfollow_user(self, follower_id: str, following_id: str) -> bool:
        with self._lock:
            existing = self._find_follow(follower_id, following_id)
            if not existing:
                return False
            del self.follows[existing.id]
            self._sync_follow_counts(follower_id)
            self._sync_follow_counts(following_id)
            return True

    @_locked
    def get_followers(self, user_id: str) -> List[UserFollow]:
        return _copies(_newest_first(f for f in self.follows.values() if f.following_id == user_id))

    @_locked
    def get_following(self, user_id: str) -> List[UserFollow]:
        return _copies(_newest_first(f for f in self.follows.values() if f.follower_id == user_id))

    @_locked
    def is_following(self, follower_id: str, following_id: str) -> bool:
        return self._find_follow(follower_id, following_id) is not None

    # Blocks

    def _find_block(self, blocker_id: str, blocked_id: str) -> Optional[UserBlock]:
        return next(
            (b for b in self.blocks.values() if b.blocker_id == blocker_id and b.blocked_id == blocked_id),
            None,
        )

    def block_user(self, blocker_id: str, blocked_id: str) -> UserBlock:
        with self._lock:
            existing = self._find_block(blocker_id, blocked_id)
            if existing:
                return _copy(existing)
            block = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
            self.blocks[block.id] = block
            pair = {(blocker_id, blocked_id), (blocked_id, blocker_id)}
            removed = [f for f in self.follows.values() if (f.follower_id, f.following_id) in pair]
            for follow in removed:
                del self.follows[follow.id]
            if removed:
                logger.debug("Block %s -> %s removed %d follow(s)", blocker_id, blocked_id, len(removed))
                self._sync_follow_counts(blocker_id)
                self._sync_follow_counts(blocked_id)
            return _copy(block)

    def unblock_user(self, blocker_id: str, blocked_id: str) -> bool:
        with self._lock:
            existing = self._find_block(blocker_id, blocked_id)
            if not existing:
                return False
            del self.blocks[existing.id]
            return True

    @_locked
    def is_blocked(self, blocker_id: str, blocked_id: str) -> bool:
        return self._find_block(blocker_id, blocked_id) is not None

    @_locked
    def get_blocked_users(self, user_id: str) -> List[UserBlock]:
        return _copies(_newest_first(b for b in self.blocks.values() if b.blocker_id == user_id))

    @_locked
    def get_blocked_by_users(self, user_id: str) -> List[UserBlock]:
        return _copies(_newest_first(b for b in self.blocks.values() if b.blocked_id == user_id))

    # Notifications

    def create_notification(self, data: InsertNotification) -> Notification:
        with self._lock:
            notification = Notification(**data.model_dump())
            self.notifications[notification.id] = notification
            return _copy(notification)

    @_locked
    def get_notifications(self, user_id: str, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]:
        found = [n for n in self.notifications.values() if n.user_id == user_id]
        if unread_only:
            found = [n for n in found if not n.is_read]
        found = _newest_first(found)
        if limit is not None:
            found = found[:limit]
        return _copies(found)

    def mark_notification_read(self, user_id: str, notification_id: str) -> Optional[Notification]:
        with self._lock:
            notification = self.notifications.get(notification_id)
            if not notification or notification.user_id != user_id:
                return None
            notification.is_read = True
            return _copy(notification)

    def mark_all_notifications_read(self, user_id: str) -> int:
        with self._lock:
            changed = 0
            for notification in self.notifications.values():
                if notification.user_id == user_id and not notification.is_read:
                    notification.is_read = True
                    changed += 1
            return changed

    # Conversations & messages

    @_locked
    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return _copy(self.conversations.get(conversation_id))

    def _find_conversation(self, user_a_id: str, user_b_id: str) -> Optional[Conversation]:
        pair = {user_a_id, user_b_id}
        return next(
            (c for c in self.conversations.values() if {c.participant_a_id, c.participant_b_id} == pair),
            None,
        )

    @_locked
    def find_conversation_between(self, user_a_id: str, user_b_id: str) -> Optional[Conversation]:
        return _copy(self._find_conversation(user_a_id, user_b_id))

    def create_conversation(self, participant_a_id: str, participant_b_id: str) -> Conversation:
        with self._lock:
            existing = self._find_conversation(participant_a_id, participant_b_id)
            if existing:
                return _copy(existing)
            conversation = Conversation(participant_a_id=participant_a_id, participant_b_id=participant_b_id)
            self.conversations[conversation.id] = conversation
            return _copy(conversation)

    @_locked
    def get_conversations_for_user(self, user_id: str) -> List[Conversation]:
        return _copies(_newest_first(c for c in self.conversations.values() if c.has_participant(user_id)))

    def create_message(self, data: InsertMessage) -> Message:
        with self._lock:
            message = Message(**data.model_dump())
            self.messages[message.id] = message
            return _copy(message)

    @_locked
    def get_messages(self, conversation_id: str, limit: Optional[int] = None, before: Optional[datetime] = None) -> List[Message]:
        found = [m for m in self.messages.values() if m.conversation_id == conversation_id]
        if before is not None:
            cutoff = as_utc(before)
            found = [m for m in found if m.created_at < cutoff]
        found = _newest_first(found)
        if limit is not None:
            found = found[:limit]
        found.reverse()
        return _copies(found)

    def mark_message_read(self, conversation_id: str, message_id: str, user_id: str) -> Optional[Message]:
        with self._lock:
            message = self.messages.get(message_id)
            if not message or message.conversation_id != conversation_id:
                return None
            if message.sender_id == user_id:
                return _copy(message)
            message.is_read = True
            message.read_at = utcnow()
            return _copy(message)

    @_locked
    def get_unread_message_count(self, user_id: str) -> int:
        conversation_ids = {c.id for c in self.conversations.values() if c.has_participant(user_id)}
        return sum(
            1 for m in self.messages.values()
            if m.conversation_id in conversation_ids and m.sender_id != user_id and not m.is_read
        )

    # Communities

    @_locked
    def get_communities(self, search: Optional[str] = None, type: Optional[str] = None) -> List[Community]:
        found = list(self.communities.values())
        if type:
            found = [c for c in found if c.type == type]
        if search:
            found = [c for c in found if matches(search, c.name, c.description)]
        return _copies(sorted(found, key=lambda c: c.members_count, reverse=True))

    @_locked
    def get_community(self, community_id: str) -> Optional[Community]:
        return _copy(self.communities.get(community_id))

    @_locked
    def get_community_by_slug(self, slug: str) -> Optional[Community]:
        return _copy(next((c for c in self.communities.values() if c.slug == slug), None))

    def create_community(self, data: InsertCommunity) -> Community:
        with self._lock:
            if any(c.slug == data.slug for c in self.communities.values()):
                raise DuplicateKeyError("slug", data.slug)
            community = Community(**data.model_dump())
            self.communities[community.id] = community
            return _copy(community)

    def update_community(self, community_id: str, updates: CommunityUpdate) -> Optional[Community]:
        with self._lock:
            community = self.communities.get(community_id)
            if not community:
                return None
            if updates.slug is not None and any(
                c.slug == updates.slug and c.id != community_id for c in self.communities.values()
            ):
                raise DuplicateKeyError("slug", updates.slug)
            updated = _merge(community, updates)
            self.communities[community_id] = updated
            return _copy(updated)

    def delete_community(self, community_id: str) -> bool:
        with self._lock:
            if self.communities.pop(community_id, None) is None:
                return False
            for member in list(self.community_members.values()):
                if member.community_id == community_id:
                    del self.community_members[member.id]
            logger.info("Deleted community %s and its memberships", community_id)
            return True

    # Community members

    def _memberships(self, community_id: str, user_id: str) -> List[CommunityMember]:
        return [
            m for m in self.community_members.values()
            if m.community_id == community_id and m.user_id == user_id
        ]

    def join_community(self, community_id: str, user_id: str) -> CommunityMember:
        with self._lock:
            existing = self._memberships(community_id, user_id)
            if existing:
                return _copy(existing[0])
            member = CommunityMember(community_id=community_id, user_id=user_id)
            self.community_members[member.id] = member
            community = self.communities.get(community_id)
            if community:
                community.members_count += 1
            return _copy(member)

    def leave_community(self, community_id: str, user_id: str) -> bool:
        with self._lock:
            existing = self._memberships(community_id, user_id)
            if not existing:
                return False
            for member in existing:
                del self.community_members[member.id]
            community = self.communities.get(community_id)
            if community:
                community.members_count = max(0, community.members_count - len(existing))
            return True

    @_locked
    def is_community_member(self, community_id: str, user_id: str) -> bool:
        return bool(self._memberships(community_id, user_id))

    @_locked
    def get_community_members(self, community_id: str) -> List[CommunityMember]:
        return _copies(m for m in self.community_members.values() if m.community_id == community_id)

    # Posts

    @_locked
    def get_posts(
        self,
        community_id: Optional[str] = None,
        author_id: Optional[str] = None,
        visibility: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Post]:
        found = list(self.posts.values())
        if community_id:
            found = [p for p in found if p.community_id == community_id]
        if author_id:
            found = [p for p in found if p.author_id == author_id]
        if visibility:
            found = [p for p in found if p.visibility == visibility]
        found = _newest_first(found)
        return _copies(found[offset:offset + limit])

    @_locked
    def get_post(self, post_id: str) -> Optional[Post]:
        return _copy(self.posts.get(post_id))

    def create_post(self, data: InsertPost) -> Post:
        with self._lock:
            post = Post(**data.model_dump())
            self.posts[post.id] = post
            return _copy(post)

    def update_post(self, post_id: str, updates: PostUpdate) -> Optional[Post]:
        with self._lock:
            post = self.posts.get(post_id)
            if not post:
                return None
            updated = _merge(post, updates)
            self.posts[post_id] = updated
            return _copy(updated)

    def delete_post(self, post_id: str) -> bool:
        with self._lock:
            if self.posts.pop(post_id, None) is None:
                return False
            for comment in list(self.comments.values()):
                if comment.post_id == post_id:
                    del self.comments[comment.id]
            return True

    def toggle_post_like(self, post_id: str, user_id: str) -> Optional[Post]:
        with self._lock:
            post = self.posts.get(post_id)
            if not post:
                return None
            post.likes = _toggle(post.likes, user_id)
            return _copy(post)

    # Comments

    @_locked
    def get_comments(self, post_id: str) -> List[Comment]:
        return _copies(sorted(
            (c for c in self.comments.values() if c.post_id == post_id),
            key=lambda c: c.created_at,
        ))

    @_locked
    def get_comment(self, comment_id: str) -> Optional[Comment]:
        return _copy(self.comments.get(comment_id))

    def create_comment(self, data: InsertComment) -> Comment:
        with self._lock:
            comment = Comment(**data.model_dump())
            self.comments[comment.id] = comment
            post = self.posts.get(data.post_id)
            if post:
                post.comments_count += 1
            return _copy(comment)

    def delete_comment(self, comment_id: str) -> bool:
        with self._lock:
            comment = self.comments.pop(comment_id, None)
            if comment is None:
                return False
            post = self.posts.get(comment.post_id)
            if post:
                post.comments_count = max(0, post.comments_count - 1)
            return True

    # Stations

    @_locked
    def get_stations(self, verified: Optional[bool] = None, limit: int = 100) -> List[Station]:
        found = list(self.stations.values())
        if verified is not None:
            found = [s for s in found if s.verified == verified]
        return _copies(found[:limit])

    @_locked
    def get_station(self, station_id: str) -> Optional[Station]:
        return _copy(self.stations.get(station_id))

    def create_station(self, data: InsertStation) -> Station:
        with self._lock:
            station = Station(**data.model_dump())
            self.stations[station.id] = station
            return _copy(station)

    def update_station(self, station_id: str, updates: StationUpdate) -> Optional[Station]:
        with self._lock:
            station = self.stations.get(station_id)
            if not station:
                return None
            updated = _merge(station, updates)
            self.stations[station_id] = updated
            return _copy(updated)

    # Bookmarks

    @_locked
    def get_bookmarks(self, user_id: str, target_type: Optional[TargetType] = None) -> List[Bookmark]:
        found = [b for b in self.bookmarks.values() if b.user_id == user_id]
        if target_type:
            found = [b for b in found if b.target_type == target_type]
        return _copies(_newest_first(found))

    def create_bookmark(self, data: InsertBookmark) -> Bookmark:
        with self._lock:
            bookmark = Bookmark(**data.model_dump())
            self.bookmarks[bookmark.id] = bookmark
            if bookmark.target_type == TargetType.STATION:
                station = self.stations.get(bookmark.target_id)
                if station:
                    station.bookmarks_count += 1
            return _copy(bookmark)

    def delete_bookmark(self, bookmark_id: str) -> bool:
        with self._lock:
            bookmark = self.bookmarks.pop(bookmark_id, None)
            if bookmark is None:
                return False
            if bookmark.target_type == TargetType.STATION:
                station = self.stations.get(bookmark.target_id)
                if station:
                    station.bookmarks_count = max(0, station.bookmarks_count - 1)
            return True

    @_locked
    def get_bookmark(self, user_id: str, target_id: str) -> Optional[Bookmark]:
        return _copy(next(
            (b for b in self.bookmarks.values() if b.user_id == user_id and b.target_id == target_id),
            None,
        ))

    # Questions

    @_locked
    def get_questions(
        self,
        tag: Optional[str] = None,
        sort: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Question]:
        found = list(self.questions.values())
        if tag:
            found = [q for q in found if tag in q.tags]
        if sort == "upvotes":
            found = sorted(found, key=lambda q: len(q.upvotes), reverse=True)
        else:
            found = _newest_first(found)
        return _copies(found[offset:offset + limit])

    @_locked
    def get_question(self, question_id: str) -> Optional[Question]:
        return _copy(self.questions.get(question_id))

    def create_question(self, data: InsertQuestion) -> Question:
        with self._lock:
            question = Question(**data.model_dump())
            self.questions[question.id] = question
            return _copy(question)

    def update_question(self, question_id: str, updates: QuestionUpdate) -> Optional[Question]:
        with self._lock:
            question = self.questions.get(question_id)
            if not question:
                return None
            updated = _merge(question, updates)
            self.questions[question_id] = updated
            return _copy(updated)

    def toggle_question_upvote(self, question_id: str, user_id: str) -> Optional[Question]:
        with self._lock:
            question = self.questions.get(question_id)
            if not question:
                return None
            question.upvotes = _toggle(question.upvotes, user_id)
            return _copy(question)

    def delete_question(self, question_id: str) -> bool:
        with self._lock:
            for answer in list(self.answers.values()):
                if answer.question_id == question_id:
                    del self.answers[answer.id]
            return self.questions.pop(question_id, None) is not None

    # Answers

    @_locked
    def get_answers(self, question_id: str) -> List[Answer]:
        return _copies(sorted(
            (a for a in self.answers.values() if a.question_id == question_id),
            key=lambda a: len(a.upvotes),
            reverse=True,
        ))

    @_locked
    def get_answer(self, answer_id: str) -> Optional[Answer]:
        return _copy(self.answers.get(answer_id))

    def create_answer(self, data: InsertAnswer) -> Answer:
        with self._lock:
            answer = Answer(**data.model_dump())
            self.answers[answer.id] = answer
            question = self.questions.get(data.question_id)
            if question:
                question.answers_count += 1
            return _copy(answer)

    def toggle_answer_upvote(self, answer_id: str, user_id: str) -> Optional[Answer]:
        with self._lock:
            answer = self.answers.get(answer_id)
            if not answer:
                return None
            answer.upvotes = _toggle(answer.upvotes, user_id)
            return _copy(answer)

    # Articles

    @_locked
    def get_articles(self, kind: Optional[str] = None, tag: Optional[str] = None, limit: int = 50) -> List[Article]:
        found = list(self.articles.values())
        if kind:
            found = [a for a in found if a.kind == kind]
        if tag:
            found = [a for a in found if tag in a.tags]
        return _copies(_newest_first(found, "published_at")[:limit])

    @_locked
    def get_article(self, article_id: str) -> Optional[Article]:
        return _copy(self.articles.get(article_id))

    def create_article(self, data: InsertArticle) -> Article:
        with self._lock:
            article = Article(**data.model_dump())
            self.articles[article.id] = article
            return _copy(article)

    def toggle_article_like(self, article_id: str, user_id: str) -> Optional[Article]:
        with self._lock:
            article = self.articles.get(article_id)
            if not article:
                return None
            article.likes = _toggle(article.likes, user_id)
            return _copy(article)

    def delete_article(self, article_id: str) -> bool:
        with self._lock:
            if self.articles.pop(article_id, None) is None:
                return False
            for comment in list(self.article_comments.values()):
                if comment.article_id == article_id:
                    del self.article_comments[comment.id]
            return True

    # Article comments

    @_locked
    def get_article_comments(self, article_id: str) -> List[ArticleComment]:
        return _copies(sorted(
            (c for c in self.article_comments.values() if c.article_id == article_id),
            key=lambda c: c.created_at,
        ))

    @_locked
    def get_article_comment(self, comment_id: str) -> Optional[ArticleComment]:
        return _copy(self.article_comments.get(comment_id))

    def create_article_comment(self, data: InsertArticleComment) -> ArticleComment:
        with self._lock:
            comment = ArticleComment(**data.model_dump())
            self.article_comments[comment.id] = comment
            article = self.articles.get(data.article_id)
            if article:
                article.comments_count += 1
            return _copy(comment)

    def delete_article_comment(self, comment_id: str) -> bool:
        with self._lock:
            comment = self.article_comments.pop(comment_id, None)
            if comment is None:
                return False
            article = self.articles.get(comment.article_id)
            if article:
                article.comments_count = max(0, article.comments_count - 1)
            return True

    # Knowledge categories

    @_locked
    def get_knowledge_categories(self) -> List[KnowledgeCategory]:
        return _copies(self.knowledge_categories.values())

    @_locked
    def get_knowledge_category(self, category_id: str) -> Optional[KnowledgeCategory]:
        return _copy(self.knowledge_categories.get(category_id))

    def create_knowledge_category(self, data: InsertKnowledgeCategory) -> KnowledgeCategory:
        with self._lock:
            category = KnowledgeCategory(**data.model_dump())
            self.knowledge_categories[category.id] = category
            return _copy(category)

    def delete_knowledge_category(self, category_id: str) -> bool:
        with self._lock:
            return self.knowledge_categories.pop(category_id, None) is not None

    # Reports

    @_locked
    def get_reports(self, status: Optional[str] = None, limit: int = 100) -> List[Report]:
        found = list(self.reports.values())
        if status:
            found = [r for r in found if r.status == status]
        return _copies(_newest_first(found)[:limit])

    @_locked
    def get_report(self, report_id: str) -> Optional[Report]:
        return _copy(self.reports.get(report_id))

    def create_report(self, data: InsertReport) -> Report:
        with self._lock:
            report = Report(**data.model_dump())
            self.reports[report.id] = report
            return _copy(report)

    def update_report(self, report_id: str, updates: ReportUpdate) -> Optional[Report]:
        with self._lock:
            report = self.reports.get(report_id)
            if not report:
                return None
            updated = _merge(report, updates)
            self.reports[report_id] = updated
            return _copy(updated)

    # Audit logs

    def create_audit_log(self, data: InsertAuditLog) -> AuditLog:
        with self._lock:
            log = AuditLog(**data.model_dump())
            self.audit_logs[log.id] = log
            return _copy(log)

    @_locked
    def get_audit_logs(self, limit: int = 100) -> List[AuditLog]:
        return _copies(_newest_first(self.audit_logs.values())[:limit])

    # Search

    @_locked
    def search_entities(self, query: str, limits: Optional[SearchLimits] = None) -> SearchResults:
        term = normalize_query(query)
        if not term:
            return SearchResults()
        limits = limits or SearchLimits()

        communities = [
            CommunityHit(id=c.id, name=c.name, slug=c.slug, description=c.description, members_count=c.members_count)
            for c in self.communities.values() if matches(term, c.name, c.description)
        ][:limits.communities]
        posts = [
            PostHit(id=p.id, title=p.title, text=build_snippet(p.text, term), community_id=p.community_id)
            for p in self.posts.values() if matches(term, p.title, p.text)
        ][:limits.posts]
        stations = [
            StationHit(id=s.id, name=s.name, address=s.address, provider=s.provider)
            for s in self.stations.values() if matches(term, s.name, s.address, s.provider)
        ][:limits.stations]
        profile_hits = [
            UserHit(id=p.user_id, display_name=p.display_name, avatar_url=p.avatar_url)
            for p in self.profiles.values() if matches(term, p.display_name)
        ][:limits.users]
        email_hits = [
            UserHit(id=u.id, email=u.email)
            for u in self.users.values() if matches(term, u.email)
        ][:limits.users]

        return SearchResults(
            communities=communities,
            posts=posts,
            stations=stations,
            users=merge_user_matches(profile_hits, email_hits, limits.users),
        )

    # Maintenance

    def recount_counters(self) -> int:
        with self._lock:
            fixed = 0
            for community in self.communities.values():
                actual = sum(1 for m in self.community_members.values() if m.community_id == community.id)
                if community.members_count != actual:
                    community.members_count = actual
                    fixed += 1
            for post in self.posts.values():
                actual = sum(1 for c in self.comments.values() if c.post_id == post.id)
                if post.comments_count != actual:
                    post.comments_count = actual
                    fixed += 1
            for article in self.articles.values():
                actual = sum(1 for c in self.article_comments.values() if c.article_id == article.id)
                if article.comments_count != actual:
                    article.comments_count = actual
                    fixed += 1
            for question in self.questions.values():
                actual = sum(1 for a in self.answers.values() if a.question_id == question.id)
                if question.answers_count != actual:
                    question.answers_count = actual
                    fixed += 1
            for station in self.stations.values():
                actual = sum(
                    1 for b in self.bookmarks.values()
                    if b.target_type == TargetType.STATION and b.target_id == station.id
                )
                if station.bookmarks_count != actual:
                    station.bookmarks_count = actual
                    fixed += 1
            for profile in self.profiles.values():
                before = (profile.followers_count, profile.following_count)
                self._sync_follow_counts(profile.user_id)
                if (profile.followers_count, profile.following_count) != before:
                    fixed += 1
            if fixed:
                logger.info("Recount corrected %d counter(s)", fixed)
            return fixed
