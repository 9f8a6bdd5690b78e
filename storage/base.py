"""The persistence contract every backend implements.

Route handlers only ever talk to an ``IStorage``; they never branch on the
backend type. Absent entities come back as ``None`` (or ``False`` for
delete/leave style calls), never as an exception. No method performs
authorization.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

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
    TargetType,
)
from storage.search import SearchLimits, SearchResults


class StorageError(Exception):
    """Base class for errors raised by a storage backend."""

class DuplicateKeyError(StorageError):
    """A unique field (user email, profile owner, community slug) is already taken."""

    def __init__(self, field: str, value: str):
        super().__init__(f"{field} '{value}' already exists")
        self.field = field
        self.value = value


class IStorage(ABC):

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...
    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...
    @abstractmethod
    def get_users(self) -> List[User]: ...
    @abstractmethod
    def create_user(self, data: InsertUser) -> User:
        """Insert a user. Raises DuplicateKeyError if the email is taken."""
    @abstractmethod
    def update_user(self, user_id: str, updates: UserUpdate) -> Optional[User]: ...
    @abstractmethod
    def delete_user(self, user_id: str) -> bool: ...

    # Profiles
    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]: ...
    @abstractmethod
    def get_profile_by_id(self, profile_id: str) -> Optional[Profile]: ...
    @abstractmethod
    def create_profile(self, data: InsertProfile) -> Profile:
        """One profile per user; a second one raises DuplicateKeyError."""
    @abstractmethod
    def update_profile(self, user_id: str, updates: ProfileUpdate) -> Optional[Profile]: ...

    # Follows
    @abstractmethod
    def follow_user(self, follower_id: str, following_id: str) -> UserFollow:
        """Idempotent. A new follow bumps following_count of the follower and
        followers_count of the followed profile by one."""
    @abstractmethod
    def unfollow_user(self, follower_id: str, following_id: str) -> bool: ...
    @abstractmethod
    def get_followers(self, user_id: str) -> List[UserFollow]: ...
    @abstractmethod
    def get_following(self, user_id: str) -> List[UserFollow]: ...
    @abstractmethod
    def is_following(self, follower_id: str, following_id: str) -> bool: ...

    # Blocks
    @abstractmethod
    def block_user(self, blocker_id: str, blocked_id: str) -> UserBlock:
        """Idempotent. Removes any follow between the pair in either
        direction and adjusts both profiles' counters."""
    @abstractmethod
    def unblock_user(self, blocker_id: str, blocked_id: str) -> bool: ...
    @abstractmethod
    def is_blocked(self, blocker_id: str, blocked_id: str) -> bool: ...
    @abstractmethod
    def get_blocked_users(self, user_id: str) -> List[UserBlock]: ...
    @abstractmethod
    def get_blocked_by_users(self, user_id: str) -> List[UserBlock]: ...

    # Notifications
    @abstractmethod
    def create_notification(self, data: InsertNotification) -> Notification: ...
    @abstractmethod
    def get_notifications(self, user_id: str, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]: ...
    @abstractmethod
    def mark_notification_read(self, user_id: str, notification_id: str) -> Optional[Notification]: ...
    @abstractmethod
    def mark_all_notifications_read(self, user_id: str) -> int: ...

    # Conversations & messages
    @abstractmethod
    def get_conversation(self, conversation_id: str) -> Optional[Conversation]: ...
    @abstractmethod
    def find_conversation_between(self, user_a_id: str, user_b_id: str) -> Optional[Conversation]: ...
    @abstractmethod
    def create_conversation(self, participant_a_id: str, participant_b_id: str) -> Conversation:
        """Unique per unordered pair: returns the existing row if there is one."""
    @abstractmethod
    def get_conversations_for_user(self, user_id: str) -> List[Conversation]: ...
    @abstractmethod
    def create_message(self, data: InsertMessage) -> Message: ...
    @abstractmethod
    def get_messages(self, conversation_id: str, limit: Optional[int] = None, before: Optional[datetime] = None) -> List[Message]:
        """The newest ``limit`` messages created before ``before``, oldest first."""
    @abstractmethod
    def mark_message_read(self, conversation_id: str, message_id: str, user_id: str) -> Optional[Message]:
        """No-op for the sender of the message."""
    @abstractmethod
    def get_unread_message_count(self, user_id: str) -> int: ...

    # Communities
    @abstractmethod
    def get_communities(self, search: Optional[str] = None, type: Optional[str] = None) -> List[Community]: ...
    @abstractmethod
    def get_community(self, community_id: str) -> Optional[Community]: ...
    @abstractmethod
    def get_community_by_slug(self, slug: str) -> Optional[Community]: ...
    @abstractmethod
    def create_community(self, data: InsertCommunity) -> Community:
        """Raises DuplicateKeyError if the slug is taken."""
    @abstractmethod
    def update_community(self, community_id: str, updates: CommunityUpdate) -> Optional[Community]: ...
    @abstractmethod
    def delete_community(self, community_id: str) -> bool: ...

    # Community members
    @abstractmethod
    def join_community(self, community_id: str, user_id: str) -> CommunityMember:
        """Idempotent: an existing membership is returned without touching members_count."""
    @abstractmethod
    def leave_community(self, community_id: str, user_id: str) -> bool:
        """Removes every matching row and decrements members_count by the
        number removed, floored at 0."""
    @abstractmethod
    def is_community_member(self, community_id: str, user_id: str) -> bool: ...
    @abstractmethod
    def get_community_members(self, community_id: str) -> List[CommunityMember]: ...

    # Posts
    @abstractmethod
    def get_posts(
        self,
        community_id: Optional[str] = None,
        author_id: Optional[str] = None,
        visibility: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Post]: ...
    @abstractmethod
    def get_post(self, post_id: str) -> Optional[Post]: ...
    @abstractmethod
    def create_post(self, data: InsertPost) -> Post: ...
    @abstractmethod
    def update_post(self, post_id: str, updates: PostUpdate) -> Optional[Post]: ...
    @abstractmethod
    def delete_post(self, post_id: str) -> bool: ...
    @abstractmethod
    def toggle_post_like(self, post_id: str, user_id: str) -> Optional[Post]: ...

    # Comments
    @abstractmethod
    def get_comments(self, post_id: str) -> List[Comment]: ...
    @abstractmethod
    def get_comment(self, comment_id: str) -> Optional[Comment]: ...
    @abstractmethod
    def create_comment(self, data: InsertComment) -> Comment: ...
    @abstractmethod
    def delete_comment(self, comment_id: str) -> bool: ...

    # Stations
    @abstractmethod
    def get_stations(self, verified: Optional[bool] = None, limit: int = 100) -> List[Station]: ...
    @abstractmethod
    def get_station(self, station_id: str) -> Optional[Station]: ...
    @abstractmethod
    def create_station(self, data: InsertStation) -> Station: ...
    @abstractmethod
    def update_station(self, station_id: str, updates: StationUpdate) -> Optional[Station]: ...

    # Bookmarks
    @abstractmethod
    def get_bookmarks(self, user_id: str, target_type: Optional[TargetType] = None) -> List[Bookmark]: ...
    @abstractmethod
    def create_bookmark(self, data: InsertBookmark) -> Bookmark: ...
    @abstractmethod
    def delete_bookmark(self, bookmark_id: str) -> bool: ...
    @abstractmethod
    def get_bookmark(self, user_id: str, target_id: str) -> Optional[Bookmark]: ...

    # Questions
    @abstractmethod
    def get_questions(
        self,
        tag: Optional[str] = None,
        sort: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Question]: ...
    @abstractmethod
    def get_question(self, question_id: str) -> Optional[Question]: ...
    @abstractmethod
    def create_question(self, data: InsertQuestion) -> Question: ...
    @abstractmethod
    def update_question(self, question_id: str, updates: QuestionUpdate) -> Optional[Question]: ...
    @abstractmethod
    def toggle_question_upvote(self, question_id: str, user_id: str) -> Optional[Question]: ...
    @abstractmethod
    def delete_question(self, question_id: str) -> bool: ...

    # Answers
    @abstractmethod
    def get_answers(self, question_id: str) -> List[Answer]: ...
    @abstractmethod
    def get_answer(self, answer_id: str) -> Optional[Answer]: ...
    @abstractmethod
    def create_answer(self, data: InsertAnswer) -> Answer: ...
    @abstractmethod
    def toggle_answer_upvote(self, answer_id: str, user_id: str) -> Optional[Answer]: ...

    # Articles
    @abstractmethod
    def get_articles(self, kind: Optional[str] = None, tag: Optional[str] = None, limit: int = 50) -> List[Article]: ...
    @abstractmethod
    def get_article(self, article_id: str) -> Optional[Article]: ...
    @abstractmethod
    def create_article(self, data: InsertArticle) -> Article: ...
    @abstractmethod
    def toggle_article_like(self, article_id: str, user_id: str) -> Optional[Article]: ...
    @abstractmethod
    def delete_article(self, article_id: str) -> bool: ...

    # Article comments
    @abstractmethod
    def get_article_comments(self, article_id: str) -> List[ArticleComment]: ...
    @abstractmethod
    def get_article_comment(self, comment_id: str) -> Optional[ArticleComment]: ...
    @abstractmethod
    def create_article_comment(self, data: InsertArticleComment) -> ArticleComment: ...
    @abstractmethod
    def delete_article_comment(self, comment_id: str) -> bool: ...

    # Knowledge categories
    @abstractmethod
    def get_knowledge_categories(self) -> List[KnowledgeCategory]: ...
    @abstractmethod
    def get_knowledge_category(self, category_id: str) -> Optional[KnowledgeCategory]: ...
    @abstractmethod
    def create_knowledge_category(self, data: InsertKnowledgeCategory) -> KnowledgeCategory: ...
    @abstractmethod
    def delete_knowledge_category(self, category_id: str) -> bool: ...

    # Reports
    @abstractmethod
    def get_reports(self, status: Optional[str] = None, limit: int = 100) -> List[Report]: ...
    @abstractmethod
    def get_report(self, report_id: str) -> Optional[Report]: ...
    @abstractmethod
    def create_report(self, data: InsertReport) -> Report: ...
    @abstractmethod
    def update_report(self, report_id: str, updates: ReportUpdate) -> Optional[Report]: ...

    # Audit logs (append-only)
    @abstractmethod
    def create_audit_log(self, data: InsertAuditLog) -> AuditLog: ...
    @abstractmethod
    def get_audit_logs(self, limit: int = 100) -> List[AuditLog]: ...

    # Search
    @abstractmethod
    def search_entities(self, query: str, limits: Optional[SearchLimits] = None) -> SearchResults:
        """Bounded case-insensitive search over communities, posts, stations
        and users. A blank query returns empty results without touching the
        backend."""

    # Maintenance
    @abstractmethod
    def recount_counters(self) -> int:
        """Recompute every derived counter from the relationship rows.

        Returns the number of records whose stored counter was wrong.
        """
