"""Entity records owned by the storage layer.

Every entity carries a generated string id. ``Insert*`` models hold the fields
a caller may supply at creation; ``*Update`` models hold the fields a partial
update may change. Derived counters never appear in an update model.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def new_id() -> str:
    return str(uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserRole(str, Enum):
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"

class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BANNED = "BANNED"

class PostVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    COMMUNITY = "COMMUNITY"
    PRIVATE = "PRIVATE"

class ArticleKind(str, Enum):
    NEWS = "NEWS"
    KNOWLEDGE = "KNOWLEDGE"
    TIP = "TIP"

class ReportStatus(str, Enum):
    OPEN = "OPEN"
    IN_REVIEW = "IN_REVIEW"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"

class TargetType(str, Enum):
    USER = "USER"
    POST = "POST"
    COMMENT = "COMMENT"
    COMMUNITY = "COMMUNITY"
    STATION = "STATION"
    QUESTION = "QUESTION"
    ANSWER = "ANSWER"
    ARTICLE = "ARTICLE"
    ARTICLE_COMMENT = "ARTICLE_COMMENT"
    MESSAGE = "MESSAGE"
    REPORT = "REPORT"

class NotificationType(str, Enum):
    FOLLOW = "FOLLOW"
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    ANSWER = "ANSWER"
    MESSAGE = "MESSAGE"
    SYSTEM = "SYSTEM"


# Nested value objects

class Location(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

class Vehicle(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    battery_capacity: Optional[float] = None

class NotificationPrefs(BaseModel):
    new_post: bool = True
    like: bool = True
    comment: bool = True

class Coords(BaseModel):
    lat: float
    lng: float

class Connector(BaseModel):
    type: str
    power_kw: float = 0

class MediaItem(BaseModel):
    type: str  # 'image' or 'video'
    url: str


# Users & profiles

class InsertUser(BaseModel):
    email: str
    password_hash: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE

class User(InsertUser):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)

class UserUpdate(BaseModel):
    email: Optional[str] = None
    password_hash: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


class InsertProfile(BaseModel):
    user_id: str
    display_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[Location] = None
    vehicle: Optional[Vehicle] = None
    interests: Optional[List[str]] = None
    notification_prefs: NotificationPrefs = Field(default_factory=NotificationPrefs)
    accepts_messages: bool = True

class Profile(InsertProfile):
    id: str = Field(default_factory=new_id)
    followers_count: int = 0
    following_count: int = 0

class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[Location] = None
    vehicle: Optional[Vehicle] = None
    interests: Optional[List[str]] = None
    notification_prefs: Optional[NotificationPrefs] = None
    accepts_messages: Optional[bool] = None


class UserFollow(BaseModel):
    id: str = Field(default_factory=new_id)
    follower_id: str
    following_id: str
    created_at: datetime = Field(default_factory=utcnow)

class UserBlock(BaseModel):
    id: str = Field(default_factory=new_id)
    blocker_id: str
    blocked_id: str
    created_at: datetime = Field(default_factory=utcnow)


# Communities

class InsertCommunity(BaseModel):
    name: str
    slug: str
    type: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    moderators: Optional[List[str]] = None

class Community(InsertCommunity):
    id: str = Field(default_factory=new_id)
    members_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)

class CommunityUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    moderators: Optional[List[str]] = None

class CommunityMember(BaseModel):
    id: str = Field(default_factory=new_id)
    community_id: str
    user_id: str
    joined_at: datetime = Field(default_factory=utcnow)


# Posts & comments

class InsertPost(BaseModel):
    author_id: str
    text: str
    community_id: Optional[str] = None
    title: Optional[str] = None
    media: Optional[List[MediaItem]] = None
    visibility: PostVisibility = PostVisibility.PUBLIC

class Post(InsertPost):
    id: str = Field(default_factory=new_id)
    likes: List[str] = Field(default_factory=list)
    comments_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)

class PostUpdate(BaseModel):
    text: Optional[str] = None
    title: Optional[str] = None
    community_id: Optional[str] = None
    media: Optional[List[MediaItem]] = None
    visibility: Optional[PostVisibility] = None

class InsertComment(BaseModel):
    post_id: str
    author_id: str
    text: str

class Comment(InsertComment):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)


# Stations & bookmarks

class InsertStation(BaseModel):
    name: str
    coords: Coords
    address: str
    connectors: List[Connector] = Field(default_factory=list)
    external_id: Optional[str] = None
    provider: Optional[str] = None
    pricing: Optional[str] = None
    availability: Optional[str] = None
    added_by: Optional[str] = None

class Station(InsertStation):
    id: str = Field(default_factory=new_id)
    verified: bool = False
    bookmarks_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)

class StationUpdate(BaseModel):
    name: Optional[str] = None
    coords: Optional[Coords] = None
    address: Optional[str] = None
    connectors: Optional[List[Connector]] = None
    provider: Optional[str] = None
    pricing: Optional[str] = None
    availability: Optional[str] = None
    verified: Optional[bool] = None

class InsertBookmark(BaseModel):
    user_id: str
    target_type: TargetType
    target_id: str

class Bookmark(InsertBookmark):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)


# Q&A

class InsertQuestion(BaseModel):
    author_id: str
    title: str
    body: str
    tags: List[str] = Field(default_factory=list)

class Question(InsertQuestion):
    id: str = Field(default_factory=new_id)
    upvotes: List[str] = Field(default_factory=list)
    answers_count: int = 0
    solved_answer_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class QuestionUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    tags: Optional[List[str]] = None
    solved_answer_id: Optional[str] = None

class InsertAnswer(BaseModel):
    question_id: str
    author_id: str
    body: str

class Answer(InsertAnswer):
    id: str = Field(default_factory=new_id)
    upvotes: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


# Knowledge hub

class InsertArticle(BaseModel):
    kind: ArticleKind
    title: str
    summary: str
    body: str
    author_id: str
    cover_image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

class Article(InsertArticle):
    id: str = Field(default_factory=new_id)
    likes: List[str] = Field(default_factory=list)
    comments_count: int = 0
    published_at: datetime = Field(default_factory=utcnow)

class InsertArticleComment(BaseModel):
    article_id: str
    author_id: str
    text: str

class ArticleComment(InsertArticleComment):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)

class InsertKnowledgeCategory(BaseModel):
    name: str
    description: str
    created_by: str
    icon: str = "BookOpen"
    color: str = "text-blue-500"

class KnowledgeCategory(InsertKnowledgeCategory):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)


# Moderation

class InsertReport(BaseModel):
    reporter_id: str
    target_type: TargetType
    target_id: str
    reason: str
    handled_by: Optional[str] = None

class Report(InsertReport):
    id: str = Field(default_factory=new_id)
    status: ReportStatus = ReportStatus.OPEN
    created_at: datetime = Field(default_factory=utcnow)

class ReportUpdate(BaseModel):
    status: Optional[ReportStatus] = None
    handled_by: Optional[str] = None

class InsertAuditLog(BaseModel):
    action: str
    actor_id: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

class AuditLog(InsertAuditLog):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)


# Notifications & messaging

class InsertNotification(BaseModel):
    user_id: str
    type: NotificationType
    actor_id: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

class Notification(InsertNotification):
    id: str = Field(default_factory=new_id)
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)

class Conversation(BaseModel):
    id: str = Field(default_factory=new_id)
    participant_a_id: str
    participant_b_id: str
    created_at: datetime = Field(default_factory=utcnow)

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.participant_a_id, self.participant_b_id)

    def other_participant(self, user_id: str) -> str:
        return self.participant_b_id if user_id == self.participant_a_id else self.participant_a_id

class InsertMessage(BaseModel):
    conversation_id: str
    sender_id: str
    body: str

class Message(InsertMessage):
    id: str = Field(default_factory=new_id)
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
