# Schemas package
from .shared import SuccessResponse, AuthoredResponse
from .auth import RegisterRequest, LoginRequest, Token, UserResponse, MeResponse
from .profile import ProfileUpdateRequest, FollowEntry, BlockEntry, RelationshipStatus
from .posts import PostCreate, PostUpdateRequest, PostResponse, CommentCreate, CommentResponse
from .communities import CommunityCreate, CommunityUpdateRequest, MembershipStatus
from .stations import StationCreate, BookmarkCreate, BookmarkCheck
from .questions import QuestionCreate, AnswerCreate, SolveRequest, QuestionResponse, AnswerResponse
from .articles import ArticleCreate, ArticleCommentCreate, ArticleCommentResponse, KnowledgeCategoryCreate
from .moderation import ReportCreate, ReportUpdateRequest, AdminUserUpdate, AdminUserResponse, RecountResponse
from .messages import ConversationCreate, MessageCreate, ConversationSummary, UnreadCount, NotificationsReadResponse
