"""Search aggregation helpers shared by every storage backend."""

from typing import Iterable, List, Optional

from pydantic import BaseModel

SNIPPET_CONTEXT = 40
SNIPPET_LENGTH = 160
SNIPPET_FALLBACK_LENGTH = 120


class SearchLimits(BaseModel):
    communities: int = 10
    posts: int = 10
    stations: int = 10
    users: int = 10

    @classmethod
    def uniform(cls, limit: int) -> "SearchLimits":
        return cls(communities=limit, posts=limit, stations=limit, users=limit)


class CommunityHit(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    members_count: Optional[int] = None

class PostHit(BaseModel):
    id: str
    title: Optional[str] = None
    text: str
    community_id: Optional[str] = None

class StationHit(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    provider: Optional[str] = None

class UserHit(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

class SearchResults(BaseModel):
    communities: List[CommunityHit] = []
    posts: List[PostHit] = []
    stations: List[StationHit] = []
    users: List[UserHit] = []


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip()

def matches(query: str, *fields: Optional[str]) -> bool:
    """Case-insensitive substring match against any of the given fields"""
    needle = query.lower()
    return any(f is not None and needle in f.lower() for f in fields)

def build_snippet(text: Optional[str], query: str) -> str:
    """Cut a window of post text around the first occurrence of the query.

    Keeps SNIPPET_CONTEXT characters before the match and SNIPPET_LENGTH in
    total. Falls back to a plain prefix when the term is not found verbatim.
    """
    if not text:
        return ""
    index = text.lower().find(query.lower())
    if index == -1:
        return text[:SNIPPET_FALLBACK_LENGTH]
    start = max(0, index - SNIPPET_CONTEXT)
    return text[start:start + SNIPPET_LENGTH]

def merge_user_matches(profile_hits: Iterable[UserHit], email_hits: Iterable[UserHit], limit: int) -> List[UserHit]:
    """Join display-name and email matches into one row per user id.

    Profile matches are taken first. An email match for a user already in the
    result only fills in the email; new users are appended while under the limit.
    """
    merged = {}
    for hit in profile_hits:
        if len(merged) >= limit:
            break
        merged[hit.id] = hit.model_copy()
    for hit in email_hits:
        existing = merged.get(hit.id)
        if existing is not None:
            existing.email = hit.email
        elif len(merged) < limit:
            merged[hit.id] = hit.model_copy()
    return list(merged.values())[:limit]
