from pydantic import BaseModel, validator
from typing import List, Optional

from models import MediaItem, PostVisibility, Post, Comment
from schemas.shared import AuthoredResponse, require_text

class PostCreate(BaseModel):
    text: str
    title: Optional[str] = None
    community_id: Optional[str] = None
    media: Optional[List[MediaItem]] = None
    visibility: PostVisibility = PostVisibility.PUBLIC

    @validator('text')
    def validate_text(cls, v):
        return require_text(v, 'Text', 5000)

    @validator('title')
    def validate_title(cls, v):
        return require_text(v, 'Title', 200)

    @validator('media')
    def validate_media(cls, v):
        if v and len(v) > 10:
            raise ValueError('Maximum 10 media attachments allowed')
        for item in v or []:
            if item.type not in ('image', 'video'):
                raise ValueError('Media type must be image or video')
        return v

class PostUpdateRequest(BaseModel):
    text: Optional[str] = None
    title: Optional[str] = None
    media: Optional[List[MediaItem]] = None
    visibility: Optional[PostVisibility] = None

    @validator('text')
    def validate_text(cls, v):
        return require_text(v, 'Text', 5000)

class PostResponse(Post, AuthoredResponse):
    pass

class CommentCreate(BaseModel):
    text: str

    @validator('text')
    def validate_text(cls, v):
        return require_text(v, 'Comment', 2000)

class CommentResponse(Comment, AuthoredResponse):
    pass
