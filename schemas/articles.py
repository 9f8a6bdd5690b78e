from pydantic import BaseModel, validator
from typing import List, Optional

from models import ArticleKind, ArticleComment
from schemas.shared import AuthoredResponse, require_text, clean_tags

class ArticleCreate(BaseModel):
    kind: ArticleKind
    title: str
    summary: str
    body: str
    cover_image_url: Optional[str] = None
    tags: List[str] = []

    @validator('title')
    def validate_title(cls, v):
        return require_text(v, 'Title', 200)

    @validator('summary')
    def validate_summary(cls, v):
        return require_text(v, 'Summary', 500)

    @validator('body')
    def validate_body(cls, v):
        return require_text(v, 'Body')

    @validator('tags')
    def validate_tags(cls, v):
        return clean_tags(v)

class ArticleCommentCreate(BaseModel):
    text: str

    @validator('text')
    def validate_text(cls, v):
        return require_text(v, 'Comment', 2000)

class ArticleCommentResponse(ArticleComment, AuthoredResponse):
    pass

class KnowledgeCategoryCreate(BaseModel):
    name: str
    description: str
    icon: Optional[str] = None
    color: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        return require_text(v, 'Name', 80)
