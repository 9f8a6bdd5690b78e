from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import (
    Article, ArticleKind, InsertArticle, InsertArticleComment,
    KnowledgeCategory, InsertKnowledgeCategory, User, TargetType,
)
from schemas.articles import ArticleCreate, ArticleCommentCreate, ArticleCommentResponse, KnowledgeCategoryCreate
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, require_admin, is_staff, audit, with_author

router = APIRouter(prefix="/api", tags=["knowledge"])

def _get_article_or_404(storage: IStorage, article_id: str) -> Article:
    article = storage.get_article(article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article

@router.get("/articles", response_model=List[Article])
def list_articles(
    kind: Optional[ArticleKind] = None,
    tag: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    storage: IStorage = Depends(get_storage),
):
    return storage.get_articles(kind=kind, tag=tag, limit=limit)

@router.post("/articles", response_model=Article, status_code=201)
def create_article(data: ArticleCreate, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    article = storage.create_article(InsertArticle(author_id=current_user.id, **data.model_dump()))
    audit(storage, "ARTICLE_CREATED", current_user.id, TargetType.ARTICLE, article.id)
    return article

@router.get("/articles/{article_id}", response_model=Article)
def get_article(article_id: str, storage: IStorage = Depends(get_storage)):
    return _get_article_or_404(storage, article_id)

@router.post("/articles/{article_id}/like", response_model=Article)
def toggle_article_like(article_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    article = storage.toggle_article_like(article_id, current_user.id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article

@router.delete("/articles/{article_id}", response_model=SuccessResponse)
def delete_article(article_id: str, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    if not storage.delete_article(article_id):
        raise HTTPException(status_code=404, detail="Article not found")
    audit(storage, "ARTICLE_DELETED", current_user.id, TargetType.ARTICLE, article_id)
    return {"success": True}

@router.get("/articles/{article_id}/comments", response_model=List[ArticleCommentResponse])
def list_article_comments(article_id: str, storage: IStorage = Depends(get_storage)):
    return [with_author(storage, c, c.author_id) for c in storage.get_article_comments(article_id)]

@router.post("/articles/{article_id}/comments", response_model=ArticleCommentResponse, status_code=201)
def create_article_comment(article_id: str, data: ArticleCommentCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    _get_article_or_404(storage, article_id)
    comment = storage.create_article_comment(
        InsertArticleComment(article_id=article_id, author_id=current_user.id, text=data.text)
    )
    return with_author(storage, comment, comment.author_id)

@router.delete("/article-comments/{comment_id}", response_model=SuccessResponse)
def delete_article_comment(comment_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    comment = storage.get_article_comment(comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.author_id != current_user.id and not is_staff(current_user):
        raise HTTPException(status_code=403, detail="Not authorized")
    storage.delete_article_comment(comment_id)
    return {"success": True}

@router.get("/knowledge-categories", response_model=List[KnowledgeCategory])
def list_knowledge_categories(storage: IStorage = Depends(get_storage)):
    return storage.get_knowledge_categories()

@router.post("/knowledge-categories", response_model=KnowledgeCategory, status_code=201)
def create_knowledge_category(data: KnowledgeCategoryCreate, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    fields = data.model_dump(exclude_none=True)
    return storage.create_knowledge_category(InsertKnowledgeCategory(created_by=current_user.id, **fields))

@router.delete("/knowledge-categories/{category_id}", response_model=SuccessResponse)
def delete_knowledge_category(category_id: str, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    if not storage.delete_knowledge_category(category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True}
