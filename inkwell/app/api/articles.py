"""Article authoring, like and bookmark endpoints."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from inkwell.app.db.dependencies import SessionDep
from inkwell.app.db.models import Article, ArticleStatus, User
from inkwell.app.middleware.auth import optional_user, require_user
from inkwell.app.services import article_service, engagement

router = APIRouter(prefix="/api/articles", tags=["articles"])

StatusValue = Literal["DRAFT", "PUBLISHED", "ARCHIVED"]


class ArticleCreate(BaseModel):
    title: str
    content: str
    slug: Optional[str] = None
    status: StatusValue = ArticleStatus.DRAFT.value
    allow_comments: bool = True


class ArticleUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[StatusValue] = None
    allow_comments: Optional[bool] = None


def serialize_article(article: Article, comment_count: Optional[int] = None) -> dict:
    data = {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "content": article.content,
        "author_id": article.author_id,
        "status": article.status,
        "allow_comments": article.allow_comments,
        "likes_count": article.likes_count or 0,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "updated_at": article.updated_at.isoformat() if article.updated_at else None,
    }
    if comment_count is not None:
        data["comment_count"] = comment_count
    return data


@router.get("")
async def list_articles(
    session: SessionDep,
    status: StatusValue = ArticleStatus.PUBLISHED.value,
    author_id: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: Optional[User] = Depends(optional_user),
) -> dict:
    """List articles newest first; unpublished ones only for their author or admins."""
    rows, total = await article_service.list_articles(
        session, viewer, status=status, author_id=author_id, limit=limit, offset=offset
    )
    return {
        "data": [serialize_article(article, count) for article, count in rows],
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


@router.post("", status_code=201)
async def create_article(
    data: ArticleCreate,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    article = await article_service.create_article(
        session,
        author=user,
        title=data.title,
        content=data.content,
        slug=data.slug,
        status=data.status,
        allow_comments=data.allow_comments,
    )
    return serialize_article(article)


@router.get("/{slug}")
async def get_article(
    slug: str,
    session: SessionDep,
    viewer: Optional[User] = Depends(optional_user),
) -> dict:
    return serialize_article(await article_service.get_article(session, slug, viewer))


@router.patch("/{slug}")
async def update_article(
    slug: str,
    data: ArticleUpdate,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    """Change title, content, status or whether comments are accepted."""
    article = await article_service.update_article(
        session, user, slug, data.model_dump(exclude_none=True)
    )
    return serialize_article(article)


@router.delete("/{slug}")
async def delete_article(
    slug: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    await article_service.delete_article(session, user, slug)
    return {"message": "Article deleted successfully"}


@router.post("/{slug}/like")
async def toggle_like(
    slug: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    """Like the article, or unlike it if already liked."""
    liked = await engagement.toggle_article_like(session, user, slug)
    return {"liked": liked}


@router.get("/{slug}/like")
async def like_status(
    slug: str,
    session: SessionDep,
    user: Optional[User] = Depends(optional_user),
) -> dict:
    return await engagement.get_article_like_status(session, slug, user)


@router.post("/{slug}/bookmark", status_code=201)
async def add_bookmark(
    slug: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    bookmark = await engagement.add_bookmark(session, user, slug)
    return {
        "id": bookmark.id,
        "article_id": bookmark.article_id,
        "created_at": bookmark.created_at.isoformat() if bookmark.created_at else None,
    }


@router.delete("/{slug}/bookmark")
async def remove_bookmark(
    slug: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    await engagement.remove_bookmark(session, user, slug)
    return {"message": "Bookmark removed successfully"}


@router.get("/{slug}/bookmark")
async def bookmark_status(
    slug: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    return {"is_bookmarked": await engagement.is_bookmarked(session, user, slug)}
