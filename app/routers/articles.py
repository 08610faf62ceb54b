from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import (
    PaginationParams,
    get_current_user_id,
    get_optional_user_id,
    get_services,
)
from app.schemas import (
    ArticleCreateRequest,
    ArticleFilters,
    ArticleUpdateRequest,
    CommentCreateRequest,
)
from app.services import Services

router = APIRouter(prefix="/articles", tags=["articles"])

@router.get("")
async def list_articles(
    filters: ArticleFilters = Depends(),
    pagination: PaginationParams = Depends(),
    viewer_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return await services.articles.list_articles(
        db, viewer_id, filters, pagination.offset, pagination.limit
    )

# Declared before "/{slug}" so "feed" is not taken for a slug.
@router.get("/feed")
async def feed(
    pagination: PaginationParams = Depends(),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return await services.articles.feed(db, user_id, pagination.offset, pagination.limit)

@router.get("/{slug}")
async def get_article(
    slug: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"article": await services.articles.get_article(db, viewer_id, slug)}

@router.post("", status_code=201)
async def create_article(
    data: ArticleCreateRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"article": await services.articles.create_article(db, user_id, data.article)}

@router.put("/{slug}")
async def update_article(
    slug: str,
    data: ArticleUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"article": await services.articles.update_article(db, user_id, slug, data.article)}

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    await services.articles.delete_article(db, user_id, slug)
    return Response(status_code=204)

@router.post("/{slug}/favorite")
async def favorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"article": await services.articles.favorite(db, user_id, slug)}

@router.delete("/{slug}/favorite")
async def unfavorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"article": await services.articles.unfavorite(db, user_id, slug)}

# --- Comments ---

@router.get("/{slug}/comments")
async def list_comments(
    slug: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"comments": await services.comments.list_comments(db, viewer_id, slug)}

@router.post("/{slug}/comments", status_code=201)
async def add_comment(
    slug: str,
    data: CommentCreateRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    return {"comment": await services.comments.add_comment(db, user_id, slug, data.comment.body)}

@router.delete("/{slug}/comments/{comment_id}", status_code=204)
async def delete_comment(
    slug: str,
    comment_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    await services.comments.delete_comment(db, user_id, slug, comment_id)
    return Response(status_code=204)
