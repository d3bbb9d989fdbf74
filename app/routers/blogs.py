from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id_optional
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import BlogResponse, Paginator, PostResponse
from app.services import blog_service, post_service

router = APIRouter(prefix="/api/v1/blogs", tags=["blogs"])


@router.get("", response_model=Paginator[BlogResponse])
async def list_blogs(
    search_name_term: str = Query("", alias="searchNameTerm"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await blog_service.get_blogs(db, pagination, search_name_term.strip())


@router.get("/{blog_id}", response_model=BlogResponse)
async def get_blog(blog_id: int, db: AsyncSession = Depends(get_db)):
    return await blog_service.get_blog(db, blog_id)


@router.get("/{blog_id}/posts", response_model=Paginator[PostResponse])
async def list_blog_posts(
    blog_id: int,
    pagination: PaginationParams = Depends(),
    viewer_id: int | None = Depends(get_current_user_id_optional),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(db, pagination, viewer_id, blog_id=blog_id)
