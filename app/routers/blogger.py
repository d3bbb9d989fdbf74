from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import (
    BannedUserResponse,
    BlogBanUserInput,
    BlogCreate,
    BlogPostCreate,
    BlogPostUpdate,
    BlogResponse,
    BlogUpdate,
    Paginator,
    PostResponse,
)
from app.services import blog_service, post_service

router = APIRouter(prefix="/api/v1/blogger", tags=["blogger"])


# --- Own blogs ---

@router.get("/blogs", response_model=Paginator[BlogResponse])
async def list_own_blogs(
    search_name_term: str = Query("", alias="searchNameTerm"),
    pagination: PaginationParams = Depends(),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await blog_service.get_blogs(db, pagination, search_name_term.strip(), owner_id=user_id)


@router.post("/blogs", status_code=201, response_model=BlogResponse)
async def create_blog(
    data: BlogCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await blog_service.create_blog(db, user_id, data)


@router.put("/blogs/{blog_id}", status_code=204)
async def update_blog(
    blog_id: int,
    data: BlogUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await blog_service.update_blog(db, blog_id, user_id, data)


@router.delete("/blogs/{blog_id}", status_code=204)
async def delete_blog(
    blog_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await blog_service.delete_blog(db, blog_id, user_id)


# --- Posts under own blogs ---

@router.post("/blogs/{blog_id}/posts", status_code=201, response_model=PostResponse)
async def create_post(
    blog_id: int,
    data: BlogPostCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post_for_blog(db, blog_id, user_id, data)


@router.put("/blogs/{blog_id}/posts/{post_id}", status_code=204)
async def update_post(
    blog_id: int,
    post_id: int,
    data: BlogPostUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await post_service.update_post_for_blog(db, blog_id, post_id, user_id, data)


@router.delete("/blogs/{blog_id}/posts/{post_id}", status_code=204)
async def delete_post(
    blog_id: int,
    post_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post_for_blog(db, blog_id, post_id, user_id)


# --- Users banned in own blogs ---

@router.put("/users/{banned_user_id}/ban", status_code=204)
async def ban_user_in_blog(
    banned_user_id: int,
    data: BlogBanUserInput,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await blog_service.set_user_ban_for_blog(db, user_id, banned_user_id, data)


@router.get("/users/blog/{blog_id}", response_model=Paginator[BannedUserResponse])
async def list_banned_users(
    blog_id: int,
    search_login_term: str = Query("", alias="searchLoginTerm"),
    pagination: PaginationParams = Depends(),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await blog_service.get_banned_users_for_blog(
        db, user_id, blog_id, pagination, search_login_term.strip()
    )
