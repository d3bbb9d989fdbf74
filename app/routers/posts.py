from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id, get_current_user_id_optional
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import CommentCreate, CommentResponse, LikeStatusInput, Paginator, PostResponse
from app.services import comment_service, post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])


@router.get("", response_model=Paginator[PostResponse])
async def list_posts(
    pagination: PaginationParams = Depends(),
    viewer_id: int | None = Depends(get_current_user_id_optional),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(db, pagination, viewer_id)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    viewer_id: int | None = Depends(get_current_user_id_optional),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_post(db, post_id, viewer_id)


@router.put("/{post_id}/like-status", status_code=204)
async def set_like_status(
    post_id: int,
    data: LikeStatusInput,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await post_service.set_post_like_status(db, post_id, user_id, data.like_status)


@router.get("/{post_id}/comments", response_model=Paginator[CommentResponse])
async def list_comments(
    post_id: int,
    pagination: PaginationParams = Depends(),
    viewer_id: int | None = Depends(get_current_user_id_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.get_comments_for_post(db, post_id, pagination, viewer_id)


@router.post("/{post_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, post_id, user_id, data)
