from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id, get_current_user_id_optional
from app.database import get_db
from app.schemas import CommentResponse, CommentUpdate, LikeStatusInput
from app.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: int,
    viewer_id: int | None = Depends(get_current_user_id_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.get_comment(db, comment_id, viewer_id)


@router.put("/{comment_id}", status_code=204)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.update_comment(db, comment_id, user_id, data)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, user_id)


@router.put("/{comment_id}/like-status", status_code=204)
async def set_like_status(
    comment_id: int,
    data: LikeStatusInput,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.set_comment_like_status(db, comment_id, user_id, data.like_status)
