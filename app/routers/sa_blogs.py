from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_admin
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import BanBlogInput, BlogAdminResponse, Paginator
from app.services import blog_service

router = APIRouter(
    prefix="/api/v1/sa/blogs",
    tags=["sa"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=Paginator[BlogAdminResponse])
async def list_blogs(
    search_name_term: str = Query("", alias="searchNameTerm"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await blog_service.get_blogs_for_admin(db, pagination, search_name_term.strip())


@router.put("/{blog_id}/bind-with-user/{user_id}", status_code=204)
async def bind_blog_with_user(blog_id: int, user_id: int, db: AsyncSession = Depends(get_db)):
    await blog_service.bind_blog_with_user(db, blog_id, user_id)


@router.put("/{blog_id}/ban", status_code=204)
async def ban_blog(blog_id: int, data: BanBlogInput, db: AsyncSession = Depends(get_db)):
    await blog_service.set_blog_ban(db, blog_id, data)
