from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_admin
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import BanUserInput, Paginator, UserCreate, UserResponse
from app.services import user_service

router = APIRouter(
    prefix="/api/v1/sa/users",
    tags=["sa"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=Paginator[UserResponse])
async def list_users(
    search_login_term: str = Query("", alias="searchLoginTerm"),
    search_email_term: str = Query("", alias="searchEmailTerm"),
    ban_status: str = Query("all", alias="banStatus", pattern="^(all|banned|notBanned)$"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_users(
        db, pagination, search_login_term.strip(), search_email_term.strip(), ban_status
    )


@router.post("", status_code=201, response_model=UserResponse)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_service.create_user(db, data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    await user_service.delete_user(db, user_id)


@router.put("/{user_id}/ban", status_code=204)
async def ban_user(user_id: int, data: BanUserInput, db: AsyncSession = Depends(get_db)):
    await user_service.set_user_ban(db, user_id, data)
