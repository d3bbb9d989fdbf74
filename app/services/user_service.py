"""
User service: administrator-facing CRUD and global bans for the User
aggregate.
"""
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import PaginationParams
from app.exceptions import Conflict, NotFound
from app.models import Blog, BlogBan, Comment, SubjectKind, User
from app.schemas import BanInfo, BanUserInput, Paginator, UserCreate, UserResponse
from app.services.ban_registry import BanRegistry
from app.services.like_ledger import LikeLedger

_SORTABLE_COLUMNS = {
    "createdAt": User.created_at,
    "login": User.login,
    "email": User.email,
}

BAN_STATUS_FILTERS = ("all", "banned", "notBanned")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        login=user.login,
        email=user.email,
        created_at=user.created_at,
        ban_info=BanInfo(
            is_banned=user.is_banned,
            ban_date=user.ban_date,
            ban_reason=user.ban_reason,
        ),
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(
    db: AsyncSession,
    params: PaginationParams,
    search_login: str = "",
    search_email: str = "",
    ban_status: str = "all",
) -> Paginator[UserResponse]:
    """
    Return a page of users.

    Login and email search terms are case-insensitive substrings and are
    OR-ed together when both are given.
    """
    conditions = []
    terms = []
    if search_login:
        terms.append(User.login.ilike(f"%{search_login}%"))
    if search_email:
        terms.append(User.email.ilike(f"%{search_email}%"))
    if terms:
        conditions.append(or_(*terms))
    if ban_status == "banned":
        conditions.append(User.is_banned.is_(True))
    elif ban_status == "notBanned":
        conditions.append(User.is_banned.is_(False))

    total: int = (
        await db.execute(select(func.count()).select_from(User).where(*conditions))
    ).scalar_one()

    users_q = (
        select(User)
        .where(*conditions)
        .order_by(params.order_by(_SORTABLE_COLUMNS, User.created_at), User.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    users = (await db.execute(users_q)).scalars().all()

    return Paginator[UserResponse](
        pages_count=params.pages_count(total),
        page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        items=[_user_to_response(u) for u in users],
    )


async def create_user(db: AsyncSession, data: UserCreate) -> UserResponse:
    """Create a user; Conflict when the login or email is taken."""
    existing = await db.execute(
        select(User.id).where(or_(User.login == data.login, User.email == data.email))
    )
    if existing.first() is not None:
        raise Conflict("A user with this login or email already exists")

    user = User(
        login=data.login,
        email=data.email,
        is_banned=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise Conflict("A user with this login or email already exists") from exc
    return _user_to_response(user)


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """
    Delete a user together with their likes, comments (and the likes on
    those comments) and blog-scoped bans.  Blogs they owned stay, without
    an owner.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    comment_ids = (
        await db.execute(select(Comment.id).where(Comment.user_id == user_id))
    ).scalars().all()
    comment_ledger = LikeLedger(db, SubjectKind.COMMENT)
    await comment_ledger.delete_all_for_subjects(list(comment_ids))
    await comment_ledger.delete_all_by_user(user_id)
    await LikeLedger(db, SubjectKind.POST).delete_all_by_user(user_id)

    await db.execute(delete(Comment).where(Comment.user_id == user_id))
    await db.execute(delete(BlogBan).where(BlogBan.user_id == user_id))
    await db.execute(update(Blog).where(Blog.owner_id == user_id).values(owner_id=None))
    await db.delete(user)
    await db.flush()


async def set_user_ban(db: AsyncSession, user_id: int, data: BanUserInput) -> None:
    registry = BanRegistry(db)
    if data.is_banned:
        await registry.ban_user(user_id, data.ban_reason)
    else:
        await registry.unban_user(user_id)
