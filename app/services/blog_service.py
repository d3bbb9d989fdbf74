"""
Blog service: public and owner-facing operations on the Blog aggregate,
plus the moderation actions scoped to a blog.

Design notes
------------
- Public reads never return a banned blog, neither in listings (SQL
  predicate from ``VisibilityContext.blog_clause``) nor by id.  The
  administrator listing opts in to banned blogs and also exposes owner
  and ban information.
- Writes go through ``guard`` first; deleting a blog cascades to its
  posts, their comments and every like record underneath in the same
  transaction.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.dependencies import PaginationParams
from app.exceptions import Conflict, NotFound
from app.models import Blog, BlogBan, Post, User
from app.schemas import (
    BanBlogInput,
    BannedUserResponse,
    BlogAdminResponse,
    BlogBanInfo,
    BlogBanUserInput,
    BlogCreate,
    BlogOwnerInfo,
    BlogResponse,
    BlogUpdate,
    Paginator,
)
from app.services import guard, post_service
from app.services.ban_registry import BanRegistry
from app.services.visibility import VisibilityContext

logger = logging.getLogger(__name__)

_SORTABLE_COLUMNS = {
    "createdAt": Blog.created_at,
    "name": Blog.name,
}


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _blog_to_response(blog: Blog) -> BlogResponse:
    return BlogResponse(
        id=blog.id,
        name=blog.name,
        description=blog.description,
        website_url=blog.website_url,
        created_at=blog.created_at,
    )


def _blog_to_admin_response(blog: Blog) -> BlogAdminResponse:
    return BlogAdminResponse(
        id=blog.id,
        name=blog.name,
        description=blog.description,
        website_url=blog.website_url,
        created_at=blog.created_at,
        blog_owner_info=BlogOwnerInfo(
            user_id=blog.owner_id,
            user_login=blog.owner.login if blog.owner else None,
        ),
        ban_info=BlogBanInfo(is_banned=blog.is_banned, ban_date=blog.ban_date),
    )


async def _page_of_blogs(
    db: AsyncSession,
    params: PaginationParams,
    search_name: str,
    include_banned: bool,
    owner_id: int | None = None,
) -> tuple[int, list[Blog]]:
    conditions = [VisibilityContext.blog_clause(include_banned)]
    if search_name:
        conditions.append(Blog.name.ilike(f"%{search_name}%"))
    if owner_id is not None:
        conditions.append(Blog.owner_id == owner_id)

    total: int = (
        await db.execute(select(func.count()).select_from(Blog).where(*conditions))
    ).scalar_one()

    blogs_q = (
        select(Blog)
        .where(*conditions)
        .options(joinedload(Blog.owner))
        .execution_options(populate_existing=True)
        .order_by(params.order_by(_SORTABLE_COLUMNS, Blog.created_at), Blog.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    blogs = (await db.execute(blogs_q)).unique().scalars().all()
    return total, list(blogs)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_blogs(
    db: AsyncSession,
    params: PaginationParams,
    search_name: str = "",
    owner_id: int | None = None,
) -> Paginator[BlogResponse]:
    """Public listing (banned blogs excluded), optionally one owner's blogs."""
    total, blogs = await _page_of_blogs(db, params, search_name, False, owner_id)
    return Paginator[BlogResponse](
        pages_count=params.pages_count(total),
        page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        items=[_blog_to_response(b) for b in blogs],
    )


async def get_blogs_for_admin(
    db: AsyncSession,
    params: PaginationParams,
    search_name: str = "",
) -> Paginator[BlogAdminResponse]:
    """Moderation listing: banned blogs included, with owner and ban info."""
    total, blogs = await _page_of_blogs(db, params, search_name, True)
    return Paginator[BlogAdminResponse](
        pages_count=params.pages_count(total),
        page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        items=[_blog_to_admin_response(b) for b in blogs],
    )


async def get_blog(db: AsyncSession, blog_id: int) -> BlogResponse:
    blog = await db.get(Blog, blog_id)
    if blog is None or not VisibilityContext.blog_visible(blog):
        raise NotFound("Blog not found")
    return _blog_to_response(blog)


# ---------------------------------------------------------------------------
# Owner writes
# ---------------------------------------------------------------------------

async def create_blog(db: AsyncSession, user_id: int | None, data: BlogCreate) -> BlogResponse:
    user = await guard.require_actor(db, user_id)
    await guard.require_not_banned(db, user.id)

    blog = Blog(
        name=data.name,
        description=data.description,
        website_url=data.website_url,
        owner_id=user.id,
        is_banned=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(blog)
    await db.flush()
    return _blog_to_response(blog)


async def update_blog(db: AsyncSession, blog_id: int, user_id: int | None, data: BlogUpdate) -> None:
    user = await guard.require_actor(db, user_id)
    blog = await guard.require_blog_owner(db, blog_id, user.id)
    for field, value in data.model_dump().items():
        setattr(blog, field, value)
    await db.flush()


async def delete_blog(db: AsyncSession, blog_id: int, user_id: int | None) -> None:
    user = await guard.require_actor(db, user_id)
    blog = await guard.require_blog_owner(db, blog_id, user.id)
    post_ids = (
        await db.execute(select(Post.id).where(Post.blog_id == blog_id))
    ).scalars().all()
    await post_service.delete_posts_cascade(db, list(post_ids))
    await db.execute(delete(BlogBan).where(BlogBan.blog_id == blog_id))
    await db.delete(blog)
    await db.flush()


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------

async def bind_blog_with_user(db: AsyncSession, blog_id: int, user_id: int) -> None:
    """Give an ownerless blog an owner; Conflict when it already has one."""
    blog = await db.get(Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    if blog.owner_id is not None:
        raise Conflict("Blog is already bound to a user")
    if await db.get(User, user_id) is None:
        raise NotFound("User not found")
    blog.owner_id = user_id
    await db.flush()
    logger.info("Blog %s bound to user %s", blog_id, user_id)


async def set_blog_ban(db: AsyncSession, blog_id: int, data: BanBlogInput) -> None:
    registry = BanRegistry(db)
    if data.is_banned:
        await registry.ban_blog(blog_id)
    else:
        await registry.unban_blog(blog_id)


async def set_user_ban_for_blog(
    db: AsyncSession,
    owner_id: int,
    user_id: int,
    data: BlogBanUserInput,
) -> None:
    """Ban or unban *user_id* inside a blog owned by *owner_id*."""
    owner = await guard.require_actor(db, owner_id)
    await guard.require_blog_owner(db, data.blog_id, owner.id)
    registry = BanRegistry(db)
    if data.is_banned:
        await registry.ban_user_for_blog(data.blog_id, user_id, data.ban_reason)
    else:
        await registry.unban_user_for_blog(data.blog_id, user_id)


async def get_banned_users_for_blog(
    db: AsyncSession,
    owner_id: int,
    blog_id: int,
    params: PaginationParams,
    search_login: str = "",
) -> Paginator[BannedUserResponse]:
    owner = await guard.require_actor(db, owner_id)
    await guard.require_blog_owner(db, blog_id, owner.id)
    return await BanRegistry(db).get_blog_bans(blog_id, params, search_login)
