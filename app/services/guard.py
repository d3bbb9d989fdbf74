"""
Ownership and authorization checks.

Every mutating service function calls these before touching any table,
so a failed check raises before the first write and the request
transaction rolls back with nothing to undo.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import Banned, Forbidden, NotFound, Unauthorized
from app.models import Blog, User
from app.services.ban_registry import BanRegistry


async def require_actor(db: AsyncSession, user_id: int | None) -> User:
    """Return the acting user; Unauthorized when absent or unknown."""
    if user_id is None:
        raise Unauthorized()
    user = await db.get(User, user_id)
    if user is None:
        raise Unauthorized("Unknown user")
    return user


async def require_blog_owner(db: AsyncSession, blog_id: int, user_id: int) -> Blog:
    blog = await db.get(Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    if blog.owner_id != user_id:
        raise Forbidden("Blog belongs to another user")
    return blog


async def require_not_banned(db: AsyncSession, user_id: int, blog_id: int | None = None) -> None:
    """Reject users banned globally, or inside *blog_id* when given."""
    registry = BanRegistry(db)
    if await registry.is_user_banned_globally(user_id):
        raise Banned()
    if blog_id is not None and await registry.is_user_banned_for_blog(blog_id, user_id):
        raise Banned("User is banned in this blog")


def require_author(resource_user_id: int, user_id: int) -> None:
    if resource_user_id != user_id:
        raise Forbidden("Only the author can modify this comment")
