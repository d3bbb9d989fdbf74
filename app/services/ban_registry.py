"""
Ban registry: global user bans, blog-scoped user bans and banned blogs.

Ban state is read from the database on every call and never memoised
across requests, so a ban or unban is visible to the next request that
starts after it commits.  The ``list_*`` operations are a single query
each because they gate every public listing.

A ban record moves Active -> Banned -> Active only through explicit
ban/unban calls; bans never expire.
"""
import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import PaginationParams
from app.exceptions import NotFound
from app.models import Blog, BlogBan, User
from app.schemas import BanInfo, BannedUserResponse, Paginator

logger = logging.getLogger(__name__)

_BLOG_BAN_SORT_COLUMNS = {
    "login": User.login,
    "banDate": BlogBan.ban_date,
    "createdAt": BlogBan.ban_date,
}


class BanRegistry:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Membership queries
    # ------------------------------------------------------------------

    async def is_user_banned_globally(self, user_id: int) -> bool:
        result = await self.db.execute(select(User.is_banned).where(User.id == user_id))
        return bool(result.scalar_one_or_none())

    async def is_user_banned_for_blog(self, blog_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(BlogBan.is_banned).where(
                BlogBan.blog_id == blog_id,
                BlogBan.user_id == user_id,
            )
        )
        return bool(result.scalar_one_or_none())

    async def is_blog_banned(self, blog_id: int) -> bool:
        result = await self.db.execute(select(Blog.is_banned).where(Blog.id == blog_id))
        return bool(result.scalar_one_or_none())

    async def list_banned_blog_ids(self) -> set[int]:
        result = await self.db.execute(select(Blog.id).where(Blog.is_banned.is_(True)))
        return set(result.scalars().all())

    async def list_banned_user_ids(self) -> set[int]:
        result = await self.db.execute(select(User.id).where(User.is_banned.is_(True)))
        return set(result.scalars().all())

    async def list_blog_banned_user_ids(self, blog_ids: Iterable[int]) -> dict[int, set[int]]:
        """Users banned inside each of *blog_ids*, in one query."""
        ids = set(blog_ids)
        banned: dict[int, set[int]] = defaultdict(set)
        if not ids:
            return banned
        result = await self.db.execute(
            select(BlogBan.blog_id, BlogBan.user_id).where(
                BlogBan.blog_id.in_(sorted(ids)),
                BlogBan.is_banned.is_(True),
            )
        )
        for blog_id, user_id in result.all():
            banned[blog_id].add(user_id)
        return banned

    # ------------------------------------------------------------------
    # Global user bans
    # ------------------------------------------------------------------

    async def _get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def ban_user(self, user_id: int, reason: str) -> None:
        user = await self._get_user(user_id)
        user.is_banned = True
        user.ban_date = datetime.now(timezone.utc)
        user.ban_reason = reason
        await self.db.flush()
        logger.info("User %s banned globally: %s", user_id, reason)

    async def unban_user(self, user_id: int) -> None:
        user = await self._get_user(user_id)
        user.is_banned = False
        user.ban_date = None
        user.ban_reason = None
        await self.db.flush()
        logger.info("User %s unbanned globally", user_id)

    # ------------------------------------------------------------------
    # Blog-scoped user bans (caller has already checked blog ownership)
    # ------------------------------------------------------------------

    async def _get_blog_ban(self, blog_id: int, user_id: int) -> BlogBan | None:
        result = await self.db.execute(
            select(BlogBan).where(BlogBan.blog_id == blog_id, BlogBan.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def ban_user_for_blog(self, blog_id: int, user_id: int, reason: str) -> None:
        await self._get_user(user_id)
        record = await self._get_blog_ban(blog_id, user_id)
        if record is None:
            record = BlogBan(blog_id=blog_id, user_id=user_id)
            self.db.add(record)
        record.is_banned = True
        record.ban_date = datetime.now(timezone.utc)
        record.ban_reason = reason
        await self.db.flush()
        logger.info("User %s banned in blog %s: %s", user_id, blog_id, reason)

    async def unban_user_for_blog(self, blog_id: int, user_id: int) -> None:
        await self._get_user(user_id)
        record = await self._get_blog_ban(blog_id, user_id)
        if record is None or not record.is_banned:
            return
        record.is_banned = False
        record.ban_date = None
        record.ban_reason = None
        await self.db.flush()
        logger.info("User %s unbanned in blog %s", user_id, blog_id)

    async def get_blog_bans(
        self,
        blog_id: int,
        params: PaginationParams,
        search_login: str = "",
    ) -> Paginator[BannedUserResponse]:
        """Users currently banned in *blog_id*, optionally filtered by login."""
        conditions = [BlogBan.blog_id == blog_id, BlogBan.is_banned.is_(True)]
        if search_login:
            conditions.append(User.login.ilike(f"%{search_login}%"))

        count_q = select(func.count()).select_from(BlogBan).join(User, User.id == BlogBan.user_id).where(*conditions)
        total: int = (await self.db.execute(count_q)).scalar_one()

        order_expr = params.order_by(_BLOG_BAN_SORT_COLUMNS, BlogBan.ban_date)
        rows_q = (
            select(BlogBan, User.login)
            .join(User, User.id == BlogBan.user_id)
            .where(*conditions)
            .order_by(order_expr, BlogBan.id)
            .offset(params.offset)
            .limit(params.page_size)
        )
        rows = (await self.db.execute(rows_q)).all()

        return Paginator[BannedUserResponse](
            pages_count=params.pages_count(total),
            page=params.page_number,
            page_size=params.page_size,
            total_count=total,
            items=[
                BannedUserResponse(
                    id=ban.user_id,
                    login=login,
                    ban_info=BanInfo(is_banned=True, ban_date=ban.ban_date, ban_reason=ban.ban_reason),
                )
                for ban, login in rows
            ],
        )

    # ------------------------------------------------------------------
    # Blog bans (administrator)
    # ------------------------------------------------------------------

    async def _set_blog_ban(self, blog_id: int, is_banned: bool) -> None:
        blog = await self.db.get(Blog, blog_id)
        if blog is None:
            raise NotFound("Blog not found")
        blog.is_banned = is_banned
        blog.ban_date = datetime.now(timezone.utc) if is_banned else None
        await self.db.flush()
        logger.info("Blog %s %s", blog_id, "banned" if is_banned else "unbanned")

    async def ban_blog(self, blog_id: int) -> None:
        await self._set_blog_ban(blog_id, True)

    async def unban_blog(self, blog_id: int) -> None:
        await self._set_blog_ban(blog_id, False)
