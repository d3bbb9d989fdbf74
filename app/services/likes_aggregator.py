"""
Likes aggregation: the viewer-specific ``ExtendedLikesInfo`` of a post or
comment.

For every subject the raw ledger records are filtered against current
moderation state, then counted:

1. records on a subject whose blog is banned are all dropped;
2. records whose author is banned globally or inside the subject's blog
   are dropped;
3. the survivors give ``likes_count`` / ``dislikes_count`` and the
   newest ``settings.NEWEST_LIKES_LIMIT`` Like records (Dislikes never
   appear in the preview).

``my_status`` is read straight from the ledger and is never filtered: a
banned viewer still sees their own vote even though it no longer counts
for anyone else.

Nothing here is cached.  Listing pages go through
``build_likes_info_many`` which issues a fixed number of queries per
page instead of one per item.
"""
from collections.abc import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import NotFound
from app.models import Comment, LikeStatus, Post, SubjectKind
from app.schemas import ExtendedLikesInfo, LikeDetails
from app.services.ban_registry import BanRegistry
from app.services.like_ledger import LikeLedger
from app.services.visibility import VisibilityContext


def summarize_likes(
    records: Iterable,
    *,
    my_status: LikeStatus,
    excluded_user_ids: set[int] | frozenset[int],
    blog_banned: bool = False,
    limit: int | None = None,
) -> ExtendedLikesInfo:
    """Pure aggregation over ledger records; no database access."""
    limit = settings.NEWEST_LIKES_LIMIT if limit is None else limit
    if blog_banned:
        counted = []
    else:
        counted = [r for r in records if r.user_id not in excluded_user_ids]

    likes = [r for r in counted if r.status == LikeStatus.LIKE]
    newest = sorted(likes, key=lambda r: (r.added_at, r.id), reverse=True)[:limit]

    return ExtendedLikesInfo(
        likes_count=len(likes),
        dislikes_count=len(counted) - len(likes),
        my_status=my_status,
        newest_likes=[
            LikeDetails(added_at=r.added_at, user_id=r.user_id, login=r.user_login)
            for r in newest
        ],
    )


class LikesAggregator:
    def __init__(self, db: AsyncSession, visibility: VisibilityContext) -> None:
        self.db = db
        self.visibility = visibility
        self.registry = BanRegistry(db)

    async def _subject_blog_id(self, kind: SubjectKind, subject_id: int) -> int:
        """Blog owning the subject; NotFound when missing or hidden."""
        if kind is SubjectKind.POST:
            post = await self.db.get(Post, subject_id)
            if post is None or not self.visibility.post_visible(post):
                raise NotFound("Post not found")
            return post.blog_id

        row = (
            await self.db.execute(
                select(Comment, Post.blog_id)
                .join(Post, Post.id == Comment.post_id)
                .where(Comment.id == subject_id)
            )
        ).first()
        if row is None or not self.visibility.comment_visible(row[0], row[1]):
            raise NotFound("Comment not found")
        return row[1]

    async def build_likes_info(
        self,
        kind: SubjectKind,
        subject_id: int,
        viewer_id: int | None,
    ) -> ExtendedLikesInfo:
        blog_id = await self._subject_blog_id(kind, subject_id)
        ledger = LikeLedger(self.db, kind)

        blog_bans = await self.registry.list_blog_banned_user_ids([blog_id])
        records = await ledger.raw_likes_for(subject_id)
        return summarize_likes(
            records,
            my_status=await ledger.get_viewer_status(subject_id, viewer_id),
            excluded_user_ids=self.visibility.banned_user_ids | blog_bans[blog_id],
            blog_banned=blog_id in self.visibility.banned_blog_ids,
        )

    async def build_likes_info_many(
        self,
        kind: SubjectKind,
        subjects: Sequence[tuple[int, int]],
        viewer_id: int | None,
    ) -> dict[int, ExtendedLikesInfo]:
        """
        Aggregate a page of already-visible subjects.

        *subjects* holds ``(subject_id, blog_id)`` pairs.  Two queries in
        total: one for blog-scoped bans, one for the raw records.  The
        viewer's own status is taken from the same raw records.
        """
        if not subjects:
            return {}
        ledger = LikeLedger(self.db, kind)
        blog_bans = await self.registry.list_blog_banned_user_ids(blog_id for _, blog_id in subjects)
        grouped = await ledger.raw_likes_for_many(subject_id for subject_id, _ in subjects)

        infos: dict[int, ExtendedLikesInfo] = {}
        for subject_id, blog_id in subjects:
            records = grouped.get(subject_id, [])
            my_status = LikeStatus.NONE
            if viewer_id is not None:
                my_status = next(
                    (r.status for r in records if r.user_id == viewer_id),
                    LikeStatus.NONE,
                )
            infos[subject_id] = summarize_likes(
                records,
                my_status=my_status,
                excluded_user_ids=self.visibility.banned_user_ids | blog_bans.get(blog_id, set()),
                blog_banned=blog_id in self.visibility.banned_blog_ids,
            )
        return infos
