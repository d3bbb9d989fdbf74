"""
Comment service: comments under posts and their likes.

A comment is hidden when its post's blog is banned or its author is
banned globally.  Hidden comments drop out of listings and a direct
fetch raises NotFound; the rows themselves are untouched, so lifting the
ban brings them back as they were.  Only the author may edit or delete a
comment.
"""
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from app.dependencies import PaginationParams
from app.exceptions import NotFound
from app.models import Comment, LikeStatus, Post, SubjectKind, User
from app.schemas import (
    CommentatorInfo,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    ExtendedLikesInfo,
    LikesInfo,
    Paginator,
)
from app.services import guard
from app.services.like_ledger import LikeLedger
from app.services.likes_aggregator import LikesAggregator
from app.services.visibility import VisibilityContext

_SORTABLE_COLUMNS = {
    "createdAt": Comment.created_at,
    "content": Comment.content,
}


def _comment_to_response(
    comment: Comment,
    user_login: str,
    likes: ExtendedLikesInfo | None = None,
) -> CommentResponse:
    likes = likes or ExtendedLikesInfo()
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        commentator_info=CommentatorInfo(user_id=comment.user_id, user_login=user_login),
        created_at=comment.created_at,
        likes_info=LikesInfo(
            likes_count=likes.likes_count,
            dislikes_count=likes.dislikes_count,
            my_status=likes.my_status,
        ),
    )


async def _get_visible_post(db: AsyncSession, post_id: int, visibility: VisibilityContext) -> Post:
    post = await db.get(Post, post_id)
    if post is None or not visibility.post_visible(post):
        raise NotFound("Post not found")
    return post


async def _get_comment_with_blog(db: AsyncSession, comment_id: int) -> tuple[Comment, int]:
    row = (
        await db.execute(
            select(Comment, Post.blog_id)
            .join(Post, Post.id == Comment.post_id)
            .join(Comment.author)
            .options(contains_eager(Comment.author))
            .execution_options(populate_existing=True)
            .where(Comment.id == comment_id)
        )
    ).first()
    if row is None:
        raise NotFound("Comment not found")
    return row[0], row[1]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_comments_for_post(
    db: AsyncSession,
    post_id: int,
    params: PaginationParams,
    viewer_id: int | None = None,
) -> Paginator[CommentResponse]:
    visibility = await VisibilityContext.load(db)
    post = await _get_visible_post(db, post_id, visibility)
    conditions = [Comment.post_id == post.id, visibility.comment_clause()]

    total: int = (
        await db.execute(
            select(func.count())
            .select_from(Comment)
            .join(Post, Post.id == Comment.post_id)
            .where(*conditions)
        )
    ).scalar_one()

    comments_q = (
        select(Comment)
        .join(Post, Post.id == Comment.post_id)
        .join(Comment.author)
        .options(contains_eager(Comment.author))
        .execution_options(populate_existing=True)
        .where(*conditions)
        .order_by(params.order_by(_SORTABLE_COLUMNS, Comment.created_at), Comment.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    comments = (await db.execute(comments_q)).unique().scalars().all()

    likes = await LikesAggregator(db, visibility).build_likes_info_many(
        SubjectKind.COMMENT, [(c.id, post.blog_id) for c in comments], viewer_id
    )
    return Paginator[CommentResponse](
        pages_count=params.pages_count(total),
        page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        items=[_comment_to_response(c, c.author.login, likes[c.id]) for c in comments],
    )


async def get_comment(db: AsyncSession, comment_id: int, viewer_id: int | None = None) -> CommentResponse:
    visibility = await VisibilityContext.load(db)
    likes = await LikesAggregator(db, visibility).build_likes_info(
        SubjectKind.COMMENT, comment_id, viewer_id
    )
    comment, _ = await _get_comment_with_blog(db, comment_id)
    return _comment_to_response(comment, comment.author.login, likes)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def _get_own_comment(db: AsyncSession, comment_id: int, user_id: int | None) -> Comment:
    """
    The acting user's own comment, checked for edit or delete.

    Bans are checked before visibility, so a banned author gets Banned
    rather than NotFound for their own hidden comment.
    """
    user = await guard.require_actor(db, user_id)
    comment, blog_id = await _get_comment_with_blog(db, comment_id)
    guard.require_author(comment.user_id, user.id)
    await guard.require_not_banned(db, user.id, blog_id)
    visibility = await VisibilityContext.load(db)
    if not visibility.comment_visible(comment, blog_id):
        raise NotFound("Comment not found")
    return comment


async def create_comment(
    db: AsyncSession,
    post_id: int,
    user_id: int | None,
    data: CommentCreate,
) -> CommentResponse:
    user: User = await guard.require_actor(db, user_id)
    visibility = await VisibilityContext.load(db)
    post = await _get_visible_post(db, post_id, visibility)
    await guard.require_not_banned(db, user.id, post.blog_id)

    comment = Comment(
        content=data.content,
        post_id=post.id,
        user_id=user.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(comment)
    await db.flush()
    return _comment_to_response(comment, user.login)


async def update_comment(
    db: AsyncSession,
    comment_id: int,
    user_id: int | None,
    data: CommentUpdate,
) -> None:
    comment = await _get_own_comment(db, comment_id, user_id)
    comment.content = data.content
    await db.flush()


async def delete_comment(db: AsyncSession, comment_id: int, user_id: int | None) -> None:
    comment = await _get_own_comment(db, comment_id, user_id)
    await LikeLedger(db, SubjectKind.COMMENT).delete_all_for_subject(comment.id)
    await db.delete(comment)
    await db.flush()


async def set_comment_like_status(
    db: AsyncSession,
    comment_id: int,
    user_id: int | None,
    status: LikeStatus,
) -> None:
    user = await guard.require_actor(db, user_id)
    visibility = await VisibilityContext.load(db)
    comment, blog_id = await _get_comment_with_blog(db, comment_id)
    if not visibility.comment_visible(comment, blog_id):
        raise NotFound("Comment not found")
    await guard.require_not_banned(db, user.id, blog_id)
    await LikeLedger(db, SubjectKind.COMMENT).set_status(comment.id, user.id, user.login, status)
