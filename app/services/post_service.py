"""
Post service: business logic for the Post aggregate and its likes.

Design notes
------------
- Every read loads a fresh ``VisibilityContext`` (banned users and
  banned blogs) and pushes the post predicate into the listing query, so
  posts of a banned blog disappear from pages and counts alike.  A direct
  fetch of such a post raises NotFound.
- Likes for a page are aggregated with ``build_likes_info_many``: a fixed
  number of queries per page, never one per post.
- Mutations under a blog run ``guard.require_blog_owner`` before looking
  at the post at all, so a non-owner gets Forbidden whether or not the
  post exists.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from app.dependencies import PaginationParams
from app.exceptions import NotFound
from app.models import Blog, Comment, LikeStatus, Post, SubjectKind
from app.schemas import BlogPostCreate, BlogPostUpdate, ExtendedLikesInfo, Paginator, PostResponse
from app.services import guard
from app.services.like_ledger import LikeLedger
from app.services.likes_aggregator import LikesAggregator
from app.services.visibility import VisibilityContext

_SORTABLE_COLUMNS = {
    "createdAt": Post.created_at,
    "title": Post.title,
    "shortDescription": Post.short_description,
    "blogName": Blog.name,
}


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _post_to_response(post: Post, blog_name: str, likes: ExtendedLikesInfo | None = None) -> PostResponse:
    return PostResponse(
        id=post.id,
        title=post.title,
        short_description=post.short_description,
        content=post.content,
        blog_id=post.blog_id,
        blog_name=blog_name,
        created_at=post.created_at,
        extended_likes_info=likes or ExtendedLikesInfo(),
    )


async def _get_visible_post(db: AsyncSession, post_id: int, visibility: VisibilityContext) -> Post:
    result = await db.execute(
        select(Post)
        .join(Post.blog)
        .options(contains_eager(Post.blog))
        .execution_options(populate_existing=True)
        .where(Post.id == post_id)
    )
    post = result.unique().scalar_one_or_none()
    if post is None or not visibility.post_visible(post):
        raise NotFound("Post not found")
    return post


async def _get_post_in_blog(db: AsyncSession, blog_id: int, post_id: int) -> Post:
    post = await db.get(Post, post_id)
    if post is None or post.blog_id != blog_id:
        raise NotFound("Post not found")
    return post


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_posts(
    db: AsyncSession,
    params: PaginationParams,
    viewer_id: int | None = None,
    blog_id: int | None = None,
) -> Paginator[PostResponse]:
    """
    Return a page of visible posts, all blogs or one blog, each with the
    viewer's ``ExtendedLikesInfo``.

    Raises NotFound when *blog_id* is given and that blog is missing or
    banned.
    """
    visibility = await VisibilityContext.load(db)
    conditions = [visibility.post_clause()]
    if blog_id is not None:
        blog = await db.get(Blog, blog_id)
        if blog is None or not visibility.blog_visible(blog):
            raise NotFound("Blog not found")
        conditions.append(Post.blog_id == blog_id)

    total: int = (
        await db.execute(select(func.count()).select_from(Post).where(*conditions))
    ).scalar_one()

    posts_q = (
        select(Post)
        .join(Post.blog)
        .options(contains_eager(Post.blog))
        .execution_options(populate_existing=True)
        .where(*conditions)
        .order_by(params.order_by(_SORTABLE_COLUMNS, Post.created_at), Post.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    posts = (await db.execute(posts_q)).unique().scalars().all()

    likes = await LikesAggregator(db, visibility).build_likes_info_many(
        SubjectKind.POST, [(p.id, p.blog_id) for p in posts], viewer_id
    )
    return Paginator[PostResponse](
        pages_count=params.pages_count(total),
        page=params.page_number,
        page_size=params.page_size,
        total_count=total,
        items=[_post_to_response(p, p.blog.name, likes[p.id]) for p in posts],
    )


async def get_post(db: AsyncSession, post_id: int, viewer_id: int | None = None) -> PostResponse:
    visibility = await VisibilityContext.load(db)
    post = await _get_visible_post(db, post_id, visibility)
    likes = await LikesAggregator(db, visibility).build_likes_info(
        SubjectKind.POST, post.id, viewer_id
    )
    return _post_to_response(post, post.blog.name, likes)


# ---------------------------------------------------------------------------
# Owner writes
# ---------------------------------------------------------------------------

async def create_post_for_blog(
    db: AsyncSession,
    blog_id: int,
    user_id: int | None,
    data: BlogPostCreate,
) -> PostResponse:
    user = await guard.require_actor(db, user_id)
    blog = await guard.require_blog_owner(db, blog_id, user.id)
    await guard.require_not_banned(db, user.id, blog_id)

    post = Post(
        title=data.title,
        short_description=data.short_description,
        content=data.content,
        blog_id=blog.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(post)
    await db.flush()
    return _post_to_response(post, blog.name)


async def update_post_for_blog(
    db: AsyncSession,
    blog_id: int,
    post_id: int,
    user_id: int | None,
    data: BlogPostUpdate,
) -> None:
    user = await guard.require_actor(db, user_id)
    await guard.require_blog_owner(db, blog_id, user.id)
    await guard.require_not_banned(db, user.id, blog_id)
    post = await _get_post_in_blog(db, blog_id, post_id)

    for field, value in data.model_dump().items():
        setattr(post, field, value)
    await db.flush()


async def delete_post_for_blog(
    db: AsyncSession,
    blog_id: int,
    post_id: int,
    user_id: int | None,
) -> None:
    user = await guard.require_actor(db, user_id)
    await guard.require_blog_owner(db, blog_id, user.id)
    await guard.require_not_banned(db, user.id, blog_id)
    post = await _get_post_in_blog(db, blog_id, post_id)
    await delete_posts_cascade(db, [post.id])


async def delete_posts_cascade(db: AsyncSession, post_ids: Sequence[int]) -> None:
    """
    Delete posts with their comments and every like record on both, in
    the caller's transaction.  No like record survives its subject.
    """
    if not post_ids:
        return
    comment_ids = (
        await db.execute(select(Comment.id).where(Comment.post_id.in_(post_ids)))
    ).scalars().all()
    await LikeLedger(db, SubjectKind.COMMENT).delete_all_for_subjects(list(comment_ids))
    await db.execute(delete(Comment).where(Comment.post_id.in_(post_ids)))
    await LikeLedger(db, SubjectKind.POST).delete_all_for_subjects(post_ids)
    await db.execute(delete(Post).where(Post.id.in_(post_ids)))


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

async def set_post_like_status(
    db: AsyncSession,
    post_id: int,
    user_id: int | None,
    status: LikeStatus,
) -> None:
    user = await guard.require_actor(db, user_id)
    visibility = await VisibilityContext.load(db)
    post = await _get_visible_post(db, post_id, visibility)
    await guard.require_not_banned(db, user.id, post.blog_id)
    await LikeLedger(db, SubjectKind.POST).set_status(post.id, user.id, user.login, status)
