"""
Direct service-layer tests: exercises business logic without HTTP overhead.

These cover the aggregate services (blogs, posts, users, the test-data
reset) with a database session, including the cascades that must leave
no like record behind its subject.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import PaginationParams
from app.exceptions import Conflict, NotFound
from app.models import Blog, BlogBan, Comment, CommentLike, LikeStatus, Post, PostLike, User
from app.schemas import (
    BanBlogInput,
    BanUserInput,
    BlogBanUserInput,
    BlogCreate,
    BlogPostCreate,
    BlogPostUpdate,
    BlogUpdate,
    CommentCreate,
    UserCreate,
)
from app.services import blog_service, comment_service, post_service, testing_service, user_service

REASON = "Repeatedly posting spam links"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(db: AsyncSession, login: str) -> User:
    user = User(login=login, email=f"{login}@example.com", created_at=datetime.now(timezone.utc))
    db.add(user)
    await db.flush()
    return user


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _blog_with_activity(db: AsyncSession):
    """Owner's blog with one post, one comment and likes on both."""
    owner = await _create_user(db, "owner")
    reader = await _create_user(db, "reader")
    blog = await blog_service.create_blog(
        db, owner.id, BlogCreate(name="Tech", description="Desc", website_url="https://tech.example.com")
    )
    post = await post_service.create_post_for_blog(
        db, blog.id, owner.id, BlogPostCreate(title="Hello", short_description="Short", content="Body")
    )
    comment = await comment_service.create_comment(
        db, post.id, reader.id, CommentCreate(content="Great post, thanks for writing")
    )
    await post_service.set_post_like_status(db, post.id, reader.id, LikeStatus.LIKE)
    await comment_service.set_comment_like_status(db, comment.id, owner.id, LikeStatus.LIKE)
    return owner, reader, blog, post, comment


# ---------------------------------------------------------------------------
# blog_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_blogs_empty(db_session: AsyncSession):
    result = await blog_service.get_blogs(db_session, PaginationParams.build())
    assert result.total_count == 0
    assert result.items == []
    assert result.pages_count == 0


@pytest.mark.asyncio
async def test_blog_search_and_pagination(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    for name in ("Python tips", "Go tips", "Cooking"):
        await blog_service.create_blog(
            db_session, owner.id, BlogCreate(name=name, description="Desc", website_url="https://x.example.com")
        )

    page = await blog_service.get_blogs(db_session, PaginationParams.build(page_size=2), "TIPS")
    assert page.total_count == 2
    assert page.pages_count == 1

    sorted_page = await blog_service.get_blogs(
        db_session, PaginationParams.build(page_size=2, sort_by="name", sort_direction="asc")
    )
    assert [b.name for b in sorted_page.items] == ["Cooking", "Go tips"]
    assert sorted_page.pages_count == 2


@pytest.mark.asyncio
async def test_update_blog(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    blog = await blog_service.create_blog(
        db_session, owner.id, BlogCreate(name="Old", description="Desc", website_url="https://x.example.com")
    )
    await blog_service.update_blog(
        db_session, blog.id, owner.id,
        BlogUpdate(name="New", description="New desc", website_url="https://y.example.com"),
    )
    fetched = await blog_service.get_blog(db_session, blog.id)
    assert fetched.name == "New"
    assert fetched.website_url == "https://y.example.com"


@pytest.mark.asyncio
async def test_delete_blog_cascades_everything(db_session: AsyncSession):
    owner, reader, blog, _, _ = await _blog_with_activity(db_session)
    await blog_service.set_user_ban_for_blog(
        db_session, owner.id, reader.id, BlogBanUserInput(is_banned=True, ban_reason=REASON, blog_id=blog.id)
    )

    await blog_service.delete_blog(db_session, blog.id, owner.id)

    for model in (Blog, Post, Comment, PostLike, CommentLike, BlogBan):
        assert await _count(db_session, model) == 0, model.__name__
    assert await _count(db_session, User) == 2


@pytest.mark.asyncio
async def test_bind_blog_with_user(db_session: AsyncSession):
    user = await _create_user(db_session, "owner")
    blog = Blog(
        name="Orphan",
        description="Desc",
        website_url="https://x.example.com",
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(blog)
    await db_session.flush()

    await blog_service.bind_blog_with_user(db_session, blog.id, user.id)
    assert blog.owner_id == user.id

    with pytest.raises(Conflict):
        await blog_service.bind_blog_with_user(db_session, blog.id, user.id)
    with pytest.raises(NotFound):
        await blog_service.bind_blog_with_user(db_session, 999, user.id)


@pytest.mark.asyncio
async def test_admin_listing_shows_owner_and_ban(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    blog = await blog_service.create_blog(
        db_session, owner.id, BlogCreate(name="Tech", description="Desc", website_url="https://x.example.com")
    )
    await blog_service.set_blog_ban(db_session, blog.id, BanBlogInput(is_banned=True))

    page = await blog_service.get_blogs_for_admin(db_session, PaginationParams.build())
    item = page.items[0]
    assert item.blog_owner_info.user_login == "owner"
    assert item.ban_info.is_banned is True
    assert item.ban_info.ban_date is not None


@pytest.mark.asyncio
async def test_owner_blog_listing(db_session: AsyncSession):
    alice = await _create_user(db_session, "alice")
    bob = await _create_user(db_session, "bob")
    for owner, name in ((alice, "Alice's"), (bob, "Bob's")):
        await blog_service.create_blog(
            db_session, owner.id, BlogCreate(name=name, description="Desc", website_url="https://x.example.com")
        )

    page = await blog_service.get_blogs(db_session, PaginationParams.build(), owner_id=alice.id)
    assert [b.name for b in page.items] == ["Alice's"]


# ---------------------------------------------------------------------------
# post_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_update_post(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    blog = await blog_service.create_blog(
        db_session, owner.id, BlogCreate(name="Tech", description="Desc", website_url="https://x.example.com")
    )
    post = await post_service.create_post_for_blog(
        db_session, blog.id, owner.id, BlogPostCreate(title="Hello", short_description="Short", content="Body")
    )
    assert post.blog_name == "Tech"
    assert post.extended_likes_info.likes_count == 0
    assert post.extended_likes_info.newest_likes == []

    await post_service.update_post_for_blog(
        db_session, blog.id, post.id, owner.id,
        BlogPostUpdate(title="Hello again", short_description="Short", content="Body"),
    )
    fetched = await post_service.get_post(db_session, post.id)
    assert fetched.title == "Hello again"


@pytest.mark.asyncio
async def test_delete_post_removes_its_likes_and_comments(db_session: AsyncSession):
    owner, _, blog, post, _ = await _blog_with_activity(db_session)

    await post_service.delete_post_for_blog(db_session, blog.id, post.id, owner.id)

    for model in (Post, Comment, PostLike, CommentLike):
        assert await _count(db_session, model) == 0, model.__name__
    with pytest.raises(NotFound):
        await post_service.get_post(db_session, post.id)


@pytest.mark.asyncio
async def test_get_posts_for_missing_blog(db_session: AsyncSession):
    with pytest.raises(NotFound):
        await post_service.get_posts(db_session, PaginationParams.build(), blog_id=999)


# ---------------------------------------------------------------------------
# user_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_user_conflict(db_session: AsyncSession):
    await user_service.create_user(db_session, UserCreate(login="alice", email="alice@example.com"))
    with pytest.raises(Conflict):
        await user_service.create_user(db_session, UserCreate(login="alice", email="other@example.com"))
    with pytest.raises(Conflict):
        await user_service.create_user(db_session, UserCreate(login="other", email="alice@example.com"))


@pytest.mark.asyncio
async def test_get_users_filters(db_session: AsyncSession):
    for login in ("alice", "bob", "carol"):
        await user_service.create_user(db_session, UserCreate(login=login, email=f"{login}@mail.com"))
    bob = (await db_session.execute(select(User).where(User.login == "bob"))).scalar_one()
    await user_service.set_user_ban(db_session, bob.id, BanUserInput(is_banned=True, ban_reason=REASON))

    params = PaginationParams.build()
    assert (await user_service.get_users(db_session, params)).total_count == 3
    banned = await user_service.get_users(db_session, params, ban_status="banned")
    assert [u.login for u in banned.items] == ["bob"]
    assert banned.items[0].ban_info.ban_reason == REASON
    not_banned = await user_service.get_users(db_session, params, ban_status="notBanned")
    assert not_banned.total_count == 2
    # Login and email terms are OR-ed.
    either = await user_service.get_users(db_session, params, search_login="ali", search_email="carol")
    assert {u.login for u in either.items} == {"alice", "carol"}


@pytest.mark.asyncio
async def test_delete_user_cascades(db_session: AsyncSession):
    owner, reader, blog, post, _ = await _blog_with_activity(db_session)

    await user_service.delete_user(db_session, reader.id)

    # The reader's comment, their like and the like on their comment are gone.
    for model in (Comment, PostLike, CommentLike):
        assert await _count(db_session, model) == 0, model.__name__
    # The blog and post stay.
    assert await _count(db_session, Post) == 1

    await user_service.delete_user(db_session, owner.id)
    orphan = await db_session.get(Blog, blog.id)
    assert orphan.owner_id is None

    with pytest.raises(NotFound):
        await user_service.delete_user(db_session, owner.id)


# ---------------------------------------------------------------------------
# testing_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_all_data(db_session: AsyncSession):
    await _blog_with_activity(db_session)

    failures = await testing_service.delete_all_data(db_session)

    assert failures == 0
    for model in (User, Blog, Post, Comment, PostLike, CommentLike, BlogBan):
        assert await _count(db_session, model) == 0, model.__name__
