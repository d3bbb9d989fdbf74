"""
Like ledger and likes aggregation tests.

``summarize_likes`` is pure and is exercised with plain record objects.
The ledger and the aggregator run against the SQLite test database
through a direct session.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import PaginationParams
from app.models import Blog, Comment, LikeStatus, Post, PostLike, SubjectKind, User
from app.services import comment_service, post_service
from app.services.ban_registry import BanRegistry
from app.services.like_ledger import LikeLedger
from app.services.likes_aggregator import summarize_likes

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _record(record_id: int, user_id: int, status: LikeStatus, minutes: int = 0):
    return SimpleNamespace(
        id=record_id,
        user_id=user_id,
        user_login=f"user{user_id}",
        status=status,
        added_at=NOW + timedelta(minutes=minutes),
    )


async def _create_user(db: AsyncSession, login: str) -> User:
    user = User(login=login, email=f"{login}@example.com", created_at=datetime.now(timezone.utc))
    db.add(user)
    await db.flush()
    return user


async def _create_blog(db: AsyncSession, owner: User, name: str = "Blog") -> Blog:
    blog = Blog(
        name=name,
        description="About things",
        website_url="https://blog.example.com",
        owner_id=owner.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(blog)
    await db.flush()
    return blog


async def _create_post(db: AsyncSession, blog: Blog, title: str = "Post") -> Post:
    post = Post(
        title=title,
        short_description="Short",
        content="Body",
        blog_id=blog.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(post)
    await db.flush()
    return post


async def _create_comment(db: AsyncSession, post: Post, author: User) -> Comment:
    comment = Comment(
        content="A comment long enough to pass validation",
        post_id=post.id,
        user_id=author.id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(comment)
    await db.flush()
    return comment


# ---------------------------------------------------------------------------
# summarize_likes
# ---------------------------------------------------------------------------

def test_summarize_counts_likes_and_dislikes():
    records = [
        _record(1, 1, LikeStatus.LIKE),
        _record(2, 2, LikeStatus.DISLIKE),
        _record(3, 3, LikeStatus.LIKE),
    ]
    info = summarize_likes(records, my_status=LikeStatus.NONE, excluded_user_ids=set())
    assert info.likes_count == 2
    assert info.dislikes_count == 1
    assert info.my_status == LikeStatus.NONE


def test_summarize_newest_likes_are_latest_three_likes_only():
    records = [
        _record(1, 1, LikeStatus.LIKE, minutes=1),
        _record(2, 2, LikeStatus.LIKE, minutes=2),
        _record(3, 3, LikeStatus.DISLIKE, minutes=10),
        _record(4, 4, LikeStatus.LIKE, minutes=3),
        _record(5, 5, LikeStatus.LIKE, minutes=4),
    ]
    info = summarize_likes(records, my_status=LikeStatus.NONE, excluded_user_ids=set(), limit=3)
    assert [like.user_id for like in info.newest_likes] == [5, 4, 2]
    assert info.newest_likes[0].login == "user5"


def test_summarize_ties_broken_by_record_id():
    records = [
        _record(1, 1, LikeStatus.LIKE),
        _record(2, 2, LikeStatus.LIKE),
    ]
    info = summarize_likes(records, my_status=LikeStatus.NONE, excluded_user_ids=set())
    assert [like.user_id for like in info.newest_likes] == [2, 1]


def test_summarize_drops_excluded_users():
    records = [
        _record(1, 1, LikeStatus.LIKE),
        _record(2, 2, LikeStatus.LIKE),
        _record(3, 3, LikeStatus.DISLIKE),
    ]
    info = summarize_likes(records, my_status=LikeStatus.LIKE, excluded_user_ids={2, 3})
    assert info.likes_count == 1
    assert info.dislikes_count == 0
    assert [like.user_id for like in info.newest_likes] == [1]
    # The viewer's own status is passed through untouched.
    assert info.my_status == LikeStatus.LIKE


def test_summarize_banned_blog_counts_nothing():
    records = [_record(1, 1, LikeStatus.LIKE), _record(2, 2, LikeStatus.DISLIKE)]
    info = summarize_likes(
        records, my_status=LikeStatus.DISLIKE, excluded_user_ids=set(), blog_banned=True
    )
    assert info.likes_count == 0
    assert info.dislikes_count == 0
    assert info.newest_likes == []
    assert info.my_status == LikeStatus.DISLIKE


# ---------------------------------------------------------------------------
# LikeLedger
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_ledger_like_then_dislike_keeps_single_record(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voter = await _create_user(db_session, "voter")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    ledger = LikeLedger(db_session, SubjectKind.POST)

    await ledger.set_status(post.id, voter.id, voter.login, LikeStatus.LIKE)
    await ledger.set_status(post.id, voter.id, voter.login, LikeStatus.DISLIKE)

    records = await ledger.raw_likes_for(post.id)
    assert len(records) == 1
    assert records[0].status == LikeStatus.DISLIKE
    assert await ledger.get_viewer_status(post.id, voter.id) == LikeStatus.DISLIKE


@pytest.mark.asyncio
async def test_ledger_none_removes_record(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    ledger = LikeLedger(db_session, SubjectKind.POST)

    await ledger.set_status(post.id, owner.id, owner.login, LikeStatus.LIKE)
    await ledger.set_status(post.id, owner.id, owner.login, LikeStatus.NONE)

    assert await ledger.raw_likes_for(post.id) == []
    assert await ledger.get_viewer_status(post.id, owner.id) == LikeStatus.NONE


@pytest.mark.asyncio
async def test_ledger_none_without_record_is_noop(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    ledger = LikeLedger(db_session, SubjectKind.POST)

    await ledger.set_status(post.id, owner.id, owner.login, LikeStatus.NONE)
    assert await ledger.raw_likes_for(post.id) == []


@pytest.mark.asyncio
async def test_ledger_repeated_status_keeps_timestamp(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    ledger = LikeLedger(db_session, SubjectKind.POST)

    await ledger.set_status(post.id, owner.id, owner.login, LikeStatus.LIKE)
    first = (await ledger.raw_likes_for(post.id))[0].added_at
    await ledger.set_status(post.id, owner.id, owner.login, LikeStatus.LIKE)
    second = (await ledger.raw_likes_for(post.id))[0].added_at
    assert first == second


@pytest.mark.asyncio
async def test_ledger_anonymous_viewer_status_is_none(db_session: AsyncSession):
    ledger = LikeLedger(db_session, SubjectKind.COMMENT)
    assert await ledger.get_viewer_status(1, None) == LikeStatus.NONE


@pytest.mark.asyncio
async def test_ledger_kinds_use_separate_tables(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    comment = await _create_comment(db_session, post, owner)

    await LikeLedger(db_session, SubjectKind.COMMENT).set_status(
        comment.id, owner.id, owner.login, LikeStatus.LIKE
    )
    post_likes = (await db_session.execute(select(PostLike))).scalars().all()
    assert post_likes == []
    grouped = await LikeLedger(db_session, SubjectKind.COMMENT).raw_likes_for_many([comment.id])
    assert len(grouped[comment.id]) == 1


# ---------------------------------------------------------------------------
# Aggregation through the post and comment services
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_global_ban_removes_likes_from_counts(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voters = [await _create_user(db_session, f"voter{i}") for i in range(3)]
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    for voter in voters:
        await post_service.set_post_like_status(db_session, post.id, voter.id, LikeStatus.LIKE)

    before = await post_service.get_post(db_session, post.id)
    assert before.extended_likes_info.likes_count == 3

    await BanRegistry(db_session).ban_user(voters[0].id, "Spamming likes all over the place")

    after = await post_service.get_post(db_session, post.id)
    assert after.extended_likes_info.likes_count == 2
    assert voters[0].id not in [like.user_id for like in after.extended_likes_info.newest_likes]

    # The banned voter still sees their own status.
    own_view = await post_service.get_post(db_session, post.id, viewer_id=voters[0].id)
    assert own_view.extended_likes_info.my_status == LikeStatus.LIKE
    assert own_view.extended_likes_info.likes_count == 2

    await BanRegistry(db_session).unban_user(voters[0].id)
    restored = await post_service.get_post(db_session, post.id)
    assert restored.extended_likes_info.likes_count == 3


@pytest.mark.asyncio
async def test_blog_ban_of_user_only_affects_that_blog(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voter = await _create_user(db_session, "voter")
    blog_a = await _create_blog(db_session, owner, "A")
    blog_b = await _create_blog(db_session, owner, "B")
    post_a = await _create_post(db_session, blog_a)
    post_b = await _create_post(db_session, blog_b)
    await post_service.set_post_like_status(db_session, post_a.id, voter.id, LikeStatus.LIKE)
    await post_service.set_post_like_status(db_session, post_b.id, voter.id, LikeStatus.LIKE)

    await BanRegistry(db_session).ban_user_for_blog(
        blog_a.id, voter.id, "Rude in this blog's comment section"
    )

    in_a = await post_service.get_post(db_session, post_a.id)
    in_b = await post_service.get_post(db_session, post_b.id)
    assert in_a.extended_likes_info.likes_count == 0
    assert in_b.extended_likes_info.likes_count == 1


@pytest.mark.asyncio
async def test_newest_likes_through_service(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voters = [await _create_user(db_session, f"voter{i}") for i in range(5)]
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    for voter in voters:
        await post_service.set_post_like_status(db_session, post.id, voter.id, LikeStatus.LIKE)
    await post_service.set_post_like_status(db_session, post.id, owner.id, LikeStatus.DISLIKE)

    info = (await post_service.get_post(db_session, post.id)).extended_likes_info
    assert info.likes_count == 5
    assert info.dislikes_count == 1
    assert [like.login for like in info.newest_likes] == ["voter4", "voter3", "voter2"]


@pytest.mark.asyncio
async def test_listing_matches_single_fetch(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voter = await _create_user(db_session, "voter")
    banned = await _create_user(db_session, "banned")
    blog = await _create_blog(db_session, owner)
    first = await _create_post(db_session, blog, "First")
    second = await _create_post(db_session, blog, "Second")
    for user in (voter, banned):
        await post_service.set_post_like_status(db_session, first.id, user.id, LikeStatus.LIKE)
    await post_service.set_post_like_status(db_session, second.id, voter.id, LikeStatus.DISLIKE)
    await BanRegistry(db_session).ban_user_for_blog(blog.id, banned.id, "Banned from this blog for spam")

    page = await post_service.get_posts(db_session, PaginationParams.build(), viewer_id=voter.id)
    assert page.total_count == 2
    for item in page.items:
        single = await post_service.get_post(db_session, item.id, viewer_id=voter.id)
        assert item.extended_likes_info == single.extended_likes_info


@pytest.mark.asyncio
async def test_comment_likes_exclude_banned_users(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    author = await _create_user(db_session, "author")
    voter = await _create_user(db_session, "voter")
    post = await _create_post(db_session, await _create_blog(db_session, owner))
    comment = await _create_comment(db_session, post, author)

    await comment_service.set_comment_like_status(db_session, comment.id, voter.id, LikeStatus.LIKE)
    await comment_service.set_comment_like_status(db_session, comment.id, owner.id, LikeStatus.DISLIKE)

    fetched = await comment_service.get_comment(db_session, comment.id, viewer_id=voter.id)
    assert fetched.likes_info.likes_count == 1
    assert fetched.likes_info.dislikes_count == 1
    assert fetched.likes_info.my_status == LikeStatus.LIKE

    await BanRegistry(db_session).ban_user(voter.id, "Banned for abusive behaviour")
    fetched = await comment_service.get_comment(db_session, comment.id, viewer_id=owner.id)
    assert fetched.likes_info.likes_count == 0
    assert fetched.likes_info.dislikes_count == 1
    assert fetched.likes_info.my_status == LikeStatus.DISLIKE


@pytest.mark.asyncio
async def test_blog_banned_viewer_still_sees_own_status(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    voter = await _create_user(db_session, "voter")
    blog = await _create_blog(db_session, owner)
    post = await _create_post(db_session, blog)
    await post_service.set_post_like_status(db_session, post.id, voter.id, LikeStatus.DISLIKE)
    await BanRegistry(db_session).ban_user_for_blog(blog.id, voter.id, "Banned from this blog for spam")

    own = await post_service.get_post(db_session, post.id, viewer_id=voter.id)
    assert own.extended_likes_info.my_status == LikeStatus.DISLIKE
    assert own.extended_likes_info.dislikes_count == 0

    page = await post_service.get_posts(db_session, PaginationParams.build(), viewer_id=voter.id)
    assert page.items[0].extended_likes_info.my_status == LikeStatus.DISLIKE
