"""
Visibility filter: which blogs, posts and comments a public caller may see.

Rules
-----
- A blog is visible unless it is banned (administrator listings may opt
  in to banned blogs).
- A post is visible unless its blog is banned.
- A comment is visible unless its post's blog is banned or its author is
  banned globally.

The same rules are exposed two ways: as SQL predicates that listing
queries push down to the database, and as per-item checks used after a
single-item fetch so that a direct link to banned content is rejected
too.  ``VisibilityContext.load`` reads the ban sets once per request.
"""
from dataclasses import dataclass

from sqlalchemy import ColumnElement, and_, true
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Blog, Comment, Post
from app.services.ban_registry import BanRegistry


@dataclass(frozen=True)
class VisibilityContext:
    banned_user_ids: frozenset[int]
    banned_blog_ids: frozenset[int]

    @classmethod
    async def load(cls, db: AsyncSession) -> "VisibilityContext":
        registry = BanRegistry(db)
        return cls(
            banned_user_ids=frozenset(await registry.list_banned_user_ids()),
            banned_blog_ids=frozenset(await registry.list_banned_blog_ids()),
        )

    # ------------------------------------------------------------------
    # Per-item checks
    # ------------------------------------------------------------------

    @staticmethod
    def blog_visible(blog: Blog, include_banned: bool = False) -> bool:
        return include_banned or not blog.is_banned

    def post_visible(self, post: Post) -> bool:
        return post.blog_id not in self.banned_blog_ids

    def comment_visible(self, comment: Comment, blog_id: int) -> bool:
        return blog_id not in self.banned_blog_ids and comment.user_id not in self.banned_user_ids

    # ------------------------------------------------------------------
    # Listing predicates
    # ------------------------------------------------------------------

    @staticmethod
    def blog_clause(include_banned: bool = False) -> ColumnElement[bool]:
        return true() if include_banned else Blog.is_banned.is_(False)

    def post_clause(self) -> ColumnElement[bool]:
        if not self.banned_blog_ids:
            return true()
        return Post.blog_id.not_in(sorted(self.banned_blog_ids))

    def comment_clause(self) -> ColumnElement[bool]:
        """Predicate for comment queries; the query must join ``Post``."""
        clause = self.post_clause()
        if self.banned_user_ids:
            clause = and_(clause, Comment.user_id.not_in(sorted(self.banned_user_ids)))
        return clause
