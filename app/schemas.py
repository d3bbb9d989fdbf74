from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models import LikeStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- User ---

class UserCreate(CamelModel):
    login: str = Field(min_length=3, max_length=10, pattern=r"^[a-zA-Z0-9_-]*$")
    email: str = Field(max_length=255, pattern=r"^[\w.-]+@([\w-]+\.)+[\w-]{2,4}$")


class BanInfo(CamelModel):
    is_banned: bool = False
    ban_date: datetime | None = None
    ban_reason: str | None = None


class UserResponse(CamelModel):
    id: int
    login: str
    email: str
    created_at: datetime
    ban_info: BanInfo


class BanUserInput(CamelModel):
    is_banned: bool
    ban_reason: str = Field(min_length=20)


class BlogBanUserInput(BanUserInput):
    blog_id: int


class BannedUserResponse(CamelModel):
    id: int
    login: str
    ban_info: BanInfo


# --- Blog ---

class BlogCreate(CamelModel):
    name: str = Field(min_length=1, max_length=15)
    description: str = Field(min_length=1, max_length=500)
    website_url: str = Field(max_length=100, pattern=r"^https://([a-zA-Z0-9_-]+\.)+[a-zA-Z0-9_-]+(/[a-zA-Z0-9_-]+)*/?$")


class BlogUpdate(BlogCreate):
    pass


class BlogResponse(CamelModel):
    id: int
    name: str
    description: str
    website_url: str
    created_at: datetime


class BlogOwnerInfo(CamelModel):
    user_id: int | None = None
    user_login: str | None = None


class BlogBanInfo(CamelModel):
    is_banned: bool = False
    ban_date: datetime | None = None


class BlogAdminResponse(BlogResponse):
    blog_owner_info: BlogOwnerInfo
    ban_info: BlogBanInfo


class BanBlogInput(CamelModel):
    is_banned: bool


# --- Likes ---

class LikeStatusInput(CamelModel):
    like_status: LikeStatus


class LikeDetails(CamelModel):
    added_at: datetime
    user_id: int
    login: str


class LikesInfo(CamelModel):
    likes_count: int = 0
    dislikes_count: int = 0
    my_status: LikeStatus = LikeStatus.NONE


class ExtendedLikesInfo(LikesInfo):
    newest_likes: list[LikeDetails] = []


# --- Post ---

class BlogPostCreate(CamelModel):
    title: str = Field(min_length=1, max_length=30)
    short_description: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=1000)


class BlogPostUpdate(BlogPostCreate):
    pass


class PostResponse(CamelModel):
    id: int
    title: str
    short_description: str
    content: str
    blog_id: int
    blog_name: str
    created_at: datetime
    extended_likes_info: ExtendedLikesInfo


# --- Comment ---

class CommentCreate(CamelModel):
    content: str = Field(min_length=20, max_length=300)


class CommentUpdate(CommentCreate):
    pass


class CommentatorInfo(CamelModel):
    user_id: int
    user_login: str


class CommentResponse(CamelModel):
    id: int
    content: str
    commentator_info: CommentatorInfo
    created_at: datetime
    likes_info: LikesInfo


# --- Pagination ---

class Paginator(CamelModel, Generic[T]):
    pages_count: int
    page: int
    page_size: int
    total_count: int
    items: list[T]
