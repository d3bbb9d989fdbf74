import math

from fastapi import Query
from sqlalchemy import asc, desc

from app.config import settings


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination /
    sorting query parameters.

    Usage in a router::

        @router.get("/posts")
        async def list_posts(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page_number:
        1-based page number (minimum 1).
    page_size:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    sort_by:
        Field name to sort by.  Each listing maps it to a whitelisted
        column and falls back to ``created_at`` for anything else.
    sort_direction:
        ``"asc"`` or ``"desc"`` (enforced by the regex pattern).
    """

    def __init__(
        self,
        page_number: int = Query(
            1,
            ge=1,
            alias="pageNumber",
            description="Page number (1-based).",
        ),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            alias="pageSize",
            description="Number of items returned per page.",
        ),
        sort_by: str = Query(
            "createdAt",
            alias="sortBy",
            description="Field name to sort results by.",
        ),
        sort_direction: str = Query(
            "desc",
            alias="sortDirection",
            pattern="^(asc|desc)$",
            description="Sort direction: 'asc' or 'desc'.",
        ),
    ) -> None:
        self.page_number = page_number
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.sort_by = sort_by
        self.sort_direction = sort_direction

    @classmethod
    def build(
        cls,
        page_number: int = 1,
        page_size: int | None = None,
        sort_by: str = "createdAt",
        sort_direction: str = "desc",
    ) -> "PaginationParams":
        """Construct params outside a request (service tests, scripts)."""
        return cls(
            page_number=page_number,
            page_size=page_size or settings.DEFAULT_PAGE_SIZE,
            sort_by=sort_by,
            sort_direction=sort_direction,
        )

    @property
    def offset(self) -> int:
        """SQL OFFSET value computed from the current page and page size."""
        return (self.page_number - 1) * self.page_size

    def pages_count(self, total_count: int) -> int:
        return math.ceil(total_count / self.page_size) if total_count > 0 else 0

    def order_by(self, sortable: dict, default):
        """
        Return the ORDER BY expression for ``sort_by``.

        *sortable* maps public field names to columns; unknown names fall
        back to *default* so arbitrary attributes are never reachable.
        """
        column = sortable.get(self.sort_by, default)
        return desc(column) if self.sort_direction == "desc" else asc(column)
