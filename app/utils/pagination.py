"""
Pagination helpers for list endpoints
"""
import math
from dataclasses import dataclass
from typing import Optional

from app.core.config import settings


@dataclass
class PageParams:
    page: int
    limit: int
    sort_by: str
    sort_order: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> PageParams:
    """
    Normalize raw paging input

    page is at least 1; limit falls back to DEFAULT_PAGE_SIZE and is capped at
    MAX_PAGE_SIZE; sort_order is "asc" or "desc" (default).
    """
    page = max(1, page or 1)
    limit = min(settings.MAX_PAGE_SIZE, max(1, limit or settings.DEFAULT_PAGE_SIZE))
    return PageParams(
        page=page,
        limit=limit,
        sort_by=sort_by or "created_at",
        sort_order="asc" if sort_order == "asc" else "desc",
    )


def page_meta(total: int, params: PageParams) -> dict:
    total_pages = math.ceil(total / params.limit) if params.limit else 0
    return {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": params.page < total_pages,
        "has_previous": params.page > 1,
    }
