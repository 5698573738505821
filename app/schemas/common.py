"""
Shared schema helpers
"""
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

from app.utils.datetime_utils import iso_8601_utc

T = TypeVar("T")


def serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Datetimes leave the API as ISO-8601 UTC with a Z suffix"""
    return iso_8601_utc(dt) if dt is not None else None


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class Page(BaseModel, Generic[T]):
    """Paginated list response"""
    data: List[T]
    meta: PageMeta


class MessageResponse(BaseModel):
    message: str
