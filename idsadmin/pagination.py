"""
Paginated list response and search helpers shared by the admin list endpoints.
"""

from typing import Any, List

from pydantic import BaseModel
from sqlalchemy import func, or_, select

from idsadmin.constants import MAX_PAGE_SIZE

LIKE_ESCAPE = "\\"


class PaginatedResponse(BaseModel):
    total: int
    page: int
    limit: int
    items: List[Any]


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """Clamp paging arguments and return (page, limit)."""
    page = max(page or 0, 0)
    limit = min(max(limit or 1, 1), MAX_PAGE_SIZE)
    return page, limit


def contains(search: str) -> str:
    """LIKE pattern matching the search term literally anywhere in a column."""
    escaped = (
        search.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def search_filter(search: str, *columns):
    """Case-insensitive substring match of the search term on any of the columns."""
    pattern = contains(search)
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))


async def paginate(session, query, order_by, page: int, limit: int) -> dict:
    """
    Run a select with a total count and one page of scalar results.
    """
    page, limit = page_bounds(page, limit)
    total = (await session.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await session.execute(query.order_by(order_by).offset(page * limit).limit(limit))
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "items": result.scalars().all(),
    }
