"""
Admin log queries and retention.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select

from idsadmin.constants import DEFAULT_PAGE_SIZE
from idsadmin.database import DbContext
from idsadmin.logs.schemas import Log
from idsadmin.pagination import paginate, search_filter


class LogService:
    def __init__(self, context: DbContext, page_size: int = DEFAULT_PAGE_SIZE):
        self.context = context
        self.page_size = page_size

    async def get_logs(
        self,
        search: Optional[str] = None,
        level: Optional[str] = None,
        page: int = 0,
        limit: Optional[int] = None,
    ):
        """Newest first, optionally filtered by level and message/exception text."""
        query = select(Log)
        if level:
            query = query.where(Log.level == level.upper())
        if search and search.strip():
            query = query.where(search_filter(search, Log.message, Log.exception))
        async with self.context.session() as session:
            return await paginate(
                session, query, Log.timestamp.desc(), page, limit or self.page_size
            )

    async def delete_logs_older_than(self, before: datetime) -> int:
        async with self.context.session() as session:
            result = await session.execute(delete(Log).where(Log.timestamp < before))
            await session.commit()
        logger.info(f"Deleted {result.rowcount} admin log entries older than {before.isoformat()}")
        return result.rowcount
