"""
Admin log routes.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from idsadmin.logs.response import LogResponse
from idsadmin.logs.service import LogService
from idsadmin.pagination import PaginatedResponse
from idsadmin.services import get_log_service

router = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_logs(
    search: Optional[str] = None,
    level: Optional[str] = None,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: LogService = Depends(get_log_service),
):
    """
    Browse the admin log, newest first.
    """
    result = await service.get_logs(search=search, level=level, page=page or 0, limit=limit)
    result["items"] = [LogResponse.model_validate(entry) for entry in result["items"]]
    return result


@router.delete("")
async def delete_logs(before: datetime, service: LogService = Depends(get_log_service)):
    """Delete log entries older than the given timestamp."""
    deleted = await service.delete_logs_older_than(before)
    return {"deleted": deleted}
