"""
Response models for the admin log.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class LogResponse(BaseModel):
    id: int
    timestamp: datetime
    level: str
    message: str
    exception: Optional[str] = None
    logger_name: Optional[str] = None
    extra: Optional[dict[str, Any]] = None

    class Config:
        from_attributes = True
