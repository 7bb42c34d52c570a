"""
Admin log record, written by the admin-log sink and browsed from the admin UI.
"""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func

from idsadmin.database import AdminLogBase


class Log(AdminLogBase):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    level = Column(String(16), nullable=False, index=True)
    message = Column(Text, nullable=False)
    exception = Column(Text, nullable=True)
    logger_name = Column(String(256), nullable=True)
    extra = Column(JSON, nullable=True)
