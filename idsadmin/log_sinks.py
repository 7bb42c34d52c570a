"""
Logging sinks: the admin log table plus any sinks declared in configuration.

Configuration example (YAML):

    logging:
      sinks:
        - sink: stderr
          level: INFO
        - sink: logs/idsadmin.log
          level: DEBUG
          rotation: 10 MB
          retention: 7 days
          serialize: true
"""

import asyncio
import sys
from datetime import timezone
from typing import Callable, List

from loguru import logger

from idsadmin.configuration import Configuration
from idsadmin.database import DbContext
from idsadmin.logs.schemas import Log
from idsadmin.options import AdminOptions

_STREAMS = {"stderr": sys.stderr, "stdout": sys.stdout}
_COMMON_KWARGS = ("level", "format", "serialize", "enqueue", "backtrace", "diagnose", "colorize")
_FILE_KWARGS = ("rotation", "retention", "compression", "encoding")


class LoggingSinkBuilder:
    """
    Adds loguru sinks; handed to ``AdminOptions.logging_configuration_builder``.
    """

    def __init__(self, target=logger):
        self.logger = target
        self.handler_ids: List[int] = []

    def add(self, sink, **kwargs) -> int:
        handler_id = self.logger.add(sink, **kwargs)
        self.handler_ids.append(handler_id)
        return handler_id

    def read_from_configuration(self, configuration: Configuration) -> List[int]:
        """
        Add every sink listed under ``logging:sinks``.
        """
        entries = configuration.get("logging:sinks") or []
        if not isinstance(entries, list):
            raise ValueError("logging.sinks must be a list")
        added = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("sink"):
                raise ValueError(f"logging.sinks[{index}] must be a mapping with a sink")
            target = entry["sink"]
            allowed = _COMMON_KWARGS if target in _STREAMS else _COMMON_KWARGS + _FILE_KWARGS
            kwargs = {k: v for k, v in entry.items() if k in allowed}
            added.append(self.add(_STREAMS.get(target, target), **kwargs))
            logger.debug(f"Added logging sink {target} ({kwargs.get('level', 'DEBUG')})")
        return added


def admin_log_sink(context: DbContext) -> Callable:
    """
    Coroutine sink persisting records into the admin log table. Records logged
    while no event loop is running are dropped by loguru.
    """
    # One write at a time; in-memory stores share a single connection.
    lock = asyncio.Lock()

    async def _write(message):
        record = message.record
        exception = None
        if record["exception"] is not None:
            exc_type, exc_value, _ = record["exception"]
            exception = f"{exc_type.__name__ if exc_type else 'Exception'}: {exc_value}"
        async with lock, context.session() as session:
            session.add(
                Log(
                    timestamp=record["time"].astimezone(timezone.utc),
                    level=record["level"].name,
                    message=record["message"],
                    exception=exception,
                    logger_name=record["name"],
                    extra={k: str(v) for k, v in record["extra"].items()} or None,
                )
            )
            await session.commit()

    return _write


def configure_logging(options: AdminOptions, admin_log_context: DbContext) -> List[int]:
    """
    Attach the admin log sink and run the configured sink builder.
    """
    builder = LoggingSinkBuilder()
    builder.add(
        admin_log_sink(admin_log_context),
        level=options.admin_log.minimum_level,
        # Never persist the storage layer's own records, that would recurse.
        filter=lambda record: not record["name"].startswith("sqlalchemy"),
        catch=True,
    )
    if options.logging_configuration_builder is not None:
        options.logging_configuration_builder(builder)
    logger.info(
        f"Configured {len(builder.handler_ids)} logging sinks "
        f"(admin log level {options.admin_log.minimum_level})"
    )
    return builder.handler_ids
