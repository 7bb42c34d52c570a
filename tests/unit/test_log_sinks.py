"""Unit tests for the logging sinks."""

import sys
from unittest.mock import Mock

import pytest
from loguru import logger


class TestLoggingSinkBuilder:
    def test_read_from_configuration(self):
        from idsadmin.configuration import Configuration
        from idsadmin.log_sinks import LoggingSinkBuilder

        target = Mock()
        target.add.side_effect = [11, 12]
        builder = LoggingSinkBuilder(target)
        configuration = Configuration(
            {
                "logging": {
                    "sinks": [
                        {"sink": "stderr", "level": "INFO", "rotation": "10 MB"},
                        {
                            "sink": "logs/idsadmin.log",
                            "level": "DEBUG",
                            "rotation": "10 MB",
                            "retention": "7 days",
                            "unknown": True,
                        },
                    ]
                }
            }
        )

        assert builder.read_from_configuration(configuration) == [11, 12]
        assert builder.handler_ids == [11, 12]
        first, second = target.add.call_args_list
        assert first.args == (sys.stderr,)
        assert first.kwargs == {"level": "INFO"}
        assert second.args == ("logs/idsadmin.log",)
        assert second.kwargs == {"level": "DEBUG", "rotation": "10 MB", "retention": "7 days"}

    def test_no_sinks_configured(self):
        from idsadmin.configuration import Configuration
        from idsadmin.log_sinks import LoggingSinkBuilder

        target = Mock()
        assert LoggingSinkBuilder(target).read_from_configuration(Configuration({})) == []
        target.add.assert_not_called()

    @pytest.mark.parametrize("sinks", ["stderr", [{"level": "INFO"}], ["stderr"]])
    def test_invalid_sinks(self, sinks):
        from idsadmin.configuration import Configuration
        from idsadmin.log_sinks import LoggingSinkBuilder

        with pytest.raises(ValueError):
            LoggingSinkBuilder(Mock()).read_from_configuration(
                Configuration({"logging": {"sinks": sinks}})
            )


class TestConfigureLogging:
    def test_runs_configured_builder(self):
        from idsadmin.database import AdminLogBase, DbContext
        from idsadmin.log_sinks import LoggingSinkBuilder, configure_logging
        from idsadmin.options import AdminOptions

        options = AdminOptions(Mock())
        seen = []
        options.logging_configuration_builder = seen.append
        handler_ids = configure_logging(options, DbContext.in_memory("admin_log", AdminLogBase))
        try:
            assert len(seen) == 1
            assert isinstance(seen[0], LoggingSinkBuilder)
            assert handler_ids == seen[0].handler_ids
            assert len(handler_ids) == 1
        finally:
            for handler_id in handler_ids:
                logger.remove(handler_id)

    @pytest.mark.asyncio
    async def test_admin_log_sink_persists_records(self):
        from idsadmin.database import AdminLogBase, DbContext
        from idsadmin.log_sinks import admin_log_sink
        from idsadmin.logs.service import LogService
        import idsadmin.logs.schemas  # noqa: F401

        context = DbContext.in_memory("admin_log", AdminLogBase)
        await context.migrate()
        handler_id = logger.add(admin_log_sink(context), level="WARNING")
        try:
            logger.info("not persisted")
            logger.bind(client_id="cid_portal").warning("Client secret regenerated")
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("Unhandled failure")
            await logger.complete()
        finally:
            logger.remove(handler_id)

        service = LogService(context)
        result = await service.get_logs()
        assert result["total"] == 2
        by_message = {entry.message: entry for entry in result["items"]}
        assert by_message["Client secret regenerated"].level == "WARNING"
        assert by_message["Client secret regenerated"].extra == {"client_id": "cid_portal"}
        assert by_message["Unhandled failure"].exception == "RuntimeError: boom"

        errors = await service.get_logs(level="error")
        assert [entry.message for entry in errors["items"]] == ["Unhandled failure"]
        await context.dispose()
