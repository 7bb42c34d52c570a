"""
Registration of the four storage contexts and their startup/shutdown handling.
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI
from loguru import logger

from idsadmin.constants import (
    ADMIN_LOG_CONTEXT,
    CONFIGURATION_CONTEXT,
    IDENTITY_CONTEXT,
    PERSISTED_GRANT_CONTEXT,
)
from idsadmin.database import AdminLogBase, ConfigurationBase, DbContext, PersistedGrantBase
from idsadmin.identity.schemas import IdentityModel
from idsadmin.log_sinks import configure_logging
from idsadmin.options import AdminOptions

# Imported for their tables on the configuration, persisted grant and admin log bases.
import idsadmin.idp.schemas  # noqa: F401
import idsadmin.logs.schemas  # noqa: F401


def create_db_contexts(options: AdminOptions, identity_model: IdentityModel) -> Dict[str, DbContext]:
    """
    One context per store: in-memory SQLite when staging, the configured
    connection strings otherwise.
    """
    bases = {
        IDENTITY_CONTEXT: identity_model.base,
        CONFIGURATION_CONTEXT: ConfigurationBase,
        PERSISTED_GRANT_CONTEXT: PersistedGrantBase,
        ADMIN_LOG_CONTEXT: AdminLogBase,
    }
    connection_strings = options.connection_strings
    contexts = {}
    for name, base in bases.items():
        migrations_package = connection_strings.migrations_package_for(name)
        if options.testing.is_staging:
            contexts[name] = DbContext.in_memory(name, base, migrations_package=migrations_package)
            continue
        url = connection_strings.url_for(name)
        if not url:
            raise ValueError(f"Missing connection string for the {name} store")
        contexts[name] = DbContext(name, base, url, migrations_package=migrations_package)
    return contexts


def add_db_contexts(app: FastAPI, options: AdminOptions, identity_model: IdentityModel) -> FastAPI:
    """
    Register the storage contexts, the admin log sink and the lifespan hooks
    that migrate the schemas on startup and dispose the engines on shutdown.
    """
    contexts = create_db_contexts(options, identity_model)
    app.state.db_contexts = contexts
    app.state.log_handler_ids = configure_logging(options, contexts[ADMIN_LOG_CONTEXT])
    migrate = options.testing.is_staging or options.database_migrations.apply_database_migrations

    previous_lifespan = app.router.lifespan_context

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        if migrate:
            for context in contexts.values():
                await context.migrate()
        async with previous_lifespan(app_) as state:
            yield state
        await logger.complete()
        for handler_id in app.state.log_handler_ids:
            logger.remove(handler_id)
        app.state.log_handler_ids = []
        for context in contexts.values():
            await context.dispose()
        logger.info("Disposed the admin UI storage contexts")

    app.router.lifespan_context = lifespan
    mode = "in-memory (staging)" if options.testing.is_staging else "configured databases"
    logger.info(
        f"Registered storage contexts {', '.join(contexts)} using {mode}, "
        f"migrations on startup: {migrate}"
    )
    return app
