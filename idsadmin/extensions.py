"""
Entry points attaching the admin UI to a FastAPI application.

    app = FastAPI()
    configuration = Configuration.load("appsettings.yaml")
    add_admin_ui(app, configuration, HostingEnvironment.from_environ())

The entry points only assemble the options; the registration steps below do
the actual work, always in this order and each exactly once.
"""

import inspect
from typing import Callable, Optional

from fastapi import FastAPI
from loguru import logger

from idsadmin.authentication import add_authentication_services
from idsadmin.configuration import Configuration, HostingEnvironment
from idsadmin.db_contexts import add_db_contexts
from idsadmin.exceptions import add_exception_filters
from idsadmin.identity.schemas import IdentityModel, default_identity_model
from idsadmin.localization import add_mvc_with_localization
from idsadmin.options import AdminOptions
from idsadmin.permissions import add_authorization_policies
from idsadmin.services import add_admin_services


def _calling_package(depth: int = 2) -> str:
    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            frame = frame.f_back
        return frame.f_globals.get("__name__", "__main__").split(".")[0]
    finally:
        del frame


def add_admin_ui(
    app: FastAPI,
    configuration: Configuration,
    env: HostingEnvironment,
    identity_model: Optional[IdentityModel] = None,
) -> FastAPI:
    """
    Attach the admin UI configured from the hosting environment and configuration.

    Options are applied in a fixed order: hosting environment, then
    configuration, then the migrations package (the caller's top-level
    package), then the logging sinks declared in the configuration.
    """
    migrations_package = _calling_package()

    def configure(options: AdminOptions) -> None:
        options.apply_hosting_environment(env)
        options.apply_configuration(configuration)
        options.connection_strings.set_migrations_package(migrations_package)
        options.logging_configuration_builder = lambda sinks: sinks.read_from_configuration(
            configuration
        )

    return add_admin_ui_with_options(app, configure, identity_model=identity_model)


def add_admin_ui_with_options(
    app: FastAPI,
    options_action: Callable[[AdminOptions], None],
    identity_model: Optional[IdentityModel] = None,
) -> FastAPI:
    """
    Attach the admin UI with options set directly by the callback.
    """
    if identity_model is None:
        identity_model = default_identity_model()
    options = AdminOptions(app)
    options_action(options)
    app.state.admin_options = options

    add_db_contexts(app, options, identity_model)
    add_authentication_services(app, options)
    add_authorization_policies(app, options)
    add_exception_filters(app, options)
    add_admin_services(app, options, identity_model)
    add_mvc_with_localization(app, options, identity_model)

    logger.success(
        f"Admin UI registered (staging={options.testing.is_staging}, "
        f"key type {identity_model.key_type.__name__})"
    )
    return app
