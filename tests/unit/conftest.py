"""
Unit test fixtures: in-memory storage contexts and a staging admin app.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from loguru import logger
from sqlalchemy.orm import declarative_base


def remove_log_handlers(app):
    """Drop the logging sinks of an app whose lifespan never ran."""
    for handler_id in app.state.log_handler_ids:
        logger.remove(handler_id)
    app.state.log_handler_ids = []


ADMIN_HEADERS = {
    "X-Admin-Test-User": "alice",
    "X-Admin-Test-Roles": "IdentityAdminAdministrator",
}


@pytest.fixture
def identity_model():
    from idsadmin.identity.schemas import create_identity_models

    return create_identity_models(declarative_base())


@pytest.fixture
async def identity_context(identity_model):
    from idsadmin.database import DbContext

    context = DbContext.in_memory("identity", identity_model.base)
    await context.migrate()
    yield context
    await context.dispose()


@pytest.fixture
async def configuration_context():
    from idsadmin.database import ConfigurationBase, DbContext
    import idsadmin.idp.schemas  # noqa: F401

    context = DbContext.in_memory("configuration", ConfigurationBase)
    await context.migrate()
    yield context
    await context.dispose()


@pytest.fixture
async def persisted_grant_context():
    from idsadmin.database import DbContext, PersistedGrantBase
    import idsadmin.idp.schemas  # noqa: F401

    context = DbContext.in_memory("persisted_grants", PersistedGrantBase)
    await context.migrate()
    yield context
    await context.dispose()


@pytest.fixture
def staging_app(identity_model):
    from idsadmin.configuration import Configuration, HostingEnvironment
    from idsadmin.extensions import add_admin_ui

    app = FastAPI()
    add_admin_ui(
        app,
        Configuration({}),
        HostingEnvironment(environment_name="Staging"),
        identity_model=identity_model,
    )
    yield app
    remove_log_handlers(app)


@pytest.fixture
def client(staging_app):
    with TestClient(staging_app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)
