"""
Admin business services and their request-time dependency providers.
"""

from dataclasses import dataclass

from fastapi import FastAPI, Request
from loguru import logger

from idsadmin.constants import (
    ADMIN_LOG_CONTEXT,
    CONFIGURATION_CONTEXT,
    IDENTITY_CONTEXT,
    PERSISTED_GRANT_CONTEXT,
)
from idsadmin.identity.schemas import IdentityModel
from idsadmin.identity.service import IdentityService
from idsadmin.idp.service import (
    ApiResourceService,
    ClientService,
    IdentityResourceService,
    PersistedGrantService,
)
from idsadmin.logs.service import LogService
from idsadmin.options import AdminOptions


@dataclass(frozen=True)
class AdminServices:
    clients: ClientService
    api_resources: ApiResourceService
    identity_resources: IdentityResourceService
    persisted_grants: PersistedGrantService
    logs: LogService
    identity: IdentityService


def add_admin_services(app: FastAPI, options: AdminOptions, identity_model: IdentityModel) -> FastAPI:
    """
    Build the services over the registered storage contexts.
    """
    contexts = app.state.db_contexts
    page_size = options.admin.page_size
    configuration = contexts[CONFIGURATION_CONTEXT]
    app.state.admin_services = AdminServices(
        clients=ClientService(configuration, page_size=page_size),
        api_resources=ApiResourceService(configuration, page_size=page_size),
        identity_resources=IdentityResourceService(configuration, page_size=page_size),
        persisted_grants=PersistedGrantService(contexts[PERSISTED_GRANT_CONTEXT], page_size=page_size),
        logs=LogService(contexts[ADMIN_LOG_CONTEXT], page_size=page_size),
        identity=IdentityService(contexts[IDENTITY_CONTEXT], identity_model, page_size=page_size),
    )
    logger.debug(f"Registered admin services (page size {page_size})")
    return app


def _services(request: Request) -> AdminServices:
    return request.app.state.admin_services


def get_client_service(request: Request) -> ClientService:
    return _services(request).clients


def get_api_resource_service(request: Request) -> ApiResourceService:
    return _services(request).api_resources


def get_identity_resource_service(request: Request) -> IdentityResourceService:
    return _services(request).identity_resources


def get_persisted_grant_service(request: Request) -> PersistedGrantService:
    return _services(request).persisted_grants


def get_log_service(request: Request) -> LogService:
    return _services(request).logs


def get_identity_service(request: Request) -> IdentityService:
    return _services(request).identity
