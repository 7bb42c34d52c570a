"""
Admin routes for the OAuth server configuration store and persisted grants.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from idsadmin.idp.response import (
    ApiResourceResponse,
    ClientCreationResponse,
    ClientResponse,
    ClientSecretRegenerateResponse,
    IdentityResourceResponse,
    PersistedGrantResponse,
    PersistedGrantSubjectResponse,
)
from idsadmin.idp.schemas import (
    ClientCreateRequest,
    ClientUpdateRequest,
    ResourceCreateRequest,
    ResourceUpdateRequest,
)
from idsadmin.idp.service import (
    ApiResourceService,
    ClientService,
    IdentityResourceService,
    PersistedGrantService,
)
from idsadmin.pagination import PaginatedResponse
from idsadmin.services import (
    get_api_resource_service,
    get_client_service,
    get_identity_resource_service,
    get_persisted_grant_service,
)

router = APIRouter()
grants_router = APIRouter()


@router.get("/clients", response_model=PaginatedResponse)
async def list_clients(
    search: Optional[str] = None,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: ClientService = Depends(get_client_service),
):
    """
    List clients. Use search to filter by name, client_id or description.
    """
    result = await service.get_clients(search=search, page=page or 0, limit=limit)
    result["items"] = [ClientResponse.model_validate(client) for client in result["items"]]
    return result


@router.post(
    "/clients", response_model=ClientCreationResponse, status_code=status.HTTP_201_CREATED
)
async def create_client(
    args: ClientCreateRequest,
    service: ClientService = Depends(get_client_service),
):
    """Register a new client. The secret is only returned in this response."""
    client, client_secret = await service.create_client(args)
    response = ClientCreationResponse.model_validate(client)
    response.client_secret = client_secret
    return response


@router.get("/clients/{client_id}", response_model=ClientResponse)
async def get_client(client_id: str, service: ClientService = Depends(get_client_service)):
    return await service.get_client(client_id)


@router.patch("/clients/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    args: ClientUpdateRequest,
    service: ClientService = Depends(get_client_service),
):
    return await service.update_client(client_id, args)


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, service: ClientService = Depends(get_client_service)):
    await service.delete_client(client_id)


@router.post(
    "/clients/{client_id}/regenerate-secret", response_model=ClientSecretRegenerateResponse
)
async def regenerate_client_secret(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    """Regenerate the client secret; the previous secret stops working immediately."""
    client, client_secret = await service.regenerate_secret(client_id)
    return ClientSecretRegenerateResponse(
        id=client.id,
        client_id=client.client_id,
        client_secret=client_secret,
    )


@router.get("/api-resources", response_model=PaginatedResponse)
async def list_api_resources(
    search: Optional[str] = None,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: ApiResourceService = Depends(get_api_resource_service),
):
    result = await service.list(search=search, page=page or 0, limit=limit)
    result["items"] = [ApiResourceResponse.model_validate(r) for r in result["items"]]
    return result


@router.post(
    "/api-resources", response_model=ApiResourceResponse, status_code=status.HTTP_201_CREATED
)
async def create_api_resource(
    args: ResourceCreateRequest,
    service: ApiResourceService = Depends(get_api_resource_service),
):
    return await service.create(args)


@router.get("/api-resources/{resource_id}", response_model=ApiResourceResponse)
async def get_api_resource(
    resource_id: int,
    service: ApiResourceService = Depends(get_api_resource_service),
):
    return await service.get(resource_id)


@router.patch("/api-resources/{resource_id}", response_model=ApiResourceResponse)
async def update_api_resource(
    resource_id: int,
    args: ResourceUpdateRequest,
    service: ApiResourceService = Depends(get_api_resource_service),
):
    return await service.update(resource_id, args)


@router.delete("/api-resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_resource(
    resource_id: int,
    service: ApiResourceService = Depends(get_api_resource_service),
):
    await service.delete(resource_id)


@router.get("/identity-resources", response_model=PaginatedResponse)
async def list_identity_resources(
    search: Optional[str] = None,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: IdentityResourceService = Depends(get_identity_resource_service),
):
    result = await service.list(search=search, page=page or 0, limit=limit)
    result["items"] = [IdentityResourceResponse.model_validate(r) for r in result["items"]]
    return result


@router.post(
    "/identity-resources",
    response_model=IdentityResourceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_identity_resource(
    args: ResourceCreateRequest,
    service: IdentityResourceService = Depends(get_identity_resource_service),
):
    return await service.create(args)


@router.get("/identity-resources/{resource_id}", response_model=IdentityResourceResponse)
async def get_identity_resource(
    resource_id: int,
    service: IdentityResourceService = Depends(get_identity_resource_service),
):
    return await service.get(resource_id)


@router.patch("/identity-resources/{resource_id}", response_model=IdentityResourceResponse)
async def update_identity_resource(
    resource_id: int,
    args: ResourceUpdateRequest,
    service: IdentityResourceService = Depends(get_identity_resource_service),
):
    return await service.update(resource_id, args)


@router.delete("/identity-resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_identity_resource(
    resource_id: int,
    service: IdentityResourceService = Depends(get_identity_resource_service),
):
    await service.delete(resource_id)


@grants_router.get("", response_model=PaginatedResponse)
async def list_grant_subjects(
    search: Optional[str] = None,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: PersistedGrantService = Depends(get_persisted_grant_service),
):
    """
    List subjects holding persisted grants, with their grant counts.
    """
    result = await service.get_subjects(search=search, page=page or 0, limit=limit)
    result["items"] = [PersistedGrantSubjectResponse(**item) for item in result["items"]]
    return result


@grants_router.get("/subjects/{subject_id}", response_model=PaginatedResponse)
async def list_subject_grants(
    subject_id: str,
    page: Optional[int] = 0,
    limit: Optional[int] = None,
    service: PersistedGrantService = Depends(get_persisted_grant_service),
):
    result = await service.get_grants_by_subject(subject_id, page=page or 0, limit=limit)
    result["items"] = [PersistedGrantResponse.model_validate(g) for g in result["items"]]
    return result


@grants_router.delete("/subjects/{subject_id}")
async def delete_subject_grants(
    subject_id: str,
    service: PersistedGrantService = Depends(get_persisted_grant_service),
):
    """Revoke every persisted grant of a subject."""
    deleted = await service.delete_grants_by_subject(subject_id)
    return {"deleted": deleted}


@grants_router.get("/{key}", response_model=PersistedGrantResponse)
async def get_grant(key: str, service: PersistedGrantService = Depends(get_persisted_grant_service)):
    return await service.get_grant(key)


@grants_router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_grant(key: str, service: PersistedGrantService = Depends(get_persisted_grant_service)):
    await service.delete_grant(key)
