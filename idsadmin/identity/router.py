"""
Identity administration routes (users, roles, claims, external logins).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from idsadmin.identity.response import (
    RoleClaimDto,
    RoleDto,
    RolesDto,
    UserClaimDto,
    UserDto,
    UserProviderDto,
    UsersDto,
)
from idsadmin.identity.schemas import (
    ClaimRequest,
    IdentityModel,
    RoleRequest,
    UserChangePasswordRequest,
    UserCreateRequest,
    UserRoleRequest,
    UserUpdateRequest,
)
from idsadmin.identity.service import IdentityService
from idsadmin.services import get_identity_service


def create_identity_router(identity_model: IdentityModel) -> APIRouter:
    """
    Build the identity routes with DTOs bound to the identity model's key type.
    """
    K = identity_model.key_type
    UserOut = UserDto[K]
    RoleOut = RoleDto[K]
    router = APIRouter()

    @router.get("/users", response_model=UsersDto[K])
    async def list_users(
        search: Optional[str] = None,
        page: Optional[int] = 0,
        limit: Optional[int] = None,
        service: IdentityService = Depends(get_identity_service),
    ):
        """List users, optionally filtered by user name or email."""
        return await service.get_users(search=search, page=page or 0, limit=limit)

    @router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
    async def create_user(
        args: UserCreateRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.create_user(args)

    @router.get("/users/{user_id}", response_model=UserOut)
    async def get_user(user_id: str, service: IdentityService = Depends(get_identity_service)):
        return await service.get_user(user_id)

    @router.patch("/users/{user_id}", response_model=UserOut)
    async def update_user(
        user_id: str,
        args: UserUpdateRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.update_user(user_id, args)

    @router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_user(user_id: str, service: IdentityService = Depends(get_identity_service)):
        await service.delete_user(user_id)

    @router.post("/users/{user_id}/change-password", status_code=status.HTTP_204_NO_CONTENT)
    async def change_password(
        user_id: str,
        args: UserChangePasswordRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        """Set a new password for the user (administrative reset)."""
        await service.change_password(user_id, args)

    @router.get("/users/{user_id}/roles", response_model=List[RoleOut])
    async def list_user_roles(user_id: str, service: IdentityService = Depends(get_identity_service)):
        return await service.get_user_roles(user_id)

    @router.post("/users/{user_id}/roles", status_code=status.HTTP_204_NO_CONTENT)
    async def add_user_role(
        user_id: str,
        args: UserRoleRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        await service.add_user_role(user_id, args.role_id)

    @router.delete("/users/{user_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_user_role(
        user_id: str,
        role_id: str,
        service: IdentityService = Depends(get_identity_service),
    ):
        await service.remove_user_role(user_id, role_id)

    @router.get("/users/{user_id}/claims", response_model=List[UserClaimDto[K]])
    async def list_user_claims(user_id: str, service: IdentityService = Depends(get_identity_service)):
        return await service.get_user_claims(user_id)

    @router.post(
        "/users/{user_id}/claims",
        response_model=UserClaimDto[K],
        status_code=status.HTTP_201_CREATED,
    )
    async def add_user_claim(
        user_id: str,
        args: ClaimRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.add_user_claim(user_id, args)

    @router.delete("/users/{user_id}/claims/{claim_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_user_claim(
        user_id: str,
        claim_id: int,
        service: IdentityService = Depends(get_identity_service),
    ):
        await service.remove_user_claim(user_id, claim_id)

    @router.get("/users/{user_id}/providers", response_model=List[UserProviderDto[K]])
    async def list_user_providers(user_id: str, service: IdentityService = Depends(get_identity_service)):
        """List external logins linked to the user."""
        return await service.get_user_providers(user_id)

    @router.delete(
        "/users/{user_id}/providers/{login_provider}/{provider_key}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def remove_user_provider(
        user_id: str,
        login_provider: str,
        provider_key: str,
        service: IdentityService = Depends(get_identity_service),
    ):
        await service.remove_user_provider(user_id, login_provider, provider_key)

    @router.get("/roles", response_model=RolesDto[K])
    async def list_roles(
        search: Optional[str] = None,
        page: Optional[int] = 0,
        limit: Optional[int] = None,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.get_roles(search=search, page=page or 0, limit=limit)

    @router.post("/roles", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
    async def create_role(args: RoleRequest, service: IdentityService = Depends(get_identity_service)):
        return await service.create_role(args)

    @router.get("/roles/{role_id}", response_model=RoleOut)
    async def get_role(role_id: str, service: IdentityService = Depends(get_identity_service)):
        return await service.get_role(role_id)

    @router.put("/roles/{role_id}", response_model=RoleOut)
    async def update_role(
        role_id: str,
        args: RoleRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.update_role(role_id, args)

    @router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_role(role_id: str, service: IdentityService = Depends(get_identity_service)):
        await service.delete_role(role_id)

    @router.get("/roles/{role_id}/claims", response_model=List[RoleClaimDto[K]])
    async def list_role_claims(role_id: str, service: IdentityService = Depends(get_identity_service)):
        return await service.get_role_claims(role_id)

    @router.post(
        "/roles/{role_id}/claims",
        response_model=RoleClaimDto[K],
        status_code=status.HTTP_201_CREATED,
    )
    async def add_role_claim(
        role_id: str,
        args: ClaimRequest,
        service: IdentityService = Depends(get_identity_service),
    ):
        return await service.add_role_claim(role_id, args)

    @router.delete("/roles/{role_id}/claims/{claim_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_role_claim(
        role_id: str,
        claim_id: int,
        service: IdentityService = Depends(get_identity_service),
    ):
        await service.remove_role_claim(role_id, claim_id)

    return router
