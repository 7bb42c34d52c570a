"""Unit tests for the identity administration service."""

import pytest
from passlib.hash import argon2


@pytest.fixture
def service(identity_context, identity_model):
    from idsadmin.identity.service import IdentityService

    return IdentityService(identity_context, identity_model, page_size=2)


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_and_get_user(self, service):
        from idsadmin.identity.schemas import UserCreateRequest

        user = await service.create_user(
            UserCreateRequest(user_name="bob", email="Bob@Example.com", password="s3cret-pass")
        )
        assert user.normalized_user_name == "BOB"
        assert user.normalized_email == "BOB@EXAMPLE.COM"
        assert argon2.verify("s3cret-pass", user.password_hash)

        fetched = await service.get_user(user.id)
        assert fetched.user_name == "bob"

    @pytest.mark.asyncio
    async def test_duplicate_user_name(self, service):
        from idsadmin.exceptions import ConflictError
        from idsadmin.identity.schemas import UserCreateRequest

        await service.create_user(UserCreateRequest(user_name="bob"))
        with pytest.raises(ConflictError) as exc_info:
            await service.create_user(UserCreateRequest(user_name="BOB"))
        assert exc_info.value.error_key == "UserNameAlreadyExists"

    @pytest.mark.asyncio
    async def test_missing_user(self, service):
        from idsadmin.exceptions import NotFoundError

        with pytest.raises(NotFoundError):
            await service.get_user("does-not-exist")

    @pytest.mark.asyncio
    async def test_search_and_paging(self, service):
        from idsadmin.identity.schemas import UserCreateRequest

        for name in ("anna", "bob", "carl", "bobby"):
            await service.create_user(UserCreateRequest(user_name=name))

        first = await service.get_users()
        assert first["total"] == 4
        assert first["limit"] == 2
        assert [u.user_name for u in first["items"]] == ["anna", "bob"]

        second = await service.get_users(page=1)
        assert [u.user_name for u in second["items"]] == ["bobby", "carl"]

        found = await service.get_users(search="bob")
        assert found["total"] == 2

    @pytest.mark.asyncio
    async def test_update_user(self, service):
        from idsadmin.identity.schemas import UserCreateRequest, UserUpdateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        stamp = user.security_stamp
        updated = await service.update_user(
            user.id, UserUpdateRequest(user_name="robert", email="robert@example.com")
        )
        assert updated.user_name == "robert"
        assert updated.normalized_user_name == "ROBERT"
        assert updated.normalized_email == "ROBERT@EXAMPLE.COM"
        assert updated.security_stamp != stamp

    @pytest.mark.asyncio
    async def test_change_password(self, service):
        from idsadmin.exceptions import UserFriendlyError
        from idsadmin.identity.schemas import UserChangePasswordRequest, UserCreateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        with pytest.raises(UserFriendlyError) as exc_info:
            await service.change_password(
                user.id,
                UserChangePasswordRequest(password="password-1", confirm_password="password-2"),
            )
        assert exc_info.value.error_key == "PasswordMismatch"

        await service.change_password(
            user.id,
            UserChangePasswordRequest(password="password-1", confirm_password="password-1"),
        )
        assert argon2.verify("password-1", (await service.get_user(user.id)).password_hash)

    @pytest.mark.asyncio
    async def test_delete_user_removes_memberships(self, service):
        from idsadmin.exceptions import NotFoundError
        from idsadmin.identity.schemas import ClaimRequest, RoleRequest, UserCreateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        role = await service.create_role(RoleRequest(name="Editors"))
        await service.add_user_role(user.id, role.id)
        await service.add_user_claim(user.id, ClaimRequest(claim_type="dept", claim_value="it"))

        await service.delete_user(user.id)
        with pytest.raises(NotFoundError):
            await service.get_user(user.id)
        # The role itself survives.
        assert (await service.get_role(role.id)).name == "Editors"


class TestRoles:
    @pytest.mark.asyncio
    async def test_role_lifecycle(self, service):
        from idsadmin.exceptions import ConflictError, NotFoundError
        from idsadmin.identity.schemas import RoleRequest

        role = await service.create_role(RoleRequest(name="  Editors "))
        assert role.name == "Editors"
        with pytest.raises(ConflictError):
            await service.create_role(RoleRequest(name="editors"))

        renamed = await service.update_role(role.id, RoleRequest(name="Writers"))
        assert renamed.normalized_name == "WRITERS"

        await service.delete_role(role.id)
        with pytest.raises(NotFoundError):
            await service.get_role(role.id)

    @pytest.mark.asyncio
    async def test_user_roles(self, service):
        from idsadmin.exceptions import ConflictError, NotFoundError
        from idsadmin.identity.schemas import RoleRequest, UserCreateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        role = await service.create_role(RoleRequest(name="Editors"))

        await service.add_user_role(user.id, role.id)
        assert [r.name for r in await service.get_user_roles(user.id)] == ["Editors"]
        with pytest.raises(ConflictError) as exc_info:
            await service.add_user_role(user.id, role.id)
        assert exc_info.value.error_key == "UserAlreadyInRole"

        await service.remove_user_role(user.id, role.id)
        assert await service.get_user_roles(user.id) == []
        with pytest.raises(NotFoundError):
            await service.remove_user_role(user.id, role.id)


class TestClaims:
    @pytest.mark.asyncio
    async def test_user_claims(self, service):
        from idsadmin.exceptions import NotFoundError
        from idsadmin.identity.schemas import ClaimRequest, UserCreateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        claim = await service.add_user_claim(
            user.id, ClaimRequest(claim_type="department", claim_value="it")
        )
        claims = await service.get_user_claims(user.id)
        assert [(c.claim_type, c.claim_value) for c in claims] == [("department", "it")]

        await service.remove_user_claim(user.id, claim.id)
        assert await service.get_user_claims(user.id) == []
        with pytest.raises(NotFoundError):
            await service.remove_user_claim(user.id, claim.id)

    @pytest.mark.asyncio
    async def test_role_claims(self, service):
        from idsadmin.identity.schemas import ClaimRequest, RoleRequest

        role = await service.create_role(RoleRequest(name="Editors"))
        claim = await service.add_role_claim(role.id, ClaimRequest(claim_type="permission", claim_value="edit"))
        assert [c.id for c in await service.get_role_claims(role.id)] == [claim.id]
        await service.remove_role_claim(role.id, claim.id)
        assert await service.get_role_claims(role.id) == []


class TestProviders:
    @pytest.mark.asyncio
    async def test_remove_provider(self, service, identity_context, identity_model):
        from idsadmin.exceptions import NotFoundError
        from idsadmin.identity.schemas import UserCreateRequest

        user = await service.create_user(UserCreateRequest(user_name="bob"))
        async with identity_context.session() as session:
            session.add(
                identity_model.user_login(
                    user_id=user.id,
                    login_provider="github",
                    provider_key="12345",
                    provider_display_name="GitHub",
                )
            )
            await session.commit()

        providers = await service.get_user_providers(user.id)
        assert [(p.login_provider, p.provider_key) for p in providers] == [("github", "12345")]

        await service.remove_user_provider(user.id, "github", "12345")
        assert await service.get_user_providers(user.id) == []
        with pytest.raises(NotFoundError):
            await service.remove_user_provider(user.id, "github", "12345")
