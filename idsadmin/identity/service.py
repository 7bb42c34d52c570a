"""
Identity administration service: users, roles, claims, external logins.
"""

from typing import Optional

from loguru import logger
from passlib.hash import argon2
from sqlalchemy import delete, select

from idsadmin.constants import DEFAULT_PAGE_SIZE
from idsadmin.database import DbContext, generate_uuid
from idsadmin.exceptions import ConflictError, NotFoundError, UserFriendlyError
from idsadmin.identity.schemas import (
    ClaimRequest,
    IdentityModel,
    RoleRequest,
    UserChangePasswordRequest,
    UserCreateRequest,
    UserUpdateRequest,
    normalize,
)
from idsadmin.pagination import paginate, search_filter


class IdentityService:
    def __init__(
        self,
        context: DbContext,
        identity_model: IdentityModel,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.context = context
        self.model = identity_model
        self.page_size = page_size

    def _key(self, raw, what: str):
        try:
            return self.model.parse_key(raw)
        except (TypeError, ValueError):
            raise NotFoundError(f"{what} {raw} does not exist", error_key=f"{what}DoesNotExist") from None

    async def _get_user(self, session, user_id):
        User = self.model.user
        user = (
            await session.execute(select(User).where(User.id == self._key(user_id, "User")))
        ).scalar_one_or_none()
        if not user:
            raise NotFoundError(f"User {user_id} does not exist", error_key="UserDoesNotExist")
        return user

    async def _get_role(self, session, role_id):
        Role = self.model.role
        role = (
            await session.execute(select(Role).where(Role.id == self._key(role_id, "Role")))
        ).scalar_one_or_none()
        if not role:
            raise NotFoundError(f"Role {role_id} does not exist", error_key="RoleDoesNotExist")
        return role

    async def _ensure_unique_user_name(self, session, user_name: str, exclude_id=None):
        User = self.model.user
        query = select(User.id).where(User.normalized_user_name == normalize(user_name))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await session.execute(query)).first():
            raise ConflictError(
                f"User name {user_name} is already taken", error_key="UserNameAlreadyExists"
            )

    async def _ensure_unique_role_name(self, session, name: str, exclude_id=None):
        Role = self.model.role
        query = select(Role.id).where(Role.normalized_name == normalize(name))
        if exclude_id is not None:
            query = query.where(Role.id != exclude_id)
        if (await session.execute(query)).first():
            raise ConflictError(f"Role {name} already exists", error_key="RoleAlreadyExists")

    async def _page(self, session, query, order_by, page: int, limit: Optional[int]):
        return await paginate(session, query, order_by, page, limit or self.page_size)

    # Users.

    async def get_users(self, search: Optional[str] = None, page: int = 0, limit: Optional[int] = None):
        User = self.model.user
        query = select(User)
        if search and search.strip():
            query = query.where(search_filter(search, User.user_name, User.email))
        async with self.context.session() as session:
            return await self._page(session, query, User.user_name, page, limit)

    async def get_user(self, user_id):
        async with self.context.session() as session:
            return await self._get_user(session, user_id)

    async def create_user(self, args: UserCreateRequest):
        User = self.model.user
        async with self.context.session() as session:
            await self._ensure_unique_user_name(session, args.user_name)
            user = User(
                user_name=args.user_name,
                normalized_user_name=normalize(args.user_name),
                email=args.email,
                normalized_email=normalize(args.email),
                email_confirmed=args.email_confirmed,
                phone_number=args.phone_number,
                phone_number_confirmed=args.phone_number_confirmed,
                two_factor_enabled=args.two_factor_enabled,
                lockout_enabled=args.lockout_enabled,
                password_hash=argon2.hash(args.password) if args.password else None,
                security_stamp=generate_uuid(),
                access_failed_count=0,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
        logger.info(f"Created user {user.user_name} ({user.id})")
        return user

    async def update_user(self, user_id, args: UserUpdateRequest):
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            updates = args.model_dump(exclude_unset=True)
            if "user_name" in updates and updates["user_name"] is not None:
                await self._ensure_unique_user_name(session, updates["user_name"], exclude_id=user.id)
                user.normalized_user_name = normalize(updates["user_name"])
            if "email" in updates:
                user.normalized_email = normalize(updates["email"])
            for key, value in updates.items():
                if value is None and key != "email" and key != "phone_number":
                    continue
                setattr(user, key, value)
            user.security_stamp = generate_uuid()
            await session.commit()
            await session.refresh(user)
        logger.info(f"Updated user {user.user_name} ({user.id})")
        return user

    async def delete_user(self, user_id) -> None:
        model = self.model
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            for entity in (model.user_claim, model.user_role, model.user_login, model.user_token):
                await session.execute(delete(entity).where(entity.user_id == user.id))
            await session.delete(user)
            await session.commit()
        logger.info(f"Deleted user {user.user_name} ({user.id})")

    async def change_password(self, user_id, args: UserChangePasswordRequest) -> None:
        if args.password != args.confirm_password:
            raise UserFriendlyError(
                "The password and confirmation password do not match",
                error_key="PasswordMismatch",
            )
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            user.password_hash = argon2.hash(args.password)
            user.security_stamp = generate_uuid()
            await session.commit()
        logger.info(f"Changed password of user {user.user_name} ({user.id})")

    # Roles.

    async def get_roles(self, search: Optional[str] = None, page: int = 0, limit: Optional[int] = None):
        Role = self.model.role
        query = select(Role)
        if search and search.strip():
            query = query.where(search_filter(search, Role.name))
        async with self.context.session() as session:
            return await self._page(session, query, Role.name, page, limit)

    async def get_role(self, role_id):
        async with self.context.session() as session:
            return await self._get_role(session, role_id)

    async def create_role(self, args: RoleRequest):
        Role = self.model.role
        async with self.context.session() as session:
            await self._ensure_unique_role_name(session, args.name)
            role = Role(name=args.name, normalized_name=normalize(args.name))
            session.add(role)
            await session.commit()
            await session.refresh(role)
        logger.info(f"Created role {role.name} ({role.id})")
        return role

    async def update_role(self, role_id, args: RoleRequest):
        async with self.context.session() as session:
            role = await self._get_role(session, role_id)
            await self._ensure_unique_role_name(session, args.name, exclude_id=role.id)
            role.name = args.name
            role.normalized_name = normalize(args.name)
            await session.commit()
            await session.refresh(role)
        return role

    async def delete_role(self, role_id) -> None:
        model = self.model
        async with self.context.session() as session:
            role = await self._get_role(session, role_id)
            await session.execute(delete(model.user_role).where(model.user_role.role_id == role.id))
            await session.execute(delete(model.role_claim).where(model.role_claim.role_id == role.id))
            await session.delete(role)
            await session.commit()
        logger.info(f"Deleted role {role.name} ({role.id})")

    # User roles.

    async def get_user_roles(self, user_id):
        model = self.model
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            query = (
                select(model.role)
                .join(model.user_role, model.user_role.role_id == model.role.id)
                .where(model.user_role.user_id == user.id)
                .order_by(model.role.name)
            )
            return (await session.execute(query)).scalars().all()

    async def add_user_role(self, user_id, role_id) -> None:
        UserRole = self.model.user_role
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            role = await self._get_role(session, role_id)
            existing = (
                await session.execute(
                    select(UserRole).where(UserRole.user_id == user.id, UserRole.role_id == role.id)
                )
            ).scalar_one_or_none()
            if existing:
                raise ConflictError(
                    f"User {user.user_name} is already in role {role.name}",
                    error_key="UserAlreadyInRole",
                )
            session.add(UserRole(user_id=user.id, role_id=role.id))
            await session.commit()
        logger.info(f"Added user {user.user_name} to role {role.name}")

    async def remove_user_role(self, user_id, role_id) -> None:
        UserRole = self.model.user_role
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            role = await self._get_role(session, role_id)
            result = await session.execute(
                delete(UserRole).where(UserRole.user_id == user.id, UserRole.role_id == role.id)
            )
            if not result.rowcount:
                raise NotFoundError(
                    f"User {user.user_name} is not in role {role.name}", error_key="UserNotInRole"
                )
            await session.commit()

    # Claims.

    async def get_user_claims(self, user_id):
        UserClaim = self.model.user_claim
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            query = select(UserClaim).where(UserClaim.user_id == user.id).order_by(UserClaim.id)
            return (await session.execute(query)).scalars().all()

    async def add_user_claim(self, user_id, args: ClaimRequest):
        UserClaim = self.model.user_claim
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            claim = UserClaim(user_id=user.id, claim_type=args.claim_type, claim_value=args.claim_value)
            session.add(claim)
            await session.commit()
            await session.refresh(claim)
        return claim

    async def remove_user_claim(self, user_id, claim_id: int) -> None:
        UserClaim = self.model.user_claim
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            result = await session.execute(
                delete(UserClaim).where(UserClaim.user_id == user.id, UserClaim.id == claim_id)
            )
            if not result.rowcount:
                raise NotFoundError(f"User claim {claim_id} does not exist", error_key="UserClaimDoesNotExist")
            await session.commit()

    async def get_role_claims(self, role_id):
        RoleClaim = self.model.role_claim
        async with self.context.session() as session:
            role = await self._get_role(session, role_id)
            query = select(RoleClaim).where(RoleClaim.role_id == role.id).order_by(RoleClaim.id)
            return (await session.execute(query)).scalars().all()

    async def add_role_claim(self, role_id, args: ClaimRequest):
        RoleClaim = self.model.role_claim
        async with self.context.session() as session:
            role = await self._get_role(session, role_id)
            claim = RoleClaim(role_id=role.id, claim_type=args.claim_type, claim_value=args.claim_value)
            session.add(claim)
            await session.commit()
            await session.refresh(claim)
        return claim

    async def remove_role_claim(self, role_id, claim_id: int) -> None:
        RoleClaim = self.model.role_claim
        async with self.context.session() as session:
            role = await self._get_role(session, role_id)
            result = await session.execute(
                delete(RoleClaim).where(RoleClaim.role_id == role.id, RoleClaim.id == claim_id)
            )
            if not result.rowcount:
                raise NotFoundError(f"Role claim {claim_id} does not exist", error_key="RoleClaimDoesNotExist")
            await session.commit()

    # External logins.

    async def get_user_providers(self, user_id):
        UserLogin = self.model.user_login
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            query = (
                select(UserLogin)
                .where(UserLogin.user_id == user.id)
                .order_by(UserLogin.login_provider)
            )
            return (await session.execute(query)).scalars().all()

    async def remove_user_provider(self, user_id, login_provider: str, provider_key: str) -> None:
        UserLogin = self.model.user_login
        async with self.context.session() as session:
            user = await self._get_user(session, user_id)
            result = await session.execute(
                delete(UserLogin).where(
                    UserLogin.user_id == user.id,
                    UserLogin.login_provider == login_provider,
                    UserLogin.provider_key == provider_key,
                )
            )
            if not result.rowcount:
                raise NotFoundError(
                    f"External login {login_provider} does not exist for user {user.user_name}",
                    error_key="UserProviderDoesNotExist",
                )
            await session.commit()
        logger.info(f"Removed {login_provider} login from user {user.user_name}")
