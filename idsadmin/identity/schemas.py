"""
Identity entities (users, roles and their claims, logins and tokens).

Entities are built on a caller supplied declarative base by
``create_identity_models`` so a host application can keep its own base, key
type and extra user/role columns. The bundle of entity classes plus the key
type is an ``IdentityModel``; everything downstream (storage context, service,
routes, DTOs) is parametrized by it.

Custom user columns are added by subclassing the mixin:

    class TenantUserMixin(IdentityUserMixin):
        tenant = Column(String, nullable=True)

    model = create_identity_models(MyBase, key_type=int, user_mixin=TenantUserMixin)
"""

import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel, field_validator
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import declarative_base

from idsadmin.database import generate_uuid

SUPPORTED_KEY_TYPES = (str, int, uuid.UUID)


class IdentityUserMixin:
    user_name = Column(String(256), nullable=False)
    normalized_user_name = Column(String(256), nullable=False, unique=True, index=True)
    email = Column(String(256), nullable=True)
    normalized_email = Column(String(256), nullable=True, index=True)
    email_confirmed = Column(Boolean, default=False, nullable=False)
    password_hash = Column(String, nullable=True)
    security_stamp = Column(String, nullable=True, default=generate_uuid)
    phone_number = Column(String, nullable=True)
    phone_number_confirmed = Column(Boolean, default=False, nullable=False)
    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    lockout_end = Column(DateTime(timezone=True), nullable=True)
    lockout_enabled = Column(Boolean, default=True, nullable=False)
    access_failed_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class IdentityRoleMixin:
    name = Column(String(256), nullable=False)
    normalized_name = Column(String(256), nullable=False, unique=True, index=True)


class IdentityUserClaimMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_type = Column(String(256), nullable=False)
    claim_value = Column(Text, nullable=True)


class IdentityRoleClaimMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    claim_type = Column(String(256), nullable=False)
    claim_value = Column(Text, nullable=True)


class IdentityUserRoleMixin:
    pass


class IdentityUserLoginMixin:
    login_provider = Column(String(128), primary_key=True)
    provider_key = Column(String(128), primary_key=True)
    provider_display_name = Column(String, nullable=True)


class IdentityUserTokenMixin:
    login_provider = Column(String(128), primary_key=True)
    name = Column(String(128), primary_key=True)
    value = Column(Text, nullable=True)


_ENTITY_MIXINS = {
    "user": IdentityUserMixin,
    "role": IdentityRoleMixin,
    "user_claim": IdentityUserClaimMixin,
    "user_role": IdentityUserRoleMixin,
    "user_login": IdentityUserLoginMixin,
    "role_claim": IdentityRoleClaimMixin,
    "user_token": IdentityUserTokenMixin,
}


@dataclass(frozen=True)
class IdentityModel:
    """
    The identity entity classes and the key type they share.
    """

    base: Any
    user: type
    role: type
    user_claim: type
    user_role: type
    user_login: type
    role_claim: type
    user_token: type
    key_type: type = str

    def __post_init__(self):
        if not hasattr(self.base, "metadata"):
            raise TypeError(f"base must be a declarative base, got {self.base!r}")
        if self.key_type not in SUPPORTED_KEY_TYPES:
            raise TypeError(
                f"key_type must be one of {', '.join(t.__name__ for t in SUPPORTED_KEY_TYPES)}, "
                f"got {self.key_type!r}"
            )
        for attr, mixin in _ENTITY_MIXINS.items():
            cls = getattr(self, attr)
            if not isinstance(cls, type) or not issubclass(cls, mixin):
                raise TypeError(f"{attr} must derive from {mixin.__name__}, got {cls!r}")

    def parse_key(self, raw: Any):
        """Convert a raw (path/query) value into the model's key type."""
        if isinstance(raw, self.key_type):
            return raw
        return self.key_type(raw)


def _key_column_type(key_type: type):
    if key_type is int:
        return Integer
    if key_type is uuid.UUID:
        return Uuid
    return String(64)


def _primary_key(key_type: type) -> Column:
    if key_type is int:
        return Column(Integer, primary_key=True, autoincrement=True)
    if key_type is uuid.UUID:
        return Column(Uuid, primary_key=True, default=uuid.uuid4)
    return Column(String(64), primary_key=True, default=generate_uuid)


def create_identity_models(
    base,
    key_type: type = str,
    user_mixin: type = IdentityUserMixin,
    role_mixin: type = IdentityRoleMixin,
    table_prefix: str = "identity_",
) -> IdentityModel:
    """
    Instantiate the identity entity classes on a (dynamic) declarative base.
    """
    if key_type not in SUPPORTED_KEY_TYPES:
        raise TypeError(f"unsupported identity key type: {key_type!r}")
    key_column_type = _key_column_type(key_type)
    users_table = f"{table_prefix}users"
    roles_table = f"{table_prefix}roles"

    def user_fk() -> Column:
        return Column(
            key_column_type,
            ForeignKey(f"{users_table}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    def role_fk() -> Column:
        return Column(
            key_column_type,
            ForeignKey(f"{roles_table}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    class User(user_mixin, base):
        __tablename__ = users_table
        id = _primary_key(key_type)

    class Role(role_mixin, base):
        __tablename__ = roles_table
        id = _primary_key(key_type)

    class UserClaim(IdentityUserClaimMixin, base):
        __tablename__ = f"{table_prefix}user_claims"
        user_id = user_fk()

    class UserRole(IdentityUserRoleMixin, base):
        __tablename__ = f"{table_prefix}user_roles"
        user_id = Column(
            key_column_type,
            ForeignKey(f"{users_table}.id", ondelete="CASCADE"),
            primary_key=True,
        )
        role_id = Column(
            key_column_type,
            ForeignKey(f"{roles_table}.id", ondelete="CASCADE"),
            primary_key=True,
        )

    class UserLogin(IdentityUserLoginMixin, base):
        __tablename__ = f"{table_prefix}user_logins"
        user_id = user_fk()

    class RoleClaim(IdentityRoleClaimMixin, base):
        __tablename__ = f"{table_prefix}role_claims"
        role_id = role_fk()

    class UserToken(IdentityUserTokenMixin, base):
        __tablename__ = f"{table_prefix}user_tokens"
        user_id = Column(
            key_column_type,
            ForeignKey(f"{users_table}.id", ondelete="CASCADE"),
            primary_key=True,
        )

    return IdentityModel(
        base=base,
        user=User,
        role=Role,
        user_claim=UserClaim,
        user_role=UserRole,
        user_login=UserLogin,
        role_claim=RoleClaim,
        user_token=UserToken,
        key_type=key_type,
    )


@lru_cache(maxsize=1)
def default_identity_model() -> IdentityModel:
    """The default, string keyed identity model on its own base."""
    return create_identity_models(declarative_base(), key_type=str)


def normalize(value: Optional[str]) -> Optional[str]:
    return value.strip().upper() if value else value


_NAME_RE = re.compile(r"^[\w\-\.@+]+$")


def _validate_user_name(v):
    if not v or len(v) > 256:
        raise ValueError("User name must be between 1 and 256 characters")
    if not _NAME_RE.match(v):
        raise ValueError("User name can only contain letters, numbers and -._@+")
    return v


class UserCreateRequest(BaseModel):
    """Request model for creating a user."""

    user_name: str
    email: Optional[str] = None
    email_confirmed: bool = False
    phone_number: Optional[str] = None
    phone_number_confirmed: bool = False
    two_factor_enabled: bool = False
    lockout_enabled: bool = True
    password: Optional[str] = None

    @field_validator("user_name")
    @classmethod
    def validate_user_name(cls, v):
        return _validate_user_name(v)


class UserUpdateRequest(BaseModel):
    """Request model for updating a user."""

    user_name: Optional[str] = None
    email: Optional[str] = None
    email_confirmed: Optional[bool] = None
    phone_number: Optional[str] = None
    phone_number_confirmed: Optional[bool] = None
    two_factor_enabled: Optional[bool] = None
    lockout_enabled: Optional[bool] = None

    @field_validator("user_name")
    @classmethod
    def validate_user_name(cls, v):
        if v is not None:
            return _validate_user_name(v)
        return v


class RoleRequest(BaseModel):
    """Request model for creating or renaming a role."""

    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip() or len(v) > 256:
            raise ValueError("Role name must be between 1 and 256 characters")
        return v.strip()


class ClaimRequest(BaseModel):
    """Request model for adding a user or role claim."""

    claim_type: str
    claim_value: Optional[str] = None

    @field_validator("claim_type")
    @classmethod
    def validate_claim_type(cls, v):
        if not v or not v.strip() or len(v) > 256:
            raise ValueError("Claim type must be between 1 and 256 characters")
        return v.strip()


class UserRoleRequest(BaseModel):
    """Request model for assigning a role to a user."""

    role_id: str


class UserChangePasswordRequest(BaseModel):
    """Request model for an administrative password reset."""

    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v or len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v
