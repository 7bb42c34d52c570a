"""
Response models (DTOs) for identity administration, generic over the key type.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

KeyT = TypeVar("KeyT")


class UserDto(BaseModel, Generic[KeyT]):
    """A user, without credentials."""

    id: KeyT
    user_name: str
    email: Optional[str] = None
    email_confirmed: bool
    phone_number: Optional[str] = None
    phone_number_confirmed: bool
    two_factor_enabled: bool
    lockout_enabled: bool
    lockout_end: Optional[datetime] = None
    access_failed_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsersDto(BaseModel, Generic[KeyT]):
    total: int
    page: int
    limit: int
    items: List[UserDto[KeyT]]


class RoleDto(BaseModel, Generic[KeyT]):
    id: KeyT
    name: str

    class Config:
        from_attributes = True


class RolesDto(BaseModel, Generic[KeyT]):
    total: int
    page: int
    limit: int
    items: List[RoleDto[KeyT]]


class UserClaimDto(BaseModel, Generic[KeyT]):
    id: int
    user_id: KeyT
    claim_type: str
    claim_value: Optional[str] = None

    class Config:
        from_attributes = True


class RoleClaimDto(BaseModel, Generic[KeyT]):
    id: int
    role_id: KeyT
    claim_type: str
    claim_value: Optional[str] = None

    class Config:
        from_attributes = True


class UserProviderDto(BaseModel, Generic[KeyT]):
    """An external login linked to a user."""

    user_id: KeyT
    login_provider: str
    provider_key: str
    provider_display_name: Optional[str] = None

    class Config:
        from_attributes = True
