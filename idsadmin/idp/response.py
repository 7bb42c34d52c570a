"""
Response models for the configuration store and persisted grants.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ClientResponse(BaseModel):
    """Response model for a client (never includes the secret)."""

    id: str
    client_id: str
    name: str
    description: Optional[str] = None
    enabled: bool
    confidential: bool
    require_pkce: bool
    require_consent: bool
    redirect_uris: List[str]
    post_logout_redirect_uris: List[str]
    allowed_grant_types: List[str]
    allowed_scopes: List[str]
    access_token_lifetime_seconds: int
    identity_token_lifetime_seconds: int
    refresh_token_lifetime_days: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientCreationResponse(ClientResponse):
    """Response model when creating a client (includes the secret, once)."""

    client_secret: Optional[str] = None


class ClientSecretRegenerateResponse(BaseModel):
    id: str
    client_id: str
    client_secret: str


class ApiResourceResponse(BaseModel):
    id: int
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool
    scopes: List[str]
    user_claims: List[str]

    class Config:
        from_attributes = True


class IdentityResourceResponse(BaseModel):
    id: int
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool
    user_claims: List[str]

    class Config:
        from_attributes = True


class PersistedGrantResponse(BaseModel):
    key: str
    type: str
    subject_id: Optional[str] = None
    client_id: str
    creation_time: datetime
    expiration: Optional[datetime] = None
    data: str

    class Config:
        from_attributes = True


class PersistedGrantSubjectResponse(BaseModel):
    """A subject with the number of grants stored for it."""

    subject_id: str
    grant_count: int
