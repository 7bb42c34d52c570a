"""
Database and request models for the OAuth server configuration store.

The admin UI edits what the OAuth/OpenID Connect server reads: clients,
API resources (protected APIs and the scopes they expose), identity resources
(groups of user claims requestable as scopes) and persisted grants (refresh
tokens, consents and other long-lived grants the server stores per subject).
"""

import re
import secrets
import string
from typing import List, Optional, Self

from passlib.hash import argon2
from pydantic import BaseModel, field_validator
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import validates

from idsadmin.constants import (
    DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS,
    DEFAULT_IDENTITY_TOKEN_LIFETIME_SECONDS,
    DEFAULT_REFRESH_TOKEN_LIFETIME_DAYS,
    MAX_REFRESH_TOKEN_LIFETIME_DAYS,
)
from idsadmin.database import ConfigurationBase, PersistedGrantBase, generate_uuid

VALID_GRANT_TYPES = (
    "authorization_code",
    "client_credentials",
    "refresh_token",
    "implicit",
    "password",
    "urn:ietf:params:oauth:grant-type:device_code",
)

_NAME_RE = re.compile(r"^[\w\s\-\.]+$")
_SCOPE_RE = re.compile(r"^[\w\-\.:/]+$")


def _validate_name(v):
    if not v or len(v) < 3 or len(v) > 64:
        raise ValueError("Name must be between 3 and 64 characters")
    if not _NAME_RE.match(v):
        raise ValueError("Name can only contain letters, numbers, spaces, hyphens, and periods")
    return v


def _validate_redirect_uris(v, required=True):
    if required and not v:
        raise ValueError("At least one redirect URI is required")
    if len(v) > 10:
        raise ValueError("Maximum 10 redirect URIs allowed")
    for uri in v:
        if not uri.startswith(("http://", "https://")):
            raise ValueError(f"Invalid redirect URI: {uri}")
    return v


def _validate_grant_types(v):
    if not v:
        raise ValueError("At least one grant type is required")
    for grant_type in v:
        if grant_type not in VALID_GRANT_TYPES:
            raise ValueError(f"Unknown grant type: {grant_type}")
    return v


def _validate_scopes(v):
    for scope in v:
        if not _SCOPE_RE.match(scope):
            raise ValueError(f"Invalid scope: {scope}")
    return v


def _validate_token_lifetime(v):
    if v is not None and v < 1:
        raise ValueError("Token lifetime must be at least 1 second")
    return v


def _validate_refresh_token_lifetime(v):
    if v is not None:
        if v < 1:
            raise ValueError("Refresh token lifetime must be at least 1 day")
        if v > MAX_REFRESH_TOKEN_LIFETIME_DAYS:
            raise ValueError(
                f"Refresh token lifetime cannot exceed {MAX_REFRESH_TOKEN_LIFETIME_DAYS} days"
            )
    return v


class ClientCreateRequest(BaseModel):
    """Request model for registering a client."""

    name: str
    description: Optional[str] = None
    redirect_uris: List[str]
    post_logout_redirect_uris: List[str] = []
    allowed_grant_types: List[str] = ["authorization_code"]
    allowed_scopes: List[str] = ["openid", "profile"]
    require_pkce: bool = True
    require_consent: bool = False
    confidential: bool = True
    access_token_lifetime_seconds: int = DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS
    identity_token_lifetime_seconds: int = DEFAULT_IDENTITY_TOKEN_LIFETIME_SECONDS
    refresh_token_lifetime_days: Optional[int] = DEFAULT_REFRESH_TOKEN_LIFETIME_DAYS

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _validate_name(v)

    @field_validator("redirect_uris")
    @classmethod
    def validate_redirect_uris(cls, v):
        return _validate_redirect_uris(v)

    @field_validator("post_logout_redirect_uris")
    @classmethod
    def validate_post_logout_redirect_uris(cls, v):
        return _validate_redirect_uris(v, required=False)

    @field_validator("allowed_grant_types")
    @classmethod
    def validate_grant_types(cls, v):
        return _validate_grant_types(v)

    @field_validator("allowed_scopes")
    @classmethod
    def validate_scopes(cls, v):
        return _validate_scopes(v)

    @field_validator("refresh_token_lifetime_days")
    @classmethod
    def validate_refresh_token_lifetime(cls, v):
        return _validate_refresh_token_lifetime(v)

    @field_validator("access_token_lifetime_seconds", "identity_token_lifetime_seconds")
    @classmethod
    def validate_token_lifetime(cls, v):
        return _validate_token_lifetime(v)


class ClientUpdateRequest(BaseModel):
    """Request model for updating a client."""

    name: Optional[str] = None
    description: Optional[str] = None
    redirect_uris: Optional[List[str]] = None
    post_logout_redirect_uris: Optional[List[str]] = None
    allowed_grant_types: Optional[List[str]] = None
    allowed_scopes: Optional[List[str]] = None
    enabled: Optional[bool] = None
    require_pkce: Optional[bool] = None
    require_consent: Optional[bool] = None
    access_token_lifetime_seconds: Optional[int] = None
    identity_token_lifetime_seconds: Optional[int] = None
    refresh_token_lifetime_days: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return _validate_name(v)
        return v

    @field_validator("redirect_uris")
    @classmethod
    def validate_redirect_uris(cls, v):
        if v is not None:
            return _validate_redirect_uris(v)
        return v

    @field_validator("post_logout_redirect_uris")
    @classmethod
    def validate_post_logout_redirect_uris(cls, v):
        if v is not None:
            return _validate_redirect_uris(v, required=False)
        return v

    @field_validator("allowed_grant_types")
    @classmethod
    def validate_grant_types(cls, v):
        if v is not None:
            return _validate_grant_types(v)
        return v

    @field_validator("allowed_scopes")
    @classmethod
    def validate_scopes(cls, v):
        if v is not None:
            return _validate_scopes(v)
        return v

    @field_validator("refresh_token_lifetime_days")
    @classmethod
    def validate_refresh_token_lifetime(cls, v):
        return _validate_refresh_token_lifetime(v)

    @field_validator("access_token_lifetime_seconds", "identity_token_lifetime_seconds")
    @classmethod
    def validate_token_lifetime(cls, v):
        return _validate_token_lifetime(v)


class ResourceCreateRequest(BaseModel):
    """Request model for creating an API or identity resource."""

    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool = True
    scopes: List[str] = []
    user_claims: List[str] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or len(v) > 200 or not _SCOPE_RE.match(v):
            raise ValueError("Resource name must be 1-200 characters of letters, numbers and -_.:/")
        return v

    @field_validator("scopes")
    @classmethod
    def validate_scopes(cls, v):
        return _validate_scopes(v)


class ResourceUpdateRequest(BaseModel):
    """Request model for updating an API or identity resource."""

    display_name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    scopes: Optional[List[str]] = None
    user_claims: Optional[List[str]] = None

    @field_validator("scopes")
    @classmethod
    def validate_scopes(cls, v):
        if v is not None:
            return _validate_scopes(v)
        return v


class Client(ConfigurationBase):
    """OAuth2/OpenID Connect client registered with the server."""

    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=generate_uuid)
    client_id = Column(String, unique=True, nullable=False, index=True)
    client_secret_hash = Column(String, nullable=True)
    name = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    confidential = Column(Boolean, default=True, nullable=False)
    require_pkce = Column(Boolean, default=True, nullable=False)
    require_consent = Column(Boolean, default=False, nullable=False)
    redirect_uris = Column(JSON, nullable=False, default=list)
    post_logout_redirect_uris = Column(JSON, nullable=False, default=list)
    allowed_grant_types = Column(JSON, nullable=False, default=list)
    allowed_scopes = Column(JSON, nullable=False, default=list)
    access_token_lifetime_seconds = Column(
        Integer, default=DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS, nullable=False
    )
    identity_token_lifetime_seconds = Column(
        Integer, default=DEFAULT_IDENTITY_TOKEN_LIFETIME_SECONDS, nullable=False
    )
    refresh_token_lifetime_days = Column(
        Integer, default=DEFAULT_REFRESH_TOKEN_LIFETIME_DAYS, nullable=False
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("name", name="constraint_client_name"),)

    @validates("name")
    def validate_name(self, _, name):
        return _validate_name(name)

    @classmethod
    def generate_client_id(cls) -> str:
        """Generate a unique client ID."""
        return f"cid_{''.join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(24))}"

    @classmethod
    def generate_client_secret(cls) -> str:
        """Generate a secure client secret."""
        return f"csc_{''.join(secrets.choice(string.ascii_letters + string.digits) for _ in range(48))}"

    @classmethod
    def create(cls, args: ClientCreateRequest) -> tuple[Self, Optional[str]]:
        """
        Create a new client with generated credentials. Public (non-confidential)
        clients get no secret.
        """
        client_secret = cls.generate_client_secret() if args.confidential else None
        instance = cls(
            id=generate_uuid(),
            client_id=cls.generate_client_id(),
            client_secret_hash=argon2.hash(client_secret) if client_secret else None,
            name=args.name,
            description=args.description,
            confidential=args.confidential,
            require_pkce=args.require_pkce,
            require_consent=args.require_consent,
            redirect_uris=args.redirect_uris,
            post_logout_redirect_uris=args.post_logout_redirect_uris,
            allowed_grant_types=args.allowed_grant_types,
            allowed_scopes=args.allowed_scopes,
            access_token_lifetime_seconds=args.access_token_lifetime_seconds,
            identity_token_lifetime_seconds=args.identity_token_lifetime_seconds,
            refresh_token_lifetime_days=args.refresh_token_lifetime_days
            or DEFAULT_REFRESH_TOKEN_LIFETIME_DAYS,
        )
        return instance, client_secret

    def regenerate_secret(self) -> str:
        """Regenerate the client secret."""
        new_secret = self.generate_client_secret()
        self.client_secret_hash = argon2.hash(new_secret)
        return new_secret


class ApiResource(ConfigurationBase):
    """A protected API and the scopes it exposes."""

    __tablename__ = "api_resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    scopes = Column(JSON, nullable=False, default=list)
    user_claims = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, server_default=func.now())


class IdentityResource(ConfigurationBase):
    """A named group of user claims requestable as a scope (e.g. "profile")."""

    __tablename__ = "identity_resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)
    display_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    user_claims = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, server_default=func.now())


class PersistedGrant(PersistedGrantBase):
    """A long-lived grant stored by the OAuth server (refresh token, consent, ...)."""

    __tablename__ = "persisted_grants"

    key = Column(String(200), primary_key=True)
    type = Column(String(50), nullable=False)
    subject_id = Column(String(200), nullable=True, index=True)
    client_id = Column(String(200), nullable=False)
    creation_time = Column(DateTime, nullable=False, server_default=func.now())
    expiration = Column(DateTime, nullable=True)
    data = Column(Text, nullable=False)
