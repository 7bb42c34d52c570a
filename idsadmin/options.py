"""
Options assembled once at startup and consumed by the registration steps.
"""

from typing import Callable, List, Optional

from fastapi import FastAPI
from pydantic import BaseModel, field_validator

from idsadmin.configuration import Configuration, HostingEnvironment
from idsadmin.constants import (
    ADMIN_LOG_CONTEXT,
    CONFIGURATION_CONTEXT,
    DEFAULT_ADMINISTRATION_ROLE,
    DEFAULT_CULTURE_COOKIE_NAME,
    DEFAULT_PAGE_SIZE,
    DEFAULT_ROLE_CLAIM_TYPE,
    DEFAULT_SESSION_COOKIE_NAME,
    IDENTITY_CONTEXT,
    MAX_PAGE_SIZE,
    PERSISTED_GRANT_CONTEXT,
)


class ConnectionStrings(BaseModel):
    """Connection URLs and migrations packages of the four storage contexts."""

    identity_db: Optional[str] = None
    configuration_db: Optional[str] = None
    persisted_grant_db: Optional[str] = None
    admin_log_db: Optional[str] = None

    identity_db_migrations_package: Optional[str] = None
    configuration_db_migrations_package: Optional[str] = None
    persisted_grant_db_migrations_package: Optional[str] = None
    admin_log_db_migrations_package: Optional[str] = None

    def set_migrations_package(self, package: str) -> None:
        """Use the same migrations package for every storage context."""
        self.identity_db_migrations_package = package
        self.configuration_db_migrations_package = package
        self.persisted_grant_db_migrations_package = package
        self.admin_log_db_migrations_package = package

    def url_for(self, context: str) -> Optional[str]:
        return {
            IDENTITY_CONTEXT: self.identity_db,
            CONFIGURATION_CONTEXT: self.configuration_db,
            PERSISTED_GRANT_CONTEXT: self.persisted_grant_db,
            ADMIN_LOG_CONTEXT: self.admin_log_db,
        }[context]

    def migrations_package_for(self, context: str) -> Optional[str]:
        return {
            IDENTITY_CONTEXT: self.identity_db_migrations_package,
            CONFIGURATION_CONTEXT: self.configuration_db_migrations_package,
            PERSISTED_GRANT_CONTEXT: self.persisted_grant_db_migrations_package,
            ADMIN_LOG_CONTEXT: self.admin_log_db_migrations_package,
        }[context]


class AdminConfiguration(BaseModel):
    identity_admin_base_url: str = "http://localhost:9000"
    identity_server_base_url: str = "http://localhost:5000"
    client_id: str = "idsadmin"
    client_secret: Optional[str] = None
    scopes: List[str] = ["openid", "profile", "email", "roles"]
    administration_role: str = DEFAULT_ADMINISTRATION_ROLE
    role_claim_type: str = DEFAULT_ROLE_CLAIM_TYPE
    session_cookie_name: str = DEFAULT_SESSION_COOKIE_NAME
    session_secret: str = "change-me"
    page_size: int = DEFAULT_PAGE_SIZE
    show_exception_details: bool = False

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v):
        if v < 1 or v > MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        return v


class CultureConfiguration(BaseModel):
    cultures: List[str] = ["en", "de"]
    default_culture: str = "en"
    cookie_name: str = DEFAULT_CULTURE_COOKIE_NAME

    @field_validator("cultures")
    @classmethod
    def validate_cultures(cls, v):
        if not v:
            raise ValueError("At least one culture is required")
        return v


class TestingConfiguration(BaseModel):
    is_staging: bool = False


class DatabaseMigrationsConfiguration(BaseModel):
    apply_database_migrations: bool = False


class AdminLogConfiguration(BaseModel):
    minimum_level: str = "WARNING"

    @field_validator("minimum_level")
    @classmethod
    def validate_minimum_level(cls, v):
        return v.upper()


# Configuration section name -> (options attribute, model).
_SECTIONS = {
    "connection_strings": ("connection_strings", ConnectionStrings),
    "admin_configuration": ("admin", AdminConfiguration),
    "culture_configuration": ("culture", CultureConfiguration),
    "testing": ("testing", TestingConfiguration),
    "database_migrations": ("database_migrations", DatabaseMigrationsConfiguration),
    "admin_log": ("admin_log", AdminLogConfiguration),
}


class AdminOptions:
    """
    Mutable options record for the admin UI, built once per application startup.
    """

    def __init__(self, app: FastAPI):
        self.app = app
        self.connection_strings = ConnectionStrings()
        self.admin = AdminConfiguration()
        self.culture = CultureConfiguration()
        self.testing = TestingConfiguration()
        self.database_migrations = DatabaseMigrationsConfiguration()
        self.admin_log = AdminLogConfiguration()
        self.logging_configuration_builder: Optional[Callable] = None

    def apply_hosting_environment(self, env: HostingEnvironment) -> None:
        """
        Sets the staging or development flags from the hosting environment.
        """
        self.testing.is_staging = env.is_staging()
        self.admin.show_exception_details = env.is_development()

    def apply_configuration(self, configuration: Configuration) -> None:
        """
        Replace every options section present in the configuration. Values not
        given in a present section fall back to the current option values.
        """
        for section, (attr, model) in _SECTIONS.items():
            if not configuration.has_section(section):
                continue
            current = getattr(self, attr).model_dump()
            current.update(configuration.get_section(section))
            setattr(self, attr, model.model_validate(current))
