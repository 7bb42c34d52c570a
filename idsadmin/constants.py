"""
Shared constants for the admin UI.
"""

# Environment names (compared case-insensitively).
DEVELOPMENT_ENVIRONMENT = "Development"
STAGING_ENVIRONMENT = "Staging"
PRODUCTION_ENVIRONMENT = "Production"
ENVIRONMENT_VARIABLE = "ADMIN_ENVIRONMENT"

# Configuration overlay from environment variables, e.g.
# ADMIN_CONNECTION_STRINGS__IDENTITY_DB=postgresql+asyncpg://...
CONFIGURATION_ENV_PREFIX = "ADMIN_"
CONFIGURATION_ENV_SEPARATOR = "__"

# Storage context names, also the module names looked up for migrations.
IDENTITY_CONTEXT = "identity"
CONFIGURATION_CONTEXT = "configuration"
PERSISTED_GRANT_CONTEXT = "persisted_grants"
ADMIN_LOG_CONTEXT = "admin_log"
STAGING_DATABASE_URL = "sqlite+aiosqlite://"

# Authorization.
ADMINISTRATION_POLICY = "RequireAdministratorRole"
DEFAULT_ADMINISTRATION_ROLE = "IdentityAdminAdministrator"
DEFAULT_ROLE_CLAIM_TYPE = "role"

# Staging (integration test) authentication headers.
TEST_USER_HEADER = "X-Admin-Test-User"
TEST_ROLES_HEADER = "X-Admin-Test-Roles"

# Session/cookies.
DEFAULT_SESSION_COOKIE_NAME = "idsadmin_session"
DEFAULT_CULTURE_COOKIE_NAME = "idsadmin_culture"
SESSION_PRINCIPAL_KEY = "principal"

# Paging.
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Client (OAuth application) defaults.
DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS = 3600
DEFAULT_IDENTITY_TOKEN_LIFETIME_SECONDS = 300
DEFAULT_REFRESH_TOKEN_LIFETIME_DAYS = 30
MAX_REFRESH_TOKEN_LIFETIME_DAYS = 365
