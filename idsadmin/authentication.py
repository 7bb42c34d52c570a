"""
Authentication for the admin UI.

Outside staging, admins sign in through the OAuth/OpenID Connect server the UI
administers (authorization code flow via authlib); the resulting principal is
kept in the signed session cookie. In staging there is no OIDC round trip:
integration tests authenticate by sending the test user headers.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from authlib.integrations.starlette_client import OAuth
from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger
from pydantic import BaseModel
from starlette.middleware.sessions import SessionMiddleware

from idsadmin.constants import SESSION_PRINCIPAL_KEY, TEST_ROLES_HEADER, TEST_USER_HEADER
from idsadmin.options import AdminOptions

OIDC_CLIENT_NAME = "oidc"


class AdminPrincipal(BaseModel):
    subject: str
    name: str
    roles: List[str] = []
    claims: Dict[str, Any] = {}

    def has_role(self, role: str) -> bool:
        return role in self.roles


def principal_from_claims(claims: Dict[str, Any], role_claim_type: str) -> AdminPrincipal:
    """
    Build a principal from ID token / userinfo claims. The role claim may be a
    single string or a list.
    """
    subject = claims.get("sub")
    if not subject:
        raise ValueError("claims are missing the sub claim")
    raw_roles = claims.get(role_claim_type) or []
    if isinstance(raw_roles, str):
        raw_roles = [raw_roles]
    name = claims.get("name") or claims.get("preferred_username") or claims.get("email") or subject
    return AdminPrincipal(
        subject=str(subject),
        name=str(name),
        roles=[str(role) for role in raw_roles],
        claims=dict(claims),
    )


def principal_from_test_headers(request: Request) -> Optional[AdminPrincipal]:
    user = request.headers.get(TEST_USER_HEADER)
    if not user:
        return None
    roles = [r.strip() for r in request.headers.get(TEST_ROLES_HEADER, "").split(",") if r.strip()]
    return AdminPrincipal(subject=user, name=user, roles=roles)


def principal_from_session(request: Request) -> Optional[AdminPrincipal]:
    data = request.session.get(SESSION_PRINCIPAL_KEY)
    if not data:
        return None
    return AdminPrincipal.model_validate(data)


async def get_current_principal(request: Request) -> AdminPrincipal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return principal


account_router = APIRouter()


@account_router.get("/login")
async def login(request: Request, return_url: str = "/"):
    """Start the authorization code flow against the OIDC server."""
    # Only local return URLs, no open redirects.
    if not return_url.startswith("/") or return_url.startswith("//"):
        return_url = "/"
    request.session["return_url"] = return_url
    redirect_uri = str(request.url_for("account_callback"))
    return await request.app.state.oauth.oidc.authorize_redirect(request, redirect_uri)


@account_router.get("/callback", name="account_callback")
async def callback(request: Request):
    options: AdminOptions = request.app.state.admin_options
    client = request.app.state.oauth.oidc
    token = await client.authorize_access_token(request)
    claims = token.get("userinfo") or await client.userinfo(token=token)
    principal = principal_from_claims(dict(claims), options.admin.role_claim_type)
    request.session[SESSION_PRINCIPAL_KEY] = principal.model_dump()
    logger.info(f"Signed in {principal.name} ({principal.subject})")
    return RedirectResponse(request.session.pop("return_url", "/"), status_code=status.HTTP_302_FOUND)


@account_router.get("/logout")
async def logout(request: Request):
    """Clear the local session and sign out at the OIDC server when it supports it."""
    options: AdminOptions = request.app.state.admin_options
    principal = principal_from_session(request)
    request.session.clear()
    if principal:
        logger.info(f"Signed out {principal.name} ({principal.subject})")
    metadata = await request.app.state.oauth.oidc.load_server_metadata()
    end_session_endpoint = metadata.get("end_session_endpoint")
    if not end_session_endpoint:
        return RedirectResponse("/", status_code=status.HTTP_302_FOUND)
    query = urlencode({"post_logout_redirect_uri": options.admin.identity_admin_base_url})
    return RedirectResponse(f"{end_session_endpoint}?{query}", status_code=status.HTTP_302_FOUND)


def add_authentication_services(app: FastAPI, options: AdminOptions) -> FastAPI:
    """
    Register principal resolution, the session cookie and (outside staging)
    the OIDC client with its account routes.
    """
    staging = options.testing.is_staging

    async def resolve_principal(request: Request, call_next):
        if staging:
            request.state.principal = principal_from_test_headers(request)
        else:
            request.state.principal = principal_from_session(request)
        return await call_next(request)

    # Registered before the session middleware so that it runs inside it.
    app.middleware("http")(resolve_principal)
    app.add_middleware(
        SessionMiddleware,
        secret_key=options.admin.session_secret,
        session_cookie=options.admin.session_cookie_name,
        same_site="lax",
        https_only=options.admin.identity_admin_base_url.startswith("https://"),
    )

    if staging:
        logger.info("Staging: using test header authentication, OIDC disabled")
        return app

    oauth = OAuth()
    oauth.register(
        name=OIDC_CLIENT_NAME,
        client_id=options.admin.client_id,
        client_secret=options.admin.client_secret,
        server_metadata_url=(
            f"{options.admin.identity_server_base_url.rstrip('/')}/.well-known/openid-configuration"
        ),
        client_kwargs={"scope": " ".join(options.admin.scopes)},
    )
    app.state.oauth = oauth
    app.include_router(account_router, prefix="/account", tags=["account"])
    logger.info(f"Registered OIDC authentication against {options.admin.identity_server_base_url}")
    return app
