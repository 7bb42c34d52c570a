"""
Request localization and registration of the localized admin routes.

The culture of a request is taken from, in order: the ``culture`` query
parameter, the culture cookie, the Accept-Language header, and finally the
default culture. Only supported cultures are accepted; a regional culture
falls back to its language ("de-AT" -> "de").
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger

from idsadmin.constants import ADMINISTRATION_POLICY
from idsadmin.home import router as home_router
from idsadmin.identity.router import create_identity_router
from idsadmin.identity.schemas import IdentityModel
from idsadmin.idp.router import grants_router, router as configuration_router
from idsadmin.logs.router import router as logs_router
from idsadmin.options import AdminOptions, CultureConfiguration
from idsadmin.permissions import require_policy


def match_culture(candidate: Optional[str], supported: List[str]) -> Optional[str]:
    if not candidate:
        return None
    candidate = candidate.strip().replace("_", "-").lower()
    by_lower = {culture.lower(): culture for culture in supported}
    if candidate in by_lower:
        return by_lower[candidate]
    language = candidate.split("-", 1)[0]
    return by_lower.get(language)


def parse_accept_language(header: Optional[str]) -> List[str]:
    """
    Languages from an Accept-Language header, highest quality first.
    """
    if not header:
        return []
    weighted = []
    for index, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        language = pieces[0].strip()
        if not language or language == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            key, _, value = param.strip().partition("=")
            if key == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            weighted.append((-quality, index, language))
    return [language for _, _, language in sorted(weighted)]


def resolve_culture(request: Request, culture: CultureConfiguration) -> str:
    supported = culture.cultures
    for candidate in (
        request.query_params.get("culture"),
        request.cookies.get(culture.cookie_name),
        *parse_accept_language(request.headers.get("accept-language")),
    ):
        matched = match_culture(candidate, supported)
        if matched:
            return matched
    return match_culture(culture.default_culture, supported) or supported[0]


culture_router = APIRouter()


@culture_router.get("/culture/{culture}")
async def set_culture(request: Request, culture: str):
    """
    Remember the culture in a cookie and go back to the referring admin page.
    """
    culture_options = request.app.state.culture_options
    matched = match_culture(culture, culture_options.cultures)
    if not matched:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported culture: {culture}",
        )
    # Only redirect back within the admin UI.
    referer = request.headers.get("referer") or "/"
    base_url = str(request.base_url)
    if referer.startswith(base_url):
        referer = "/" + referer[len(base_url):]
    if not referer.startswith("/") or referer.startswith("//"):
        referer = "/"
    response = RedirectResponse(referer, status_code=status.HTTP_302_FOUND)
    response.set_cookie(culture_options.cookie_name, matched, samesite="lax")
    return response


def add_mvc_with_localization(app: FastAPI, options: AdminOptions, identity_model: IdentityModel) -> FastAPI:
    """
    Register request localization and the admin routes behind the administration policy.
    """
    culture_options = options.culture

    async def localize_request(request: Request, call_next):
        request.state.culture = resolve_culture(request, culture_options)
        response = await call_next(request)
        requested = match_culture(request.query_params.get("culture"), culture_options.cultures)
        if requested:
            response.set_cookie(culture_options.cookie_name, requested, samesite="lax")
        return response

    app.middleware("http")(localize_request)
    app.state.culture_options = culture_options

    admin_only = [Depends(require_policy(ADMINISTRATION_POLICY))]
    app.include_router(home_router, tags=["home"])
    app.include_router(culture_router, tags=["home"])
    app.include_router(
        create_identity_router(identity_model),
        prefix="/identity",
        tags=["identity"],
        dependencies=admin_only,
    )
    app.include_router(
        configuration_router, prefix="/configuration", tags=["configuration"], dependencies=admin_only
    )
    app.include_router(grants_router, prefix="/grants", tags=["grants"], dependencies=admin_only)
    app.include_router(logs_router, prefix="/logs", tags=["logs"], dependencies=admin_only)
    logger.info(
        f"Registered admin routes with cultures {', '.join(culture_options.cultures)} "
        f"(default {culture_options.default_culture})"
    )
    return app
