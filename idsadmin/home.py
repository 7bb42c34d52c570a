"""
Dashboard of the admin UI.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from idsadmin.authentication import AdminPrincipal
from idsadmin.permissions import require_policy
from idsadmin.templater import home_page

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, principal: AdminPrincipal = Depends(require_policy())):
    culture_options = request.app.state.culture_options
    return home_page(
        user_name=principal.name,
        cultures=culture_options.cultures,
        culture=getattr(request.state, "culture", None),
    )
