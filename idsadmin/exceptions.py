"""
Admin UI errors and the exception handlers ("exception filters") for them.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger

from idsadmin.options import AdminOptions
from idsadmin.templater import error_page


class AdminUIError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, error_key: str = ""):
        super().__init__(message)
        self.message = message
        self.error_key = error_key or type(self).__name__


class UserFriendlyError(AdminUIError):
    """An error whose message is safe to show to the admin user as-is."""


class NotFoundError(AdminUIError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AdminUIError):
    status_code = status.HTTP_409_CONFLICT


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept and "application/json" not in accept


def _error_response(request: Request, status_code: int, detail: str, error_key: str):
    if _wants_html(request):
        culture = getattr(request.state, "culture", None)
        return HTMLResponse(
            error_page(detail, error_key=error_key, status_code=status_code, culture=culture),
            status_code=status_code,
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_key": error_key},
    )


def add_exception_filters(app: FastAPI, options: AdminOptions) -> FastAPI:
    """
    Register handlers translating admin errors into responses.
    """
    show_details = options.admin.show_exception_details

    async def admin_error_handler(request: Request, exc: AdminUIError):
        logger.warning(
            f"{request.method} {request.url.path} failed ({exc.status_code}): "
            f"{exc.error_key}: {exc.message}"
        )
        return _error_response(request, exc.status_code, exc.message, exc.error_key)

    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception in {request.method} {request.url.path}: {exc}")
        detail = f"{type(exc).__name__}: {exc}" if show_details else "Internal server error"
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, detail, "InternalServerError"
        )

    app.add_exception_handler(AdminUIError, admin_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    logger.debug(f"Registered exception filters (show_exception_details={show_details})")
    return app
