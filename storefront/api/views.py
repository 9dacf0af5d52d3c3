"""Page responses: the view context a template would be rendered with, as JSON."""

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse

from storefront.core.session import issue_csrf_token


def render(request: Request, view: str, status_code: int = 200, **context) -> JSONResponse:
    session = getattr(request.state, "session", None)
    body = {
        "view": view,
        "isAuthenticated": bool(session and session.get("isLoggedIn")),
        "csrfToken": issue_csrf_token(session) if session is not None else None,
        **context,
    }
    return JSONResponse(jsonable_encoder(body), status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)
