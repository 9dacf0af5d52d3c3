"""FastAPI application entrypoint."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.router import api_router
from storefront.api.views import redirect, render
from storefront.config import Settings, get_settings
from storefront.core.exceptions import (
    CsrfError,
    ForbiddenError,
    LoginRequired,
    NotFoundError,
    UpstreamError,
)
from storefront.core.session import ServerSessionMiddleware, SessionStore, build_session_store
from storefront.services.email_service import Mailer
from storefront.services.payment_service import StripeGateway

logger = logging.getLogger(__name__)


def _error_page(request: Request, status_code: int) -> JSONResponse:
    return render(
        request,
        "500",
        status_code,
        pageTitle="Error!",
        path="/500",
    )


def _not_found_page(request: Request) -> JSONResponse:
    return render(request, "404", 404, pageTitle="Page Not Found", path="/404")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        return redirect("/login")

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return _not_found_page(request)

    @app.exception_handler(ForbiddenError)
    async def forbidden(request: Request, exc: ForbiddenError):
        return render(request, "403", 403, pageTitle="Forbidden", path="/403")

    @app.exception_handler(CsrfError)
    async def csrf_failed(request: Request, exc: CsrfError):
        return render(
            request, "403", 403, pageTitle="Forbidden", path="/403", errorMessage=exc.message
        )

    @app.exception_handler(UpstreamError)
    async def upstream_failed(request: Request, exc: UpstreamError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc)
        return _error_page(request, 502)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _not_found_page(request)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_page(request, 500)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = app.state.settings
    os.makedirs(os.path.join(settings.storage_root, "invoices"), exist_ok=True)
    os.makedirs(settings.images_dir, exist_ok=True)
    logger.info("Starting %s (env=%s)", settings.app_name, settings.environment)
    yield
    logger.info("Shutting down %s", settings.app_name)


def create_app(
    settings: Optional[Settings] = None,
    session_store: Optional[SessionStore] = None,
    mailer: Optional[Mailer] = None,
    payment_gateway: Optional[StripeGateway] = None,
) -> FastAPI:
    """Build the app; the session store, mailer and payment gateway are created once here."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Server-rendered storefront: catalog, cart, checkout, orders, invoices",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.mailer = mailer or Mailer(settings)
    app.state.payment_gateway = payment_gateway or StripeGateway(settings)
    app.add_middleware(
        ServerSessionMiddleware,
        store=session_store or build_session_store(settings),
        settings=settings,
    )
    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/500")
    def error_page(request: Request):
        return _error_page(request, 500)

    app.mount(
        "/images",
        StaticFiles(directory=settings.images_dir, check_dir=False),
        name="images",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
