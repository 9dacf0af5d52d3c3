"""FastAPI dependency injection: db session, http session, current user, collaborators."""

from collections.abc import Generator
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.core.exceptions import CsrfError, LoginRequired
from storefront.core.security import verify_csrf_token
from storefront.core.session import SessionData
from storefront.db.base import SessionLocal
from storefront.db.models.user import User
from storefront.services.catalog_service import parse_id
from storefront.services.email_service import Mailer
from storefront.services.payment_service import StripeGateway


def get_db() -> Generator[Session, None, None]:
    """Provide a DB session; close after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session(request: Request) -> SessionData:
    return request.state.session


def get_current_user_optional(
    db: Annotated[Session, Depends(get_db)],
    session: Annotated[SessionData, Depends(get_session)],
) -> Optional[User]:
    """Resolve the logged-in user from the session; None if anonymous or the user is gone."""
    if not session.get("isLoggedIn"):
        return None
    user_id = parse_id((session.get("user") or {}).get("id"))
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(
    user: Annotated[Optional[User], Depends(get_current_user_optional)],
) -> User:
    """Require authenticated user; anonymous visitors are sent to /login."""
    if user is None:
        raise LoginRequired("Not authenticated")
    return user


async def verify_csrf(
    request: Request,
    session: Annotated[SessionData, Depends(get_session)],
) -> None:
    """Reject state-changing requests without a token issued for this session."""
    token = request.headers.get("csrf-token") or request.headers.get("x-csrf-token")
    if not token:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            token = form.get("_csrf")
    if not verify_csrf_token(session.get("csrfSecret"), token):
        raise CsrfError()


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_payment_gateway(request: Request) -> StripeGateway:
    return request.app.state.payment_gateway


DbSession = Annotated[Session, Depends(get_db)]
HttpSession = Annotated[SessionData, Depends(get_session)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserOptional = Annotated[Optional[User], Depends(get_current_user_optional)]
MailerDep = Annotated[Mailer, Depends(get_mailer)]
PaymentGatewayDep = Annotated[StripeGateway, Depends(get_payment_gateway)]
CsrfProtected = Depends(verify_csrf)
