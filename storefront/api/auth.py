"""Auth pages: login, signup, logout, password reset."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Form, Request

from storefront.api.views import redirect, render
from storefront.core.exceptions import AuthError, InvalidOrExpiredToken, ValidationError
from storefront.core.session import flash, pop_flash
from storefront.dependencies import CsrfProtected, DbSession, HttpSession, MailerDep
from storefront.schemas.auth import LoginForm, NewPasswordForm, ResetRequestForm, SignupForm
from storefront.schemas.common import parse_form
from storefront.services.auth_service import (
    get_reset_user,
    login as do_login,
    request_password_reset,
    reset_password as do_reset_password,
    signup as do_signup,
)
from storefront.services.email_service import send_signup_confirmation

router = APIRouter(tags=["auth"])

RESET_REQUESTED = "If an account exists for that e-mail, a reset link is on its way."
PASSWORD_UPDATED = "Your password has been updated. Please log in."


def _login_page(request: Request, status_code: int = 200, **context):
    context.setdefault("oldInput", {"email": "", "password": ""})
    context.setdefault("validationErrors", [])
    return render(request, "auth/login", status_code, pageTitle="Login", path="/login", **context)


def _signup_page(request: Request, status_code: int = 200, **context):
    context.setdefault("oldInput", {"email": "", "password": "", "confirmPassword": ""})
    context.setdefault("validationErrors", [])
    return render(request, "auth/signup", status_code, pageTitle="Signup", path="/signup", **context)


@router.get("/login")
def login_page(request: Request, session: HttpSession):
    return _login_page(
        request,
        errorMessage=pop_flash(session, "error"),
        message=pop_flash(session, "info"),
    )


@router.post("/login", dependencies=[CsrfProtected])
def login(
    request: Request,
    db: DbSession,
    session: HttpSession,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
):
    data = {"email": email, "password": password}
    try:
        form = parse_form(LoginForm, data)
        user = do_login(db, form.email, form.password)
    except ValidationError as e:
        return _login_page(
            request, 422, errorMessage=e.message, oldInput=data, validationErrors=e.errors
        )
    except AuthError as e:
        return _login_page(request, 422, errorMessage=e.message, oldInput=data)
    session.regenerate()
    session["isLoggedIn"] = True
    session["user"] = {"id": str(user.id), "email": user.email}
    return redirect("/")


@router.post("/logout", dependencies=[CsrfProtected])
def logout(session: HttpSession):
    session.invalidate()
    return redirect("/")


@router.get("/signup")
def signup_page(request: Request, session: HttpSession):
    return _signup_page(request, errorMessage=pop_flash(session, "error"))


@router.post("/signup", dependencies=[CsrfProtected])
def signup(
    request: Request,
    db: DbSession,
    mailer: MailerDep,
    background_tasks: BackgroundTasks,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    confirmPassword: Annotated[str, Form()] = "",
):
    data = {"email": email, "password": password, "confirmPassword": confirmPassword}
    try:
        form = parse_form(SignupForm, data)
        user = do_signup(db, form.email, form.password)
    except ValidationError as e:
        return _signup_page(
            request, 422, errorMessage=e.message, oldInput=data, validationErrors=e.errors
        )
    # Runs after the redirect is sent; a mail failure never undoes the signup
    background_tasks.add_task(send_signup_confirmation, mailer, user.email)
    return redirect("/login")


@router.get("/reset")
def reset_page(request: Request, session: HttpSession):
    return render(
        request,
        "auth/reset",
        pageTitle="Reset Password",
        path="/reset",
        errorMessage=pop_flash(session, "error"),
    )


@router.post("/reset", dependencies=[CsrfProtected])
def reset(
    request: Request,
    db: DbSession,
    session: HttpSession,
    mailer: MailerDep,
    email: Annotated[str, Form()] = "",
):
    """Same answer whether or not the address belongs to an account."""
    try:
        form = parse_form(ResetRequestForm, {"email": email})
    except ValidationError as e:
        return render(
            request,
            "auth/reset",
            422,
            pageTitle="Reset Password",
            path="/reset",
            errorMessage=e.message,
            oldInput=e.old_input,
        )
    request_password_reset(db, mailer, form.email, str(request.base_url))
    flash(session, "info", RESET_REQUESTED)
    return redirect("/")


@router.get("/reset/{token}")
def new_password_page(token: str, request: Request, db: DbSession, session: HttpSession):
    try:
        user = get_reset_user(db, token)
    except InvalidOrExpiredToken as e:
        flash(session, "error", e.message)
        return redirect("/reset")
    return render(
        request,
        "auth/new-password",
        pageTitle="New Password",
        path="/new-password",
        errorMessage=pop_flash(session, "error"),
        userId=str(user.id),
        passwordToken=token,
    )


@router.post("/new-password", dependencies=[CsrfProtected])
def new_password(
    request: Request,
    db: DbSession,
    session: HttpSession,
    userId: Annotated[str, Form()] = "",
    passwordToken: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
):
    data = {"userId": userId, "passwordToken": passwordToken, "password": password}
    try:
        form = parse_form(NewPasswordForm, data)
    except ValidationError as e:
        return render(
            request,
            "auth/new-password",
            422,
            pageTitle="New Password",
            path="/new-password",
            errorMessage=e.message,
            userId=userId,
            passwordToken=passwordToken,
        )
    try:
        do_reset_password(db, form.userId, form.passwordToken, form.password)
    except InvalidOrExpiredToken as e:
        flash(session, "error", e.message)
        return redirect("/reset")
    flash(session, "info", PASSWORD_UPDATED)
    return redirect("/login")
