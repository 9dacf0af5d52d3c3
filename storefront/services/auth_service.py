"""Auth: signup, login, forgot/reset password."""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.core.exceptions import (
    AuthError,
    InvalidOrExpiredToken,
    UpstreamError,
    ValidationError,
)
from storefront.core.security import dummy_verify, hash_password, verify_password
from storefront.db.models.user import User, empty_cart
from storefront.services.email_service import Mailer, send_password_reset_email

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "E-Mail exists already, please pick a different one."


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email.strip().lower()).first()


def signup(db: Session, email: str, password: str) -> User:
    """Create a user with a hashed password and an empty cart."""
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ValidationError(
            EMAIL_TAKEN,
            errors=[{"param": "email", "msg": EMAIL_TAKEN}],
        )
    user = User(
        id=uuid.uuid4(),
        email=email,
        password_hash=hash_password(password),
        cart=empty_cart(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def login(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials; one generic error otherwise."""
    user = get_user_by_email(db, email)
    if user is None:
        dummy_verify()
        raise AuthError()
    if not verify_password(password, user.password_hash):
        raise AuthError()
    return user


def request_password_reset(db: Session, mailer: Mailer, email: str, link_base: str) -> None:
    """Attach a fresh reset token to the user if the email exists. Never reveals whether it does."""
    user = get_user_by_email(db, email)
    if not user:
        return
    ttl_minutes = get_settings().reset_token_ttl_minutes
    token = secrets.token_hex(32)
    user.reset_token = token
    user.reset_token_expiration = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)
    db.commit()
    try:
        send_password_reset_email(
            mailer,
            user.email,
            f"{link_base.rstrip('/')}/reset/{token}",
            expires_minutes=ttl_minutes,
        )
    except UpstreamError:
        # Token is stored; the user can ask again
        logger.warning("Password reset email to %s failed", user.email, exc_info=True)


def get_reset_user(db: Session, token: str) -> User:
    user = (
        db.query(User)
        .filter(
            User.reset_token == token,
            User.reset_token_expiration > datetime.now(timezone.utc),
        )
        .first()
    )
    if not user:
        raise InvalidOrExpiredToken()
    return user


def reset_password(db: Session, user_id: str, token: str, new_password: str) -> User:
    """Consume token and set new password. Id, token and expiry must all match."""
    try:
        uid = uuid.UUID(str(user_id))
    except ValueError:
        raise InvalidOrExpiredToken()
    user = (
        db.query(User)
        .filter(
            User.id == uid,
            User.reset_token == token,
            User.reset_token_expiration > datetime.now(timezone.utc),
        )
        .first()
    )
    if not user:
        raise InvalidOrExpiredToken()
    user.password_hash = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expiration = None
    db.commit()
    return user
