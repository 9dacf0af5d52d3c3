"""Password hashing, session cookie signing and anti-forgery tokens."""

import hashlib
import hmac
import secrets
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.config import get_settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def dummy_verify() -> None:
    """Spend the same effort as a real verification when no user matched."""
    pwd_context.dummy_verify()


def sign_session_id(sid: str) -> str:
    settings = get_settings()
    return jwt.encode(
        {"sid": sid, "type": "session"},
        settings.secret_key,
        algorithm=settings.algorithm,
    )


def unsign_session_id(cookie: str) -> Optional[str]:
    settings = get_settings()
    try:
        payload = jwt.decode(cookie, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    return payload.get("sid")


def new_csrf_secret() -> str:
    return secrets.token_urlsafe(18)


def _csrf_digest(secret: str, salt: str) -> str:
    return hmac.new(secret.encode(), salt.encode(), hashlib.sha256).hexdigest()


def create_csrf_token(secret: str) -> str:
    salt = secrets.token_hex(8)
    return f"{salt}-{_csrf_digest(secret, salt)}"


def verify_csrf_token(secret: Optional[str], token: Optional[str]) -> bool:
    if not secret or not token:
        return False
    salt, _, digest = token.partition("-")
    if not salt or not digest:
        return False
    return hmac.compare_digest(digest, _csrf_digest(secret, salt))
