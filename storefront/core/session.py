"""Server-side sessions in Redis, keyed by a signed opaque cookie."""

import json
import secrets
from typing import Any, Optional

import redis
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from storefront.config import Settings
from storefront.core.security import (
    create_csrf_token,
    new_csrf_secret,
    sign_session_id,
    unsign_session_id,
)

SESSION_PREFIX = "session:"
CSRF_HEADER = "X-CSRF-Token"


class SessionStore:
    def __init__(self, client: redis.Redis, ttl_seconds: int):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def load(self, sid: str) -> Optional[dict[str, Any]]:
        value = self.client.get(f"{SESSION_PREFIX}{sid}")
        if value is None:
            return None
        return json.loads(value)

    def save(self, sid: str, data: dict[str, Any]) -> None:
        self.client.setex(f"{SESSION_PREFIX}{sid}", self.ttl_seconds, json.dumps(data))

    def delete(self, sid: str) -> None:
        self.client.delete(f"{SESSION_PREFIX}{sid}")


def build_session_store(settings: Settings) -> SessionStore:
    client = redis.from_url(settings.redis_url, decode_responses=True)
    return SessionStore(client, settings.session_ttl_seconds)


class SessionData(dict):
    """Dict that remembers whether it has to be written back."""

    def __init__(self, sid: Optional[str] = None, initial: Optional[dict] = None):
        super().__init__(initial or {})
        self.sid = sid
        self.stale_sid: Optional[str] = None
        self.modified = False
        self.invalidated = False

    def __setitem__(self, key, value):
        super().__setitem__(key, value)
        self.modified = True

    def __delitem__(self, key):
        super().__delitem__(key)
        self.modified = True

    def pop(self, key, *args):
        self.modified = True
        return super().pop(key, *args)

    def regenerate(self) -> None:
        """Issue a new id for the same data (called on login)."""
        if self.sid and not self.stale_sid:
            self.stale_sid = self.sid
        self.sid = None
        self.modified = True

    def invalidate(self) -> None:
        self.clear()
        self.invalidated = True


def flash(session: SessionData, key: str, message: str) -> None:
    messages = dict(session.get("flash") or {})
    messages.setdefault(key, []).append(message)
    session["flash"] = messages


def pop_flash(session: SessionData, key: str) -> Optional[str]:
    messages = dict(session.get("flash") or {})
    found = messages.pop(key, [])
    if found:
        session["flash"] = messages
        return found[0]
    return None


def issue_csrf_token(session: SessionData) -> str:
    secret = session.get("csrfSecret")
    if not secret:
        secret = new_csrf_secret()
        session["csrfSecret"] = secret
    return create_csrf_token(secret)


class ServerSessionMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, store: SessionStore, settings: Settings):
        super().__init__(app)
        self.store = store
        self.cookie_name = settings.session_cookie_name
        self.max_age = settings.session_ttl_seconds
        self.secure = settings.session_cookie_secure

    async def _load(self, request: Request) -> SessionData:
        cookie = request.cookies.get(self.cookie_name)
        sid = unsign_session_id(cookie) if cookie else None
        if sid:
            data = await run_in_threadpool(self.store.load, sid)
            if data is not None:
                return SessionData(sid, data)
        return SessionData()

    async def dispatch(self, request: Request, call_next):
        session = await self._load(request)
        request.state.session = session
        response = await call_next(request)

        if session.invalidated:
            if session.sid:
                await run_in_threadpool(self.store.delete, session.sid)
            # Continue as a new anonymous session under a new id
            session = SessionData()

        # A fresh token on every response; this also seeds the secret for new visitors
        response.headers[CSRF_HEADER] = issue_csrf_token(session)

        if session.stale_sid:
            await run_in_threadpool(self.store.delete, session.stale_sid)
        if not session.modified and session.sid is not None:
            return response
        if session.sid is None:
            session.sid = secrets.token_urlsafe(32)
        await run_in_threadpool(self.store.save, session.sid, dict(session))
        response.set_cookie(
            self.cookie_name,
            sign_session_id(session.sid),
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )
        return response
