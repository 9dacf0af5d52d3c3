"""Error taxonomy raised by services and mapped to responses in main.create_app."""

from typing import Any, Optional

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_RESET_TOKEN = "Password reset link is invalid or has expired."


class StorefrontError(Exception):
    """Base class for errors the web layer knows how to render."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Bad or missing input; rendered inline on the originating form."""

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, str]]] = None,
        old_input: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.old_input = old_input or {}


class EmptyCartError(ValidationError):
    def __init__(self):
        super().__init__("Your cart is empty.")


class AuthError(StorefrontError):
    def __init__(self, message: str = INVALID_CREDENTIALS):
        super().__init__(message)


class InvalidOrExpiredToken(AuthError):
    def __init__(self):
        super().__init__(INVALID_RESET_TOKEN)


class NotFoundError(StorefrontError):
    pass


class ForbiddenError(StorefrontError):
    pass


class UpstreamError(StorefrontError):
    """Payment or mail provider failure."""


class LoginRequired(StorefrontError):
    pass


class CsrfError(StorefrontError):
    def __init__(self):
        super().__init__("Invalid CSRF token")
