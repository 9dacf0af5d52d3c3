"""Auth form schemas."""

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationInfo, field_validator


def _normalize_email(value: str, message: str) -> str:
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValueError(message)


def _check_password(value: str, message: str) -> str:
    value = value.strip()
    if len(value) < 5 or not value.isalnum() or not value.isascii():
        raise ValueError(message)
    return value


class LoginForm(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, v: str) -> str:
        return _normalize_email(v, "Please enter a valid email address.")

    @field_validator("password")
    @classmethod
    def password_is_valid(cls, v: str) -> str:
        return _check_password(v, "Password has to be valid.")


class SignupForm(BaseModel):
    email: str
    password: str
    confirmPassword: str

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, v: str) -> str:
        return _normalize_email(v, "Please enter a valid email.")

    @field_validator("password")
    @classmethod
    def password_is_valid(cls, v: str) -> str:
        return _check_password(
            v, "Please enter a password with only numbers and text and at least 5 characters."
        )

    @field_validator("confirmPassword")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if v != info.data.get("password"):
            raise ValueError("Passwords have to match!")
        return v


class ResetRequestForm(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, v: str) -> str:
        return _normalize_email(v, "Please enter a valid email.")


class NewPasswordForm(BaseModel):
    userId: str
    passwordToken: str
    password: str

    @field_validator("password")
    @classmethod
    def password_is_valid(cls, v: str) -> str:
        return _check_password(
            v, "Please enter a password with only numbers and text and at least 5 characters."
        )
