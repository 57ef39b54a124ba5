"""Pydantic schemas for HTML form submissions.

Each field validator applies its rules in order and stops at the first one
that fails, and pydantic reports fields in declaration order, so
``first_error`` yields the first failing rule of the whole form.
"""

import re

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from clubhouse.models.message import TEXT_MAX_LENGTH, TEXT_MIN_LENGTH, TITLE_MAX_LENGTH, TITLE_MIN_LENGTH

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])")
EMAIL_MAX_LENGTH = 255


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("form", message)


def first_error(exc: ValidationError) -> str:
    """Message of the first failing rule."""
    return exc.errors()[0]["msg"]


def _check_name(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise _fail(f"{label} is required")
    if not 2 <= len(value) <= 100:
        raise _fail(f"{label} must be between 2 and 100 characters")
    if not NAME_PATTERN.match(value):
        raise _fail(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return value


def _check_email(value: str) -> str:
    value = value.strip()
    if not value:
        raise _fail("Email is required")
    try:
        normalized = validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError:
        raise _fail("Must be a valid email address") from None
    normalized = normalized.lower()
    if len(normalized) > EMAIL_MAX_LENGTH:
        raise _fail("Email must not exceed 255 characters")
    return normalized


class SignupForm(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return _check_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return _check_name(value, "Last name")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise _fail("Password is required")
        if len(value) < 6:
            raise _fail("Password must be at least 6 characters long")
        if not PASSWORD_PATTERN.match(value):
            raise _fail("Password must contain at least one uppercase letter, one lowercase letter, and one number")
        return value

    @field_validator("confirm_password")
    @classmethod
    def check_confirm_password(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise _fail("Please confirm your password")
        password = info.data.get("password")
        if password is not None and value != password:
            raise _fail("Passwords do not match")
        return value


class LoginForm(BaseModel):
    email: str = ""
    password: str = ""

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise _fail("Password is required")
        return value


class JoinClubForm(BaseModel):
    passcode: str = ""

    @field_validator("passcode")
    @classmethod
    def check_passcode(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise _fail("Passcode is required")
        if not 3 <= len(value) <= 50:
            raise _fail("Invalid passcode format")
        return value


class MessageForm(BaseModel):
    title: str = ""
    text: str = ""

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise _fail("Title is required")
        if not TITLE_MIN_LENGTH <= len(value) <= TITLE_MAX_LENGTH:
            raise _fail(f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters")
        return value

    @field_validator("text")
    @classmethod
    def check_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise _fail("Message content is required")
        if not TEXT_MIN_LENGTH <= len(value) <= TEXT_MAX_LENGTH:
            raise _fail(f"Message must be between {TEXT_MIN_LENGTH} and {TEXT_MAX_LENGTH} characters")
        return value
