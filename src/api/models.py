"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field
from pydantic.networks import validate_email


def _check_email(value: str) -> str:
    """
    Validate email syntax but return the address exactly as sent.

    Emails are case-sensitive keys, so the normalized form produced by
    the validator is never stored.
    """
    _, normalized = validate_email(value)
    if normalized.casefold() != value.casefold():
        raise ValueError("value is not a plain email address")
    return value


RawEmail = Annotated[str, AfterValidator(_check_email)]


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: RawEmail
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")


class LoginRequest(BaseModel):
    """Request model for login; identifier is a username or an email."""

    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response model for successful login."""

    token: str
    token_type: str = "Bearer"
    expires_at: datetime
    username: str
    roles: list[str]


class VerifyCodeRequest(BaseModel):
    """Request model for code verification."""

    email: RawEmail
    code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit verification code",
    )


class MessageResponse(BaseModel):
    """Generic human-readable confirmation."""

    message: str


class ProfileResponse(BaseModel):
    """Account profile without credential material."""

    username: str
    email: str
    roles: list[str]
    enabled: bool
    verified: bool
    created_at: datetime


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
