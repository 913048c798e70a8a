"""
User schemas for request/response validation.

Request schemas never declare an ``id`` field: identifiers are assigned by
the system, so an ``id`` sent by a client is dropped during parsing.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from bvs.services.users.enums import UserStatus

PASSWORD_MIN_LENGTH = 12
USERNAME_MAX_LENGTH = 25

_USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")
_UPPERCASE_PATTERN = re.compile(r"[A-Z]")
_DIGIT_PATTERN = re.compile(r"[0-9]")
_SPECIAL_CHAR_PATTERN = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def validate_password_strength(value: str) -> str:
    """
    Validate password meets security requirements.

    Requirements:
    - At least 12 characters
    - At least one uppercase letter
    - At least one digit
    - At least one special character

    Raises:
        ValueError: Describing the first unmet requirement
    """
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    if not _UPPERCASE_PATTERN.search(value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not _DIGIT_PATTERN.search(value):
        raise ValueError("Password must contain at least one digit")
    if not _SPECIAL_CHAR_PATTERN.search(value):
        raise ValueError(
            "Password must contain at least one special character "
            "(!@#$%^&*()_+-=[]{};':\"\\|,.<>/?)"
        )
    return value


def validate_username(value: str) -> str:
    if not _USERNAME_PATTERN.match(value):
        raise ValueError("Username must contain only alphanumeric characters")
    return value


class UserCreate(BaseModel):
    """Schema for user creation requests."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    username: str = Field(
        ...,
        min_length=1,
        max_length=USERNAME_MAX_LENGTH,
        description="Alphanumeric login name",
        examples=["jdoe42"],
    )
    email: EmailStr = Field(
        ...,
        description="User email address",
        examples=["jdoe@example.com"],
    )
    password: str = Field(
        ...,
        max_length=128,
        description="Password (min 12 chars, uppercase, digit, special character)",
        examples=["Sup3r$ecretPass"],
    )
    first_name: Optional[str] = Field(None, max_length=50, examples=["John"])
    last_name: Optional[str] = Field(None, max_length=50, examples=["Doe"])

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        return validate_username(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)


class UserUpdate(BaseModel):
    """
    Schema for user update requests.

    The password is optional; when present it must satisfy the same
    strength rules as on creation.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LENGTH)
    email: EmailStr
    password: Optional[str] = Field(None, max_length=128)
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        return validate_username(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validate_password_strength(value)


class UserResponse(BaseModel):
    """Public representation of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: UserStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserStatusCounts(BaseModel):
    """Number of users per status."""

    counts: dict[UserStatus, int]
    total: int


class LoginRequest(BaseModel):
    """Credential check request."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    """Result of a successful credential check."""

    authenticated: bool = True
    user: UserResponse
