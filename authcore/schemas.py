from __future__ import annotations
from collections.abc import Mapping
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from .core.config import settings

PASSWORD_MIN = settings.PASSWORD_MIN_LENGTH
CONFIRMATION_SUFFIX = "_confirmation"
# codes are stored in an INTEGER column
OTP_MAX = 2**31 - 1

MISMATCH = "The {field} confirmation does not match."


def _confirmed(value, info, field):
    if field in info.data and value != info.data[field]:
        raise PydanticCustomError("confirmed", MISMATCH, {"field": field.replace("_", " ")})
    return value


def confirmation_errors(body) -> Dict[str, List[str]]:
    """Mismatched ``<field>`` / ``<field>_confirmation`` pairs in a raw request body.

    The field validators only see the primary value once it has passed its own
    constraints; this covers the case where it has not.
    """
    errors: Dict[str, List[str]] = {}
    if not isinstance(body, Mapping):
        return errors
    for key, value in body.items():
        if not key.endswith(CONFIRMATION_SUFFIX):
            continue
        field = key[:-len(CONFIRMATION_SUFFIX)]
        if field in body and body[field] != value:
            errors[key] = [MISMATCH.format(field=field.replace("_", " "))]
    return errors


def field_errors(errors: Iterable[dict], body=None) -> Dict[str, List[str]]:
    """Collapse pydantic error dicts into ``{field: [message, ...]}``."""
    result: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        result.setdefault(field, []).append(error.get("msg", "Invalid value."))
    for field, messages in confirmation_errors(body).items():
        bucket = result.setdefault(field, [])
        bucket.extend([m for m in messages if m not in bucket])
    return result


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN)
    password_confirmation: str
    location: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value, info):
        return _confirmed(value, info, "password")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: int = Field(ge=0, le=OTP_MAX)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: int = Field(ge=0, le=OTP_MAX)
    password: str = Field(min_length=PASSWORD_MIN)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value, info):
        return _confirmed(value, info, "password")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=PASSWORD_MIN)
    new_password_confirmation: str

    @field_validator("new_password_confirmation")
    @classmethod
    def passwords_match(cls, value, info):
        return _confirmed(value, info, "new_password")


class ChangeProfileRequest(BaseModel):
    """Partial profile update; only fields present in the request are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    location: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    @field_validator("name", "email")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise PydanticCustomError("not_null", "The {field} field may not be null.",
                                      {"field": info.field_name})
        return value

    def changes(self) -> dict:
        """Supplied fields keyed by their ``User`` column names."""
        supplied = self.model_dump(exclude_unset=True)
        if "phone_number" in supplied:
            supplied["phone"] = supplied.pop("phone_number")
        return supplied


class User(BaseModel):
    id: int
    name: str
    email: str
    location: Optional[str] = None
    phone: Optional[str] = None
    verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Message(BaseModel):
    message: str


class Token(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    user: User


class VerifiedToken(Token):
    message: str


class ProfileUpdated(BaseModel):
    message: str
    user: User
