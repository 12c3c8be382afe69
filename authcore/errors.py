# authcore/errors.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class AuthError(Exception):
    """Base of every failure an auth operation can report to its caller."""

    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"status": "error", "message": self.message}


class ValidationError(AuthError):
    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def to_dict(self) -> dict:
        return dict(self.errors)


class AuthenticationError(AuthError):
    status_code = 401
    default_message = "Invalid email or password."


class AuthorizationError(AuthError):
    status_code = 403
    default_message = "Email is not verified."


class NotFoundError(AuthError):
    status_code = 404
    default_message = "Email does not exist."


class StateMismatchError(AuthError):
    status_code = 400
    default_message = "Invalid OTP or email."


class InternalError(AuthError):
    status_code = 500
    default_message = "An internal error occurred. Please try again later."


class NotifierError(Exception):
    """Raised when a one-time code could not be delivered."""


class HashingError(Exception):
    """Raised when the password hasher is unusable."""


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
