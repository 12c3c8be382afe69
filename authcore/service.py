"""Auth service: registration, login and the OTP verification/reset flows.

Every public operation returns a :class:`~authcore.errors.Result`. Failures a
caller can act on come back as one of the :mod:`authcore.errors` kinds;
store, notifier and hashing failures come back as
:class:`~authcore.errors.InternalError` after being logged with traceback.
"""
import functools
import logging
from datetime import datetime, timedelta, timezone

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .core.security import TokenIssuer, get_password_hash, verify_password
from .errors import (
    AuthenticationError, AuthError, AuthorizationError, HashingError, InternalError,
    NotFoundError, NotifierError, Result, StateMismatchError, ValidationError,
)
from .utils import Notifier, generate_otp

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "The email has already been taken."


@functools.lru_cache(maxsize=1)
def _dummy_hash():
    return get_password_hash("authcore-timing-equaliser")


def operation(func):
    """Run ``func`` as one unit of work and wrap its outcome in a Result."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return Result.success(func(self, *args, **kwargs))
        except AuthError as e:
            self.db.rollback()
            return Result.failure(e)
        except (SQLAlchemyError, NotifierError, HashingError):
            logger.exception("%s failed", func.__name__)
            self.db.rollback()
            return Result.failure(InternalError())
        except Exception:
            self.db.rollback()
            raise

    return wrapper


def parse(schema, payload):
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload or {})
    except pydantic.ValidationError as e:
        raise ValidationError(schemas.field_errors(e.errors(), payload))


class AuthService:

    def __init__(self, db: Session, notifier: Notifier, tokens: TokenIssuer,
                 otp_ttl_minutes=None):
        self.db = db
        self.notifier = notifier
        self.tokens = tokens
        self.otp_ttl_minutes = otp_ttl_minutes

    def _otp_not_before(self):
        if not self.otp_ttl_minutes:
            return None
        return datetime.now(timezone.utc) - timedelta(minutes=self.otp_ttl_minutes)

    def _deliver(self, address, code):
        if not self.notifier.send_otp(address, code):
            raise NotifierError(f"could not deliver code to {address}")

    def _token_for(self, user: models.User) -> dict:
        return {
            "access_token": self.tokens.issue(user.id),
            "token_type": "Bearer",
            "user": schemas.User.model_validate(user),
        }

    def _reload(self, user: models.User) -> models.User:
        current = crud.get_user(self.db, user.id)
        if current is None:
            raise AuthenticationError("Could not validate credentials")
        return current

    @operation
    def register(self, payload) -> schemas.Message:
        data = parse(schemas.RegisterRequest, payload)
        if crud.email_taken(self.db, data.email):
            raise ValidationError.for_field("email", EMAIL_TAKEN)

        otp = generate_otp()
        try:
            user = crud.create_user(
                self.db,
                name=data.name,
                email=data.email,
                password=get_password_hash(data.password),
                location=data.location,
                phone=data.phone_number,
                otp=otp,
            )
        except crud.EmailTaken:
            raise ValidationError.for_field("email", EMAIL_TAKEN)

        # the account is only committed once the code is on its way
        self._deliver(user.email, otp)
        self.db.commit()
        logger.info("Registered user %s", user.id)
        return schemas.Message(message=f"OTP sent to email {user.email}")

    @operation
    def login(self, payload) -> schemas.Token:
        data = parse(schemas.LoginRequest, payload)
        user = crud.get_user_by_email(self.db, data.email)
        if user is None:
            verify_password(data.password, _dummy_hash())
            raise AuthenticationError()
        if not verify_password(data.password, user.password):
            logger.debug("Bad password for user %s", user.id)
            raise AuthenticationError()
        if not user.verified:
            raise AuthorizationError()
        return schemas.Token(**self._token_for(user))

    @operation
    def verify_otp(self, payload) -> schemas.VerifiedToken:
        data = parse(schemas.VerifyOtpRequest, payload)
        consumed = crud.consume_otp(
            self.db, data.email, data.otp, not_before=self._otp_not_before(), verified=True
        )
        if not consumed:
            raise StateMismatchError()
        self.db.commit()

        user = crud.get_user_by_email(self.db, data.email)
        logger.info("Verified user %s", user.id)
        return schemas.VerifiedToken(message="Email verified successfully.", **self._token_for(user))

    @operation
    def forgot_password(self, payload) -> schemas.Message:
        data = parse(schemas.ForgotPasswordRequest, payload)
        user = crud.get_user_by_email(self.db, data.email)
        if user is None:
            raise NotFoundError()

        otp = generate_otp()
        crud.set_otp(self.db, user.id, otp)
        self._deliver(user.email, otp)
        self.db.commit()
        logger.info("Issued password reset code for user %s", user.id)
        return schemas.Message(message=f"OTP sent to email {user.email}")

    @operation
    def reset_password(self, payload) -> schemas.Message:
        data = parse(schemas.ResetPasswordRequest, payload)
        consumed = crud.consume_otp(
            self.db,
            data.email,
            data.otp,
            not_before=self._otp_not_before(),
            password=get_password_hash(data.password),
        )
        if not consumed:
            raise StateMismatchError()
        self.db.commit()
        return schemas.Message(message="Password reset successfully.")

    @operation
    def change_password(self, user: models.User, payload) -> schemas.Message:
        data = parse(schemas.ChangePasswordRequest, payload)
        user = self._reload(user)
        current = user.password
        if not verify_password(data.current_password, current):
            raise AuthenticationError("Current password is incorrect.")
        # a concurrent change since the check above makes the swap a no-op
        if not crud.swap_password(self.db, user.id, current, get_password_hash(data.new_password)):
            raise AuthenticationError("Current password is incorrect.")
        self.db.commit()
        logger.info("Changed password for user %s", user.id)
        return schemas.Message(message="Password changed successfully.")

    @operation
    def change_profile(self, user: models.User, payload) -> schemas.ProfileUpdated:
        data = parse(schemas.ChangeProfileRequest, payload)
        user = self._reload(user)
        changes = data.changes()
        if "email" in changes and crud.email_taken(self.db, changes["email"], exclude_id=user.id):
            raise ValidationError.for_field("email", EMAIL_TAKEN)

        for field, value in changes.items():
            setattr(user, field, value)
        try:
            crud.save(self.db, user)
        except crud.EmailTaken:
            raise ValidationError.for_field("email", EMAIL_TAKEN)
        return schemas.ProfileUpdated(
            message="Profile updated successfully.", user=schemas.User.model_validate(user)
        )

    @operation
    def current_user(self, token: str) -> models.User:
        """Resolve a bearer token to the user it was issued for."""
        user = crud.get_user(self.db, self.tokens.resolve(token))
        if user is None:
            raise AuthenticationError("Could not validate credentials")
        return user
