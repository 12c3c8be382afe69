from __future__ import annotations
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError

from .config import settings
from ..errors import AuthenticationError, HashingError

logger = logging.getLogger(__name__)

password_hash = PasswordHash.recommended()


def verify_password(plain_password, password):
    """Check a plaintext password against a stored digest.

    A digest no configured hasher recognises verifies as ``False``.
    """
    if not password:
        return False
    try:
        return password_hash.verify(plain_password, password)
    except UnknownHashError:
        logger.warning("Stored credential uses an unknown hash format")
        return False
    except Exception as e:
        raise HashingError(str(e)) from e


def get_password_hash(password):
    try:
        return password_hash.hash(password)
    except Exception as e:
        raise HashingError(str(e)) from e


class TokenIssuer:
    """Mints and resolves signed bearer tokens bound to a user id."""

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 expire_minutes: Optional[int] = None):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "jti": secrets.token_urlsafe(16),
            "iat": int(now.timestamp()),
        }
        if self.expire_minutes:
            expire = now + timedelta(minutes=self.expire_minutes)
            to_encode.update({"exp": int(expire.timestamp())})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def resolve(self, token: str) -> int:
        """Return the user id a token was issued for.

        Raises :class:`AuthenticationError` for forged, malformed or expired tokens.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise AuthenticationError("Could not validate credentials")
        subject = payload.get("sub")
        if subject is None or not str(subject).isdigit():
            raise AuthenticationError("Could not validate credentials")
        return int(subject)


def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
