from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import settings
from .security import TokenIssuer, get_token_issuer
from ..database import get_db
from ..errors import AuthenticationError
from ..service import AuthService
from ..utils import Notifier, get_notifier

AUTH_COOKIE = "token"


async def get_token_from_cookie_or_header(request: Request):
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip()

    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token.replace("Bearer ", "")

    raise AuthenticationError("Not authenticated")


def get_auth_service(
        db: Session = Depends(get_db),
        notifier: Notifier = Depends(get_notifier),
        tokens: TokenIssuer = Depends(get_token_issuer),
):
    return AuthService(db, notifier, tokens, otp_ttl_minutes=settings.OTP_TTL_MINUTES)


def get_current_user(
        token: str = Depends(get_token_from_cookie_or_header),
        service: AuthService = Depends(get_auth_service),
):
    return service.current_user(token).unwrap()
