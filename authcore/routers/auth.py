from fastapi import APIRouter, Depends, Response

from .. import models, schemas
from ..core.config import settings
from ..core.dependencies import AUTH_COOKIE, get_auth_service, get_current_user
from ..service import AuthService

router = APIRouter()


def set_auth_cookie(response: Response, access_token: str):
    max_age = None
    if settings.ACCESS_TOKEN_EXPIRE_MINUTES:
        max_age = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=AUTH_COOKIE,
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=max_age,
        samesite="lax",
        secure=settings.AUTH_COOKIE_SECURE
    )


@router.post("/register", response_model=schemas.Message)
def register(data: schemas.RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return service.register(data).unwrap()


@router.post("/login", response_model=schemas.Token)
def login(
        response: Response,
        data: schemas.LoginRequest,
        service: AuthService = Depends(get_auth_service)
):
    token = service.login(data).unwrap()
    set_auth_cookie(response, token.access_token)
    return token


@router.post("/verify-otp", response_model=schemas.VerifiedToken)
def verify_otp(
        response: Response,
        data: schemas.VerifyOtpRequest,
        service: AuthService = Depends(get_auth_service)
):
    token = service.verify_otp(data).unwrap()
    set_auth_cookie(response, token.access_token)
    return token


@router.post("/forgot-password", response_model=schemas.Message)
def forgot_password(data: schemas.ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return service.forgot_password(data).unwrap()


@router.post("/reset-password", response_model=schemas.Message)
def reset_password(data: schemas.ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    return service.reset_password(data).unwrap()


@router.post("/change-password", response_model=schemas.Message)
def change_password(
        data: schemas.ChangePasswordRequest,
        current_user: models.User = Depends(get_current_user),
        service: AuthService = Depends(get_auth_service)
):
    return service.change_password(current_user, data).unwrap()


@router.post("/change-profile", response_model=schemas.ProfileUpdated)
def change_profile(
        data: schemas.ChangeProfileRequest,
        current_user: models.User = Depends(get_current_user),
        service: AuthService = Depends(get_auth_service)
):
    return service.change_profile(current_user, data).unwrap()


@router.get("/me", response_model=schemas.User)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=schemas.Message)
def logout(response: Response):
    response.delete_cookie(key=AUTH_COOKIE)
    return {"message": "Logged out successfully"}
