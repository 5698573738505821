"""
Authentication endpoints

These handlers are plain `def` so argon2 hashing runs in the threadpool
instead of blocking the event loop.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, get_db
from app.core.errors import UnauthorizedError
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.user import UserOut
from app.services import auth_service

router = APIRouter()

REFRESH_COOKIE_PATH = "/api/v1/auth"


def _client_context(request: Request):
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None
    return user_agent, ip_address


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=settings.COOKIE_DOMAIN,
        path=REFRESH_COOKIE_PATH,
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=settings.COOKIE_DOMAIN,
        path=REFRESH_COOKIE_PATH,
    )


def _token_response(tokens: auth_service.TokenPair) -> dict:
    return {
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": tokens.token_type,
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def _cookie_or_body(request: Request, body_token: Optional[str]) -> Optional[str]:
    # An explicit token in the body wins over the cookie
    return body_token or request.cookies.get(settings.REFRESH_COOKIE_NAME)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """
    Self-register a new account with the employee role
    """
    user = auth_service.register(db, data)
    return auth_service.get_principal(db, user.id)


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Authenticate and return an access token plus a refresh token

    The refresh token is also set as an httpOnly cookie scoped to /api/v1/auth.
    """
    user_agent, ip_address = _client_context(request)
    result = auth_service.login(db, login_data.email, login_data.password, user_agent, ip_address)
    _set_refresh_cookie(response, result.tokens.refresh_token)
    payload = _token_response(result.tokens)
    payload["user"] = auth_service.get_principal(db, result.user.id)
    return payload


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = Body(None),
    db: Session = Depends(get_db),
):
    """
    Rotate the refresh token (cookie or body) and issue a new access token
    """
    raw_token = _cookie_or_body(request, body.refresh_token if body else None)
    if not raw_token:
        raise UnauthorizedError("Refresh token not provided")

    user_agent, ip_address = _client_context(request)
    tokens = auth_service.refresh(db, raw_token, user_agent, ip_address)
    _set_refresh_cookie(response, tokens.refresh_token)
    return _token_response(tokens)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    body: Optional[LogoutRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    End the session identified by the refresh token, or every session when
    no token is sent
    """
    raw_token = _cookie_or_body(request, body.refresh_token if body else None)
    auth_service.logout(db, current_user.id, raw_token)
    _clear_refresh_cookie(response)
    return {"message": "Logout successful"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user"""
    return current_user


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Change the password; every refresh token of the user is revoked
    """
    auth_service.change_password(db, current_user.id, data.current_password, data.new_password)
    _clear_refresh_cookie(response)
    return {"message": "Password changed successfully"}
