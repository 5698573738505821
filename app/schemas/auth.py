"""
Authentication schemas
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.user import UserOut


class RegisterRequest(BaseModel):
    """Self-registration request schema"""
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Password (policy checked by the service)")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")


class LoginRequest(BaseModel):
    """Login request schema"""
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Password")


class RefreshRequest(BaseModel):
    """Refresh token in the body, for clients that cannot use the cookie"""
    refresh_token: Optional[str] = Field(None, description="Refresh token")


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = Field(
        None,
        description="Token of the session to end; omit (and send no cookie) to end all sessions",
    )


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=1, description="New password")


class TokenResponse(BaseModel):
    """Token response schema"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class LoginResponse(TokenResponse):
    user: UserOut
