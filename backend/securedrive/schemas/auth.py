"""
Authentication-related Pydantic schemas.
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from securedrive.models.user import UserRole


class RegisterRequest(BaseModel):
    """Request to create an account."""

    name: str = Field(..., min_length=1, max_length=100, description="Login name and owner identity")
    password: str = Field(..., min_length=8, max_length=72)
    role: UserRole = Field(default=UserRole.CLIENT)
    date_of_birth: Optional[date] = None
    address: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    """Credentials for password login."""

    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PasswordChangeRequest(BaseModel):
    """Request to change the caller's password."""

    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class ProfileUpdateRequest(BaseModel):
    """Update a client's date of birth and address."""

    date_of_birth: Optional[date] = None
    address: Optional[str] = Field(None, max_length=255)


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    name: str = Field(..., description="User name")
    role: str = Field(..., description="User role")


class UserInfoResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    role: UserRole
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    created_at: datetime
