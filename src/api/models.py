"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, EmailStr, Field

from domain.model.user import User


class RegisterRequest(BaseModel):
    """Request model for local account registration."""
    email: EmailStr
    password: str
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)


class LoginRequest(BaseModel):
    """Request model for email/password login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str


class UserResponse(BaseModel):
    """Public view of a user record (never includes the password hash)."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: Literal["buyer", "admin"]
    is_active: bool
    is_email_verified: bool
    avatar: Optional[str] = None
    has_password: bool = Field(..., description="Account supports email/password login")
    google_linked: bool = Field(..., description="Account is linked to a Google identity")
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            is_active=user.is_active,
            is_email_verified=user.is_email_verified,
            avatar=user.avatar,
            has_password=user.has_local_credential,
            google_linked=user.provider_id is not None,
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    """Response model for register/login. The session itself travels in a cookie."""
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class UserStatusUpdate(BaseModel):
    """Admin change to a user's account status or role."""
    is_active: Optional[bool] = None
    role: Optional[Literal["buyer", "admin"]] = None


class UserListResponse(BaseModel):
    """Paginated admin listing of user records."""
    users: list[UserResponse]
    total: int
    skip: int
    limit: int


class ProfileUpdateRequest(BaseModel):
    """Self-service change to the caller's display fields."""
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    avatar: Optional[str] = Field(None, max_length=2048)
