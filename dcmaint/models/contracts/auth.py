"""
Authentication and user contracts (API request/response schemas).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dcmaint.models.enums import CompanyType, UserRole


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class LogoutResponse(BaseModel):
    """Logout response model."""

    message: str = "Logged out"


class UserResponse(BaseModel):
    """User response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None
    role: UserRole | None = None
    company_type: CompanyType = CompanyType.NEUTRA
    is_active: bool = True
    first_login_at: datetime | None = None
    last_login: datetime | None = None


class UserList(BaseModel):
    """List of users response."""

    items: list[UserResponse]
    total: int


class UserRoleUpdate(BaseModel):
    """Explicit role change made by an admin."""

    role: UserRole


class UserCreate(BaseModel):
    """
    Account created by an admin.

    No role is taken here: it is assigned at the account's first sign-in.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=255)
    company_type: CompanyType = CompanyType.NEUTRA


class UserUpdate(BaseModel):
    """Admin changes to an account. Omitted fields stay as they are."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, max_length=255)
    company_type: CompanyType | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=128)
