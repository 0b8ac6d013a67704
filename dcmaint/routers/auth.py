"""
Authentication Router

Provides endpoints for user authentication:
- Login (JWT token generation, first sign-in role assignment)
- Logout
- Current user info
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from dcmaint.config import get_settings
from dcmaint.core.auth import CurrentActiveUser
from dcmaint.core.database import DbSession
from dcmaint.core.security import create_access_token
from dcmaint.models.contracts.auth import LogoutResponse, TokenResponse, UserResponse
from dcmaint.models.enums import UserRole
from dcmaint.repositories.user import UserRepository
from dcmaint.services.accounts import authenticate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def set_auth_cookie(response: Response, access_token: str) -> None:
    """Set the HttpOnly access_token cookie used by browser clients."""
    settings = get_settings()
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    response: Response,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> TokenResponse:
    """
    Login with email and password.

    The first successful login assigns the user's role.

    Raises:
        HTTPException: If credentials are invalid or the account is inactive
    """
    user = await authenticate(db, form_data.username, form_data.password)

    if user is None:
        logger.info(f"Failed login for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    role = UserRole(user.role)
    access_token = create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name or "",
            "role": role.value,
        }
    )
    set_auth_cookie(response, access_token)

    logger.info(
        f"User logged in: {user.email}",
        extra={"user_id": str(user.id), "role": role.value},
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=get_settings().access_token_expire_minutes * 60,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Clear the authentication cookie."""
    response.delete_cookie(key="access_token", path="/")
    return LogoutResponse()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentActiveUser, db: DbSession) -> UserResponse:
    """Get the signed-in user's account."""
    user = await UserRepository(db).get_by_id(current_user.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
