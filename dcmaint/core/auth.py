"""
Authentication and Authorization

Provides FastAPI dependencies for authentication and authorization.
Supports JWT bearer tokens and the access_token cookie set at login.

Tokens identify the user. For HTTP routes, whether the account is active and
which role it holds are read from the database on every request, so an
admin's changes apply immediately rather than when the token expires.
"""

import logging
from dataclasses import dataclass, replace
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dcmaint.core.database import DbSession
from dcmaint.core.security import decode_token
from dcmaint.models.enums import UserRole
from dcmaint.repositories.user import UserRepository

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class UserPrincipal:
    """
    Authenticated user principal.

    Built from JWT claims. CurrentActiveUser refreshes the role from the
    database; the WebSocket feed uses the claims as they are.
    """

    user_id: UUID
    email: str
    role: UserRole
    name: str = ""

    @property
    def is_admin(self) -> bool:
        """Check if user holds the admin role."""
        return self.role == UserRole.ADMIN


def principal_from_token(token: str) -> UserPrincipal | None:
    """
    Build a principal from an access token.

    Returns None for invalid tokens and for tokens without a known role,
    since roles are only ever assigned at sign-in.
    """
    payload: dict[str, Any] | None = decode_token(token, expected_type="access")
    if payload is None:
        return None

    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        return None

    if "email" not in payload:
        logger.warning(f"Token for user {user_id} missing required email claim.")
        return None

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        logger.warning(f"Token for user {user_id} carries unknown role {payload.get('role')!r}")
        return None

    return UserPrincipal(
        user_id=user_id,
        email=payload["email"],
        role=role,
        name=payload.get("name", ""),
    )


async def get_current_user_optional(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserPrincipal | None:
    """
    Get the current user from the bearer header or access_token cookie.

    Returns None if no token is provided or the token is invalid.
    """
    token = None

    if credentials:
        token = credentials.credentials
    elif "access_token" in request.cookies:
        token = request.cookies["access_token"]

    if not token:
        return None

    return principal_from_token(token)


async def get_current_user(
    user: Annotated[UserPrincipal | None, Depends(get_current_user_optional)],
) -> UserPrincipal:
    """
    Get the current user (required).

    Raises:
        HTTPException: If not authenticated or token is invalid
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_active_user(
    user: Annotated[UserPrincipal, Depends(get_current_user)],
    db: DbSession,
) -> UserPrincipal:
    """
    Get the current user, checked against the database.

    The returned principal carries the role currently stored for the
    account, which may differ from the one in the token.

    Raises:
        HTTPException: If the account no longer exists, is inactive or has no role
    """
    account = await UserRepository(db).get_by_id(user.user_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not account.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    if account.role is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No role assigned")

    role = UserRole(account.role)
    if role != user.role:
        logger.info(
            f"Role of {account.email} changed since token was issued: {user.role.value} -> {role.value}",
            extra={"user_id": str(user.user_id)},
        )
        return replace(user, role=role)
    return user


async def get_current_admin(
    user: Annotated[UserPrincipal, Depends(get_current_active_user)],
) -> UserPrincipal:
    """
    Get the current admin user.

    Raises:
        HTTPException: If user is not an admin
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


async def get_current_standby_engineer(
    user: Annotated[UserPrincipal, Depends(get_current_active_user)],
) -> UserPrincipal:
    """
    Get the current user if they are on standby duty.

    Raises:
        HTTPException: If user is not a standby engineer
    """
    if user.role != UserRole.STANDBY_ENGINEER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Standby engineer role required",
        )
    return user


# Type aliases for dependency injection
CurrentActiveUser = Annotated[UserPrincipal, Depends(get_current_active_user)]
RequireAdmin = Annotated[UserPrincipal, Depends(get_current_admin)]
RequireStandbyEngineer = Annotated[UserPrincipal, Depends(get_current_standby_engineer)]
