"""
Users Router

Admin-only user management:
- Listing accounts
- Provisioning accounts (the role is assigned at first sign-in)
- Editing, deactivating and removing accounts
- Explicit role changes
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from dcmaint.core.auth import RequireAdmin
from dcmaint.core.database import DbSession
from dcmaint.core.security import get_password_hash
from dcmaint.models.contracts.auth import (
    UserCreate,
    UserList,
    UserResponse,
    UserRoleUpdate,
    UserUpdate,
)
from dcmaint.models.enums import UserRole
from dcmaint.repositories.user import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserList)
async def list_users(
    current_user: RequireAdmin,
    db: DbSession,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> UserList:
    """List all users."""
    users, total = await UserRepository(db).list_users(limit=limit, offset=offset)
    return UserList(items=[UserResponse.model_validate(u) for u in users], total=total)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: RequireAdmin,
    db: DbSession,
) -> UserResponse:
    """
    Create a password account.

    The account has no role until its first sign-in, where the usual
    assignment applies.

    Raises:
        HTTPException: If an account with this email already exists
    """
    repo = UserRepository(db)
    if await repo.get_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        )

    user = await repo.create_user(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        name=user_data.name or user_data.email.split("@")[0],
        company_type=user_data.company_type,
    )

    logger.info(
        f"User created: {user.email}",
        extra={"created_user_id": str(user.id), "creator_id": str(current_user.user_id)},
    )
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    current_user: RequireAdmin,
    db: DbSession,
) -> UserResponse:
    """
    Update an account's profile, status or password.

    Admins cannot deactivate themselves.
    """
    if user_id == current_user.user_id and user_data.is_active is False:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate yourself",
        )

    repo = UserRepository(db)
    user = await repo.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user_data.name is not None:
        user.name = user_data.name
    if user_data.company_type is not None:
        user.company_type = user_data.company_type
    if user_data.is_active is not None:
        user.is_active = user_data.is_active
    if user_data.password is not None:
        user.hashed_password = get_password_hash(user_data.password)

    user = await repo.update(user)

    logger.info(
        f"User updated: {user.email}",
        extra={
            "user_id": str(user_id),
            "changed_by": str(current_user.user_id),
            "fields": sorted(user_data.model_dump(exclude_unset=True, exclude={"password"})),
        },
    )
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    current_user: RequireAdmin,
    db: DbSession,
) -> None:
    """
    Remove an account.

    Files and reports the user created are kept. Admins cannot remove
    themselves.
    """
    if user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove yourself",
        )

    repo = UserRepository(db)
    user = await repo.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    await repo.delete(user)

    logger.info(
        f"User removed: {user.email}",
        extra={"removed_user_id": str(user_id), "admin_id": str(current_user.user_id)},
    )


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: UUID,
    role_data: UserRoleUpdate,
    current_user: RequireAdmin,
    db: DbSession,
) -> UserResponse:
    """
    Change a user's role.

    Admins cannot drop their own admin role.
    """
    if user_id == current_user.user_id and role_data.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot remove their own admin role",
        )

    repo = UserRepository(db)
    user = await repo.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.role = role_data.role
    user = await repo.update(user)

    logger.info(
        f"Changed role of {user.email} to {role_data.role.value}",
        extra={"user_id": str(user_id), "changed_by": str(current_user.user_id)},
    )
    return UserResponse.model_validate(user)
