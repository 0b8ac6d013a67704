"""
Account sign-in and role assignment.

Roles are assigned exactly once, at a user's first successful sign-in, from
the configured admin email list. Later sign-ins keep whatever role the user
has, including one an admin set explicitly.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from dcmaint.config import Settings, get_settings
from dcmaint.core.security import get_password_hash, verify_password
from dcmaint.models.enums import UserRole
from dcmaint.models.orm.user import User
from dcmaint.repositories.user import UserRepository

logger = logging.getLogger(__name__)


def default_role_for(email: str, settings: Settings | None = None) -> UserRole:
    """Role a user receives at first sign-in."""
    settings = settings or get_settings()
    if email.strip().lower() in settings.admin_emails_list:
        return UserRole.ADMIN
    return UserRole.ENGINEER


def record_sign_in(user: User, settings: Settings | None = None) -> bool:
    """
    Stamp a successful sign-in on the user.

    Returns:
        True if this was the first sign-in and a role was assigned
    """
    now = datetime.now(UTC)
    user.last_login = now

    if user.role is not None:
        return False

    user.role = default_role_for(user.email, settings)
    user.first_login_at = now
    logger.info(
        f"Assigned role {user.role.value} to {user.email} at first sign-in",
        extra={"user_id": str(user.id), "role": user.role.value},
    )
    return True


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """
    Check credentials and record the sign-in.

    Returns:
        The signed-in user, or None if the credentials do not match
    """
    user = await UserRepository(db).get_by_email(email)
    if user is None or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if user.is_active:
        record_sign_in(user)
        await db.flush()
    return user


async def ensure_default_user(db: AsyncSession, settings: Settings | None = None) -> User | None:
    """
    Create the bootstrap user from settings if it does not exist yet.

    The role is left unassigned so the first sign-in policy applies to it
    like to any other account.
    """
    settings = settings or get_settings()
    if not settings.default_user_email or not settings.default_user_password:
        return None

    repo = UserRepository(db)
    existing = await repo.get_by_email(settings.default_user_email)
    if existing:
        logger.info(f"Default user already exists: {settings.default_user_email}")
        return existing

    user = await repo.create_user(
        email=settings.default_user_email,
        hashed_password=get_password_hash(settings.default_user_password),
        name="Admin",
    )
    logger.info(f"Created default user: {user.email} (id: {user.id})")
    return user
